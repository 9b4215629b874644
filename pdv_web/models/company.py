"""Company model - each business (tenant) using the platform, keyed by CNPJ."""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from pdv_web.database import Base


class Company(Base):
    """Company (empresa). The CNPJ is the tenant key of every other relation."""

    __tablename__ = 'empresas'

    cnpj = Column(String(14), primary_key=True)  # digits only
    legal_name = Column('razao_social', String(200), nullable=False)
    trade_name = Column('nome_fantasia', String(200), nullable=True)
    city = Column('cidade', String(100), nullable=True)
    state = Column('uf', String(2), nullable=True)
    phone = Column('telefone', String(20), nullable=True)
    email = Column(String(255), nullable=True)
    origin = Column('origem', String(20), nullable=False, default='web')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    @property
    def display_name(self) -> str:
        """Trade name when present, legal name otherwise."""
        return self.trade_name or self.legal_name

    def __repr__(self):
        return f"<Company(cnpj='{self.cnpj}', name='{self.display_name}')>"
