"""Customer model."""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from pdv_web.database import Base, Identifier


class Customer(Base):
    """Customer (cliente)."""

    __tablename__ = 'clientes'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    cnpj = Column(String(14), ForeignKey('empresas.cnpj'), nullable=False, index=True)
    local_id = Column(String(50), nullable=True)
    tax_id = Column('cpf_cnpj', String(14), nullable=True)  # digits only
    name = Column('nome', String(200), nullable=False)
    phone = Column('telefone', String(20), nullable=True)  # digits only
    email = Column(String(255), nullable=True)
    zip_code = Column('cep', String(8), nullable=True)
    street = Column('logradouro', String(200), nullable=True)
    number = Column('numero', String(20), nullable=True)
    district = Column('bairro', String(100), nullable=True)
    city = Column('cidade', String(100), nullable=True)
    state = Column('uf', String(2), nullable=True)
    active = Column('ativo', Boolean, nullable=False, default=True)
    origin = Column('origem', String(20), nullable=False, default='web')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    @property
    def location(self) -> str:
        """City/UF for the listing, '-' when unknown."""
        if not self.city:
            return '-'
        return f"{self.city}/{self.state}" if self.state else self.city

    def __repr__(self):
        return f"<Customer(id={self.id}, cnpj='{self.cnpj}', name='{self.name}')>"
