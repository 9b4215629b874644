"""Sale model (read-only here: sales are recorded by the desktop POS)."""
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey
from sqlalchemy.sql import func
from pdv_web.database import Base, Identifier


class Sale(Base):
    """Sale (venda)."""

    __tablename__ = 'vendas'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    cnpj = Column(String(14), ForeignKey('empresas.cnpj'), nullable=False, index=True)
    local_id = Column(String(50), nullable=True)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    origin = Column('origem', String(20), nullable=False, default='desktop')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Sale(id={self.id}, cnpj='{self.cnpj}', total={self.total})>"
