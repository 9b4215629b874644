"""Product model."""
from sqlalchemy import Column, String, Boolean, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from pdv_web.database import Base, Identifier


class Product(Base):
    """Catalog item (produto), shared with the desktop POS through the same table."""

    __tablename__ = 'produtos'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    cnpj = Column(String(14), ForeignKey('empresas.cnpj'), nullable=False, index=True)
    local_id = Column(String(50), nullable=True)  # temporary id assigned by the creating client
    code = Column('codigo', String(60), nullable=True)
    name = Column('nome', String(200), nullable=False)
    category = Column('categoria', String(100), nullable=True)
    unit = Column('unidade', String(10), nullable=False, default='UN')
    stock_qty = Column('estoque_atual', Numeric(12, 3), nullable=False, default=0)

    # Pricing triangle: sale = cost * (1 + margin / 100)
    cost_price = Column('preco_custo', Numeric(10, 2), nullable=False, default=0)
    margin_percent = Column('margem_lucro', Numeric(9, 4), nullable=True, default=0)  # NULL = undefined (cost 0)
    sale_price = Column('preco_venda', Numeric(10, 2), nullable=False, default=0)

    # Promotion overlay
    promotion_active = Column('promocao_ativa', Boolean, nullable=False, default=False)
    promotional_price = Column('preco_promocional', Numeric(10, 2), nullable=True)
    promotion_start = Column('promocao_inicio', Date, nullable=True)
    promotion_end = Column('promocao_fim', Date, nullable=True)

    active = Column('ativo', Boolean, nullable=False, default=True)
    origin = Column('origem', String(20), nullable=False, default='web')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Product(id={self.id}, cnpj='{self.cnpj}', name='{self.name}')>"
