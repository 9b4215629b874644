"""Dashboard service: per-company record counters."""
import logging
from typing import Dict

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from pdv_web.models import Customer, Product, Sale

logger = logging.getLogger(__name__)


def get_dashboard_counts(db_session, tenant_key: str) -> Dict[str, int]:
    """
    Active products, active customers and sales of the company.

    A store failure yields zeros instead of an error page.
    """
    counts = {'produtos': 0, 'clientes': 0, 'vendas': 0}
    try:
        counts['produtos'] = db_session.query(func.count(Product.id)).filter(
            Product.cnpj == tenant_key,
            Product.active.is_(True)
        ).scalar() or 0
        counts['clientes'] = db_session.query(func.count(Customer.id)).filter(
            Customer.cnpj == tenant_key,
            Customer.active.is_(True)
        ).scalar() or 0
        counts['vendas'] = db_session.query(func.count(Sale.id)).filter(
            Sale.cnpj == tenant_key
        ).scalar() or 0
    except SQLAlchemyError as e:
        db_session.rollback()
        logger.error(f"[DASHBOARD] Counting failed for {tenant_key}: {e}")
    return counts
