"""
Dashboard blueprint.
Company home page after login: record counters and shortcuts.
"""

from flask import Blueprint, render_template, g

from pdv_web.database import get_session
from pdv_web.exceptions import RemoteStoreError
from pdv_web.middleware import require_tenant_session
from pdv_web.services.company_service import find_company
from pdv_web.services.dashboard_service import get_dashboard_counts


dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.route('/<cnpj>/dashboard')
@require_tenant_session
def index(cnpj):
    """
    Dashboard home page.

    Shows for the current company:
    - Produtos ativos
    - Clientes ativos
    - Vendas registradas (pelo PDV desktop)
    """
    db_session = get_session()

    try:
        company = find_company(db_session, g.tenant_key)
    except RemoteStoreError:
        company = None

    counts = get_dashboard_counts(db_session, g.tenant_key)

    return render_template(
        'dashboard/index.html',
        company=company,
        counts=counts,
        pdv_session=g.pdv_session,
    )
