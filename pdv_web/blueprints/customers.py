from flask import Blueprint, render_template, request, redirect, url_for, flash, g, Response, current_app
from pdv_web.exceptions import BusinessLogicError, NotFoundError, RemoteStoreError
from typing import Dict, Optional, Union, Any, Tuple
from pdv_web.blueprints.metrics import record_saves_total
from pdv_web.database import get_session
from pdv_web.middleware import require_tenant_session
from pdv_web.services.customer_service import CustomerEditor

customers_bp = Blueprint('customers', __name__, url_prefix='/<cnpj>/clientes')

CUSTOMER_FIELDS = ('name', 'tax_id', 'phone', 'email', 'zip_code', 'street', 'number', 'district', 'city', 'state')


def _editor() -> CustomerEditor:
    return CustomerEditor(
        get_session(),
        origin=current_app.config.get('RECORD_ORIGIN', 'web'),
        local_id_prefix=current_app.config.get('LOCAL_ID_PREFIX', 'web'),
    )


def _get_customer_data_from_form() -> Dict[str, Any]:
    """Extract customer data from request.form (normalized by the editor)."""
    return {key: request.form.get(key, '') for key in CUSTOMER_FIELDS}


def _render_form(record: Dict[str, Any], customer: Optional[Any] = None, status: int = 200) -> Tuple[str, int]:
    return render_template('customers/form.html', record=record, customer=customer), status


@customers_bp.route('/')
@require_tenant_session
def list_customers(cnpj: str) -> str:
    """List active customers of the company with search."""
    search_query = request.args.get('q', '').strip()
    customers = _editor().list(g.tenant_key, search=search_query)

    is_htmx = request.headers.get('HX-Request') == 'true'
    template = 'customers/_list_table.html' if is_htmx else 'customers/list.html'

    return render_template(template, customers=customers, search_query=search_query)


@customers_bp.route('/novo', methods=['GET', 'POST'])
@require_tenant_session
def new_customer(cnpj: str) -> Union[str, Response, Tuple[str, int]]:
    """Create a customer."""
    if request.method == 'GET':
        return render_template('customers/form.html', record={}, customer=None)

    data = _get_customer_data_from_form()
    try:
        customer = _editor().save(g.tenant_key, data, is_new=True)
    except (BusinessLogicError, RemoteStoreError) as e:
        flash(e.message, 'danger')
        return _render_form(data, status=e.status_code)

    record_saves_total.labels(kind='customer', operation='create').inc()
    current_app.logger.info(f"[CLIENTES] Customer {customer.id} created for {g.tenant_key}")
    flash(f'Cliente "{customer.name}" cadastrado com sucesso', 'success')
    return redirect(url_for('customers.list_customers', cnpj=g.tenant_key))


@customers_bp.route('/<int:customer_id>/editar', methods=['GET', 'POST'])
@require_tenant_session
def edit_customer(cnpj: str, customer_id: int) -> Union[str, Response, Tuple[str, int]]:
    """Edit a customer of the company."""
    editor = _editor()

    if request.method == 'GET':
        try:
            customer = editor.get(g.tenant_key, customer_id)
        except RemoteStoreError as e:
            flash(e.message, 'danger')
            return redirect(url_for('customers.list_customers', cnpj=g.tenant_key))

        if customer is None:
            flash('Cliente não encontrado', 'warning')
            return redirect(url_for('customers.list_customers', cnpj=g.tenant_key))

        record = {key: getattr(customer, key) or '' for key in CUSTOMER_FIELDS}
        return _render_form(record, customer=customer)

    data = _get_customer_data_from_form()
    data['id'] = customer_id
    try:
        customer = editor.save(g.tenant_key, data, is_new=False)
    except NotFoundError as e:
        flash(e.message, 'warning')
        return redirect(url_for('customers.list_customers', cnpj=g.tenant_key))
    except (BusinessLogicError, RemoteStoreError) as e:
        flash(e.message, 'danger')
        return _render_form(data, customer={'id': customer_id}, status=e.status_code)

    record_saves_total.labels(kind='customer', operation='update').inc()
    current_app.logger.info(f"[CLIENTES] Customer {customer.id} updated for {g.tenant_key}")
    flash(f'Cliente "{customer.name}" atualizado com sucesso', 'success')
    return redirect(url_for('customers.list_customers', cnpj=g.tenant_key))


@customers_bp.route('/<int:customer_id>/excluir', methods=['POST'])
@require_tenant_session
def delete_customer(cnpj: str, customer_id: int) -> Response:
    """Deactivate a customer (kept in the store for sales history)."""
    editor = _editor()
    try:
        customer = editor.get(g.tenant_key, customer_id)
        if customer is None:
            flash('Cliente não encontrado', 'warning')
        else:
            editor.soft_delete(customer)
            record_saves_total.labels(kind='customer', operation='delete').inc()
            flash(f'Cliente "{customer.name}" excluído', 'success')
    except RemoteStoreError as e:
        flash(e.message, 'danger')

    return redirect(url_for('customers.list_customers', cnpj=g.tenant_key))
