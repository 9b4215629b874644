"""Catalog blueprint for products management, scoped by the company in the URL."""
from datetime import date
from typing import Any, Dict, Tuple, Union

from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app, g, Response

from pdv_web.blueprints.metrics import record_saves_total
from pdv_web.database import get_session
from pdv_web.exceptions import BusinessLogicError, NotFoundError, RemoteStoreError
from pdv_web.middleware import require_tenant_session
from pdv_web.services import pricing_service
from pdv_web.services.catalog_service import ProductEditor, parse_date
from pdv_web.services.pricing_service import PriceDriver, PricingFields
from pdv_web.utils.formatters import input_br
from pdv_web.utils.number_format import parse_br_number

catalog_bp = Blueprint('catalog', __name__, url_prefix='/<cnpj>/produtos')


def _editor() -> ProductEditor:
    return ProductEditor(
        get_session(),
        origin=current_app.config.get('RECORD_ORIGIN', 'web'),
        local_id_prefix=current_app.config.get('LOCAL_ID_PREFIX', 'web'),
    )


def _checked(value) -> bool:
    return (value or '').lower() in ('on', '1', 'true', 'y', 'yes')


def _record_from_form(form) -> Dict[str, Any]:
    """
    Product data from request.form.

    Raises:
        BusinessLogicError: a numeric field is not a number
    """
    numbers = {}
    for key, label in (('stock_qty', 'Estoque'), ('cost_price', 'Custo'), ('margin_percent', 'Margem'),
                       ('sale_price', 'Preço de venda'), ('promotional_price', 'Preço promocional')):
        try:
            numbers[key] = parse_br_number(form.get(key))
        except ValueError:
            raise BusinessLogicError(f'{label}: valor numérico inválido')

    return {
        'code': form.get('code', ''),
        'name': form.get('name', ''),
        'category': form.get('category', ''),
        'unit': form.get('unit', ''),
        'driver': form.get('driver'),
        'promotion_active': _checked(form.get('promotion_active')),
        'promotion_start': form.get('promotion_start', ''),
        'promotion_end': form.get('promotion_end', ''),
        **numbers,
    }


def _date_value(value) -> str:
    """Form value for a stored date ('' when unset)."""
    return value.isoformat() if value else ''


def _record_from_product(product) -> Dict[str, Any]:
    """Form values of a stored product, numbers in the Brazilian format the form parses."""
    return {
        'code': product.code or '',
        'name': product.name,
        'category': product.category or '',
        'unit': product.unit,
        'stock_qty': input_br(product.stock_qty),
        'cost_price': input_br(product.cost_price, 2),
        'margin_percent': input_br(product.margin_percent),
        'sale_price': input_br(product.sale_price, 2),
        'driver': PriceDriver.SALE_PRICE.value,
        'promotion_active': product.promotion_active,
        'promotional_price': input_br(product.promotional_price, 2),
        'promotion_start': _date_value(product.promotion_start),
        'promotion_end': _date_value(product.promotion_end),
    }


def _render_form(record, product=None, status: int = 200) -> Tuple[str, int]:
    return render_template('catalog/form.html', record=record, product=product), status


@catalog_bp.app_template_global()
def promotion_running(product) -> bool:
    """Whether the product sells at its promotional price today."""
    return pricing_service.is_promotion_running(pricing_service.fields_from_product(product), date.today())


@catalog_bp.route('/')
@require_tenant_session
def list_products(cnpj: str) -> str:
    """List active products of the company, optionally filtered by name/code."""
    search_query = request.args.get('q', '').strip()
    products = _editor().list(g.tenant_key, search=search_query)

    # Live search from the list page
    is_htmx = request.headers.get('HX-Request') == 'true'
    template = 'catalog/_list_table.html' if is_htmx else 'catalog/list.html'

    return render_template(template, products=products, search_query=search_query)


@catalog_bp.route('/novo', methods=['GET'])
@require_tenant_session
def new_product(cnpj: str) -> str:
    """Empty product form."""
    record = {'unit': 'UN', 'driver': PriceDriver.MARGIN.value}
    return render_template('catalog/form.html', record=record, product=None)


@catalog_bp.route('/novo', methods=['POST'])
@require_tenant_session
def create_product(cnpj: str) -> Union[Response, Tuple[str, int]]:
    """Insert a product for the company."""
    try:
        record = _record_from_form(request.form)
        product = _editor().save(g.tenant_key, record, is_new=True)
    except (BusinessLogicError, RemoteStoreError) as e:
        flash(e.message, 'danger')
        return _render_form(request.form, status=e.status_code)

    record_saves_total.labels(kind='product', operation='create').inc()
    current_app.logger.info(f"[CATALOG] Product {product.id} created for {g.tenant_key}")
    flash(f'Produto "{product.name}" cadastrado com sucesso', 'success')
    return redirect(url_for('catalog.list_products', cnpj=g.tenant_key))


@catalog_bp.route('/<int:product_id>/editar', methods=['GET'])
@require_tenant_session
def edit_product(cnpj: str, product_id: int) -> Union[str, Response, Tuple[str, int]]:
    """Product form filled with the stored values."""
    try:
        product = _editor().get(g.tenant_key, product_id)
    except RemoteStoreError as e:
        flash(e.message, 'danger')
        return redirect(url_for('catalog.list_products', cnpj=g.tenant_key))

    if product is None:
        flash('Produto não encontrado', 'warning')
        return redirect(url_for('catalog.list_products', cnpj=g.tenant_key))

    return _render_form(_record_from_product(product), product=product)


@catalog_bp.route('/<int:product_id>/editar', methods=['POST'])
@require_tenant_session
def update_product(cnpj: str, product_id: int) -> Union[Response, Tuple[str, int]]:
    """Update a product of the company by id."""
    editor = _editor()
    try:
        record = _record_from_form(request.form)
        record['id'] = product_id
        product = editor.save(g.tenant_key, record, is_new=False)
    except NotFoundError as e:
        flash(e.message, 'warning')
        return redirect(url_for('catalog.list_products', cnpj=g.tenant_key))
    except (BusinessLogicError, RemoteStoreError) as e:
        flash(e.message, 'danger')
        return _render_form(request.form, product={'id': product_id}, status=e.status_code)

    record_saves_total.labels(kind='product', operation='update').inc()
    current_app.logger.info(f"[CATALOG] Product {product.id} updated for {g.tenant_key}")
    flash(f'Produto "{product.name}" atualizado com sucesso', 'success')
    return redirect(url_for('catalog.list_products', cnpj=g.tenant_key))


@catalog_bp.route('/<int:product_id>/excluir', methods=['POST'])
@require_tenant_session
def delete_product(cnpj: str, product_id: int) -> Response:
    """Deactivate a product; it leaves the active list but stays in the store."""
    editor = _editor()
    try:
        product = editor.get(g.tenant_key, product_id)
        if product is None:
            flash('Produto não encontrado', 'warning')
        else:
            editor.soft_delete(product)
            record_saves_total.labels(kind='product', operation='delete').inc()
            flash(f'Produto "{product.name}" excluído', 'success')
    except RemoteStoreError as e:
        flash(e.message, 'danger')

    return redirect(url_for('catalog.list_products', cnpj=g.tenant_key))


@catalog_bp.route('/precos', methods=['POST'])
@require_tenant_session
def pricing_preview(cnpj: str) -> str:
    """
    HTMX partial: recompute the pricing triangle after one field was edited.

    The `driver` form value names the edited field; the other fields come
    back as out-of-band swaps so the input being typed in keeps its focus.
    """
    driver = PriceDriver.parse(request.form.get('driver'))
    error = None
    try:
        record = _record_from_form(request.form)
        fields = pricing_service.derive(
            record['cost_price'], record['margin_percent'], record['sale_price'], driver
        )
        fields = PricingFields(
            cost_price=fields.cost_price,
            margin_percent=fields.margin_percent,
            sale_price=fields.sale_price,
            promotion_active=record['promotion_active'],
            promotional_price=pricing_service.quantize_money(record['promotional_price']),
            promotion_start=parse_date(record['promotion_start']),
            promotion_end=parse_date(record['promotion_end']),
        )
    except BusinessLogicError as e:
        error = e.message
        fields = None

    discount = None
    price_now = None
    if fields is not None:
        discount = pricing_service.discount_percent(fields.sale_price, fields.promotional_price)
        price_now = pricing_service.effective_price(fields, date.today())

    return render_template(
        'catalog/_pricing.html',
        fields=fields,
        driver=driver.value,
        discount=discount,
        price_now=price_now,
        error=error,
    )
