"""Catalog (produtos) editor with derived pricing."""
from datetime import date
from typing import Any, Dict, Optional, Union

from pdv_web.exceptions import BusinessLogicError
from pdv_web.models import Product
from pdv_web.services import pricing_service
from pdv_web.services.pricing_service import PriceDriver, PricingFields
from pdv_web.services.record_editor import RecordEditor
from pdv_web.utils.tenant_key import upper_or_none

DEFAULT_UNIT = 'UN'


def parse_date(value: Union[date, str, None]) -> Optional[date]:
    """ISO date from a form (YYYY-MM-DD); empty -> None."""
    if value is None or isinstance(value, date):
        return value
    value = value.strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise BusinessLogicError(f'Data inválida: {value}') from e


class ProductEditor(RecordEditor):
    """
    Product editor.

    Record keys: id, code, name, category, unit, stock_qty, cost_price,
    margin_percent, sale_price, driver, promotion_active, promotional_price,
    promotion_start, promotion_end.
    """

    model = Product
    search_columns = (Product.name, Product.code)
    label = 'produto'
    not_found_message = 'Produto não encontrado'

    def prepare(self, record: Dict[str, Any]) -> Dict[str, Any]:
        name = (record.get('name') or '').strip()
        if not name:
            raise BusinessLogicError('O nome do produto é obrigatório')

        driver = record.get('driver')
        if not isinstance(driver, PriceDriver):
            driver = PriceDriver.parse(driver)

        prices = pricing_service.derive(
            record.get('cost_price'),
            record.get('margin_percent'),
            record.get('sale_price'),
            driver,
        )
        for label, value in (('custo', prices.cost_price), ('preço de venda', prices.sale_price)):
            if value < 0:
                raise BusinessLogicError(f'O {label} deve ser maior ou igual a 0')

        promotion_active = bool(record.get('promotion_active'))
        promotional_price = pricing_service.quantize_money(record.get('promotional_price'))
        if promotion_active and promotional_price is None:
            raise BusinessLogicError('Informe o preço promocional')
        if promotional_price is not None and promotional_price < 0:
            raise BusinessLogicError('O preço promocional deve ser maior ou igual a 0')

        window = PricingFields(
            promotion_start=parse_date(record.get('promotion_start')),
            promotion_end=parse_date(record.get('promotion_end')),
        )
        pricing_service.validate_promotion_window(window)

        stock = pricing_service.to_decimal(record.get('stock_qty'))

        return {
            'code': (record.get('code') or '').strip() or None,
            'name': name.upper(),
            'category': upper_or_none(record.get('category')),
            'unit': (record.get('unit') or DEFAULT_UNIT).strip().upper() or DEFAULT_UNIT,
            'stock_qty': stock if stock is not None else 0,
            'cost_price': prices.cost_price,
            'margin_percent': prices.margin_percent,
            'sale_price': prices.sale_price,
            'promotion_active': promotion_active,
            'promotional_price': promotional_price,
            'promotion_start': window.promotion_start,
            'promotion_end': window.promotion_end,
        }
