"""
Pricing service: cost / margin / sale price derivation and promotion overlay.

The three prices form a triangle (sale = cost * (1 + margin / 100)). Whichever
field the user edited last is the *driver*; exactly one of the other two is
recomputed from it and nothing cascades further.
"""
import enum
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from pdv_web.exceptions import BusinessLogicError

MONEY_PLACES = Decimal('0.01')
PERCENT_PLACES = Decimal('0.0001')
HUNDRED = Decimal('100')

Number = Union[Decimal, int, float, str]


class PriceDriver(enum.Enum):
    """Field the user edited last."""
    COST = 'cost'
    MARGIN = 'margin'
    SALE_PRICE = 'sale_price'

    @classmethod
    def parse(cls, value: Optional[str], default: Optional['PriceDriver'] = None) -> 'PriceDriver':
        """Parse a form value ('cost', 'margin', 'sale_price'); unknown -> default."""
        try:
            return cls((value or '').strip().lower())
        except ValueError:
            return default or cls.MARGIN


@dataclass(frozen=True)
class PricingFields:
    """Pricing subset of a catalog item."""
    cost_price: Decimal = Decimal('0')
    margin_percent: Optional[Decimal] = Decimal('0')
    sale_price: Decimal = Decimal('0')
    promotion_active: bool = False
    promotional_price: Optional[Decimal] = None
    promotion_start: Optional[date] = None
    promotion_end: Optional[date] = None


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """Convert to Decimal without going through float rounding; None/'' -> None."""
    if value is None or value == '':
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise BusinessLogicError(f'Valor numérico inválido: {value}') from e


def quantize_money(value: Optional[Number]) -> Optional[Decimal]:
    """Monetary values are persisted with two decimal places."""
    value = to_decimal(value)
    if value is None:
        return None
    return value.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def quantize_percent(value: Optional[Number]) -> Optional[Decimal]:
    """Percentages keep four decimal places (at least two are required)."""
    value = to_decimal(value)
    if value is None:
        return None
    return value.quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP)


def price_from_cost_and_margin(cost: Number, margin_percent: Number) -> Decimal:
    """cost * (1 + margin / 100)"""
    cost = to_decimal(cost) or Decimal('0')
    margin = to_decimal(margin_percent) or Decimal('0')
    return cost * (1 + margin / HUNDRED)


def margin_from_cost_and_price(cost: Number, price: Number) -> Optional[Decimal]:
    """
    (price - cost) / cost * 100, or None when cost is zero or negative.

    None means "undefined" and must not be shown as 0.
    """
    cost = to_decimal(cost)
    price = to_decimal(price) or Decimal('0')
    if cost is None or cost <= 0:
        return None
    return (price - cost) / cost * HUNDRED


def apply_edit(fields: PricingFields, driver: PriceDriver, value: Optional[Number]) -> PricingFields:
    """
    Set the edited field and run the single derivation it triggers.

    - COST: sale price from the new cost and the current margin. When the
      current margin is undefined the sale price is left untouched.
    - MARGIN: sale price from the current cost and the new margin. A cleared
      margin is undefined and leaves the sale price untouched.
    - SALE_PRICE: margin from the current cost and the new price.
    """
    if driver is PriceDriver.COST:
        cost = quantize_money(value) or Decimal('0.00')
        if fields.margin_percent is None:
            return replace(fields, cost_price=cost)
        sale = quantize_money(price_from_cost_and_margin(cost, fields.margin_percent))
        return replace(fields, cost_price=cost, sale_price=sale)

    if driver is PriceDriver.MARGIN:
        margin = quantize_percent(value)
        if margin is None:
            return replace(fields, margin_percent=None)
        sale = quantize_money(price_from_cost_and_margin(fields.cost_price, margin))
        return replace(fields, margin_percent=margin, sale_price=sale)

    sale = quantize_money(value) or Decimal('0.00')
    margin = quantize_percent(margin_from_cost_and_price(fields.cost_price, sale))
    return replace(fields, sale_price=sale, margin_percent=margin)


def derive(cost: Optional[Number], margin_percent: Optional[Number], sale_price: Optional[Number],
           driver: PriceDriver) -> PricingFields:
    """
    Build consistent pricing fields from a submitted form.

    The non-driver inputs are taken as the "current" state and the driver
    value is applied on top with apply_edit().
    """
    current = PricingFields(
        cost_price=quantize_money(cost) or Decimal('0.00'),
        margin_percent=quantize_percent(margin_percent),
        sale_price=quantize_money(sale_price) or Decimal('0.00'),
    )
    edited = {
        PriceDriver.COST: cost,
        PriceDriver.MARGIN: margin_percent,
        PriceDriver.SALE_PRICE: sale_price,
    }[driver]
    return apply_edit(current, driver, edited)


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def is_promotion_running(fields: PricingFields, now: Union[date, datetime]) -> bool:
    """Active flag set and today inside [start, end]; an unset bound is open."""
    if not fields.promotion_active or fields.promotional_price is None:
        return False
    today = _as_date(now)
    if fields.promotion_start and today < _as_date(fields.promotion_start):
        return False
    if fields.promotion_end and today > _as_date(fields.promotion_end):
        return False
    return True


def effective_price(fields: PricingFields, now: Union[date, datetime]) -> Decimal:
    """Promotional price while the promotion runs, sale price otherwise."""
    if is_promotion_running(fields, now):
        return fields.promotional_price
    return fields.sale_price


def discount_percent(sale_price: Optional[Number], promotional_price: Optional[Number]) -> Optional[Decimal]:
    """(sale - promo) / sale * 100 for display; None when sale price is not positive."""
    sale = to_decimal(sale_price)
    promo = to_decimal(promotional_price)
    if sale is None or promo is None or sale <= 0:
        return None
    return quantize_money((sale - promo) / sale * HUNDRED)


def validate_promotion_window(fields: PricingFields) -> None:
    """Reject a promotion that ends before it starts."""
    if fields.promotion_start and fields.promotion_end and fields.promotion_start > fields.promotion_end:
        raise BusinessLogicError('A data final da promoção deve ser igual ou posterior à data inicial')


def fields_from_product(product) -> PricingFields:
    """Snapshot the pricing subset of a Product row."""
    return PricingFields(
        cost_price=to_decimal(product.cost_price) or Decimal('0'),
        margin_percent=to_decimal(product.margin_percent),
        sale_price=to_decimal(product.sale_price) or Decimal('0'),
        promotion_active=bool(product.promotion_active),
        promotional_price=to_decimal(product.promotional_price),
        promotion_start=product.promotion_start,
        promotion_end=product.promotion_end,
    )
