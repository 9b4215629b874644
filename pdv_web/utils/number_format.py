"""Number parsing utilities for Brazilian formats."""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

BR_NUMBER_PATTERN = re.compile(r"^-?(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$")
PLAIN_NUMBER_PATTERN = re.compile(r"^-?\d+\.\d+$")


def parse_br_number(value: Optional[str]) -> Optional[Decimal]:
    """
    Parse a number typed in a form to Decimal.

    The Brazilian format is tried first, so "1.500" is one thousand five
    hundred. A dotted value that is not valid thousand grouping ("12.5",
    "1234.56") is read as a plain decimal. Empty input yields None.

    Rules:
    - Thousands separator: dot (.)
    - Decimal separator: comma (,)
    - Variable decimal digits
    - Proper thousand grouping (1.234,56 is valid; 1.2,00 is not)

    Raises:
        ValueError: if the value is not a number.
    """
    if value is None:
        return None

    cleaned = str(value).strip().replace(' ', '')
    if not cleaned:
        return None

    if BR_NUMBER_PATTERN.match(cleaned):
        normalized = cleaned.replace('.', '').replace(',', '.')
    elif PLAIN_NUMBER_PATTERN.match(cleaned):
        normalized = cleaned
    else:
        raise ValueError('Formato inválido. Use 1.234,56')

    try:
        return Decimal(normalized)
    except (InvalidOperation, ValueError):
        raise ValueError('Formato inválido. Use 1.234,56')
