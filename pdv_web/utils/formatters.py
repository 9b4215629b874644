"""
Utilidades de formatação para templates.
Números, moeda, datas e documentos no padrão brasileiro.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional

from pdv_web.utils.tenant_key import format_cnpj, format_cpf, normalize

Numeric = Union[int, float, Decimal, str, None]


def _group_thousands(integer_part: str) -> str:
    # Inverte, agrupa de 3 em 3, inverte de novo
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    return '.'.join(groups)[::-1]


def num_br(value: Numeric, decimals: Optional[int] = None) -> str:
    """
    Formata um número no padrão brasileiro:
    - Separador de milhar: ponto (.)
    - Separador decimal: vírgula (,)
    - Sem `decimals`, zeros finais são omitidos

    Examples:
        num_br(1500) -> "1.500"
        num_br(1500.5) -> "1.500,5"
        num_br(12.5, 2) -> "12,50"
        num_br(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        if isinstance(value, str):
            value = value.replace(",", ".")
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    if decimals is not None:
        num = num.quantize(Decimal(10) ** -decimals)
        text = f"{abs(num):.{decimals}f}"
    else:
        text = f"{abs(num):f}"

    if '.' in text:
        integer_part, decimal_part = text.split('.')
        if decimals is None:
            decimal_part = decimal_part.rstrip('0')
    else:
        integer_part, decimal_part = text, ""

    sign = '-' if num < 0 and (integer_part.strip('0') or decimal_part.strip('0')) else ''
    integer_formatted = _group_thousands(integer_part)

    if decimal_part:
        return f"{sign}{integer_formatted},{decimal_part}"
    return f"{sign}{integer_formatted}"


def money_br(value: Numeric) -> str:
    """
    Formata um valor monetário: "R$ 1.234,50". Sempre dois decimais.

    Devolve "-" quando o valor é inválido.
    """
    formatted = num_br(value, 2)
    if formatted == "-":
        return formatted
    return f"R$ {formatted}"


def percent_br(value: Numeric) -> str:
    """
    Formata um percentual com dois decimais: "30,00%".

    None representa uma margem indefinida (custo zero) e vira "-", nunca "0%".
    """
    formatted = num_br(value, 2)
    if formatted == "-":
        return formatted
    return f"{formatted}%"


def input_br(value: Numeric, decimals: Optional[int] = None) -> str:
    """
    Valor numérico para pré-preencher um input de formulário.

    Mesmo formato de num_br (lido de volta por parse_br_number), mas vazio
    quando não há valor.

    Examples:
        input_br(Decimal("1500.00"), 2) -> "1.500,00"
        input_br(Decimal("10.000")) -> "10"
        input_br(None) -> ""
    """
    if value is None or value == "":
        return ""
    formatted = num_br(value, decimals)
    return "" if formatted == "-" else formatted


def date_br(value: Union[date, datetime, None]) -> str:
    """
    Formata uma data: DD/MM/AAAA

    Examples:
        date_br(date(2025, 1, 15)) -> "15/01/2025"
    """
    if value is None:
        return "-"

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return "-"

    return value.strftime("%d/%m/%Y")


def datetime_br(value: Union[datetime, None], with_time: bool = True) -> str:
    """Formata data e hora: DD/MM/AAAA HH:MM"""
    if value is None or not isinstance(value, datetime):
        return "-"

    if with_time:
        return value.strftime("%d/%m/%Y %H:%M")
    return value.strftime("%d/%m/%Y")


def cnpj_br(value: Optional[str]) -> str:
    """12345678000195 -> 12.345.678/0001-95"""
    return format_cnpj(value) or "-"


def document_br(value: Optional[str]) -> str:
    """CPF (11 dígitos) ou CNPJ (14 dígitos) formatado; outros valores sem alteração."""
    digits = normalize(value)
    if len(digits) == 11:
        return format_cpf(digits)
    if len(digits) == 14:
        return format_cnpj(digits)
    return value or "-"


def phone_br(value: Optional[str]) -> str:
    """Telefone com DDD: (51) 99999-9999 / (51) 3333-4444"""
    digits = normalize(value)
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return value or "-"
