"""
Tenant key (CNPJ) normalization helpers.

A tenant key is the 14-digit CNPJ of a company. Users type it with
punctuation ("12.345.678/0001-95") and URLs may carry either form, so every
lookup and every store filter goes through normalize() first.
"""
import re
from typing import Optional

CNPJ_LENGTH = 14
CPF_LENGTH = 11

_NON_DIGITS = re.compile(r'\D')


def normalize(raw: Optional[str]) -> str:
    """
    Strip every non-digit character.

    Never validates length: partial input yields a short key and callers
    decide whether exactly 14 digits are required.

    Examples:
        normalize("12.345.678/0001-95") -> "12345678000195"
        normalize("") -> ""
    """
    if not raw:
        return ''
    return _NON_DIGITS.sub('', str(raw))


def digits_or_none(raw: Optional[str]) -> Optional[str]:
    """Digit-normalize an optional field (tax id, phone, ZIP); empty -> None."""
    digits = normalize(raw)
    return digits or None


def upper_or_none(raw: Optional[str]) -> Optional[str]:
    """Trim and upper-case an optional text field (name, city, UF); empty -> None."""
    value = (raw or '').strip()
    return value.upper() or None


def is_complete(tenant_key: Optional[str]) -> bool:
    """True when the key is exactly 14 digits."""
    key = tenant_key or ''
    return len(key) == CNPJ_LENGTH and key.isdigit()


def format_cnpj(value: Optional[str]) -> str:
    """
    Format a (possibly partial) CNPJ for display: 00.000.000/0000-00.

    Extra digits beyond 14 are dropped.
    """
    digits = normalize(value)[:CNPJ_LENGTH]
    parts = [digits[:2], digits[2:5], digits[5:8], digits[8:12], digits[12:14]]
    out = parts[0]
    for sep, part in zip(('.', '.', '/', '-'), parts[1:]):
        if not part:
            break
        out += sep + part
    return out


def format_cpf(value: Optional[str]) -> str:
    """Format a (possibly partial) CPF for display: 000.000.000-00."""
    digits = normalize(value)[:CPF_LENGTH]
    parts = [digits[:3], digits[3:6], digits[6:9], digits[9:11]]
    out = parts[0]
    for sep, part in zip(('.', '.', '-'), parts[1:]):
        if not part:
            break
        out += sep + part
    return out
