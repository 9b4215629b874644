"""Customer (clientes) editor."""
from typing import Any, Dict, Optional

from pdv_web.exceptions import BusinessLogicError
from pdv_web.models import Customer
from pdv_web.services.record_editor import RecordEditor
from pdv_web.utils.tenant_key import digits_or_none, upper_or_none


def _text(value: Optional[str]) -> Optional[str]:
    return (value or '').strip() or None


class CustomerEditor(RecordEditor):
    """Customer editor: upper-cased names/addresses, digits-only tax id, phone and ZIP."""

    model = Customer
    search_columns = (Customer.name, Customer.tax_id, Customer.phone)
    label = 'cliente'
    not_found_message = 'Cliente não encontrado'

    def prepare(self, record: Dict[str, Any]) -> Dict[str, Any]:
        name = _text(record.get('name'))
        if not name:
            raise BusinessLogicError('O nome do cliente é obrigatório')

        state = upper_or_none(record.get('state'))
        if state and len(state) != 2:
            raise BusinessLogicError('UF deve ter 2 letras')

        return {
            'tax_id': digits_or_none(record.get('tax_id')),
            'name': name.upper(),
            'phone': digits_or_none(record.get('phone')),
            'email': _text(record.get('email')),
            'zip_code': digits_or_none(record.get('zip_code')),
            'street': upper_or_none(record.get('street')),
            'number': _text(record.get('number')),
            'district': upper_or_none(record.get('district')),
            'city': upper_or_none(record.get('city')),
            'state': state,
        }
