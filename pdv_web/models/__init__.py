"""Models package - exports all SQLAlchemy models."""
# Tenant and users
from pdv_web.models.company import Company
from pdv_web.models.app_user import AppUser

# Tenant-owned records
from pdv_web.models.product import Product
from pdv_web.models.customer import Customer
from pdv_web.models.sale import Sale

__all__ = [
    'Company', 'AppUser',
    'Product', 'Customer', 'Sale',
]
