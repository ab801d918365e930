from .tenancy import Tenant, TenantSetting
from .catalog import Category, Product, ExtraGroup, Extra, ExtraOption, product_extra_groups
from .orders import Order, OrderItem, OrderPaymentFlag

__all__ = [
    'Tenant', 'TenantSetting',
    'Category', 'Product', 'ExtraGroup', 'Extra', 'ExtraOption', 'product_extra_groups',
    'Order', 'OrderItem', 'OrderPaymentFlag',
]
