from .customer import Customer
from .order import Order, OrderItem
from .coupon import Coupon

__all__ = [
    'Customer',
    'Order',
    'OrderItem',
    'Coupon',
]
