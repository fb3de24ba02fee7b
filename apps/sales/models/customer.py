import uuid
from decimal import Decimal

from django.db import models


class Customer(models.Model):
    """
    Store customer. `total_orders` and `total_spent` are kept in step with
    the customer's orders by the sales signals; they are never edited by hand.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    name = models.CharField(
        max_length=255,
        verbose_name='Name'
    )
    email = models.EmailField(
        unique=True,
        verbose_name='Email'
    )
    phone = models.CharField(
        max_length=50,
        blank=True,
        verbose_name='Phone'
    )
    total_orders = models.PositiveIntegerField(
        default=0,
        editable=False,
        verbose_name='Orders'
    )
    total_spent = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        editable=False,
        verbose_name='Total spent'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Created at'
    )

    class Meta:
        ordering = ['-total_spent', 'name']
        verbose_name = 'Customer'
        verbose_name_plural = 'Customers'

    def __str__(self):
        return f"{self.name} <{self.email}>"

    def refresh_totals(self):
        """Recount orders and revenue; cancelled orders do not count as spent."""
        from .order import Order
        orders = self.orders.all()
        spent = orders.exclude(status=Order.STATUS_CANCELLED).aggregate(
            total=models.Sum('total_amount')
        )['total'] or Decimal('0.00')
        self.total_orders = orders.count()
        self.total_spent = spent
        Customer.objects.filter(pk=self.pk).update(
            total_orders=self.total_orders,
            total_spent=self.total_spent
        )
