import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Order(models.Model):
    """
    Customer order. Name and email are copied from the customer when the
    order is placed so the order survives the customer being deleted.
    """
    STATUS_PENDING = 'pending'
    STATUS_SHIPPED = 'shipped'
    STATUS_DELIVERED = 'delivered'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_SHIPPED, 'Shipped'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    PAYMENT_PAID = 'paid'
    PAYMENT_UNPAID = 'unpaid'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_UNPAID, 'Unpaid'),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    customer = models.ForeignKey(
        'sales.Customer',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders',
        verbose_name='Customer'
    )
    customer_name = models.CharField(
        max_length=255,
        blank=True,
        verbose_name='Customer name'
    )
    customer_email = models.EmailField(
        blank=True,
        verbose_name='Customer email'
    )
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Total'
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        verbose_name='Status'
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_UNPAID,
        verbose_name='Payment'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Created at'
    )

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Order'
        verbose_name_plural = 'Orders'

    def __str__(self):
        return f"Order {str(self.id)[:8]} - {self.customer_name or '-'}"

    def save(self, *args, **kwargs):
        if self.customer_id and not self.customer_name:
            self.customer_name = self.customer.name
        if self.customer_id and not self.customer_email:
            self.customer_email = self.customer.email
        super().save(*args, **kwargs)

    @property
    def item_count(self):
        return self.items.count()

    def recalculate_total(self, save=True):
        total = sum((item.line_total for item in self.items.all()), Decimal('0.00'))
        self.total_amount = total
        if save:
            self.save(update_fields=['total_amount'])
        return total


class OrderItem(models.Model):
    """Order line. Product name and unit price are snapshotted at order time."""
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    order = models.ForeignKey(
        'sales.Order',
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name='Order'
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items',
        verbose_name='Product'
    )
    product_name = models.CharField(
        max_length=255,
        verbose_name='Product name'
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        verbose_name='Quantity'
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Unit price'
    )

    class Meta:
        verbose_name = 'Order item'
        verbose_name_plural = 'Order items'

    def __str__(self):
        return f"{self.quantity} x {self.product_name}"

    @property
    def line_total(self):
        return self.price * self.quantity
