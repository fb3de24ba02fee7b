import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from simple_history.models import HistoricalRecords


class ProductVariant(models.Model):
    """
    A purchasable color + size unit of a product, with its own stock,
    optional price override and images.

    Rows are rewritten as a whole by the product editor, so `position`
    keeps the order the admin saw in the form. Within a product at most one
    variant carries `is_primary`; its first image is the product thumbnail.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.CASCADE,
        related_name='variants',
        verbose_name='Product'
    )
    color = models.ForeignKey(
        'catalog.Color',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='variants',
        verbose_name='Color'
    )
    size = models.CharField(
        max_length=50,
        verbose_name='Size'
    )
    sku = models.CharField(
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        verbose_name='SKU'
    )

    # Overrides product price if set
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Price override'
    )
    stock_quantity = models.PositiveIntegerField(
        default=0,
        verbose_name='Stock'
    )
    image_urls = models.JSONField(
        default=list,
        blank=True,
        verbose_name='Images'
    )
    is_primary = models.BooleanField(
        default=False,
        verbose_name='Primary'
    )
    position = models.PositiveIntegerField(
        default=0,
        verbose_name='Position'
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Created at'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated at'
    )

    history = HistoricalRecords()

    class Meta:
        ordering = ['product', 'position']
        verbose_name = 'Variant'
        verbose_name_plural = 'Variants'

    def __str__(self):
        color = self.color.name if self.color else '-'
        return f"{self.product.name} - {color} / {self.size}"

    @property
    def effective_price(self):
        if self.price is not None:
            return self.price
        return self.product.effective_price

    @property
    def is_in_stock(self):
        return self.stock_quantity > 0
