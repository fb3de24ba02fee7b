import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from simple_history.models import HistoricalRecords


class Product(models.Model):
    """
    Base product, e.g. "Linen Shirt".
    Purchasable units are its variants (one per color and size); the product
    stock is the sum of the variants' stock and is refreshed on every save.
    """
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    sku = models.CharField(
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        verbose_name='SKU',
        help_text='Also used as prefix for generated variant SKUs'
    )
    name = models.CharField(
        max_length=255,
        verbose_name='Name'
    )
    description = models.TextField(
        blank=True,
        verbose_name='Description'
    )

    # Pricing
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Price'
    )
    discount_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Discount price'
    )

    collection = models.ForeignKey(
        'catalog.Collection',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='products',
        verbose_name='Collection'
    )
    category = models.ForeignKey(
        'catalog.Category',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='products',
        verbose_name='Category'
    )
    fabrics = models.JSONField(
        default=list,
        blank=True,
        verbose_name='Fabrics'
    )

    # Sum of variant stock
    stock_quantity = models.IntegerField(
        default=0,
        verbose_name='Stock'
    )
    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE,
        verbose_name='Status'
    )

    # Bumped on every save through the product editor
    version = models.PositiveIntegerField(
        default=1,
        verbose_name='Version'
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
        ordering = ['-created_at']
        verbose_name = 'Product'
        verbose_name_plural = 'Products'

    def __str__(self):
        return self.name

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    @property
    def effective_price(self):
        if self.discount_price is not None and self.discount_price < self.price:
            return self.discount_price
        return self.price

    @property
    def variant_count(self):
        # Set by the product list queryset
        if hasattr(self, 'variants_total'):
            return self.variants_total
        return self.variants.count()

    @property
    def is_low_stock(self):
        return self.stock_quantity < settings.CATALOG_LOW_STOCK_THRESHOLD

    @property
    def primary_variant(self):
        variants = list(self.variants.all())
        return next((v for v in variants if v.is_primary), variants[0] if variants else None)

    def get_thumbnail_url(self):
        """
        First image of the primary variant, or of any variant with images.
        Reads `variants.all()` so a prefetched list costs no queries.
        """
        variants = list(self.variants.all())
        primary = next((v for v in variants if v.is_primary), None)
        if primary and primary.image_urls:
            return primary.image_urls[0]
        for variant in variants:
            if variant.image_urls:
                return variant.image_urls[0]
        return None

    def get_colors(self):
        """Colors used by this product's variants, in variant order."""
        from .color import Color
        color_ids = []
        for color_id in self.variants.values_list('color_id', flat=True):
            if color_id and color_id not in color_ids:
                color_ids.append(color_id)
        colors = Color.objects.in_bulk(color_ids)
        return [colors[pk] for pk in color_ids if pk in colors]

    def get_sizes(self):
        """Size labels used by this product's variants, in variant order."""
        sizes = []
        for size in self.variants.values_list('size', flat=True):
            if size not in sizes:
                sizes.append(size)
        return sizes

    def refresh_stock(self, save=True):
        """Recompute the aggregate stock from the variants."""
        total = self.variants.aggregate(total=models.Sum('stock_quantity'))['total'] or 0
        self.stock_quantity = total
        if save:
            Product.objects.filter(pk=self.pk).update(stock_quantity=total)
        return total
