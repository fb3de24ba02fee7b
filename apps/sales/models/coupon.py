import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

CENTS = Decimal('0.01')


class Coupon(models.Model):
    """Discount code, either a percentage of the amount or a fixed value off."""
    TYPE_PERCENTAGE = 'percentage'
    TYPE_FIXED = 'fixed'
    TYPE_CHOICES = [
        (TYPE_PERCENTAGE, 'Percentage'),
        (TYPE_FIXED, 'Fixed amount'),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    code = models.CharField(
        max_length=50,
        unique=True,
        verbose_name='Code'
    )
    discount_type = models.CharField(
        max_length=20,
        choices=TYPE_CHOICES,
        default=TYPE_PERCENTAGE,
        verbose_name='Discount type'
    )
    discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(CENTS)],
        verbose_name='Discount value'
    )
    expiry_date = models.DateField(
        null=True,
        blank=True,
        verbose_name='Expires on'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Created at'
    )

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Coupon'
        verbose_name_plural = 'Coupons'

    def __str__(self):
        return self.code

    def clean(self):
        if self.discount_type == self.TYPE_PERCENTAGE and self.discount_value is not None \
                and self.discount_value > 100:
            raise ValidationError({'discount_value': 'A percentage discount cannot exceed 100.'})

    def save(self, *args, **kwargs):
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_expired(self):
        # Valid through the whole expiry day
        return self.expiry_date is not None and self.expiry_date < timezone.localdate()

    def discount_for(self, amount):
        amount = Decimal(amount)
        if self.discount_type == self.TYPE_PERCENTAGE:
            discount = (amount * self.discount_value / 100).quantize(CENTS, rounding=ROUND_HALF_UP)
        else:
            discount = self.discount_value
        return min(discount, amount)

    def apply(self, amount):
        """Amount after the discount, never below zero."""
        amount = Decimal(amount)
        return max(amount - self.discount_for(amount), Decimal('0.00'))
