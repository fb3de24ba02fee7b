import uuid

from django.db import models
from django.core.validators import RegexValidator


class Color(models.Model):
    """
    Shared color library reused across products.
    Variants point at a color; the hex value drives the swatch in listings.
    """
    hex_color_validator = RegexValidator(
        regex=r'^#[0-9A-Fa-f]{6}$',
        message='Color must be a hexadecimal value (#RRGGBB)'
    )

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name='Name'
    )
    hex = models.CharField(
        max_length=7,
        validators=[hex_color_validator],
        verbose_name='Hex',
        help_text='Swatch color (#RRGGBB)'
    )
    display_order = models.PositiveIntegerField(
        default=0,
        verbose_name='Display order'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Created at'
    )

    class Meta:
        ordering = ['display_order', 'name']
        verbose_name = 'Color'
        verbose_name_plural = 'Colors'

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.hex = self.hex.upper()
        super().save(*args, **kwargs)
