import uuid

from django.db import models


class Collection(models.Model):
    """Merchandising grouping of products with a cover image."""
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    name = models.CharField(
        max_length=200,
        unique=True,
        verbose_name='Name'
    )
    image_url = models.CharField(
        max_length=500,
        verbose_name='Cover image'
    )
    description = models.TextField(
        blank=True,
        verbose_name='Description'
    )
    display_order = models.PositiveIntegerField(
        default=0,
        verbose_name='Display order'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Created at'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated at'
    )

    class Meta:
        ordering = ['display_order', 'name']
        verbose_name = 'Collection'
        verbose_name_plural = 'Collections'

    def __str__(self):
        return self.name

    @property
    def product_count(self):
        return self.products.count()
