from django.conf import settings
from django_filters import rest_framework as filters

from apps.catalog.models import Product, ProductVariant


class ProductFilter(filters.FilterSet):
    """Filter for the product table and the inventory screen."""

    collection = filters.UUIDFilter(field_name='collection__id')
    category = filters.UUIDFilter(field_name='category__id')

    # Price filters
    min_price = filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = filters.NumberFilter(field_name='price', lookup_expr='lte')

    # Stock filters
    low_stock = filters.BooleanFilter(method='filter_low_stock')

    class Meta:
        model = Product
        fields = ['collection', 'category', 'status']

    def filter_low_stock(self, queryset, name, value):
        threshold = settings.CATALOG_LOW_STOCK_THRESHOLD
        if value is True:
            return queryset.filter(stock_quantity__lt=threshold)
        elif value is False:
            return queryset.filter(stock_quantity__gte=threshold)
        return queryset


class ProductVariantFilter(filters.FilterSet):
    """Filter for variants by product, color, size and stock."""

    product = filters.UUIDFilter(field_name='product__id')
    color = filters.UUIDFilter(field_name='color__id')
    size = filters.CharFilter(field_name='size', lookup_expr='iexact')

    in_stock = filters.BooleanFilter(method='filter_in_stock')

    class Meta:
        model = ProductVariant
        fields = ['product', 'color', 'size', 'is_primary', 'sku']

    def filter_in_stock(self, queryset, name, value):
        if value is True:
            return queryset.filter(stock_quantity__gt=0)
        elif value is False:
            return queryset.filter(stock_quantity=0)
        return queryset
