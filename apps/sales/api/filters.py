from django.utils import timezone
from django_filters import rest_framework as filters

from apps.sales.models import Order, Coupon


class OrderFilter(filters.FilterSet):
    customer = filters.UUIDFilter(field_name='customer__id')

    # Date filters
    created_after = filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    created_before = filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    min_total = filters.NumberFilter(field_name='total_amount', lookup_expr='gte')

    class Meta:
        model = Order
        fields = ['customer', 'status', 'payment_status']


class CouponFilter(filters.FilterSet):
    expired = filters.BooleanFilter(method='filter_expired')

    class Meta:
        model = Coupon
        fields = ['discount_type']

    def filter_expired(self, queryset, name, value):
        today = timezone.localdate()
        if value is True:
            return queryset.filter(expiry_date__lt=today)
        elif value is False:
            return queryset.exclude(expiry_date__lt=today)
        return queryset
