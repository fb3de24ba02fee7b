import logging

from django.db.models import Prefetch
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.sales.models import Customer, Order, OrderItem, Coupon
from .serializers import (
    CustomerSerializer,
    OrderSerializer,
    OrderStatusSerializer,
    CouponSerializer,
    CouponValidateSerializer,
)
from .filters import OrderFilter, CouponFilter

logger = logging.getLogger(__name__)


class CustomerViewSet(viewsets.ModelViewSet):
    """
    API endpoint for customers, best customers first.
    """
    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'email', 'phone']
    ordering_fields = ['total_spent', 'total_orders', 'name', 'created_at']
    ordering = ['-total_spent', 'name']


class OrderViewSet(viewsets.ModelViewSet):
    """
    API endpoint for orders, newest first, with their items.
    """
    queryset = Order.objects.select_related('customer').prefetch_related(
        Prefetch('items', queryset=OrderItem.objects.select_related('product'))
    )
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['customer_name', 'customer_email', 'items__product_name']
    ordering_fields = ['created_at', 'total_amount']
    ordering = ['-created_at']

    @action(detail=True, methods=['post'])
    def set_status(self, request, pk=None):
        """
        Change the fulfilment and/or payment status of an order.

        Expected payload:
        {"status": "shipped", "payment_status": "paid"}
        """
        order = self.get_object()
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        for name, value in serializer.validated_data.items():
            setattr(order, name, value)
        order.save(update_fields=list(serializer.validated_data))
        logger.info(
            "Order %s set to %s/%s", order.pk, order.status, order.payment_status
        )
        return Response(self.get_serializer(self.get_object()).data)


class CouponViewSet(viewsets.ModelViewSet):
    """
    API endpoint for coupons, newest first.
    """
    queryset = Coupon.objects.all()
    serializer_class = CouponSerializer
    filterset_class = CouponFilter
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['code']
    ordering_fields = ['created_at', 'expiry_date', 'code']
    ordering = ['-created_at']

    @action(detail=False, methods=['post'])
    def validate(self, request):
        """
        Check a coupon code and apply it to an amount.

        Expected payload:
        {"code": "SUMMER10", "amount": "120.00"}
        """
        serializer = CouponValidateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        code = serializer.validated_data['code'].strip().upper()
        amount = serializer.validated_data['amount']

        coupon = Coupon.objects.filter(code=code).first()
        if coupon is None:
            return Response(
                {'valid': False, 'detail': 'Coupon not found.'},
                status=status.HTTP_404_NOT_FOUND
            )
        if coupon.is_expired:
            return Response(
                {'valid': False, 'detail': 'Coupon has expired.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        return Response({
            'valid': True,
            'code': coupon.code,
            'amount': amount,
            'discount': coupon.discount_for(amount),
            'discounted_amount': coupon.apply(amount),
        })
