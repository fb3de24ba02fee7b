from decimal import Decimal

from django.db import transaction
from rest_framework import serializers

from apps.sales.models import Customer, Order, OrderItem, Coupon


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = [
            'id', 'name', 'email', 'phone',
            'total_orders', 'total_spent', 'created_at'
        ]
        read_only_fields = ['total_orders', 'total_spent']


class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(max_length=255, required=False)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.00'), required=False
    )
    quantity = serializers.IntegerField(min_value=1, default=1)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'quantity', 'price', 'line_total']

    def validate(self, attrs):
        product = attrs.get('product')
        if product is None and not attrs.get('product_name'):
            raise serializers.ValidationError({'product_name': 'Give a product or a product name.'})
        if product is None and attrs.get('price') is None:
            raise serializers.ValidationError({'price': 'Give a price for items without a product.'})
        # Snapshot catalog values at order time
        if product is not None:
            attrs.setdefault('product_name', product.name)
            attrs.setdefault('price', product.effective_price)
        return attrs


class OrderSerializer(serializers.ModelSerializer):
    """
    Order with its items. On create the total is computed from the items.

    Expected payload:
    {
        "customer": "<customer uuid>",
        "payment_status": "paid",
        "items": [
            {"product": "<product uuid>", "quantity": 2},
            {"product_name": "Gift wrap", "price": "3.50", "quantity": 1}
        ]
    }
    """
    items = OrderItemSerializer(many=True)
    item_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'customer', 'customer_name', 'customer_email',
            'total_amount', 'status', 'payment_status',
            'item_count', 'items', 'created_at'
        ]
        read_only_fields = ['total_amount']

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('An order needs at least one item.')
        return value

    @transaction.atomic
    def create(self, validated_data):
        items = validated_data.pop('items')
        order = Order.objects.create(**validated_data)
        OrderItem.objects.bulk_create([OrderItem(order=order, **item) for item in items])
        order.recalculate_total()
        return order

    @transaction.atomic
    def update(self, instance, validated_data):
        items = validated_data.pop('items', None)
        instance = super().update(instance, validated_data)
        if items is not None:
            instance.items.all().delete()
            OrderItem.objects.bulk_create([OrderItem(order=instance, **item) for item in items])
            instance.recalculate_total()
        return instance


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Give a status or a payment status.')
        return attrs


class CouponSerializer(serializers.ModelSerializer):
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = Coupon
        fields = [
            'id', 'code', 'discount_type', 'discount_value',
            'expiry_date', 'is_expired', 'created_at'
        ]

    def validate_code(self, value):
        code = value.strip().upper()
        queryset = Coupon.objects.filter(code=code)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('A coupon with this code already exists.')
        return code

    def validate(self, attrs):
        discount_type = attrs.get('discount_type', getattr(self.instance, 'discount_type', None))
        value = attrs.get('discount_value', getattr(self.instance, 'discount_value', None))
        if discount_type == Coupon.TYPE_PERCENTAGE and value is not None and value > 100:
            raise serializers.ValidationError({
                'discount_value': 'A percentage discount cannot exceed 100.'
            })
        return attrs


class CouponValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'))
