"""
Script to create sample data for the admin dashboard.
Run with: python manage.py shell < create_sample_data.py
"""
from dataclasses import replace
from decimal import Decimal

from apps.catalog.models import Color, Collection, Category, Product, ProductVariant
from apps.catalog.services.product_editor import save_product
from apps.catalog.services.variant_matrix import ProductDraft, apply_color_change, apply_size_change
from apps.sales.models import Customer, Order, OrderItem, Coupon

# Colors
print("Creating colors...")

color_hexes = [
    ('Black', '#000000'),
    ('White', '#FFFFFF'),
    ('Navy', '#1F2A44'),
    ('Red', '#C0392B'),
    ('Olive', '#708238'),
]
colors = {}
for i, (name, hex_value) in enumerate(color_hexes):
    colors[name], _ = Color.objects.get_or_create(
        name=name,
        defaults={'hex': hex_value, 'display_order': i}
    )

# Collections and categories
print("Creating collections and categories...")

summer, _ = Collection.objects.get_or_create(
    name='Summer Essentials',
    defaults={'image_url': 'https://placehold.co/1200x800?text=Summer', 'display_order': 0}
)
winter, _ = Collection.objects.get_or_create(
    name='Winter Layers',
    defaults={'image_url': 'https://placehold.co/1200x800?text=Winter', 'display_order': 1}
)

tops, _ = Category.objects.get_or_create(name='Tops')
outerwear, _ = Category.objects.get_or_create(name='Outerwear')

# Products, saved through the editor so the variant matrix is complete
print("Creating products...")


def create_product(sku, fields, color_names, sizes, stock):
    if Product.objects.filter(sku=sku).exists():
        return Product.objects.get(sku=sku)
    selected = [colors[name] for name in color_names]
    draft = ProductDraft(
        sku_prefix=sku,
        color_names={str(c.pk): c.name for c in selected}
    )
    draft = apply_size_change(draft, sizes)
    draft = apply_color_change(draft, [str(c.pk) for c in selected])
    draft = replace(draft, variants=tuple(
        replace(v, stock_quantity=stock) for v in draft.variants
    ))
    return save_product(dict(fields, sku=sku), draft)


tee = create_product(
    'TEE01',
    {
        'name': 'Linen Tee',
        'description': 'Relaxed fit linen t-shirt',
        'price': Decimal('39.90'),
        'collection': summer,
        'category': tops,
        'fabrics': ['Linen'],
    },
    ['White', 'Navy', 'Olive'], ['S', 'M', 'L', 'XL'], 12
)

coat = create_product(
    'COAT01',
    {
        'name': 'Wool Overcoat',
        'description': 'Double-breasted wool coat',
        'price': Decimal('249.00'),
        'discount_price': Decimal('199.00'),
        'collection': winter,
        'category': outerwear,
        'fabrics': ['Wool', 'Cashmere'],
    },
    ['Black', 'Navy'], ['M', 'L'], 3
)

# Customers, orders and coupons
print("Creating customers and orders...")

ana, _ = Customer.objects.get_or_create(
    email='ana@example.com',
    defaults={'name': 'Ana Souza', 'phone': '+55 11 99999-0000'}
)
ben, _ = Customer.objects.get_or_create(
    email='ben@example.com',
    defaults={'name': 'Ben Carter'}
)

if not Order.objects.exists():
    for customer, product, quantity, order_status in [
        (ana, tee, 2, Order.STATUS_DELIVERED),
        (ana, coat, 1, Order.STATUS_SHIPPED),
        (ben, tee, 1, Order.STATUS_PENDING),
    ]:
        order = Order.objects.create(
            customer=customer,
            status=order_status,
            payment_status=Order.PAYMENT_PAID
        )
        OrderItem.objects.create(
            order=order,
            product=product,
            product_name=product.name,
            quantity=quantity,
            price=product.effective_price
        )
        order.recalculate_total()

Coupon.objects.get_or_create(
    code='WELCOME10',
    defaults={'discount_type': Coupon.TYPE_PERCENTAGE, 'discount_value': Decimal('10')}
)
Coupon.objects.get_or_create(
    code='FIVEOFF',
    defaults={'discount_type': Coupon.TYPE_FIXED, 'discount_value': Decimal('5')}
)

print("\nSample data created successfully!")
print(f"   - {Color.objects.count()} colors")
print(f"   - {Product.objects.count()} products")
print(f"   - {ProductVariant.objects.count()} variants")
print(f"   - {Customer.objects.count()} customers")
print(f"   - {Order.objects.count()} orders")
print(f"   - {Coupon.objects.count()} coupons")
print("\nAPI root: http://localhost:8000/api/v1/")
