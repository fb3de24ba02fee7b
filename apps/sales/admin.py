from django.contrib import admin
from django.utils.html import format_html
from import_export import resources
from import_export.admin import ImportExportModelAdmin

from .models import Customer, Order, OrderItem, Coupon


# =============================================================================
# Import/Export Resources
# =============================================================================

class CustomerResource(resources.ModelResource):
    class Meta:
        model = Customer
        import_id_fields = ['email']
        fields = ('name', 'email', 'phone', 'total_orders', 'total_spent', 'created_at')
        export_order = fields
        skip_unchanged = True


class CouponResource(resources.ModelResource):
    class Meta:
        model = Coupon
        import_id_fields = ['code']
        fields = ('code', 'discount_type', 'discount_value', 'expiry_date')
        export_order = fields
        skip_unchanged = True

    def before_import_row(self, row, **kwargs):
        if row.get('code'):
            row['code'] = row['code'].strip().upper()


# =============================================================================
# Inlines
# =============================================================================

class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ['product', 'product_name', 'quantity', 'price', 'line_total']
    readonly_fields = ['line_total']
    autocomplete_fields = ['product']


class OrderInline(admin.TabularInline):
    model = Order
    extra = 0
    fields = ['created_at', 'total_amount', 'status', 'payment_status']
    readonly_fields = fields
    show_change_link = True
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


# =============================================================================
# Model Admins
# =============================================================================

@admin.register(Customer)
class CustomerAdmin(ImportExportModelAdmin):
    resource_class = CustomerResource
    list_display = ['name', 'email', 'phone', 'total_orders', 'total_spent', 'created_at']
    search_fields = ['name', 'email', 'phone']
    readonly_fields = ['total_orders', 'total_spent', 'created_at']
    inlines = [OrderInline]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        'short_id', 'customer_name', 'total_amount', 'status_badge',
        'payment_status', 'created_at'
    ]
    list_filter = ['status', 'payment_status', 'created_at']
    search_fields = ['customer_name', 'customer_email', 'items__product_name']
    autocomplete_fields = ['customer']
    readonly_fields = ['total_amount', 'created_at']
    date_hierarchy = 'created_at'
    inlines = [OrderItemInline]

    actions = ['mark_shipped', 'mark_delivered', 'mark_cancelled', 'mark_paid']

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        form.instance.recalculate_total()

    def short_id(self, obj):
        return str(obj.id)[:8]
    short_id.short_description = 'Order'

    def status_badge(self, obj):
        colors = {
            Order.STATUS_PENDING: 'orange',
            Order.STATUS_SHIPPED: 'blue',
            Order.STATUS_DELIVERED: 'green',
            Order.STATUS_CANCELLED: 'red',
        }
        return format_html(
            '<span style="color: {};">{}</span>',
            colors.get(obj.status, 'black'), obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def _set_status(self, request, queryset, **values):
        # Saved one by one so customer totals are refreshed
        for order in queryset:
            for name, value in values.items():
                setattr(order, name, value)
            order.save(update_fields=list(values))
        self.message_user(request, f'{queryset.count()} orders updated.')

    @admin.action(description='Mark selected orders as shipped')
    def mark_shipped(self, request, queryset):
        self._set_status(request, queryset, status=Order.STATUS_SHIPPED)

    @admin.action(description='Mark selected orders as delivered')
    def mark_delivered(self, request, queryset):
        self._set_status(request, queryset, status=Order.STATUS_DELIVERED)

    @admin.action(description='Cancel selected orders')
    def mark_cancelled(self, request, queryset):
        self._set_status(request, queryset, status=Order.STATUS_CANCELLED)

    @admin.action(description='Mark selected orders as paid')
    def mark_paid(self, request, queryset):
        self._set_status(request, queryset, payment_status=Order.PAYMENT_PAID)


@admin.register(Coupon)
class CouponAdmin(ImportExportModelAdmin):
    resource_class = CouponResource
    list_display = ['code', 'discount_type', 'discount_value', 'expiry_date', 'expired', 'created_at']
    list_filter = ['discount_type', 'expiry_date']
    search_fields = ['code']

    def expired(self, obj):
        return obj.is_expired
    expired.boolean = True
    expired.short_description = 'Expired'
