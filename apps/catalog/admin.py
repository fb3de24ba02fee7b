from django.contrib import admin
from django.utils.html import format_html
from import_export import resources, fields
from import_export.admin import ImportExportModelAdmin
from import_export.widgets import ForeignKeyWidget
from adminsortable2.admin import SortableAdminMixin
from simple_history.admin import SimpleHistoryAdmin

from .models import (
    Color,
    Collection,
    Category,
    Product,
    ProductVariant,
)


# =============================================================================
# Import/Export Resources
# =============================================================================

class ProductVariantResource(resources.ModelResource):
    """Variant stock sheet: export, adjust prices and stock, import back by SKU."""

    product_name = fields.Field(
        column_name='product_name',
        attribute='product',
        widget=ForeignKeyWidget(Product, 'name'),
        readonly=True
    )
    color_name = fields.Field(
        column_name='color',
        attribute='color',
        widget=ForeignKeyWidget(Color, 'name'),
        readonly=True
    )

    class Meta:
        model = ProductVariant
        import_id_fields = ['sku']
        fields = ('sku', 'product_name', 'color_name', 'size', 'price', 'stock_quantity')
        export_order = fields
        skip_unchanged = True

    def after_import(self, dataset, result, *args, **kwargs):
        skus = [sku for sku in dataset['sku'] if sku]
        product_ids = set(
            ProductVariant.objects.filter(sku__in=skus).values_list('product_id', flat=True)
        )
        for product in Product.objects.filter(pk__in=product_ids):
            product.refresh_stock()


# =============================================================================
# Inlines
# =============================================================================

class ProductVariantInline(admin.TabularInline):
    """Variants are listed here but edited as a matrix through the product API."""
    model = ProductVariant
    extra = 0
    fields = ['position', 'color', 'size', 'sku', 'price', 'stock_quantity', 'is_primary', 'image_preview']
    readonly_fields = fields
    ordering = ['position']
    show_change_link = True
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def image_preview(self, obj):
        if obj.image_urls:
            return format_html(
                '<img src="{}" style="max-height: 50px; max-width: 100px;" />',
                obj.image_urls[0]
            )
        return '-'
    image_preview.short_description = 'Preview'


# =============================================================================
# Model Admins
# =============================================================================

@admin.register(Product)
class ProductAdmin(SimpleHistoryAdmin):
    list_display = [
        'name', 'sku', 'collection', 'category', 'price', 'discount_price',
        'stock_quantity', 'variant_count', 'status', 'created_at'
    ]
    list_filter = ['status', 'collection', 'category', 'created_at']
    search_fields = ['name', 'sku', 'description']
    readonly_fields = ['stock_quantity', 'variant_count', 'version', 'created_at', 'updated_at']
    inlines = [ProductVariantInline]

    fieldsets = (
        (None, {
            'fields': ('name', 'sku', 'description', 'status')
        }),
        ('Pricing', {
            'fields': ('price', 'discount_price')
        }),
        ('Classification', {
            'fields': ('collection', 'category', 'fabrics')
        }),
        ('Info', {
            'fields': ('stock_quantity', 'variant_count', 'version', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['activate_products', 'deactivate_products']

    @admin.action(description='Activate selected products')
    def activate_products(self, request, queryset):
        count = queryset.update(status=Product.STATUS_ACTIVE)
        self.message_user(request, f'{count} products activated.')

    @admin.action(description='Deactivate selected products')
    def deactivate_products(self, request, queryset):
        count = queryset.update(status=Product.STATUS_INACTIVE)
        self.message_user(request, f'{count} products deactivated.')


@admin.register(ProductVariant)
class ProductVariantAdmin(ImportExportModelAdmin, SimpleHistoryAdmin):
    resource_class = ProductVariantResource
    list_display = [
        'sku', 'product', 'color_swatch', 'size', 'price',
        'stock_quantity', 'stock_status', 'is_primary'
    ]
    list_filter = ['product', 'color', 'is_primary']
    list_editable = ['price', 'stock_quantity']
    search_fields = ['sku', 'size', 'product__name', 'color__name']
    readonly_fields = ['product', 'color', 'size', 'sku', 'is_primary', 'position', 'created_at', 'updated_at']
    list_per_page = 50

    fieldsets = (
        (None, {
            'fields': ('product', 'color', 'size', 'sku', 'is_primary', 'position')
        }),
        ('Price and stock', {
            'fields': ('price', 'stock_quantity')
        }),
        ('Info', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def has_add_permission(self, request):
        return False

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        obj.product.refresh_stock()

    def color_swatch(self, obj):
        if obj.color:
            return format_html(
                '<div style="width: 20px; height: 20px; background-color: {}; '
                'border: 1px solid #ccc; border-radius: 3px;" title="{}"></div>',
                obj.color.hex, obj.color.name
            )
        return '-'
    color_swatch.short_description = 'Color'

    def stock_status(self, obj):
        if obj.stock_quantity <= 0:
            return format_html('<span style="color: red;">Out of stock</span>')
        return format_html('<span style="color: green;">In stock</span>')
    stock_status.short_description = 'Stock status'


@admin.register(Color)
class ColorAdmin(SortableAdminMixin, admin.ModelAdmin):
    list_display = ['name', 'hex', 'color_swatch', 'variant_count']
    search_fields = ['name', 'hex']

    def color_swatch(self, obj):
        return format_html(
            '<div style="width: 20px; height: 20px; background-color: {}; '
            'border: 1px solid #ccc; border-radius: 3px;"></div>',
            obj.hex
        )
    color_swatch.short_description = 'Swatch'

    def variant_count(self, obj):
        return obj.variants.count()
    variant_count.short_description = 'Variants'


@admin.register(Collection)
class CollectionAdmin(SortableAdminMixin, admin.ModelAdmin):
    list_display = ['name', 'image_preview', 'product_count', 'created_at']
    search_fields = ['name', 'description']
    readonly_fields = ['image_preview', 'created_at', 'updated_at']

    def image_preview(self, obj):
        if obj.image_url:
            return format_html(
                '<img src="{}" style="max-height: 40px; max-width: 60px;" />',
                obj.image_url
            )
        return '-'
    image_preview.short_description = 'Image'


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'created_at']
    search_fields = ['name', 'slug', 'description']
    fields = ['name', 'slug', 'description']


# =============================================================================
# Admin Site Configuration
# =============================================================================

admin.site.site_header = 'Clothing Store Admin'
admin.site.site_title = 'Clothing Store'
admin.site.index_title = 'Administration'
