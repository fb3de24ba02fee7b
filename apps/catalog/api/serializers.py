from dataclasses import asdict, replace

from rest_framework import serializers

from apps.catalog.models import (
    Color,
    Collection,
    Category,
    Product,
    ProductVariant,
)
from apps.catalog.services import storage
from apps.catalog.services.product_editor import load_draft
from apps.catalog.services.variant_matrix import (
    ProductDraft,
    VariantDraft,
    apply_color_change,
    apply_size_change,
    normalize_colors,
    normalize_sizes,
    normalize_tags,
)


# =============================================================================
# Library Serializers
# =============================================================================

class ColorSerializer(serializers.ModelSerializer):
    variant_count = serializers.SerializerMethodField()

    class Meta:
        model = Color
        fields = ['id', 'name', 'hex', 'display_order', 'variant_count', 'created_at']

    def get_variant_count(self, obj):
        return obj.variants.count()


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description', 'created_at']
        read_only_fields = ['slug']


class CollectionSerializer(serializers.ModelSerializer):
    """Collection with its cover image given either as a URL or as a file."""
    image = serializers.ImageField(write_only=True, required=False)
    image_url = serializers.CharField(max_length=500, required=False)
    product_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Collection
        fields = [
            'id', 'name', 'description', 'image', 'image_url',
            'display_order', 'product_count', 'created_at', 'updated_at'
        ]

    def validate(self, attrs):
        has_image = attrs.get('image') or attrs.get('image_url')
        if self.instance is None and not has_image:
            raise serializers.ValidationError({'image_url': 'A cover image is required.'})
        return attrs

    def _upload(self, validated_data):
        image = validated_data.pop('image', None)
        if image is not None:
            validated_data['image_url'] = storage.upload_product_image(image)
        return validated_data

    def create(self, validated_data):
        return super().create(self._upload(validated_data))

    def update(self, instance, validated_data):
        return super().update(instance, self._upload(validated_data))


# =============================================================================
# Variant Serializers
# =============================================================================

class ProductVariantSerializer(serializers.ModelSerializer):
    """Stored variant row."""
    color_name = serializers.CharField(source='color.name', read_only=True, default=None)
    color_hex = serializers.CharField(source='color.hex', read_only=True, default=None)
    effective_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    is_in_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = ProductVariant
        fields = [
            'id', 'product', 'color', 'color_name', 'color_hex', 'size',
            'sku', 'price', 'effective_price', 'stock_quantity', 'is_in_stock',
            'image_urls', 'is_primary', 'position', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class VariantDraftSerializer(serializers.Serializer):
    """One editable row of the variant matrix."""
    color_id = serializers.UUIDField()
    size = serializers.CharField(max_length=50)
    sku = serializers.CharField(max_length=100, allow_null=True, allow_blank=True, required=False)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, allow_null=True, required=False
    )
    stock_quantity = serializers.IntegerField(min_value=0, default=0)
    image_urls = serializers.ListField(
        child=serializers.CharField(max_length=500), default=list
    )
    pending_images = serializers.ListField(
        child=serializers.CharField(max_length=100), default=list
    )
    is_primary = serializers.BooleanField(default=False)


class ProductDraftSerializer(serializers.Serializer):
    """Colors, sizes and variant rows of a product form."""
    sku_prefix = serializers.CharField(allow_null=True, allow_blank=True, required=False)
    colors = serializers.ListField(child=serializers.UUIDField(), default=list)
    sizes = serializers.ListField(child=serializers.CharField(max_length=50), default=list)
    variants = VariantDraftSerializer(many=True, default=list)
    color_names = serializers.DictField(child=serializers.CharField(), required=False)


def draft_from_data(data, sku_prefix=None) -> ProductDraft:
    """Turn validated draft data into a ProductDraft, naming colors from the library."""
    colors = normalize_colors(data.get('colors', []))
    names = {str(k): v for k, v in (data.get('color_names') or {}).items()}
    missing = [c for c in colors if c not in names]
    if missing:
        for color in Color.objects.filter(pk__in=missing):
            names[str(color.pk)] = color.name

    variants = tuple(
        VariantDraft(
            color_id=str(v['color_id']),
            size=v['size'].strip(),
            sku=(v.get('sku') or '').strip() or None,
            price=v.get('price'),
            stock_quantity=v.get('stock_quantity', 0),
            image_urls=tuple(v.get('image_urls', ())),
            pending_images=tuple(v.get('pending_images', ())),
            is_primary=v.get('is_primary', False),
        )
        for v in data.get('variants', [])
    )
    return ProductDraft(
        sku_prefix=data.get('sku_prefix') or sku_prefix or None,
        colors=colors,
        sizes=normalize_sizes(data.get('sizes', [])),
        variants=variants,
        color_names=names,
    )


class MatrixChangeSerializer(serializers.Serializer):
    """
    One transition of the variant matrix.

    Expected payload:
    {
        "draft": {...},
        "operation": "sizes",
        "sizes": ["S", "M"]
    }
    """
    OPERATION_CHOICES = ['sizes', 'colors', 'primary', 'rebuild']

    draft = ProductDraftSerializer()
    operation = serializers.ChoiceField(choices=OPERATION_CHOICES)
    sizes = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    colors = serializers.ListField(child=serializers.UUIDField(), required=False)
    primary = serializers.UUIDField(required=False)

    def validate(self, attrs):
        operation = attrs['operation']
        if operation in ('sizes', 'colors', 'primary') and operation not in attrs:
            raise serializers.ValidationError({operation: 'This field is required.'})
        return attrs


# =============================================================================
# Product Serializers
# =============================================================================

class ProductListSerializer(serializers.ModelSerializer):
    """Product table row."""
    collection_name = serializers.CharField(source='collection.name', read_only=True, default=None)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    effective_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    variant_count = serializers.IntegerField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)
    thumbnail_url = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'sku', 'name', 'price', 'discount_price', 'effective_price',
            'status', 'stock_quantity', 'is_low_stock', 'variant_count',
            'collection', 'collection_name', 'category', 'category_name',
            'thumbnail_url', 'version', 'created_at'
        ]

    def get_thumbnail_url(self, obj):
        return obj.get_thumbnail_url()


class ProductDetailSerializer(ProductListSerializer):
    """Full product with variants and the colors/sizes they span."""
    variants = ProductVariantSerializer(many=True, read_only=True)
    colors = serializers.SerializerMethodField()
    sizes = serializers.SerializerMethodField()

    class Meta(ProductListSerializer.Meta):
        fields = ProductListSerializer.Meta.fields + [
            'description', 'fabrics', 'colors', 'sizes', 'variants', 'updated_at'
        ]

    def get_colors(self, obj):
        return ColorSerializer(obj.get_colors(), many=True).data

    def get_sizes(self, obj):
        return obj.get_sizes()


class ProductWriteSerializer(serializers.ModelSerializer):
    """
    Product form submission: product fields plus the variant matrix.

    On update, any of colors, sizes or variants left out of the payload is
    taken from the stored product, so a status-only PATCH keeps the variants.
    A PATCH that sends colors or sizes without variants reconciles the
    stored rows against the new selection.
    """
    fabrics = serializers.ListField(
        child=serializers.CharField(max_length=100), required=False
    )
    colors = serializers.ListField(child=serializers.UUIDField(), required=False)
    sizes = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    variants = VariantDraftSerializer(many=True, required=False)
    color_names = serializers.DictField(child=serializers.CharField(), required=False)
    expected_version = serializers.IntegerField(min_value=1, required=False)

    DRAFT_FIELDS = ('colors', 'sizes', 'variants', 'color_names')

    class Meta:
        model = Product
        fields = [
            'sku', 'name', 'description', 'price', 'discount_price',
            'collection', 'category', 'fabrics', 'status',
            'colors', 'sizes', 'variants', 'color_names', 'expected_version'
        ]

    def validate_fabrics(self, value):
        return list(normalize_tags(value))

    def validate_sku(self, value):
        if not value or not value.strip():
            return None
        sku = value.strip().upper()
        clashes = Product.objects.filter(sku__iexact=sku)
        if self.instance is not None:
            clashes = clashes.exclude(pk=self.instance.pk)
        if clashes.exists():
            raise serializers.ValidationError('A product with this SKU already exists.')
        return sku

    def validate(self, attrs):
        price = attrs.get('price', getattr(self.instance, 'price', None))
        discount = attrs.get('discount_price', getattr(self.instance, 'discount_price', None))
        if price is not None and discount is not None and discount >= price:
            raise serializers.ValidationError({
                'discount_price': 'Discount price must be lower than the price.'
            })
        return attrs

    def get_product_fields(self):
        return {
            k: v for k, v in self.validated_data.items()
            if k not in self.DRAFT_FIELDS and k != 'expected_version'
        }

    def get_draft(self) -> ProductDraft:
        data = dict(self.validated_data)
        sku_prefix = data.get('sku', getattr(self.instance, 'sku', None))
        if self.instance is not None:
            stored = load_draft(self.instance)
            if 'variants' not in data and ('colors' in data or 'sizes' in data):
                return self._reconcile_stored(stored, data, sku_prefix)
            data.setdefault('colors', list(stored.colors))
            data.setdefault('sizes', list(stored.sizes))
            data.setdefault('variants', [asdict(v) for v in stored.variants])
            data['color_names'] = {**stored.color_names, **(data.get('color_names') or {})}
        return draft_from_data(data, sku_prefix=sku_prefix)

    def _reconcile_stored(self, stored, data, sku_prefix) -> ProductDraft:
        draft = replace(stored, sku_prefix=sku_prefix or stored.sku_prefix)
        if 'sizes' in data:
            draft = apply_size_change(draft, data['sizes'])
        if 'colors' in data:
            named = draft_from_data({
                'colors': data['colors'],
                'color_names': data.get('color_names'),
            })
            draft = apply_color_change(draft, named.colors, named.color_names)
        return draft


class StockUpdateSerializer(serializers.Serializer):
    """
    Expected payload:
    {
        "updates": [
            {"id": "<variant uuid>", "stock_quantity": 100}
        ]
    }
    """
    class ItemSerializer(serializers.Serializer):
        id = serializers.UUIDField()
        stock_quantity = serializers.IntegerField(min_value=0)

    updates = ItemSerializer(many=True, allow_empty=False)


class InventorySerializer(serializers.ModelSerializer):
    """Stock row on the inventory screen."""
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    is_low_stock = serializers.BooleanField(read_only=True)
    variants = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'sku', 'name', 'category_name', 'stock_quantity',
            'is_low_stock', 'variants'
        ]

    def get_variants(self, obj):
        return [
            {
                'id': str(v.id),
                'sku': v.sku,
                'color': v.color.name if v.color else None,
                'size': v.size,
                'stock_quantity': v.stock_quantity,
            }
            for v in obj.variants.all()
        ]
