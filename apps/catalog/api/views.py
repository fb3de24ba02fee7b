import json

from django.db.models import Count, Prefetch
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.exceptions import ParseError
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from apps.catalog.exceptions import VariantMatrixError
from apps.catalog.models import (
    Color,
    Collection,
    Category,
    Product,
    ProductVariant,
)
from apps.catalog.services import (
    apply_color_change,
    apply_size_change,
    build_matrix,
    set_primary,
)
from apps.catalog.services import product_editor
from .serializers import (
    ColorSerializer,
    CategorySerializer,
    CollectionSerializer,
    ProductVariantSerializer,
    ProductDraftSerializer,
    MatrixChangeSerializer,
    ProductListSerializer,
    ProductDetailSerializer,
    ProductWriteSerializer,
    StockUpdateSerializer,
    InventorySerializer,
    draft_from_data,
)
from .filters import ProductFilter, ProductVariantFilter


class ProductViewSet(viewsets.ModelViewSet):
    """
    API endpoint for products.

    list: Product table (search, collection/category/status/low stock filters)
    retrieve: Product detail with variants
    create/update: Save product fields and the variant matrix in one request.
        JSON body, or multipart with a `payload` JSON field plus one file per
        pending image key.
    delete: Delete a product and its variants
    """
    queryset = Product.objects.select_related('collection', 'category')
    filterset_class = ProductFilter
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'sku', 'description']
    ordering_fields = ['name', 'price', 'stock_quantity', 'created_at']
    ordering = ['-created_at']
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def get_serializer_class(self):
        if self.action == 'list':
            return ProductListSerializer
        elif self.action == 'retrieve':
            return ProductDetailSerializer
        return ProductWriteSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'list':
            queryset = queryset.annotate(
                variants_total=Count('variants')
            ).prefetch_related('variants')
        elif self.action == 'retrieve':
            queryset = queryset.prefetch_related(
                Prefetch(
                    'variants',
                    queryset=ProductVariant.objects.select_related('color').order_by('position')
                )
            )
        return queryset

    def _payload(self, request):
        if 'payload' in request.data:
            try:
                return json.loads(request.data['payload'])
            except (TypeError, ValueError):
                raise ParseError('payload must be a JSON document.')
        return request.data

    def _save(self, request, instance=None, partial=False):
        serializer = ProductWriteSerializer(
            instance,
            data=self._payload(request),
            partial=partial,
            context=self.get_serializer_context()
        )
        serializer.is_valid(raise_exception=True)
        product = product_editor.save_product(
            serializer.get_product_fields(),
            serializer.get_draft(),
            files=request.FILES.dict(),
            product=instance,
            expected_version=serializer.validated_data.get('expected_version'),
        )
        return ProductDetailSerializer(product, context=self.get_serializer_context()).data

    def create(self, request, *args, **kwargs):
        return Response(self._save(request), status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        return Response(self._save(request, self.get_object(), partial=partial))

    def perform_destroy(self, instance):
        product_editor.delete_product(instance)

    @action(detail=True, methods=['get'])
    def draft(self, request, pk=None):
        """Get the editable draft (colors, sizes, variant rows) of a product."""
        product = self.get_object()
        return Response(ProductDraftSerializer(product_editor.load_draft(product)).data)

    @action(detail=False, methods=['post'])
    def matrix(self, request):
        """
        Apply one change to a product form's variant matrix.

        Expected payload:
        {
            "draft": {"colors": [...], "sizes": [...], "variants": [...]},
            "operation": "sizes" | "colors" | "primary" | "rebuild",
            "sizes": ["S", "M"],
            "colors": ["<color uuid>"],
            "primary": "<color uuid>"
        }
        """
        serializer = MatrixChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        draft = draft_from_data(data['draft'])
        operation = data['operation']
        if operation == 'sizes':
            draft = apply_size_change(draft, data['sizes'])
        elif operation == 'colors':
            colors = [str(c) for c in data['colors']]
            names = {str(c.pk): c.name for c in Color.objects.filter(pk__in=colors)}
            unknown = [c for c in colors if c not in names]
            if unknown:
                raise VariantMatrixError(f"Unknown color(s): {', '.join(unknown)}.")
            draft = apply_color_change(draft, colors, names)
        elif operation == 'primary':
            draft = set_primary(draft, data['primary'])
        else:
            draft = build_matrix(draft)

        return Response(ProductDraftSerializer(draft).data)


class ProductVariantViewSet(viewsets.ReadOnlyModelViewSet):
    """
    API endpoint for variants (read-only).

    Variants are written only through the product endpoint, together with
    the rest of the matrix.
    """
    queryset = ProductVariant.objects.select_related('product', 'color')
    serializer_class = ProductVariantSerializer
    filterset_class = ProductVariantFilter
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['sku', 'size', 'product__name', 'color__name']
    ordering_fields = ['sku', 'stock_quantity', 'created_at']
    ordering = ['product', 'position']


class ColorViewSet(viewsets.ModelViewSet):
    """
    API endpoint for the shared color library.
    """
    queryset = Color.objects.all()
    serializer_class = ColorSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'hex']
    ordering = ['display_order', 'name']


class CollectionViewSet(viewsets.ModelViewSet):
    """
    API endpoint for collections.

    The cover image can be sent as `image_url` or uploaded as `image`.
    """
    queryset = Collection.objects.all()
    serializer_class = CollectionSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'display_order', 'created_at']
    ordering = ['display_order', 'name']
    parser_classes = [JSONParser, MultiPartParser, FormParser]


class CategoryViewSet(viewsets.ModelViewSet):
    """
    API endpoint for categories.
    """
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name']
    ordering = ['name']


class InventoryViewSet(viewsets.ReadOnlyModelViewSet):
    """
    API endpoint for stock levels, lowest stock first.
    """
    queryset = Product.objects.select_related('category').prefetch_related(
        Prefetch(
            'variants',
            queryset=ProductVariant.objects.select_related('color').order_by('position')
        )
    )
    serializer_class = InventorySerializer
    filterset_class = ProductFilter
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'sku']
    ordering_fields = ['stock_quantity', 'name']
    ordering = ['stock_quantity', 'name']

    @action(detail=False, methods=['post'])
    def update_stock(self, request):
        """
        Bulk update variant stock quantities.

        Expected payload:
        {
            "updates": [
                {"id": "<variant uuid>", "stock_quantity": 100},
                {"id": "<variant uuid>", "stock_quantity": 50}
            ]
        }
        """
        serializer = StockUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated_ids = product_editor.update_variant_stock(serializer.validated_data['updates'])
        return Response({'updated': len(updated_ids), 'ids': updated_ids})
