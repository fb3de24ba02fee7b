from .serializers import (
    ColorSerializer,
    CategorySerializer,
    CollectionSerializer,
    ProductVariantSerializer,
    VariantDraftSerializer,
    ProductDraftSerializer,
    MatrixChangeSerializer,
    ProductListSerializer,
    ProductDetailSerializer,
    ProductWriteSerializer,
    StockUpdateSerializer,
    InventorySerializer,
)

__all__ = [
    'ColorSerializer',
    'CategorySerializer',
    'CollectionSerializer',
    'ProductVariantSerializer',
    'VariantDraftSerializer',
    'ProductDraftSerializer',
    'MatrixChangeSerializer',
    'ProductListSerializer',
    'ProductDetailSerializer',
    'ProductWriteSerializer',
    'StockUpdateSerializer',
    'InventorySerializer',
]
