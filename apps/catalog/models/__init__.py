"""
Catalog models for the clothing store.

Model Hierarchy:
- Color: Shared color library (name + hex swatch)
- Collection: Merchandising grouping with a cover image
- Category: Flat product categories
- Product: Base product with pricing, status and aggregate stock
- ProductVariant: Color x size unit with stock, price override and images
"""

from .color import Color
from .collection import Collection
from .category import Category
from .product import Product
from .variant import ProductVariant

__all__ = [
    'Color',
    'Collection',
    'Category',
    'Product',
    'ProductVariant',
]
