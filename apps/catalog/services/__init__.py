from .variant_matrix import (
    ProductDraft,
    VariantDraft,
    apply_color_change,
    apply_size_change,
    build_matrix,
    ensure_primary,
    generate_sku,
    set_primary,
    total_stock,
    validate_for_save,
)

__all__ = [
    'ProductDraft',
    'VariantDraft',
    'apply_color_change',
    'apply_size_change',
    'build_matrix',
    'ensure_primary',
    'generate_sku',
    'set_primary',
    'total_stock',
    'validate_for_save',
]
