"""
Variant matrix builder.

A product form picks a set of colors and a set of sizes; the variant list is
always exactly colors x sizes. The functions here take an immutable draft of
the form and return a new draft, so the same transitions back both the
`matrix` API action and the save path.
"""

import re
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from django.utils.crypto import get_random_string

from apps.catalog.exceptions import VariantMatrixError

SKU_SUFFIX_LENGTH = 4
SKU_SUFFIX_CHARS = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
SKU_TOKEN_LENGTH = 3
MAX_SKU_ATTEMPTS = 20

_NON_ALNUM = re.compile(r'[^0-9A-Za-z]')


@dataclass(frozen=True)
class VariantDraft:
    """One row of the variant table in the product form."""
    color_id: str
    size: str
    sku: Optional[str] = None
    price: Optional[Decimal] = None
    stock_quantity: int = 0
    image_urls: Tuple[str, ...] = ()
    # Upload keys of files picked in the form but not yet stored
    pending_images: Tuple[str, ...] = ()
    is_primary: bool = False

    @property
    def key(self) -> Tuple[str, str]:
        return (self.color_id, self.size)


@dataclass(frozen=True)
class ProductDraft:
    """Unsaved edit buffer for a product's colors, sizes and variants."""
    sku_prefix: Optional[str] = None
    colors: Tuple[str, ...] = ()
    sizes: Tuple[str, ...] = ()
    variants: Tuple[VariantDraft, ...] = ()
    color_names: Mapping[str, str] = field(default_factory=dict)


def _unique(values: Iterable[str]) -> Tuple[str, ...]:
    result: List[str] = []
    for value in values:
        if value not in result:
            result.append(value)
    return tuple(result)


def normalize_sizes(sizes: Iterable[str]) -> Tuple[str, ...]:
    """Strip labels, drop blanks and repeats, keep the admin's order."""
    return normalize_tags(sizes)


def normalize_tags(values: Iterable[str]) -> Tuple[str, ...]:
    """Free-text tag list (fabrics): stripped, no blanks, no repeats."""
    return _unique(v.strip() for v in values if v and v.strip())


def normalize_colors(colors: Iterable) -> Tuple[str, ...]:
    return _unique(str(c) for c in colors if c)


def _sku_token(value: Optional[str]) -> str:
    return _NON_ALNUM.sub('', value or '')[:SKU_TOKEN_LENGTH].upper()


def generate_sku(
    prefix: Optional[str],
    color_name: Optional[str],
    size: str,
    taken: Iterable[str] = ()
) -> str:
    """
    Build a catalog SKU such as ``TEE01-RED-XL-7K2Q``.

    The random suffix is retried while the result collides with `taken`;
    uniqueness against the database is checked again on save.
    """
    taken = set(taken)
    parts = [
        part for part in (
            (prefix or '').strip().upper(),
            _sku_token(color_name),
            _sku_token(size),
        ) if part
    ]
    for _ in range(MAX_SKU_ATTEMPTS):
        suffix = get_random_string(SKU_SUFFIX_LENGTH, allowed_chars=SKU_SUFFIX_CHARS)
        sku = '-'.join(parts + [suffix])
        if sku not in taken:
            return sku
    raise VariantMatrixError(f"Could not generate a free SKU for {'-'.join(parts)}.")


def _reconcile(
    draft: ProductDraft,
    colors: Tuple[str, ...],
    sizes: Tuple[str, ...],
    color_names: Mapping[str, str]
) -> ProductDraft:
    wanted = {(c, s) for c in colors for s in sizes}

    kept: List[VariantDraft] = []
    existing = set()
    for variant in draft.variants:
        if variant.key in wanted and variant.key not in existing:
            kept.append(variant)
            existing.add(variant.key)

    taken = {v.sku for v in kept if v.sku}
    added: List[VariantDraft] = []
    for color_id in colors:
        for size in sizes:
            if (color_id, size) in existing:
                continue
            sku = generate_sku(draft.sku_prefix, color_names.get(color_id), size, taken)
            taken.add(sku)
            added.append(VariantDraft(color_id=color_id, size=size, sku=sku))

    return replace(
        draft,
        colors=colors,
        sizes=sizes,
        color_names=dict(color_names),
        variants=tuple(kept + added),
    )


def apply_size_change(draft: ProductDraft, sizes: Iterable[str]) -> ProductDraft:
    """
    Switch the draft to a new size set.

    Variants whose size was dropped are removed, missing (color, size) pairs
    are appended with zero stock, no price override and no images, and
    every other variant is carried over untouched.
    """
    return _reconcile(draft, draft.colors, normalize_sizes(sizes), draft.color_names)


def apply_color_change(
    draft: ProductDraft,
    colors: Iterable,
    color_names: Optional[Mapping[str, str]] = None
) -> ProductDraft:
    """Switch the draft to a new color set; mirror image of `apply_size_change`."""
    names = dict(draft.color_names)
    if color_names:
        names.update({str(k): v for k, v in color_names.items()})
    return _reconcile(draft, normalize_colors(colors), draft.sizes, names)


def build_matrix(draft: ProductDraft) -> ProductDraft:
    """Reconcile the variants against the draft's own colors and sizes."""
    return _reconcile(
        draft,
        normalize_colors(draft.colors),
        normalize_sizes(draft.sizes),
        draft.color_names,
    )


def set_primary(draft: ProductDraft, color_id) -> ProductDraft:
    """
    Make `color_id` the primary color group.

    Only the first variant of that color (in list order) keeps the flag;
    every other variant, of any color, is cleared.
    """
    color_id = str(color_id)
    if not any(v.color_id == color_id for v in draft.variants):
        raise VariantMatrixError(f"No variants for color {color_id}.")

    variants = []
    flagged = False
    for variant in draft.variants:
        is_primary = variant.color_id == color_id and not flagged
        flagged = flagged or is_primary
        variants.append(replace(variant, is_primary=is_primary))
    return replace(draft, variants=tuple(variants))


def ensure_primary(draft: ProductDraft) -> ProductDraft:
    """Leave exactly one primary variant: the first flagged one, else the first row."""
    if not draft.variants:
        return draft
    index = next(
        (i for i, v in enumerate(draft.variants) if v.is_primary),
        0
    )
    variants = tuple(
        replace(v, is_primary=(i == index)) if v.is_primary != (i == index) else v
        for i, v in enumerate(draft.variants)
    )
    return replace(draft, variants=variants)


def primary_color(draft: ProductDraft) -> Optional[str]:
    for variant in draft.variants:
        if variant.is_primary:
            return variant.color_id
    return None


def total_stock(draft: ProductDraft) -> int:
    return sum(v.stock_quantity for v in draft.variants)


def validate_for_save(draft: ProductDraft) -> None:
    """
    Reject drafts that must not reach the database.

    Raises:
        VariantMatrixError: colors without variants, rows outside the
            colors x sizes matrix, duplicated pairs or SKUs, negative stock.
    """
    if draft.colors and not draft.variants:
        raise VariantMatrixError(
            'Selected colors have no variants. Add at least one size.'
        )

    wanted = {(c, s) for c in draft.colors for s in draft.sizes}
    seen_keys = set()
    seen_skus: Dict[str, Tuple[str, str]] = {}
    for variant in draft.variants:
        if variant.key not in wanted:
            raise VariantMatrixError(
                f"Variant {variant.color_id}/{variant.size} does not match "
                f"the selected colors and sizes."
            )
        if variant.key in seen_keys:
            raise VariantMatrixError(
                f"Duplicate variant {variant.color_id}/{variant.size}."
            )
        seen_keys.add(variant.key)

        if variant.stock_quantity < 0:
            raise VariantMatrixError(f"Stock for {variant.sku or variant.size} cannot be negative.")
        if variant.price is not None and variant.price < 0:
            raise VariantMatrixError(f"Price for {variant.sku or variant.size} cannot be negative.")

        if variant.sku:
            if variant.sku in seen_skus:
                raise VariantMatrixError(f"SKU '{variant.sku}' is used by more than one variant.")
            seen_skus[variant.sku] = variant.key

    if seen_keys != wanted:
        raise VariantMatrixError('Every color and size combination needs a variant.')
