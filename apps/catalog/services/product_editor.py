"""
Saving products together with their variant matrix.

A save is: validate the draft, upload pending images, then replace the
product's variant rows inside one transaction. Nothing touches the database
until validation and uploads have succeeded, and a failure during the row
replacement rolls the whole product back.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from django.db import IntegrityError, transaction
from simple_history.utils import bulk_create_with_history

from apps.catalog.exceptions import ProductConflictError, VariantMatrixError
from apps.catalog.models import Color, Product, ProductVariant
from apps.catalog.services import storage
from apps.catalog.services.variant_matrix import (
    ProductDraft,
    VariantDraft,
    ensure_primary,
    total_stock,
    validate_for_save,
)

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = (
    'sku', 'name', 'description', 'price', 'discount_price',
    'collection', 'category', 'fabrics', 'status',
)


def load_draft(product: Product) -> ProductDraft:
    """Build the edit buffer for an existing product from its stored rows."""
    variants = list(product.variants.select_related('color').order_by('position'))
    colors = []
    color_names = {}
    sizes = []
    drafts = []
    for variant in variants:
        if variant.color_id is None:
            # Color was deleted from the library; the row cannot be edited
            continue
        color_id = str(variant.color_id)
        if color_id not in colors:
            colors.append(color_id)
            color_names[color_id] = variant.color.name
        if variant.size not in sizes:
            sizes.append(variant.size)
        drafts.append(VariantDraft(
            color_id=color_id,
            size=variant.size,
            sku=variant.sku,
            price=variant.price,
            stock_quantity=variant.stock_quantity,
            image_urls=tuple(variant.image_urls or ()),
            is_primary=variant.is_primary,
        ))
    return ProductDraft(
        sku_prefix=product.sku,
        colors=tuple(colors),
        sizes=tuple(sizes),
        variants=tuple(drafts),
        color_names=color_names,
    )


def _pending_files(draft: ProductDraft, files: Mapping[str, Any]) -> Dict[str, Any]:
    pending = [key for v in draft.variants for key in v.pending_images]
    missing = [key for key in pending if key not in files]
    if missing:
        raise VariantMatrixError(f"No file was sent for pending image(s): {', '.join(missing)}.")
    return {key: files[key] for key in pending}


def _resolve_images(draft: ProductDraft, urls: Mapping[str, str]) -> List[VariantDraft]:
    return [
        replace(
            variant,
            image_urls=variant.image_urls + tuple(urls[key] for key in variant.pending_images),
            pending_images=(),
        )
        for variant in draft.variants
    ]


def _check_colors(draft: ProductDraft) -> None:
    known = {
        str(pk) for pk in Color.objects.filter(pk__in=list(draft.colors)).values_list('pk', flat=True)
    }
    unknown = [c for c in draft.colors if c not in known]
    if unknown:
        raise VariantMatrixError(f"Unknown color(s): {', '.join(unknown)}.")


def _check_sku_collisions(product: Product, variants: Iterable[VariantDraft]) -> None:
    skus = [v.sku for v in variants if v.sku]
    if not skus:
        return
    clashes = list(
        ProductVariant.objects.filter(sku__in=skus)
        .exclude(product=product)
        .values_list('sku', flat=True)
    )
    if clashes:
        raise VariantMatrixError(
            f"SKU already used by another product: {', '.join(sorted(clashes))}."
        )


@transaction.atomic
def _write(
    product: Optional[Product],
    fields: Mapping[str, Any],
    variants: List[VariantDraft],
    expected_version: Optional[int]
) -> Product:
    if product is None:
        product = Product()
    else:
        current = Product.objects.select_for_update().get(pk=product.pk)
        if expected_version is not None and current.version != expected_version:
            logger.warning(
                "Conflict saving product %s: expected version %s, found %s",
                product.pk, expected_version, current.version
            )
            raise ProductConflictError()
        product = current
        product.version = current.version + 1

    for name in PRODUCT_FIELDS:
        if name in fields:
            setattr(product, name, fields[name])
    if not product.sku:
        product.sku = None
    product.stock_quantity = sum(v.stock_quantity for v in variants)
    try:
        with transaction.atomic():
            product.save()
    except IntegrityError as exc:
        logger.warning("Product row rejected for SKU %s: %s", product.sku, exc)
        raise VariantMatrixError(f"SKU {product.sku} is already used by another product.") from exc
    product.refresh_from_db()

    _check_sku_collisions(product, variants)

    # Replace the child rows as a whole, still inside the transaction
    product.variants.all().delete()
    try:
        bulk_create_with_history([
            ProductVariant(
                product=product,
                color_id=v.color_id,
                size=v.size,
                sku=v.sku or None,
                price=v.price,
                stock_quantity=v.stock_quantity,
                image_urls=list(v.image_urls),
                is_primary=v.is_primary,
                position=position,
            )
            for position, v in enumerate(variants)
        ], ProductVariant)
    except IntegrityError as exc:
        logger.warning("Variant rows rejected for product %s: %s", product.pk, exc)
        raise VariantMatrixError('A variant SKU is already in use.') from exc
    return product


def save_product(
    fields: Mapping[str, Any],
    draft: ProductDraft,
    files: Optional[Mapping[str, Any]] = None,
    product: Optional[Product] = None,
    expected_version: Optional[int] = None
) -> Product:
    """
    Create or update a product and replace its variants with the draft's.

    Args:
        fields: Product column values (name, price, status...)
        draft: Colors, sizes and variant rows from the form
        files: Uploaded files keyed by the pending image keys in the draft
        product: Existing product to update, or None to create one
        expected_version: Version the form was loaded with; a mismatch
            means someone else saved in between

    Raises:
        VariantMatrixError: invalid draft; nothing was uploaded or written
        ImageUploadError: an upload failed; the catalog is unchanged
        ProductConflictError: the product changed since it was loaded
    """
    validate_for_save(draft)
    _check_colors(draft)

    pending = _pending_files(draft, files or {})
    urls = storage.upload_many(pending)
    variants = _resolve_images(ensure_primary(draft), urls)

    saved = _write(product, fields, variants, expected_version)
    logger.info(
        "Saved product %s (%s): %d variants, stock %d",
        saved.pk, saved.name, len(variants), total_stock(draft)
    )
    return saved


def delete_product(product: Product) -> None:
    pk, name = product.pk, product.name
    product.delete()
    logger.info("Deleted product %s (%s)", pk, name)


@transaction.atomic
def update_variant_stock(updates: Iterable[Mapping[str, Any]]) -> List[str]:
    """
    Set stock for several variants and refresh their products' totals.

    Expected items: {"id": <variant uuid>, "stock_quantity": 12}

    Returns:
        Ids of the variants that were updated
    """
    updated_ids = []
    product_ids = set()
    for update in updates:
        variant_id = update.get('id')
        stock = update.get('stock_quantity')
        if not variant_id or stock is None:
            continue
        stock = int(stock)
        if stock < 0:
            raise VariantMatrixError(f"Stock for variant {variant_id} cannot be negative.")
        variant = ProductVariant.objects.filter(pk=variant_id).first()
        if variant is None:
            raise VariantMatrixError(f"Variant {variant_id} not found.")
        ProductVariant.objects.filter(pk=variant.pk).update(stock_quantity=stock)
        updated_ids.append(str(variant.pk))
        product_ids.add(variant.product_id)

    for product in Product.objects.filter(pk__in=product_ids):
        product.refresh_stock()

    logger.info("Updated stock for %d variants", len(updated_ids))
    return updated_ids
