"""
Unsaved-changes detection for the leave-page guard.
"""

from typing import Optional, Sequence

from product_editor.diff import (
    auxiliary_lists_changed,
    match_original,
    product_fields_changed,
    variant_changed,
)
from product_editor.models import Product, Variant

IDENTIFYING_FIELDS = (
    "title",
    "slug",
    "sku",
    "short_description",
    "long_description",
    "category_id",
)


def _has_identifying_input(product: Product) -> bool:
    for field_name in IDENTIFYING_FIELDS:
        value = getattr(product, field_name)
        if isinstance(value, str):
            if value.strip():
                return True
        elif value is not None:
            return True
    return False


def has_unsaved_changes(
    product: Product,
    variants: Sequence[Variant],
    original_product: Optional[Product],
    original_variants: Optional[Sequence[Variant]],
    is_new: bool,
) -> bool:
    """
    Whether leaving the editor now would lose work.

    A new product counts as dirty once anything identifying is typed or a
    variant is added. An existing product is dirty when its scalar fields,
    variant count, any variant or any auxiliary list differs from the
    snapshot.
    """
    if is_new or original_product is None:
        return _has_identifying_input(product) or len(variants) > 0

    original_variants = list(original_variants or [])

    if product_fields_changed(product, original_product):
        return True
    if len(variants) != len(original_variants):
        return True
    if any(variant_changed(v, match_original(v, original_variants)) for v in variants):
        return True
    return bool(auxiliary_lists_changed(product, original_product))
