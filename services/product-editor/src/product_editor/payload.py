"""
Save document construction.

Consumes the diff engine to build the outbound document for one save action:
every field for a new product, a sparse patch for an existing one.
"""

import logging
from typing import Optional, Sequence

from product_editor.diff import (
    auxiliary_lists_changed,
    changed_product_fields,
    classify_variant,
    match_original,
)
from product_editor.exceptions import ErrorContext, ValidationError
from product_editor.models import (
    AUXILIARY_LISTS,
    PRODUCT_SCALAR_FIELDS,
    ChangeStatus,
    Product,
    Variant,
    VariantProjection,
)
from product_editor.projection import (
    build_minimal_variant_payload,
    build_variant_payload,
    parse_int,
    project_auxiliary,
    project_scalar,
    project_screen_offer,
    slugify,
)

logger = logging.getLogger(__name__)


def validate_for_save(product: Product, variants: Sequence[Variant]) -> None:
    """
    Check the working copy before any payload is built.

    Raises:
        ValidationError: With a message meant for the person editing
    """
    title_missing = not (product.title or "").strip()
    if title_missing or product.category_id is None:
        raise ValidationError(
            message="Title and Category are required",
            field_name="title" if title_missing else "category_id",
            expected="non-empty value",
            actual=product.title if title_missing else product.category_id,
            context=ErrorContext(product_id=product.id),
        )

    category_id = parse_int(product.category_id, default=None)
    if category_id is None or category_id <= 0:
        raise ValidationError(
            message="Please select a valid category",
            field_name="category_id",
            expected="positive integer",
            actual=product.category_id,
            context=ErrorContext(product_id=product.id),
        )

    missing_color = [i for i, v in enumerate(variants) if not v.color_id]
    if missing_color:
        raise ValidationError(
            message=f"Please select a color for all {len(missing_color)} variant(s)",
            field_name="color_id",
            expected="selected color",
            actual=0,
            context=ErrorContext(
                product_id=product.id,
                variant_index=missing_color[0],
                additional_data={"variant_indexes": missing_color},
            ),
        )


def project_variant(current: Variant, original: Optional[Variant]) -> VariantProjection:
    """Classify a variant once and pick its full or minimal document accordingly."""
    status = classify_variant(current, original)
    if status is ChangeStatus.UNCHANGED:
        document = build_minimal_variant_payload(current)
    else:
        document = build_variant_payload(current)
    return VariantProjection(status=status, document=document)


def project_variants(
    variants: Sequence[Variant],
    original_variants: Sequence[Variant],
    is_new: bool,
) -> list[VariantProjection]:
    if is_new:
        return [
            VariantProjection(status=ChangeStatus.NEW, document=build_variant_payload(v))
            for v in variants
        ]
    return [project_variant(v, match_original(v, original_variants)) for v in variants]


def build_save_payload(
    product: Product,
    variants: Sequence[Variant],
    original_product: Optional[Product],
    original_variants: Optional[Sequence[Variant]],
    is_new: bool,
) -> dict:
    """
    Build the document sent for one save action.

    New products carry every field. Existing products carry only the scalar
    fields that changed, plus auxiliary lists that differ. Every variant is
    always present, because the server deletes variants missing from the
    document. Unchanged variants get the minimal document.

    Args:
        product: Working copy of the product
        variants: Working copy of its variants
        original_product: Snapshot of the product, None for a new product
        original_variants: Snapshot variants
        is_new: Whether the product has never been saved

    Returns:
        JSON-ready save document
    """
    original_variants = list(original_variants or [])
    update_mode = not is_new and original_product is not None

    if update_mode:
        fields = changed_product_fields(product, original_product)
        lists = auxiliary_lists_changed(product, original_product)
    else:
        fields = list(PRODUCT_SCALAR_FIELDS) + ["screen_offer"]
        lists = list(AUXILIARY_LISTS)

    payload: dict = {}
    for field_name in fields:
        if field_name == "screen_offer":
            payload["screen_offer"] = project_screen_offer(product)
        else:
            payload[field_name] = project_scalar(product, field_name)

    if "slug" in payload and not payload["slug"]:
        payload["slug"] = slugify(product.title)

    projections = project_variants(variants, original_variants, is_new=not update_mode)
    payload["variants"] = [p.document for p in projections]

    for list_name in lists:
        payload[list_name] = project_auxiliary(product, list_name)

    logger.debug(
        "Built save payload",
        extra={
            "metrics": {
                "mode": "update" if update_mode else "create",
                "fields": len(fields),
                "variants_full": sum(1 for p in projections if not p.is_minimal),
                "variants_minimal": sum(1 for p in projections if p.is_minimal),
                "lists": lists,
            }
        },
    )
    return payload
