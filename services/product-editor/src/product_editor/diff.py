"""
Change detection between the working copy and the last-saved snapshot.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Sequence

from pydantic import BaseModel

from product_editor.models import (
    AUXILIARY_LISTS,
    PRODUCT_SCALAR_FIELDS,
    ChangeStatus,
    Product,
    Variant,
)
from product_editor.projection import (
    comparison_projection,
    project_auxiliary,
    project_scalar,
    project_screen_offer,
)

logger = logging.getLogger(__name__)


def is_equal(a: Any, b: Any) -> bool:
    """
    Recursive structural equality.

    Primitives compare by value, except that booleans never equal numbers.
    Sequences compare pairwise in order. Mappings need the same keys.
    Pydantic models compare by type and field values. None only equals None.
    """
    if a is b:
        return True
    if a is None or b is None:
        return False

    if isinstance(a, BaseModel) or isinstance(b, BaseModel):
        if type(a) is not type(b):
            return False
        return is_equal(dict(a), dict(b))

    if isinstance(a, Mapping) or isinstance(b, Mapping):
        if not (isinstance(a, Mapping) and isinstance(b, Mapping)):
            return False
        if set(a.keys()) != set(b.keys()):
            return False
        return all(is_equal(a[key], b[key]) for key in a)

    if isinstance(a, (list, tuple)) or isinstance(b, (list, tuple)):
        if not (isinstance(a, (list, tuple)) and isinstance(b, (list, tuple))):
            return False
        if len(a) != len(b):
            return False
        return all(is_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b

    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b

    if type(a) is not type(b):
        return False
    return a == b


def _image_urls(variant: Variant) -> list[str]:
    return [img.image or "" for img in variant.images]


def classify_variant(current: Variant, original: Optional[Variant]) -> ChangeStatus:
    """
    Decide whether a variant is new, unchanged or modified.

    Cheap media checks run first; the comparison projection is the final word
    and also catches pricing, stock and attribute-list edits.
    """
    if original is None:
        return ChangeStatus.NEW

    if original.id is None and current.id is not None:
        return ChangeStatus.MODIFIED

    if len(current.images) != len(original.images):
        return ChangeStatus.MODIFIED

    if (current.image or "") != (original.image or ""):
        return ChangeStatus.MODIFIED

    if (current.video_url or "") != (original.video_url or ""):
        return ChangeStatus.MODIFIED

    if sorted(_image_urls(current)) != sorted(_image_urls(original)):
        return ChangeStatus.MODIFIED

    if is_equal(comparison_projection(current), comparison_projection(original)):
        return ChangeStatus.UNCHANGED
    return ChangeStatus.MODIFIED


def variant_changed(current: Variant, original: Optional[Variant] = None) -> bool:
    """True when the variant must be sent in full."""
    return classify_variant(current, original) is not ChangeStatus.UNCHANGED


def match_original(variant: Variant, originals: Sequence[Variant]) -> Optional[Variant]:
    """Find a variant's snapshot counterpart by id."""
    if variant.id is None:
        return None
    for original in originals:
        if original.id == variant.id:
            return original
    return None


def changed_product_fields(current: Product, original: Optional[Product]) -> list[str]:
    """
    Names of scalar product fields that differ from the snapshot.

    ``screen_offer`` is reported when the offer list differs structurally.
    Without a snapshot every field counts as changed.
    """
    if original is None:
        return list(PRODUCT_SCALAR_FIELDS) + ["screen_offer"]

    changed = [
        field_name
        for field_name in PRODUCT_SCALAR_FIELDS
        if not is_equal(
            project_scalar(current, field_name),
            project_scalar(original, field_name),
        )
    ]
    if not is_equal(project_screen_offer(current), project_screen_offer(original)):
        changed.append("screen_offer")
    return changed


def product_fields_changed(current: Product, original: Optional[Product]) -> bool:
    return bool(changed_product_fields(current, original))


def auxiliary_lists_changed(current: Product, original: Optional[Product]) -> list[str]:
    """Names of auxiliary lists (bullets, about items, recommendations) that differ."""
    if original is None:
        return list(AUXILIARY_LISTS)
    return [
        list_name
        for list_name in AUXILIARY_LISTS
        if not is_equal(
            project_auxiliary(current, list_name),
            project_auxiliary(original, list_name),
        )
    ]
