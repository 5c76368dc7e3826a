"""
Wire projections for products and variants.

These functions turn working-copy models into the JSON-ready dictionaries the
catalog API accepts. They are also the canonical form the diff engine
compares, so a value that projects identically counts as unchanged.
"""

import math
import re
from typing import Any, Optional

from product_editor.models import (
    OPTIONAL_SECTIONS,
    SPECIFICATIONS,
    AttributeEntry,
    BulletPoint,
    Product,
    Recommendation,
    Variant,
    VariantImage,
)


def parse_number(value: Any) -> Optional[float]:
    """Parse a price-like value; empty or unparseable input gives None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "")
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    """Parse a count-like value, truncating decimals; unparseable input gives ``default``."""
    number = parse_number(value)
    if number is None:
        return default
    return int(number)


def flag(value: Any, default: bool = True) -> bool:
    """Only an explicit False turns a default-on flag off."""
    if value is None:
        return default
    return value is not False


def slugify(text: str) -> str:
    """Convert a title to a URL slug."""
    if not text:
        return ""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug.strip("-")


def _clean_text(value: Optional[str]) -> str:
    return (value or "").strip()


def project_attribute(entry: AttributeEntry) -> dict:
    return {
        "name": entry.name,
        "value": entry.value,
        "sort_order": parse_int(entry.sort_order),
        "is_active": flag(entry.is_active),
    }


def project_optional_section(entries: list[AttributeEntry]) -> list[dict]:
    """Drop entries with a blank name or value and trim the rest."""
    projected = []
    for entry in entries:
        name = _clean_text(entry.name)
        value = _clean_text(entry.value)
        if not name or not value:
            continue
        projected.append({
            "name": name,
            "value": value,
            "sort_order": parse_int(entry.sort_order),
            "is_active": flag(entry.is_active),
        })
    return projected


def project_image(image: VariantImage) -> dict:
    return {
        "image": image.image,
        "alt_text": image.alt_text or "",
        "sort_order": parse_int(image.sort_order),
        "is_active": flag(image.is_active),
    }


def build_variant_payload(variant: Variant) -> dict:
    """
    Full outbound document for one variant.

    ``specifications`` is sent as-is, blank rows included. The optional
    sections only carry rows with both a name and a value.
    """
    document = {
        "id": variant.id,
        "color_id": variant.color_id,
        "sku": variant.sku or None,
        "title": variant.title or "",
        "size": variant.size or "",
        "pattern": variant.pattern or "",
        "quality": variant.quality or "",
        "price": parse_number(variant.price),
        "old_price": parse_number(variant.old_price),
        "stock_quantity": parse_int(variant.stock_quantity),
        "is_in_stock": flag(variant.is_in_stock),
        "is_active": flag(variant.is_active),
        "image": variant.image or "",
        "video_url": variant.video_url or None,
        "subcategory_ids": list(variant.subcategory_ids or []),
        "images": [project_image(img) for img in variant.images],
        SPECIFICATIONS: [project_attribute(e) for e in variant.specifications],
    }
    for section in OPTIONAL_SECTIONS:
        document[section] = project_optional_section(variant.section(section))
    return document


def build_minimal_variant_payload(variant: Variant) -> dict:
    """Identity, pricing and stock only; never images or attribute sections."""
    return {
        "id": variant.id,
        "color_id": variant.color_id,
        "sku": variant.sku or None,
        "size": variant.size or "",
        "pattern": variant.pattern or "",
        "quality": variant.quality or "",
        "price": parse_number(variant.price),
        "old_price": parse_number(variant.old_price),
        "stock_quantity": parse_int(variant.stock_quantity),
        "is_active": flag(variant.is_active),
        "is_in_stock": flag(variant.is_in_stock),
        "subcategory_ids": list(variant.subcategory_ids or []),
    }


def comparison_projection(variant: Variant) -> dict:
    """Full projection with images ordered by URL, so array order alone is not a change."""
    document = build_variant_payload(variant)
    document["images"] = sorted(
        document["images"],
        key=lambda img: (img["image"], img["sort_order"], img["alt_text"]),
    )
    return document


def project_scalar(product: Product, field_name: str) -> Any:
    """Outbound value of one scalar product field."""
    value = getattr(product, field_name)
    if field_name == "sku":
        return value or None
    if field_name in ("category_id", "material_id"):
        return parse_int(value, default=None) or None
    if field_name == "estimated_delivery_days":
        return parse_int(value, default=None)
    if field_name in ("assembly_required", "is_featured"):
        return bool(value)
    if field_name == "is_active":
        return flag(value)
    return value if value is not None else ""


def project_screen_offer(product: Product) -> list[dict]:
    return [
        {"title": offer.title, "description": offer.description}
        for offer in product.screen_offer
    ]


def project_bullets(items: list[BulletPoint], text_key: str) -> list[dict]:
    return [
        {
            text_key: item.text,
            "sort_order": parse_int(item.sort_order),
            "is_active": flag(item.is_active),
        }
        for item in items
    ]


def project_recommendations(items: list[Recommendation]) -> list[dict]:
    return [
        {
            "id": rec.id,
            "recommended_product_id": rec.recommended_product_id,
            "recommendation_type": rec.recommendation_type,
            "sort_order": parse_int(rec.sort_order),
            "is_active": flag(rec.is_active),
        }
        for rec in items
    ]


def project_auxiliary(product: Product, list_name: str) -> list[dict]:
    """Outbound form of one auxiliary list (bullets, about items, recommendations)."""
    if list_name == "features":
        return project_bullets(product.features, "feature")
    if list_name == "about_items":
        return project_bullets(product.about_items, "item")
    if list_name == "recommendations":
        return project_recommendations(product.recommendations)
    raise KeyError(f"Unknown auxiliary list: {list_name}")
