"""
Transformer for turning catalog API product documents into the working copy.
Handles the shape differences between what the server returns and what the
editor holds: nested color/category references, subcategory objects,
sections sent as mappings, and loosely typed numbers.
"""

import logging
from typing import Any, Optional

from product_editor.exceptions import ErrorContext, TransformationError
from product_editor.logging_config import get_correlation_id
from product_editor.models import (
    SECTIONS,
    AttributeEntry,
    BulletPoint,
    Product,
    Recommendation,
    ScreenOffer,
    Variant,
    VariantImage,
)
from product_editor.projection import parse_int

logger = logging.getLogger(__name__)

SCALAR_TEXT_FIELDS = (
    "title",
    "slug",
    "short_description",
    "long_description",
    "dimensions",
    "weight",
    "warranty",
    "style_description",
    "user_guide",
    "care_instructions",
    "what_in_box",
    "meta_title",
    "meta_description",
)


class ProductDocumentValidator:
    """Validates a product document before transformation."""

    def __init__(self):
        self.validation_errors: list[str] = []

    def validate(self, document: Any) -> bool:
        self.validation_errors.clear()

        if not isinstance(document, dict):
            self.validation_errors.append(
                f"Product document must be an object, got {type(document).__name__}"
            )
            return False

        variants = document.get("variants")
        if variants is not None and not isinstance(variants, list):
            self.validation_errors.append("variants must be a list")

        for key in ("features", "about_items", "recommendations", "screen_offer"):
            value = document.get(key)
            if value is not None and not isinstance(value, list):
                self.validation_errors.append(f"{key} must be a list")

        return len(self.validation_errors) == 0


class ProductDocumentTransformer:
    """
    Transforms a ProductDocument from the catalog API into a Product.

    Used both when a product is first fetched and when the server answers a
    save with the updated document.
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or get_correlation_id()
        self.validator = ProductDocumentValidator()

    def transform(self, document: Any) -> Product:
        """
        Build a Product (variants included) from a product document.

        Raises:
            TransformationError: If the document is malformed
        """
        product_id = self._extract_id(document)
        context = ErrorContext(correlation_id=self.correlation_id, product_id=product_id)

        if not self.validator.validate(document):
            raise TransformationError(
                message=f"Invalid product document: {'; '.join(self.validator.validation_errors)}",
                product_id=product_id,
                context=context,
            )

        try:
            product = Product(
                id=product_id,
                sku=document.get("sku") or "",
                category_id=self._extract_reference(document, "category"),
                material_id=self._extract_reference(document, "material"),
                brand=document.get("brand") or "",
                assembly_required=bool(document.get("assembly_required", False)),
                estimated_delivery_days=parse_int(
                    document.get("estimated_delivery_days"), default=4
                ),
                is_featured=bool(document.get("is_featured", False)),
                is_active=document.get("is_active") is not False,
                screen_offer=self._extract_screen_offer(document.get("screen_offer") or []),
                variants=[
                    self._extract_variant(v, idx)
                    for idx, v in enumerate(document.get("variants") or [])
                    if isinstance(v, dict)
                ],
                features=self._extract_bullets(document.get("features") or [], "feature"),
                about_items=self._extract_bullets(document.get("about_items") or [], "item"),
                recommendations=self._extract_recommendations(
                    document.get("recommendations") or []
                ),
                **{name: document.get(name) or "" for name in SCALAR_TEXT_FIELDS},
            )
        except TransformationError:
            raise
        except Exception as e:
            raise TransformationError(
                message=f"Failed to transform product {product_id}: {e}",
                product_id=product_id,
                context=context,
                original_exception=e,
            )

        logger.debug(
            f"Transformed product document with {len(product.variants)} variants",
            extra={"metrics": {"variant_count": len(product.variants)}},
        )
        return product

    def _extract_id(self, document: Any) -> Optional[int]:
        if not isinstance(document, dict):
            return None
        return parse_int(document.get("id"), default=None)

    def _extract_reference(self, document: dict, name: str) -> Optional[int]:
        """Read ``<name>_id`` or the id of a nested ``<name>`` object."""
        raw = document.get(f"{name}_id")
        if raw in (None, ""):
            nested = document.get(name)
            raw = nested.get("id") if isinstance(nested, dict) else nested
        return parse_int(raw, default=None) or None

    def _extract_screen_offer(self, offers: list) -> list[ScreenOffer]:
        result = []
        for offer in offers:
            if isinstance(offer, str):
                result.append(ScreenOffer(title=offer))
            elif isinstance(offer, dict):
                result.append(ScreenOffer(
                    title=offer.get("title") or "",
                    description=offer.get("description") or "",
                ))
        return result

    def _extract_variant(self, raw: dict, index: int) -> Variant:
        color_id = raw.get("color_id")
        if not color_id and isinstance(raw.get("color"), dict):
            color_id = raw["color"].get("id")

        subcategories = raw.get("subcategories")
        if isinstance(subcategories, list) and subcategories:
            subcategory_ids = [
                parse_int(sub.get("id") if isinstance(sub, dict) else sub, default=None)
                for sub in subcategories
            ]
        else:
            subcategory_ids = [parse_int(s, default=None) for s in raw.get("subcategory_ids") or []]

        try:
            return Variant(
                id=parse_int(raw.get("id"), default=None),
                title=raw.get("title") or "",
                sku=raw.get("sku") or None,
                color_id=parse_int(color_id, default=0),
                size=raw.get("size") or "",
                pattern=raw.get("pattern") or "",
                quality=raw.get("quality") or "",
                price=raw.get("price"),
                old_price=raw.get("old_price"),
                stock_quantity=parse_int(raw.get("stock_quantity"), default=0),
                is_in_stock=raw.get("is_in_stock") is not False,
                is_active=raw.get("is_active") is not False,
                image=raw.get("image") or "",
                images=self._extract_images(raw.get("images") or []),
                video_url=raw.get("video_url") or None,
                subcategory_ids=[s for s in subcategory_ids if s is not None],
                **{section: self._extract_section(raw.get(section)) for section in SECTIONS},
            )
        except Exception as e:
            raise TransformationError(
                message=f"Failed to transform variant at index {index}: {e}",
                product_id=None,
                field_name="variants",
                context=ErrorContext(variant_index=index),
                original_exception=e,
            )

    def _extract_images(self, images: list) -> list[VariantImage]:
        result = []
        for idx, img in enumerate(images):
            if isinstance(img, str):
                result.append(VariantImage(image=img, sort_order=idx))
            elif isinstance(img, dict):
                result.append(VariantImage(
                    id=parse_int(img.get("id"), default=None),
                    image=img.get("image") or "",
                    alt_text=img.get("alt_text") or "",
                    sort_order=parse_int(img.get("sort_order"), default=0),
                    is_active=img.get("is_active") is not False,
                ))
        return result

    def _extract_section(self, raw: Any) -> list[AttributeEntry]:
        """
        Parse one attribute section.

        Servers send either a list of rows or, for sections never filled in,
        an empty object or a ``{name: value}`` mapping.
        """
        if not raw:
            return []
        if isinstance(raw, dict):
            return [
                AttributeEntry(name=str(name), value="" if value is None else str(value), sort_order=idx)
                for idx, (name, value) in enumerate(raw.items())
            ]
        entries = []
        for idx, row in enumerate(raw):
            if not isinstance(row, dict):
                continue
            value = row.get("value")
            entries.append(AttributeEntry(
                id=parse_int(row.get("id"), default=None) or None,
                name=row.get("name") or "",
                value="" if value is None else str(value),
                sort_order=parse_int(row.get("sort_order"), default=idx),
                is_active=row.get("is_active") is not False,
            ))
        return entries

    def _extract_bullets(self, rows: list, text_key: str) -> list[BulletPoint]:
        result = []
        for idx, row in enumerate(rows):
            if isinstance(row, str):
                result.append(BulletPoint(text=row, sort_order=idx))
                continue
            if not isinstance(row, dict):
                continue
            # about_items used to be stored under "feature"
            text = row.get(text_key) or row.get("feature") or row.get("item") or ""
            result.append(BulletPoint(
                id=parse_int(row.get("id"), default=None),
                text=text,
                sort_order=parse_int(row.get("sort_order"), default=idx),
                is_active=row.get("is_active") is not False,
            ))
        return result

    def _extract_recommendations(self, rows: list) -> list[Recommendation]:
        result = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            product_id = row.get("recommended_product_id")
            nested = row.get("recommended_product")
            if product_id in (None, "") and nested is not None:
                product_id = nested.get("id") if isinstance(nested, dict) else nested
            result.append(Recommendation(
                id=parse_int(row.get("id"), default=None),
                recommended_product_id=parse_int(product_id, default=0),
                recommendation_type=row.get("recommendation_type") or "recommended",
                sort_order=parse_int(row.get("sort_order"), default=0),
                is_active=row.get("is_active") is not False,
            ))
        return result
