"""
Product editor session: the single owner of the working copy.

Holds the product being authored, its last-saved snapshot and the category
templates, and exposes the mutation API the UI layer calls. Every read of
unsaved state and every save goes through the diff engine against the
snapshot.
"""

from typing import Any, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from product_editor.client import CatalogApiClient
from product_editor.config import EditorSettings
from product_editor.exceptions import ErrorContext, ValidationError
from product_editor.logging_config import (
    LogContext,
    configure_logging,
    generate_correlation_id,
    get_logger,
    log_execution_time,
    set_product_id,
)
from product_editor.models import (
    ATTRIBUTE_FIELDS,
    BULLET_FIELDS,
    BULLET_LISTS,
    IMAGE_FIELDS,
    PRODUCT_SCALAR_FIELDS,
    RECOMMENDATION_FIELDS,
    SECTIONS,
    VARIANT_FIELDS,
    AttributeEntry,
    BulletPoint,
    ChangeStatus,
    Product,
    Recommendation,
    ScreenOffer,
    TemplateIndex,
    Variant,
    VariantImage,
)
from product_editor.diff import classify_variant, match_original
from product_editor.payload import build_save_payload, validate_for_save
from product_editor.projection import slugify
from product_editor.reconciler import entries_from_defaults, reconcile_variants
from product_editor.sentinel import has_unsaved_changes
from product_editor.snapshot import SnapshotManager
from product_editor.templates import TemplateStore
from product_editor.transformer import ProductDocumentTransformer

logger = get_logger(__name__)

OPTIONAL_ID_FIELDS = ("category_id", "material_id")


def _assign(
    target: BaseModel,
    field_name: str,
    value: Any,
    context: Optional[ErrorContext] = None,
) -> None:
    """Set a validated model field, reporting bad input as a ValidationError."""
    try:
        setattr(target, field_name, value)
    except PydanticValidationError as e:
        raise ValidationError(
            message=f"Invalid value for {field_name}: {e.errors()[0].get('msg', str(e))}",
            field_name=field_name,
            expected=str(type(target).model_fields[field_name].annotation),
            actual=value,
            context=context,
        )


class ProductEditor:
    """
    Editing session for one product.

    The session is either new (never saved) or bound to a persisted product.
    Template loads, mutations and saves all run synchronously on the caller's
    thread.
    """

    def __init__(self, client, settings: Optional[EditorSettings] = None):
        self.client = client
        self.settings = settings or EditorSettings()
        self.templates = TemplateStore(client)
        self.snapshots = SnapshotManager()
        self.product = Product()
        self.is_new = True
        self.last_selected_color_id: Optional[int] = None
        self.templates.add_listener(self._on_templates_installed)

    # -- lifecycle -------------------------------------------------------

    def new(self) -> Product:
        """Start authoring an empty product."""
        self.product = Product()
        self.is_new = True
        self.last_selected_color_id = None
        self.snapshots.clear()
        self.templates.load_category(None)
        set_product_id(None)
        return self.product

    @log_execution_time(logger)
    def load(self, product_id: int) -> Product:
        """
        Fetch an existing product and make it the working copy.

        The snapshot is taken after the category templates have been applied,
        so opening a product never shows it as modified.
        """
        with LogContext(correlation_id=generate_correlation_id(), product_id=product_id):
            document = self.client.fetch_product(product_id)
            product = ProductDocumentTransformer().transform(document)

            self.product = product
            self.is_new = False
            self.templates.load_category(product.category_id)
            self.snapshots.take_snapshot(self.product)

            logger.info(
                f"Loaded product with {len(self.product.variants)} variants",
                extra={"category_id": product.category_id},
            )
        set_product_id(product_id)
        return self.product

    # -- template integration -------------------------------------------

    @property
    def template_index(self) -> TemplateIndex:
        return self.templates.index

    def _on_templates_installed(self, index: TemplateIndex) -> None:
        # Reads self.product at call time so a late completion never
        # reconciles a stale variant list.
        self.product.variants = reconcile_variants(
            self.product.variants, index, self.templates.defaults
        )
        logger.bind(category_id=index.category_id).debug(
            f"Applied templates to {len(self.product.variants)} variants"
        )

    def change_category(self, category_id: Optional[int]) -> TemplateIndex:
        """Select a category, then load and apply its templates and defaults."""
        self.set_scalar_field("category_id", category_id)
        index, _ = self.templates.load_category(self.product.category_id)
        return index

    # -- validation helpers ----------------------------------------------

    @staticmethod
    def _check_field(
        field_name: str,
        allowed: tuple[str, ...],
        value: Any,
        label: str,
        context: Optional[ErrorContext] = None,
    ) -> None:
        if field_name not in allowed:
            raise ValidationError(
                message=f"Unknown {label} field: {field_name}",
                field_name=field_name,
                expected=f"one of {', '.join(allowed)}",
                actual=value,
                context=context,
            )

    @staticmethod
    def _check_index(index: int, items: list, label: str) -> None:
        if not 0 <= index < len(items):
            raise IndexError(f"{label} {index} out of range")

    # -- scalar fields ---------------------------------------------------

    def set_scalar_field(self, field_name: str, value: Any) -> None:
        """
        Set one scalar product field.

        While the product is new, editing the title also regenerates the slug.
        """
        self._check_field(field_name, PRODUCT_SCALAR_FIELDS, value, "product")
        if field_name in OPTIONAL_ID_FIELDS and value == "":
            value = None
        _assign(self.product, field_name, value)
        if field_name == "title" and self.is_new:
            _assign(self.product, "slug", slugify(self.product.title))

    def set_screen_offer(self, offers: list[dict]) -> None:
        self.product.screen_offer = [ScreenOffer(**offer) for offer in offers]

    # -- variants --------------------------------------------------------

    def _variant(self, index: int) -> Variant:
        self._check_index(index, self.product.variants, "Variant index")
        return self.product.variants[index]

    def add_variant(self) -> Variant:
        """Append a new variant pre-filled from the category defaults."""
        defaults = self.templates.defaults
        sections = {}
        for section in SECTIONS:
            seeded = defaults.for_section(section) if defaults is not None else ()
            sections[section] = entries_from_defaults(seeded)

        variant = Variant(color_id=self.last_selected_color_id or 0, **sections)
        index = self.template_index
        if not index.is_empty:
            variant = reconcile_variants([variant], index)[0]
        self.product.variants = self.product.variants + [variant]
        return variant

    def remove_variant(self, index: int) -> Variant:
        removed = self._variant(index)
        self.product.variants = [
            v for i, v in enumerate(self.product.variants) if i != index
        ]
        return removed

    def set_variant_field(self, index: int, field_name: str, value: Any) -> None:
        context = ErrorContext(variant_index=index)
        self._check_field(field_name, VARIANT_FIELDS, value, "variant", context)
        variant = self._variant(index)
        _assign(variant, field_name, value, context)
        if field_name == "color_id" and value:
            self.last_selected_color_id = variant.color_id

    # -- variant images --------------------------------------------------

    def add_variant_image(self, variant_index: int, image: str = "", alt_text: str = "") -> VariantImage:
        """Append a gallery image, placed after the existing ones."""
        variant = self._variant(variant_index)
        new_image = VariantImage(image=image, alt_text=alt_text, sort_order=len(variant.images))
        variant.images = variant.images + [new_image]
        return new_image

    def remove_variant_image(self, variant_index: int, index: int) -> VariantImage:
        variant = self._variant(variant_index)
        self._check_index(index, variant.images, "Image")
        removed = variant.images[index]
        variant.images = [img for i, img in enumerate(variant.images) if i != index]
        return removed

    def set_variant_image(
        self,
        variant_index: int,
        index: int,
        field_name: str,
        value: Any,
    ) -> None:
        context = ErrorContext(variant_index=variant_index, section="images")
        self._check_field(field_name, IMAGE_FIELDS, value, "image", context)
        variant = self._variant(variant_index)
        self._check_index(index, variant.images, "Image")
        _assign(variant.images[index], field_name, value, context)

    # -- attribute entries -----------------------------------------------

    def _section(self, variant_index: int, section: str) -> list[AttributeEntry]:
        if section not in SECTIONS:
            raise ValidationError(
                message=f"Unknown attribute section: {section}",
                field_name="section",
                expected=f"one of {', '.join(SECTIONS)}",
                actual=section,
                context=ErrorContext(variant_index=variant_index),
            )
        return self._variant(variant_index).section(section)

    def add_attribute_entry(self, variant_index: int, section: str) -> AttributeEntry:
        entries = self._section(variant_index, section)
        entry = AttributeEntry(name="", value="", sort_order=len(entries))
        setattr(self._variant(variant_index), section, entries + [entry])
        return entry

    def remove_attribute_entry(self, variant_index: int, section: str, index: int) -> AttributeEntry:
        entries = self._section(variant_index, section)
        self._check_index(index, entries, f"{section} entry")
        setattr(
            self._variant(variant_index),
            section,
            [e for i, e in enumerate(entries) if i != index],
        )
        logger.bind(variant_index=variant_index, section=section).debug(
            f"Removed attribute entry {entries[index].name!r}"
        )
        return entries[index]

    def set_attribute_entry(
        self,
        variant_index: int,
        section: str,
        index: int,
        field_name: str,
        value: Any,
    ) -> None:
        entries = self._section(variant_index, section)
        context = ErrorContext(variant_index=variant_index, section=section)
        self._check_field(field_name, ATTRIBUTE_FIELDS, value, "attribute", context)
        self._check_index(index, entries, f"{section} entry")
        _assign(entries[index], field_name, value, context)

    # -- auxiliary lists -------------------------------------------------

    def _bullets(self, list_name: str) -> list[BulletPoint]:
        if list_name not in BULLET_LISTS:
            raise ValidationError(
                message=f"Unknown bullet list: {list_name}",
                field_name=list_name,
                expected=" or ".join(BULLET_LISTS),
                actual=list_name,
            )
        return getattr(self.product, list_name)

    def add_bullet(self, list_name: str, text: str = "") -> BulletPoint:
        """Append a marketing bullet to ``features`` or ``about_items``."""
        items = self._bullets(list_name)
        bullet = BulletPoint(text=text, sort_order=len(items))
        setattr(self.product, list_name, items + [bullet])
        return bullet

    def remove_bullet(self, list_name: str, index: int) -> BulletPoint:
        items = self._bullets(list_name)
        self._check_index(index, items, f"{list_name} item")
        setattr(self.product, list_name, [b for i, b in enumerate(items) if i != index])
        return items[index]

    def set_bullet(self, list_name: str, index: int, field_name: str, value: Any) -> None:
        items = self._bullets(list_name)
        context = ErrorContext(section=list_name)
        self._check_field(field_name, BULLET_FIELDS, value, "bullet", context)
        self._check_index(index, items, f"{list_name} item")
        _assign(items[index], field_name, value, context)

    def add_recommendation(
        self,
        recommended_product_id: int = 0,
        recommendation_type: str = "recommended",
    ) -> Recommendation:
        """Append a cross-sell link, ordered last among links of the same type."""
        same_type = [
            r for r in self.product.recommendations
            if r.recommendation_type == recommendation_type
        ]
        recommendation = Recommendation(
            recommended_product_id=recommended_product_id,
            recommendation_type=recommendation_type,
            sort_order=len(same_type),
        )
        self.product.recommendations = self.product.recommendations + [recommendation]
        return recommendation

    def remove_recommendation(self, index: int) -> Recommendation:
        items = self.product.recommendations
        self._check_index(index, items, "Recommendation")
        self.product.recommendations = [r for i, r in enumerate(items) if i != index]
        return items[index]

    def set_recommendation(self, index: int, field_name: str, value: Any) -> None:
        context = ErrorContext(section="recommendations")
        self._check_field(field_name, RECOMMENDATION_FIELDS, value, "recommendation", context)
        self._check_index(index, self.product.recommendations, "Recommendation")
        _assign(self.product.recommendations[index], field_name, value, context)

    # -- change tracking -------------------------------------------------

    @property
    def original_product(self) -> Optional[Product]:
        return self.snapshots.product

    @property
    def has_unsaved_changes(self) -> bool:
        baseline = self.snapshots.product
        return has_unsaved_changes(
            self.product,
            self.product.variants,
            baseline,
            baseline.variants if baseline is not None else [],
            self.is_new,
        )

    def variant_statuses(self) -> list[ChangeStatus]:
        """Change status of every working-copy variant, in order."""
        if self.is_new:
            return [ChangeStatus.NEW for _ in self.product.variants]
        originals = self.snapshots.variants
        return [
            classify_variant(v, match_original(v, originals))
            for v in self.product.variants
        ]

    def build_payload(self) -> dict:
        baseline = self.snapshots.product
        return build_save_payload(
            self.product,
            self.product.variants,
            baseline,
            baseline.variants if baseline is not None else [],
            self.is_new,
        )

    # -- save ------------------------------------------------------------

    @log_execution_time(logger)
    def save(self) -> Product:
        """
        Validate, send and adopt the server's answer.

        The snapshot and the working copy are only replaced once the server
        response has been transformed; any earlier failure propagates and
        leaves both untouched.

        Raises:
            ValidationError: Before anything is sent
            ApiError: When the request fails (SaveTimeoutError for timeouts)
            TransformationError: When the response cannot be read
        """
        with LogContext(correlation_id=generate_correlation_id()):
            validate_for_save(self.product, self.product.variants)
            payload = self.build_payload()

            logger.info(
                "Saving product",
                extra={
                    "metrics": {
                        "mode": "create" if self.is_new else "update",
                        "variant_count": len(payload["variants"]),
                        "field_count": len(payload) - 1,
                    }
                },
            )

            product_id = None if self.is_new else self.product.id
            document = self.client.save_product(payload, product_id=product_id)
            saved = ProductDocumentTransformer().transform(document)
            saved.variants = reconcile_variants(
                saved.variants, self.templates.index, self.templates.defaults
            )

            self.snapshots.take_snapshot(saved)
            self.product = saved
            self.is_new = False

        set_product_id(saved.id)
        return self.product


def create_editor(
    settings: Optional[EditorSettings] = None,
    session=None,
) -> ProductEditor:
    """
    Build an editor from environment settings.

    Configures logging and the API client. ``session`` lets the caller pass a
    requests Session that already carries authentication headers.

    Raises:
        ConfigurationError: If the API URL is missing or a setting is malformed
    """
    settings = settings or EditorSettings.from_env()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    client = CatalogApiClient.from_settings(settings, session=session)
    return ProductEditor(client, settings)
