"""
Domain models for the product editor working copy.
These models represent the product, its variants and the category templates
that order each variant's attribute sections.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

SPECIFICATIONS = "specifications"
MEASUREMENT_SPECS = "measurement_specs"
STYLE_SPECS = "style_specs"
FEATURES = "features"
USER_GUIDE = "user_guide"
ITEM_DETAILS = "item_details"

SECTIONS: tuple[str, ...] = (
    SPECIFICATIONS,
    MEASUREMENT_SPECS,
    STYLE_SPECS,
    FEATURES,
    USER_GUIDE,
    ITEM_DETAILS,
)

# Sections whose blank entries are dropped from the outbound document.
OPTIONAL_SECTIONS: tuple[str, ...] = SECTIONS[1:]

RECOMMENDATION_TYPES = (
    "buy_with",
    "inspired_by",
    "frequently_viewed",
    "similar",
    "recommended",
)


class AttributeEntry(BaseModel):
    """One named fact about a variant, e.g. "Depth" -> "12 inch"."""
    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = None
    name: str = ""
    value: str = ""
    sort_order: int = 0
    is_active: bool = True


class TemplateEntry(BaseModel):
    """Canonical field name and position for one (category, section) pair."""
    model_config = ConfigDict(frozen=True)

    field_name: str
    sort_order: int = 0
    section: Optional[str] = None


class TemplateIndex(BaseModel):
    """
    Per-section template buckets for the active category.

    Every section is always present; sections the category does not define
    are empty. The index is frozen and is only ever replaced as a whole.
    """
    model_config = ConfigDict(frozen=True)

    category_id: Optional[int] = None
    specifications: tuple[TemplateEntry, ...] = ()
    measurement_specs: tuple[TemplateEntry, ...] = ()
    style_specs: tuple[TemplateEntry, ...] = ()
    features: tuple[TemplateEntry, ...] = ()
    user_guide: tuple[TemplateEntry, ...] = ()
    item_details: tuple[TemplateEntry, ...] = ()

    @classmethod
    def empty(cls, category_id: Optional[int] = None) -> "TemplateIndex":
        return cls(category_id=category_id)

    def for_section(self, section: str) -> tuple[TemplateEntry, ...]:
        if section not in SECTIONS:
            raise KeyError(f"Unknown attribute section: {section}")
        return getattr(self, section)

    @property
    def is_empty(self) -> bool:
        return not any(self.for_section(section) for section in SECTIONS)


class CategoryDefaults(BaseModel):
    """Default field names a category recommends for each section."""
    model_config = ConfigDict(frozen=True)

    category_id: Optional[int] = None
    specifications: tuple[TemplateEntry, ...] = ()
    measurement_specs: tuple[TemplateEntry, ...] = ()
    style_specs: tuple[TemplateEntry, ...] = ()
    features: tuple[TemplateEntry, ...] = ()
    user_guide: tuple[TemplateEntry, ...] = ()
    item_details: tuple[TemplateEntry, ...] = ()

    def for_section(self, section: str) -> tuple[TemplateEntry, ...]:
        if section not in SECTIONS:
            raise KeyError(f"Unknown attribute section: {section}")
        return getattr(self, section)


class VariantImage(BaseModel):
    """Gallery image attached to a variant."""
    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = None
    image: str = ""
    alt_text: str = ""
    sort_order: int = 0
    is_active: bool = True


class Variant(BaseModel):
    """
    Product variant (color/size/pattern combination).

    ``price``, ``old_price`` and ``stock_quantity`` keep whatever the user
    typed; they are coerced to numbers only when the outbound document is built.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = None
    title: str = ""
    sku: Optional[str] = None
    color_id: int = 0
    size: str = ""
    pattern: str = ""
    quality: str = ""
    price: Optional[Union[float, int, str]] = None
    old_price: Optional[Union[float, int, str]] = None
    stock_quantity: Union[int, str] = 0
    is_in_stock: Optional[bool] = True
    is_active: Optional[bool] = True
    image: Optional[str] = ""
    images: list[VariantImage] = Field(default_factory=list)
    video_url: Optional[str] = None
    subcategory_ids: list[int] = Field(default_factory=list)
    specifications: list[AttributeEntry] = Field(default_factory=list)
    measurement_specs: list[AttributeEntry] = Field(default_factory=list)
    style_specs: list[AttributeEntry] = Field(default_factory=list)
    features: list[AttributeEntry] = Field(default_factory=list)
    user_guide: list[AttributeEntry] = Field(default_factory=list)
    item_details: list[AttributeEntry] = Field(default_factory=list)

    def section(self, section: str) -> list[AttributeEntry]:
        if section not in SECTIONS:
            raise KeyError(f"Unknown attribute section: {section}")
        return getattr(self, section)


class ScreenOffer(BaseModel):
    """Marketing offer shown next to the product."""
    title: str = ""
    description: str = ""


class BulletPoint(BaseModel):
    """Marketing bullet point (product features and "about this item" lines)."""
    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = None
    text: str = ""
    sort_order: int = 0
    is_active: bool = True


class Recommendation(BaseModel):
    """Cross-sell link to another product."""
    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = None
    recommended_product_id: int = 0
    recommendation_type: str = "recommended"
    sort_order: int = 0
    is_active: bool = True


class Product(BaseModel):
    """The product being authored, with its variants and auxiliary lists."""
    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = None
    title: str = ""
    slug: str = ""
    sku: Optional[str] = ""
    short_description: str = ""
    long_description: str = ""
    category_id: Optional[int] = None
    material_id: Optional[int] = None
    brand: str = "Sixpine"
    dimensions: str = ""
    weight: str = ""
    warranty: str = ""
    assembly_required: bool = False
    estimated_delivery_days: Optional[int] = 4
    style_description: str = ""
    user_guide: str = ""
    care_instructions: str = ""
    what_in_box: str = ""
    meta_title: str = ""
    meta_description: str = ""
    is_featured: bool = False
    is_active: bool = True
    screen_offer: list[ScreenOffer] = Field(default_factory=list)
    variants: list[Variant] = Field(default_factory=list)
    features: list[BulletPoint] = Field(default_factory=list)
    about_items: list[BulletPoint] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)


# Scalar product fields compared by the diff engine and sent as a sparse patch.
PRODUCT_SCALAR_FIELDS: tuple[str, ...] = (
    "title",
    "slug",
    "sku",
    "short_description",
    "long_description",
    "category_id",
    "material_id",
    "brand",
    "dimensions",
    "weight",
    "warranty",
    "assembly_required",
    "estimated_delivery_days",
    "style_description",
    "user_guide",
    "care_instructions",
    "what_in_box",
    "meta_title",
    "meta_description",
    "is_featured",
    "is_active",
)

AUXILIARY_LISTS: tuple[str, ...] = ("features", "about_items", "recommendations")

VARIANT_FIELDS: tuple[str, ...] = (
    "title",
    "sku",
    "color_id",
    "size",
    "pattern",
    "quality",
    "price",
    "old_price",
    "stock_quantity",
    "is_in_stock",
    "is_active",
    "image",
    "images",
    "video_url",
    "subcategory_ids",
)

ATTRIBUTE_FIELDS: tuple[str, ...] = ("name", "value", "sort_order", "is_active")

IMAGE_FIELDS: tuple[str, ...] = ("image", "alt_text", "sort_order", "is_active")

BULLET_FIELDS: tuple[str, ...] = ("text", "sort_order", "is_active")

BULLET_LISTS: tuple[str, ...] = ("features", "about_items")

RECOMMENDATION_FIELDS: tuple[str, ...] = (
    "recommended_product_id",
    "recommendation_type",
    "sort_order",
    "is_active",
)


class ChangeStatus(Enum):
    """How a variant in the working copy relates to its snapshot."""
    NEW = "new"
    UNCHANGED = "unchanged"
    MODIFIED = "modified"


class VariantProjection(BaseModel):
    """Outbound document for one variant, tagged with its change status."""
    model_config = ConfigDict(frozen=True)

    status: ChangeStatus
    document: dict[str, Any]

    @property
    def is_minimal(self) -> bool:
        return self.status is ChangeStatus.UNCHANGED


class Snapshot(BaseModel):
    """
    Last-saved copy of the product, used as the diff baseline.

    Holds its own deep copy; nothing in the editor mutates it.
    """
    model_config = ConfigDict(frozen=True)

    product: Product
    taken_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def variants(self) -> list[Variant]:
        return self.product.variants
