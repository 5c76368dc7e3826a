"""Pytest fixtures and configuration."""

import copy
import os
from unittest.mock import Mock

import pytest

os.environ["PRODUCT_EDITOR_API_URL"] = "https://catalog.test/api"
os.environ["PRODUCT_EDITOR_TIMEOUT"] = "5"

from product_editor.models import AttributeEntry, TemplateEntry, Variant, VariantImage
from product_editor.templates import build_template_index


@pytest.fixture
def sample_template_rows():
    """Return flat template rows as the templates endpoint sends them."""
    return [
        {"section": "specifications", "field_name": "Size", "sort_order": 1},
        {"section": "specifications", "field_name": "Color", "sort_order": 0},
        {"section": "measurement_specs", "field_name": "Depth", "sort_order": 0},
        {"section": "measurement_specs", "field_name": "Width", "sort_order": 1},
        {"section": "features", "field_name": "Weight", "sort_order": 0},
    ]


@pytest.fixture
def sample_template_index(sample_template_rows):
    """Return the TemplateIndex built from the sample rows."""
    return build_template_index(sample_template_rows, category_id=7)


@pytest.fixture
def sample_defaults():
    """Return a specification defaults document for category 7."""
    return {
        "specifications": [
            {"field_name": "Color", "sort_order": 0},
            {"field_name": "Size", "sort_order": 1},
        ],
        "measurement_specs": [
            {"field_name": "Depth", "sort_order": 0},
        ],
    }


@pytest.fixture
def size_color_template():
    """Return the two-field template used in the ordering examples."""
    return [
        TemplateEntry(field_name="Color", sort_order=0),
        TemplateEntry(field_name="Size", sort_order=1),
    ]


@pytest.fixture
def sample_variant():
    """Return a persisted variant with images and attributes."""
    return Variant(
        id=11,
        sku="SOFA-GRY-3S",
        color_id=3,
        size="3 Seater",
        price="1299.00",
        old_price="1499.00",
        stock_quantity=8,
        image="https://cdn.test/sofa-main.jpg",
        images=[
            VariantImage(id=1, image="https://cdn.test/sofa-1.jpg", sort_order=0),
            VariantImage(id=2, image="https://cdn.test/sofa-2.jpg", sort_order=1),
        ],
        subcategory_ids=[4],
        specifications=[
            AttributeEntry(id=21, name="Color", value="Grey", sort_order=0),
            AttributeEntry(id=22, name="Size", value="3 Seater", sort_order=1),
        ],
        features=[
            AttributeEntry(id=31, name="Weight", value="40kg", sort_order=0),
        ],
    )


@pytest.fixture
def sample_product_document():
    """Return a product document as the catalog API returns it."""
    return {
        "id": 42,
        "title": "Oslo Sofa",
        "slug": "oslo-sofa",
        "sku": "OSLO-01",
        "short_description": "Three seater sofa",
        "long_description": "A comfortable three seater sofa.",
        "category": {"id": 7, "name": "Sofas"},
        "material": {"id": 2, "name": "Fabric"},
        "brand": "Sixpine",
        "dimensions": "200x90x85",
        "weight": "40kg",
        "warranty": "1 year",
        "assembly_required": True,
        "estimated_delivery_days": 5,
        "screen_offer": [{"title": "Free delivery", "description": "Metro cities"}],
        "meta_title": "",
        "meta_description": "",
        "is_featured": False,
        "is_active": True,
        "variants": [
            {
                "id": 11,
                "sku": "OSLO-01-GRY",
                "color": {"id": 3, "name": "Grey", "hex_code": "#888"},
                "size": "3 Seater",
                "pattern": "",
                "quality": "",
                "price": "1299.00",
                "old_price": "1499.00",
                "stock_quantity": 8,
                "is_in_stock": True,
                "is_active": True,
                "image": "https://cdn.test/oslo-main.jpg",
                "images": [
                    {"id": 1, "image": "https://cdn.test/oslo-1.jpg", "alt_text": "", "sort_order": 0},
                    {"id": 2, "image": "https://cdn.test/oslo-2.jpg", "alt_text": "", "sort_order": 1},
                ],
                "subcategories": [{"id": 4, "name": "3 Seaters"}],
                "specifications": [
                    {"id": 21, "name": "Size", "value": "3 Seater", "sort_order": 1},
                    {"id": 22, "name": "Color", "value": "Grey", "sort_order": 0},
                ],
                "measurement_specs": {},
                "style_specs": [],
                "features": [{"id": 31, "name": "Weight", "value": "40kg", "sort_order": 0}],
                "user_guide": [],
                "item_details": [],
            }
        ],
        "features": [{"id": 5, "feature": "Solid wood frame", "sort_order": 0, "is_active": True}],
        "about_items": [{"id": 6, "item": "Easy to clean", "sort_order": 0, "is_active": True}],
        "recommendations": [
            {
                "id": 9,
                "recommended_product": {"id": 77},
                "recommendation_type": "buy_with",
                "sort_order": 0,
                "is_active": True,
            }
        ],
    }


@pytest.fixture
def mock_client(sample_product_document, sample_template_rows, sample_defaults):
    """Return a Mock catalog client serving the sample documents."""
    client = Mock()
    client.fetch_product.return_value = copy.deepcopy(sample_product_document)
    client.fetch_category_templates.return_value = list(sample_template_rows)
    client.fetch_category_defaults.return_value = copy.deepcopy(sample_defaults)
    return client
