"""
Product Editor Core - specification templates and change tracking.

This package keeps a product's per-variant attribute lists in category
template order, diffs the working copy against the last-saved snapshot, and
builds the minimal save document for the catalog API.
"""

from product_editor.client import CatalogApiClient
from product_editor.config import EditorSettings
from product_editor.diff import (
    changed_product_fields,
    classify_variant,
    is_equal,
    product_fields_changed,
    variant_changed,
)
from product_editor.editor import ProductEditor, create_editor
from product_editor.exceptions import (
    ApiError,
    ConfigurationError,
    EditorError,
    SaveTimeoutError,
    TemplateFetchError,
    TransformationError,
    ValidationError,
)
from product_editor.models import (
    SECTIONS,
    AttributeEntry,
    ChangeStatus,
    Product,
    Snapshot,
    TemplateEntry,
    TemplateIndex,
    Variant,
)
from product_editor.payload import build_save_payload, project_variant, validate_for_save
from product_editor.projection import build_minimal_variant_payload, build_variant_payload
from product_editor.reconciler import apply_template_order, merge_defaults, reconcile
from product_editor.sentinel import has_unsaved_changes
from product_editor.snapshot import SnapshotManager
from product_editor.templates import TemplateStore

__all__ = [
    "ProductEditor",
    "create_editor",
    "CatalogApiClient",
    "EditorSettings",
    "TemplateStore",
    "SnapshotManager",
    "SECTIONS",
    "AttributeEntry",
    "TemplateEntry",
    "TemplateIndex",
    "Variant",
    "Product",
    "Snapshot",
    "ChangeStatus",
    "reconcile",
    "merge_defaults",
    "apply_template_order",
    "is_equal",
    "classify_variant",
    "variant_changed",
    "changed_product_fields",
    "product_fields_changed",
    "build_variant_payload",
    "build_minimal_variant_payload",
    "project_variant",
    "build_save_payload",
    "validate_for_save",
    "has_unsaved_changes",
    "EditorError",
    "ValidationError",
    "TransformationError",
    "TemplateFetchError",
    "ApiError",
    "SaveTimeoutError",
    "ConfigurationError",
]

__version__ = "1.0.0"
