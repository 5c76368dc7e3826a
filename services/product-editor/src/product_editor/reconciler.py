"""
Attribute list reconciliation against category templates.

Every function here is pure: inputs are never mutated and the returned lists
hold fresh AttributeEntry copies, so results can be stored straight into the
working copy.
"""

import logging
from typing import Iterable, Optional, Sequence

from product_editor.models import (
    SECTIONS,
    AttributeEntry,
    CategoryDefaults,
    TemplateEntry,
    TemplateIndex,
    Variant,
)

logger = logging.getLogger(__name__)


def _normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().casefold()


def _template_positions(template: Sequence[TemplateEntry]) -> dict[str, tuple[int, int]]:
    """Map normalized field name to (sort_order, fetch position); first occurrence wins."""
    positions: dict[str, tuple[int, int]] = {}
    for position, entry in enumerate(template):
        key = _normalize_name(entry.field_name)
        if key and key not in positions:
            positions[key] = (entry.sort_order, position)
    return positions


def _copy(entries: Iterable[AttributeEntry]) -> list[AttributeEntry]:
    return [entry.model_copy() for entry in entries]


def reconcile(
    entries: Sequence[AttributeEntry],
    section: str,
    template: Sequence[TemplateEntry],
) -> list[AttributeEntry]:
    """
    Order a variant's attribute list for display.

    Entries whose name matches a template field come first, in template
    order. The rest follow in their own ``sort_order``. Python's sort is
    stable, so entries sharing a key keep their relative order and applying
    this twice gives the same result.

    Args:
        entries: Attribute entries of one section
        section: Section the entries belong to
        template: Template entries for that section (may be empty)

    Returns:
        A new, ordered list of entries
    """
    if section not in SECTIONS:
        raise KeyError(f"Unknown attribute section: {section}")

    if not template:
        return sorted(_copy(entries), key=lambda e: e.sort_order)

    positions = _template_positions(template)
    templated: list[tuple[tuple[int, int], AttributeEntry]] = []
    others: list[AttributeEntry] = []

    for entry in _copy(entries):
        match = positions.get(_normalize_name(entry.name))
        if match is None:
            others.append(entry)
        else:
            templated.append((match, entry))

    templated.sort(key=lambda pair: pair[0])
    others.sort(key=lambda e: e.sort_order)

    return [entry for _, entry in templated] + others


def merge_defaults(
    entries: Sequence[AttributeEntry],
    template: Sequence[TemplateEntry],
    category_defaults: Sequence[TemplateEntry],
) -> list[AttributeEntry]:
    """
    Append an empty entry for every default field the list does not have yet.

    Existing entries are kept as they are. A new entry takes the template's
    ``sort_order`` for its field, or the current list length when the field
    has no template entry.
    """
    merged = _copy(entries)
    present = {_normalize_name(entry.name) for entry in merged}
    positions = _template_positions(template)

    for default in category_defaults:
        key = _normalize_name(default.field_name)
        if not key or key in present:
            continue
        match = positions.get(key)
        sort_order = match[0] if match is not None else len(merged)
        merged.append(
            AttributeEntry(name=default.field_name, value="", sort_order=sort_order)
        )
        present.add(key)

    return merged


def apply_template_order(
    entries: Sequence[AttributeEntry],
    template: Sequence[TemplateEntry],
) -> list[AttributeEntry]:
    """Rewrite ``sort_order`` of entries matching a template field; names and values are untouched."""
    positions = _template_positions(template)
    result = []
    for entry in entries:
        match = positions.get(_normalize_name(entry.name))
        if match is not None and entry.sort_order != match[0]:
            entry = entry.model_copy(update={"sort_order": match[0]})
        else:
            entry = entry.model_copy()
        result.append(entry)
    return result


def entries_from_defaults(defaults: Sequence[TemplateEntry]) -> list[AttributeEntry]:
    """Seed a new variant's section with one empty entry per default field."""
    return [
        AttributeEntry(name=d.field_name, value="", sort_order=d.sort_order or 0)
        for d in defaults
    ]


def reconcile_variant(
    variant: Variant,
    index: TemplateIndex,
    defaults: Optional[CategoryDefaults] = None,
) -> Variant:
    """
    Run the full merge for every section of one variant.

    Defaults are merged first, then matching entries adopt the template's
    order, then the section is reconciled. Returns a new Variant.
    """
    updates = {}
    for section in SECTIONS:
        template = index.for_section(section)
        entries = variant.section(section)
        if defaults is not None:
            entries = merge_defaults(entries, template, defaults.for_section(section))
        if template:
            entries = apply_template_order(entries, template)
        updates[section] = reconcile(entries, section, template)
    return variant.model_copy(update=updates, deep=True)


def reconcile_variants(
    variants: Sequence[Variant],
    index: TemplateIndex,
    defaults: Optional[CategoryDefaults] = None,
) -> list[Variant]:
    """Reconcile every variant against one template index."""
    reconciled = [reconcile_variant(v, index, defaults) for v in variants]
    logger.debug(
        f"Reconciled {len(reconciled)} variants",
        extra={"category_id": index.category_id},
    )
    return reconciled
