"""Tests for attribute list reconciliation."""

import pytest
from product_editor.models import AttributeEntry, CategoryDefaults, TemplateEntry, TemplateIndex, Variant
from product_editor.reconciler import (
    apply_template_order,
    entries_from_defaults,
    merge_defaults,
    reconcile,
    reconcile_variant,
)


def _names(entries):
    return [e.name for e in entries]


class TestReconcile:
    """Tests for reconcile ordering."""

    def test_templated_entries_first(self, size_color_template):
        """Test the Size/Weight example: templated Size precedes non-templated Weight."""
        entries = [
            AttributeEntry(name="Size", value="M", sort_order=5),
            AttributeEntry(name="Weight", value="2kg", sort_order=0),
        ]
        result = reconcile(entries, "specifications", size_color_template)

        assert _names(result) == ["Size", "Weight"]

    def test_does_not_inject_missing_template_fields(self, size_color_template):
        """Test reconcile never adds entries for template fields."""
        entries = [AttributeEntry(name="Weight", value="2kg", sort_order=0)]
        result = reconcile(entries, "specifications", size_color_template)

        assert _names(result) == ["Weight"]

    def test_empty_template_sorts_by_sort_order(self):
        """Test plain sort_order fallback without a template."""
        entries = [
            AttributeEntry(name="B", sort_order=2),
            AttributeEntry(name="A", sort_order=0),
            AttributeEntry(name="C", sort_order=1),
        ]
        result = reconcile(entries, "features", [])

        assert _names(result) == ["A", "C", "B"]

    def test_empty_template_is_stable(self):
        """Test entries with equal sort_order keep their original order."""
        entries = [
            AttributeEntry(name="first", sort_order=0),
            AttributeEntry(name="second", sort_order=0),
        ]
        assert _names(reconcile(entries, "features", [])) == ["first", "second"]

    def test_case_insensitive_matching(self, size_color_template):
        """Test template matching ignores case."""
        entries = [
            AttributeEntry(name="notes", sort_order=0),
            AttributeEntry(name="SIZE", sort_order=3),
            AttributeEntry(name="color", sort_order=4),
        ]
        result = reconcile(entries, "specifications", size_color_template)

        assert _names(result) == ["color", "SIZE", "notes"]

    def test_non_templated_follow_own_sort_order(self, size_color_template):
        """Test non-templated entries are ordered by their own sort_order."""
        entries = [
            AttributeEntry(name="Zeta", sort_order=9),
            AttributeEntry(name="Alpha", sort_order=2),
            AttributeEntry(name="Size", sort_order=7),
        ]
        result = reconcile(entries, "specifications", size_color_template)

        assert _names(result) == ["Size", "Alpha", "Zeta"]

    def test_duplicate_names_keep_relative_order(self, size_color_template):
        """Test entries matching the same template field stay in input order."""
        entries = [
            AttributeEntry(name="Size", value="first", sort_order=3),
            AttributeEntry(name="Color", value="c", sort_order=0),
            AttributeEntry(name="size", value="second", sort_order=1),
        ]
        result = reconcile(entries, "specifications", size_color_template)

        assert [e.value for e in result] == ["c", "first", "second"]

    def test_template_ties_broken_by_fetch_order(self):
        """Test template fields with equal sort_order follow template position."""
        template = [
            TemplateEntry(field_name="Height", sort_order=0),
            TemplateEntry(field_name="Depth", sort_order=0),
        ]
        entries = [
            AttributeEntry(name="Depth", sort_order=0),
            AttributeEntry(name="Height", sort_order=1),
        ]
        assert _names(reconcile(entries, "measurement_specs", template)) == ["Height", "Depth"]

    def test_idempotent(self, size_color_template):
        """Test reconciling the output again changes nothing."""
        entries = [
            AttributeEntry(name="Weight", value="2kg", sort_order=0),
            AttributeEntry(name="size", value="M", sort_order=5),
            AttributeEntry(name="Notes", value="", sort_order=0),
            AttributeEntry(name="Color", value="Red", sort_order=2),
            AttributeEntry(name="Size", value="L", sort_order=1),
        ]
        once = reconcile(entries, "specifications", size_color_template)
        twice = reconcile(once, "specifications", size_color_template)

        assert [e.model_dump() for e in twice] == [e.model_dump() for e in once]

    def test_order_invariant(self, size_color_template):
        """Test all templated entries precede non-templated ones, in template order."""
        entries = [
            AttributeEntry(name="Extra", sort_order=0),
            AttributeEntry(name="Size", sort_order=0),
            AttributeEntry(name="Other", sort_order=1),
            AttributeEntry(name="Color", sort_order=5),
        ]
        result = reconcile(entries, "specifications", size_color_template)
        template_order = {"color": 0, "size": 1}
        flags = [e.name.lower() in template_order for e in result]

        assert flags == sorted(flags, reverse=True)
        templated = [template_order[e.name.lower()] for e in result if e.name.lower() in template_order]
        assert templated == sorted(templated)

    def test_does_not_mutate_input(self, size_color_template):
        """Test the input list and its entries are left untouched."""
        entries = [
            AttributeEntry(name="Weight", sort_order=0),
            AttributeEntry(name="Size", sort_order=5),
        ]
        before = [e.model_dump() for e in entries]
        result = reconcile(entries, "specifications", size_color_template)

        assert [e.model_dump() for e in entries] == before
        assert all(r is not e for r in result for e in entries)

    def test_unknown_section_rejected(self):
        """Test an unknown section name raises KeyError."""
        with pytest.raises(KeyError):
            reconcile([], "warranty_specs", [])


class TestMergeDefaults:
    """Tests for merge_defaults and apply_template_order."""

    def test_appends_missing_defaults(self, size_color_template):
        """Test absent default fields are appended with empty values."""
        entries = [AttributeEntry(name="Size", value="M", sort_order=1)]
        defaults = [
            TemplateEntry(field_name="Color", sort_order=0),
            TemplateEntry(field_name="Size", sort_order=1),
        ]
        result = merge_defaults(entries, size_color_template, defaults)

        assert _names(result) == ["Size", "Color"]
        assert result[1].value == ""
        assert result[1].sort_order == 0

    def test_existing_entries_not_overwritten(self, size_color_template):
        """Test a case-insensitive match keeps the existing entry intact."""
        entries = [AttributeEntry(name="color", value="Blue", sort_order=8)]
        defaults = [TemplateEntry(field_name="Color", sort_order=0)]
        result = merge_defaults(entries, size_color_template, defaults)

        assert len(result) == 1
        assert result[0].value == "Blue"
        assert result[0].sort_order == 8

    def test_non_template_default_uses_list_length(self, size_color_template):
        """Test a default outside the template gets the current list length."""
        entries = [
            AttributeEntry(name="Size", sort_order=1),
            AttributeEntry(name="Notes", sort_order=4),
        ]
        defaults = [TemplateEntry(field_name="Finish", sort_order=9)]
        result = merge_defaults(entries, size_color_template, defaults)

        assert result[-1].name == "Finish"
        assert result[-1].sort_order == 2

    def test_merge_is_pure(self, size_color_template):
        """Test merge_defaults returns a new list."""
        entries = [AttributeEntry(name="Size", sort_order=1)]
        merge_defaults(entries, size_color_template, [TemplateEntry(field_name="Color")])

        assert len(entries) == 1

    def test_apply_template_order_rewrites_sort_order_only(self, size_color_template):
        """Test matched legacy entries adopt the template's sort_order."""
        entries = [
            AttributeEntry(name="colour", value="x", sort_order=3),
            AttributeEntry(name="SIZE", value="XL", sort_order=9),
        ]
        result = apply_template_order(entries, size_color_template)

        assert result[0].sort_order == 3
        assert result[1].sort_order == 1
        assert result[1].name == "SIZE"
        assert result[1].value == "XL"
        assert entries[1].sort_order == 9

    def test_entries_from_defaults(self):
        """Test seeding a new variant's section."""
        result = entries_from_defaults([
            TemplateEntry(field_name="Depth", sort_order=0),
            TemplateEntry(field_name="Width", sort_order=1),
        ])

        assert _names(result) == ["Depth", "Width"]
        assert all(e.value == "" and e.id is None for e in result)


class TestReconcileVariant:
    """Tests for whole-variant reconciliation."""

    def test_merges_orders_and_sorts_each_section(self, sample_template_index):
        """Test defaults, template order and sorting are applied per section."""
        variant = Variant(
            specifications=[
                AttributeEntry(name="Material", value="Oak", sort_order=0),
                AttributeEntry(name="size", value="L", sort_order=6),
            ],
        )
        defaults = CategoryDefaults(
            specifications=(TemplateEntry(field_name="Color", sort_order=0),),
        )
        result = reconcile_variant(variant, sample_template_index, defaults)

        assert _names(result.specifications) == ["Color", "size", "Material"]
        assert result.specifications[1].sort_order == 1
        assert _names(variant.specifications) == ["Material", "size"]

    def test_empty_index_leaves_sort_order(self):
        """Test an empty index only sorts by sort_order."""
        variant = Variant(features=[
            AttributeEntry(name="b", sort_order=1),
            AttributeEntry(name="a", sort_order=0),
        ])
        result = reconcile_variant(variant, TemplateIndex.empty())

        assert _names(result.features) == ["a", "b"]
