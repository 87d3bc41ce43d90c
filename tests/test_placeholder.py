"""
格式说明符解析与占位符校验测试
"""

import pytest

from swiftloc.core.validator import (
    COUNT_MISMATCH,
    MISSING_POSITIONAL,
    POSITIONAL_TYPE_MISMATCH,
    TYPE_MISMATCH,
    PlaceholderValidator,
)
from swiftloc.utils.placeholder import parse_specifiers, position_type_map


class TestParseSpecifiers:
    """测试说明符解析"""

    def test_simple_object_specifier(self):
        specs = parse_specifiers("Hello, %@!")

        assert len(specs) == 1
        assert specs[0].type_char == "@"
        assert specs[0].offset == 7
        assert not specs[0].is_positional

    def test_multiple_specifiers_in_order(self):
        specs = parse_specifiers("User %@ has %d items")

        assert [s.type_char for s in specs] == ["@", "d"]

    def test_positional_specifiers(self):
        specs = parse_specifiers("%2$@ and %1$d")

        assert [s.positional_index for s in specs] == [2, 1]
        assert all(s.is_positional for s in specs)

    def test_escaped_percent_counts_as_specifier(self):
        specs = parse_specifiers("100%% complete with %d items")

        assert [s.raw for s in specs] == ["%%", "%d"]
        assert specs[0].type_char == "%"

    @pytest.mark.parametrize("raw, type_char", [
        ("%lld", "d"),
        ("%.2f", "f"),
        ("%-5s", "s"),
        ("%*d", "d"),
        ("%#x", "x"),
        ("%08.3lf", "f"),
        ("%zu", "u"),
        ("%hhd", "d"),
        ("%3$.*s", "s"),
    ])
    def test_flags_width_precision_length(self, raw, type_char):
        specs = parse_specifiers(f"value {raw} end")

        assert len(specs) == 1
        assert specs[0].raw == raw
        assert specs[0].type_char == type_char

    def test_no_specifiers(self):
        assert parse_specifiers("") == []
        assert parse_specifiers("Plain text") == []

    def test_position_map_uses_occurrence_index_for_plain_specifiers(self):
        specs = parse_specifiers("%@ then %3$d then %f")

        assert position_type_map(specs) == {1: "@", 3: "f"}


class TestPlaceholderValidator:
    """测试占位符兼容性比较"""

    def setup_method(self):
        self.validator = PlaceholderValidator()

    def test_matching_placeholders(self, make_catalog):
        catalog = make_catalog(("greeting", "Hello, %@!", "Bonjour, %@!", None))

        assert self.validator.validate(catalog) == []

    def test_type_mismatch(self, make_catalog):
        catalog = make_catalog(("count", "You have %d items", "Vous avez %@ articles", None))

        errors = self.validator.validate(catalog)

        assert len(errors) == 1
        assert errors[0].kind == TYPE_MISMATCH
        assert errors[0].message == "Type mismatch: source has [%d], target has [%@]"

    def test_count_mismatch(self, make_catalog):
        catalog = make_catalog(("info", "%@ has %d items", "A %d articles", None))

        errors = self.validator.validate(catalog)

        assert len(errors) == 1
        assert errors[0].kind == COUNT_MISMATCH
        assert (errors[0].source_count, errors[0].target_count) == (2, 1)
        assert "Count mismatch" in errors[0].message

    def test_reordered_positional_placeholders(self, make_catalog):
        catalog = make_catalog(("order", "%2$@ and %1$d", "%1$d and %2$@", None))

        assert self.validator.validate(catalog) == []

    def test_reordered_plain_placeholders_pass(self, make_catalog):
        catalog = make_catalog(("reorder", "%@ has %d", "%d chez %@", None))

        assert self.validator.validate(catalog) == []

    def test_missing_positional(self, make_catalog):
        catalog = make_catalog(("pos", "%1$@ sent %2$d", "%1$@ a envoyé %3$d", None))

        errors = self.validator.validate(catalog)

        assert len(errors) == 1
        assert errors[0].kind == MISSING_POSITIONAL
        assert errors[0].position == 2
        assert errors[0].message == "Missing positional placeholder %2$ in target"

    def test_positional_type_mismatch(self, make_catalog):
        catalog = make_catalog(("pos", "%1$@ sent %2$d", "%1$@ a envoyé %2$@", None))

        errors = self.validator.validate(catalog)

        assert errors[0].kind == POSITIONAL_TYPE_MISMATCH
        assert errors[0].message == "Type mismatch at position 2: source is d, target is @"

    def test_positional_on_one_side_only(self, make_catalog):
        # 原文未写位置：按出现顺序 1、2 与译文的显式位置比较
        catalog = make_catalog(("mixed", "%@ has %d", "%2$d chez %1$@", None))

        assert self.validator.validate(catalog) == []

    def test_only_first_problem_reported(self, make_catalog):
        catalog = make_catalog(("multi", "%1$@ %2$d %3$f", "%1$d %2$@", None))

        errors = self.validator.validate(catalog)

        assert len(errors) == 1
        assert errors[0].kind == COUNT_MISMATCH

    def test_untranslated_units_skipped(self, make_catalog):
        catalog = make_catalog(
            ("none", "Hello, %@!", None, None),
            ("empty", "%d items", "", None),
        )

        assert self.validator.validate(catalog) == []

    def test_escaped_percent_balanced(self, make_catalog):
        catalog = make_catalog(
            ("ok", "100%% done", "100%% fait", None),
            ("bad", "100%% done", "100 fait", None),
        )

        errors = self.validator.validate(catalog)

        assert [e.key for e in errors] == ["bad"]
        assert errors[0].kind == COUNT_MISMATCH

    def test_errors_in_catalog_order(self, make_catalog):
        catalog = make_catalog(
            ("b", "%d", "%@", None),
            ("ok", "%d", "%d", None),
            ("a", "%@ %@", "%@", None),
        )

        assert [e.key for e in self.validator.validate(catalog)] == ["b", "a"]
