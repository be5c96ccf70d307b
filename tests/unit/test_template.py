"""
Tests for placeholder extraction and substitution.
"""

import pytest

from promptbank.core.errors import ValidationError
from promptbank.core.template import apply, extract_variables, missing_variables, parse_bindings


class TestExtractVariables:
    """Test extract_variables."""

    def test_order_of_first_appearance(self):
        """Variables come back in the order they first appear."""
        content = "Hello {{name}}, your {{task}} is due"
        assert extract_variables(content) == ["name", "task"]

    def test_duplicates_reported_once(self):
        """Repeated placeholders are listed once."""
        content = "{{b}} {{a}} {{b}} {{a}} {{c}}"
        assert extract_variables(content) == ["b", "a", "c"]

    def test_no_placeholders(self):
        assert extract_variables("") == []
        assert extract_variables("plain text { not } {single}") == []

    def test_whitespace_inside_braces_is_not_a_placeholder(self):
        """Identifiers cannot contain or be padded with whitespace."""
        assert extract_variables("{{ name }} {{first name}} {{ok_1}}") == ["ok_1"]

    def test_identifier_characters(self):
        assert extract_variables("{{a1}} {{_x}} {{A_B_2}} {{a-b}}") == ["a1", "_x", "A_B_2"]


class TestApply:
    """Test apply."""

    def test_bound_placeholder(self):
        assert apply("Hello {{name}}", {"name": "Ada"}) == "Hello Ada"

    def test_unbound_placeholder_left_verbatim(self):
        """Missing bindings keep the placeholder visible."""
        assert apply("Hello {{name}}", {}) == "Hello {{name}}"

    def test_partial_bindings(self):
        result = apply("{{greeting}} {{name}}!", {"greeting": "Hi"})
        assert result == "Hi {{name}}!"

    def test_every_occurrence_replaced(self):
        assert apply("{{x}}-{{x}}-{{x}}", {"x": "1"}) == "1-1-1"

    def test_values_are_not_rescanned(self):
        """A value that looks like a placeholder stays as is."""
        result = apply("{{a}} {{b}}", {"a": "{{b}}", "b": "B"})
        assert result == "{{b}} B"

    def test_extra_bindings_ignored(self):
        assert apply("Hi {{name}}", {"name": "Ada", "unused": "x"}) == "Hi Ada"

    def test_empty_value(self):
        assert apply("[{{x}}]", {"x": ""}) == "[]"


class TestMissingVariables:
    """Test missing_variables."""

    def test_reports_unbound_in_order(self):
        content = "{{a}} {{b}} {{c}}"
        assert missing_variables(content, {"b": "1"}) == ["a", "c"]

    def test_nothing_missing(self):
        assert missing_variables("{{a}}", {"a": "1"}) == []


class TestParseBindings:
    """Test parse_bindings."""

    def test_simple_pairs(self):
        assert parse_bindings(["name=Ada", "task=review"]) == {"name": "Ada", "task": "review"}

    def test_value_may_contain_equals(self):
        assert parse_bindings(["expr=a=b"]) == {"expr": "a=b"}

    def test_empty_value_allowed(self):
        assert parse_bindings(["name="]) == {"name": ""}

    def test_later_pair_wins(self):
        assert parse_bindings(["x=1", "x=2"]) == {"x": "2"}

    def test_key_is_trimmed(self):
        assert parse_bindings([" name =Ada"]) == {"name": "Ada"}

    def test_missing_separator(self):
        with pytest.raises(ValidationError):
            parse_bindings(["name"])

    def test_empty_key(self):
        with pytest.raises(ValidationError):
            parse_bindings(["=value"])
