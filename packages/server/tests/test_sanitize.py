"""
Tests for search-term and free-text sanitization and password strength rules.
"""

import pytest

from app.core.sanitize import (
    ERR_LOWERCASE,
    ERR_MIN_LENGTH,
    ERR_NUMBER,
    ERR_SPECIAL,
    ERR_UPPERCASE,
    sanitize_free_text,
    sanitize_search_term,
    validate_password_strength,
)


class TestSanitizeSearchTerm:

    @pytest.mark.parametrize("value", [None, "", 42, ["a"], {"q": "x"}])
    def test_non_string_or_empty_returns_empty(self, value):
        assert sanitize_search_term(value) == ""

    def test_strips_filter_syntax(self):
        out = sanitize_search_term("test),full_name.eq.admin")
        for ch in ",.()":
            assert ch not in out
        assert out == "testfull_nameeqadmin"

    def test_strips_wildcards_and_backslash(self):
        assert sanitize_search_term("a*b%c\\d") == "abcd"

    def test_escapes_single_quote(self):
        assert sanitize_search_term("O'Brien") == "O''Brien"

    def test_trims_whitespace(self):
        assert sanitize_search_term("   Perera  ") == "Perera"

    def test_truncates_long_input(self):
        out = sanitize_search_term("a1" * 100)
        assert len(out) <= 100

    def test_already_doubled_quotes_are_doubled_again(self):
        assert sanitize_search_term("a''b") == "a''''b"

    @pytest.mark.parametrize("value", ["  x(y) ", "S/2021/001", "Perera, S."])
    def test_idempotent_without_quotes(self, value):
        once = sanitize_search_term(value)
        assert sanitize_search_term(once) == once

    def test_only_forbidden_characters_yields_empty(self):
        assert sanitize_search_term("(),.*%") == ""


class TestSanitizeFreeText:

    def test_non_string_returns_empty(self):
        assert sanitize_free_text(None) == ""
        assert sanitize_free_text(12) == ""

    def test_strips_tags_keeps_inner_text(self):
        assert sanitize_free_text("<b>Bold</b> move") == "Bold move"

    def test_strips_script_markup(self):
        assert sanitize_free_text(" <script>alert(1)</script> ") == "alert(1)"

    def test_nested_tags(self):
        assert sanitize_free_text("<div><span>Hi</span></div>") == "Hi"


class TestPasswordStrength:

    def test_eight_chars_all_rules_is_fair(self):
        result = validate_password_strength("Abcdef1!")
        assert result.is_valid
        assert result.errors == []
        assert result.strength == "fair"

    def test_twelve_chars_all_rules_is_strong(self):
        result = validate_password_strength("Abcdefghij1!")
        assert result.is_valid
        assert result.strength == "strong"

    def test_three_failures_is_weak(self):
        result = validate_password_strength("abcdefghij")
        assert not result.is_valid
        assert result.strength == "weak"
        assert result.errors == [ERR_UPPERCASE, ERR_NUMBER, ERR_SPECIAL]

    def test_two_failures_is_fair_but_invalid(self):
        result = validate_password_strength("Abcdefghij")
        assert not result.is_valid
        assert result.strength == "fair"

    def test_empty_password_reports_every_rule(self):
        result = validate_password_strength("")
        assert result.errors == [
            ERR_MIN_LENGTH,
            ERR_UPPERCASE,
            ERR_LOWERCASE,
            ERR_NUMBER,
            ERR_SPECIAL,
        ]
        assert result.strength == "weak"
