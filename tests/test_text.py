"""Tests for candidate text normalization."""

from __future__ import annotations

from labelid.core.text import mode_aware_text, normalize_numeric_heavy, sanitize_text


class TestSanitize:
    def test_whitespace_underscore_case(self) -> None:
        assert sanitize_text("  Ab_C d\t9\n") == "ab-cd9"

    def test_blank(self) -> None:
        assert sanitize_text("   ") == ""

    def test_idempotent(self) -> None:
        once = sanitize_text(" ZT411_42 T0 ")
        assert sanitize_text(once) == once


class TestNumericHeavy:
    def test_confusions(self) -> None:
        assert normalize_numeric_heavy("oils") == "0115"
        assert normalize_numeric_heavy("OIZS") == "0125"

    def test_other_letters_untouched(self) -> None:
        assert normalize_numeric_heavy("abc-9") == "abc-9"


class TestModeAware:
    def test_serial_applies_digit_map(self) -> None:
        assert mode_aware_text("SO 12", "serial") == "5012"

    def test_part_keeps_letters(self) -> None:
        assert mode_aware_text("SO 12", "part") == "so12"

    def test_uppercase_folded_before_mapping(self) -> None:
        assert mode_aware_text("99J2O4501234", "serial") == "99j204501234"

    def test_empty(self) -> None:
        assert mode_aware_text(" \t ", "serial") == ""
