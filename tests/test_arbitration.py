"""Tests for multi-backend candidate arbitration."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pytest

from labelid.core.arbitration import (
    SCORE_THRESHOLD,
    extract_serial_and_part,
    is_likely_part,
    is_likely_serial,
    rank_candidates,
    run_recognition_arbitration,
    score_candidate,
)
from labelid.models.candidate import DecodeCandidate, ExtractionResult


def c(text: str, confidence: float, backend: str = "zxing") -> DecodeCandidate:
    return DecodeCandidate(text, backend, confidence)


class TestShapes:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("123456789012", True),
            ("99j204501234", True),
            ("12345678901234567", True),
            ("12345678901", False),  # too short
            ("1234567890123456789", False),  # too long
            ("abcdef123456", False),  # letters > digits / 2
            ("abcd12345678", True),
            ("1234-5678-9012", False),
        ],
    )
    def test_serial(self, text: str, expected: bool) -> None:
        assert is_likely_serial(text) is expected

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("abc-123-45", True),
            ("zt41142-t010000z", True),
            ("12345678", False),  # no hyphen
            ("ab-cd-ef-gh", False),  # no digit pair
            ("a1-b2-c3-d4", False),
            ("a-b-c-d-12345", False),  # five segments
            ("ab-1", False),  # too short
            ("abc_123-45", False),
        ],
    )
    def test_part(self, text: str, expected: bool) -> None:
        assert is_likely_part(text) is expected


class TestScore:
    def test_serial_aligned(self) -> None:
        assert score_candidate("123456789012", 1.0, "serial") == pytest.approx(0.95)

    def test_serial_shape_in_part_mode(self) -> None:
        assert score_candidate("123456789012", 1.0, "part") == pytest.approx(0.75)

    def test_part_aligned(self) -> None:
        assert score_candidate("abc-123-45", 0.9, "part") == pytest.approx(0.89)

    def test_foreign_characters_clamp_to_zero(self) -> None:
        assert score_candidate("ab#cd", 0.1, "serial") == 0.0

    def test_foreign_character_penalty(self) -> None:
        # 0.6 - 0.3 - 0.1
        assert score_candidate("ab.cd", 1.0, "serial") == pytest.approx(0.2)

    def test_bounded(self) -> None:
        for text in ("123456789012", "abc-123-45", "x", "!!!"):
            for conf in (0.0, 0.5, 1.0):
                for mode in ("serial", "part"):
                    assert 0.0 <= score_candidate(text, conf, mode) <= 1.2


class TestRecognitionArbitration:
    def test_digit_confusions_fixed_in_serial_mode(self) -> None:
        decision = run_recognition_arbitration([c("O1I2345678901", 0.9)], "serial")
        assert decision is not None
        assert decision.value == "0112345678901"
        assert decision.score == pytest.approx(0.89)
        assert decision.votes == 1

    def test_same_input_rejected_in_part_mode(self) -> None:
        assert run_recognition_arbitration([c("O1I2345678901", 0.9)], "part") is None

    def test_part_number(self) -> None:
        decision = run_recognition_arbitration([c("ABC-123-45", 0.9)], "part")
        assert decision is not None
        assert decision.value == "abc-123-45"
        assert decision.score == pytest.approx(0.89)

    def test_part_number_not_a_serial(self) -> None:
        assert run_recognition_arbitration([c("ABC-123-45", 0.9)], "serial") is None

    def test_empty(self) -> None:
        assert run_recognition_arbitration([], "serial") is None

    def test_votes_break_score_ties(self) -> None:
        batch = [
            c("222222222222", 0.8),
            c("111111111111", 0.8, "quagga"),
            c("111111111111", 0.8, "ocr"),
        ]
        decision = run_recognition_arbitration(batch, "serial")
        assert decision is not None
        assert decision.value == "111111111111"
        assert decision.votes == 2
        assert decision.score == pytest.approx(0.83)

    def test_mean_not_sum(self) -> None:
        batch = [c("123456789012", 1.0), c("123456789012", 0.5, "ocr")]
        decision = run_recognition_arbitration(batch, "serial")
        assert decision is not None
        assert decision.score == pytest.approx((0.95 + 0.65) / 2)

    def test_no_fallback_when_leader_has_wrong_shape(self) -> None:
        batch = [c("12345678901234567890", 1.0), c("123456789012", 0.1, "ocr")]
        ranked = rank_candidates(batch, "serial")
        assert ranked[0].value == "12345678901234567890"
        assert ranked[0].score == pytest.approx(0.5)
        assert ranked[1].score == pytest.approx(0.41)
        assert run_recognition_arbitration(batch, "serial") is None

    def test_threshold(self) -> None:
        batch = [c("123456789012", 0.5)]
        assert run_recognition_arbitration(batch, "serial") is None
        decision = run_recognition_arbitration(batch, "serial", threshold=0.6)
        assert decision is not None
        assert decision.score == pytest.approx(0.65)

    def test_default_threshold(self) -> None:
        assert SCORE_THRESHOLD == 0.75

    def test_whitespace_variants_grouped(self) -> None:
        batch = [c("1234 5678 9012", 0.9), c("123456789012", 0.9, "quagga")]
        decision = run_recognition_arbitration(batch, "serial")
        assert decision is not None
        assert decision.votes == 2

    def test_accepts_mappings(self) -> None:
        batch = [{"text": "123456789012", "engineConfidence": 0.9, "backendId": "native"}]
        decision = run_recognition_arbitration(batch, "serial")
        assert decision is not None
        assert decision.value == "123456789012"

    def test_malformed_entries_ignored(self) -> None:
        batch = [
            {"text": None, "confidence": 0.9},
            {"confidence": 0.9},
            "123456789012",
            42,
            {"text": "123456789012", "confidence": "high"},
            {"text": "123456789012", "confidence": float("nan")},
            {"text": "123456789012", "confidence": True},
        ]
        ranked = rank_candidates(batch, "serial")  # type: ignore[arg-type]
        assert len(ranked) == 1
        assert ranked[0].votes == 3
        # confidence coerced to 0: 0.25 + 0.1
        assert ranked[0].score == pytest.approx(0.35)
        assert run_recognition_arbitration(batch, "serial") is None  # type: ignore[arg-type]

    def test_confidence_clamped(self) -> None:
        over = rank_candidates([c("123456789012", 7.0)], "serial")[0]
        under = rank_candidates([c("123456789012", -3.0)], "serial")[0]
        assert over.score == pytest.approx(0.95)
        assert under.score == pytest.approx(0.35)

    def test_ranking_is_deterministic(self, label_candidates: list[DecodeCandidate]) -> None:
        first = rank_candidates(label_candidates, "serial")
        assert rank_candidates(list(label_candidates), "serial") == first

    def test_decision_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="labelid.core.arbitration"):
            run_recognition_arbitration([c("123456789012", 1.0)], "serial")
        assert "accepted" in caplog.text


class TestExtractSerialAndPart:
    def test_label_batch(self, label_candidates: list[DecodeCandidate]) -> None:
        result = extract_serial_and_part(label_candidates)
        assert result.serial_number == "99j204501234"
        assert result.part_number == "zt41142-t010000z"
        assert result.serial is not None
        assert result.serial.votes == 3
        assert result.serial.score == pytest.approx(0.844)
        assert result.part is not None
        assert result.part.score == pytest.approx(0.878)

    def test_primary_mode_does_not_change_result(
        self, label_candidates: list[DecodeCandidate]
    ) -> None:
        assert extract_serial_and_part(label_candidates, "part") == extract_serial_and_part(
            label_candidates, "serial"
        )

    def test_serial_only(self) -> None:
        result = extract_serial_and_part([c("123456789012", 0.9)])
        assert result.serial_number == "123456789012"
        assert result.part_number == ""
        assert result.part is None

    def test_empty(self) -> None:
        result = extract_serial_and_part([])
        assert result == ExtractionResult()
        assert result.to_dict() == {
            "serial_number": "",
            "part_number": "",
            "decisions": {"serial": None, "part": None},
        }

    def test_generator_consumed_once(self) -> None:
        result = extract_serial_and_part(c(t, 0.9) for t in ("123456789012", "abc-123-45"))
        assert result.serial_number == "123456789012"
        assert result.part_number == "abc-123-45"

    def test_not_iterable(self) -> None:
        assert extract_serial_and_part(42) == ExtractionResult()  # type: ignore[arg-type]
        assert extract_serial_and_part(None) == ExtractionResult()  # type: ignore[arg-type]

    def test_unknown_mode_treated_as_serial(self) -> None:
        bogus: Any = "bogus"
        result = extract_serial_and_part([c("123456789012", 0.9)], bogus)
        assert result.serial_number == "123456789012"

    def test_threshold_passed_through(self) -> None:
        batch = [c("123456789012", 0.5)]
        assert extract_serial_and_part(batch).serial_number == ""
        assert extract_serial_and_part(batch, threshold=0.6).serial_number == "123456789012"

    def test_numpy_batch_does_not_raise(self) -> None:
        batch: Any = np.array([1, 2])
        assert extract_serial_and_part(batch) == ExtractionResult()


class TestThresholdCoercion:
    def test_numeric_string_used(self) -> None:
        threshold: Any = "0.9"
        result = extract_serial_and_part([c("123456789012", 0.9)], threshold=threshold)
        # 0.89 is below 0.9
        assert result.serial_number == ""

    def test_garbage_string_falls_back_to_default(self) -> None:
        threshold: Any = "high"
        result = extract_serial_and_part([c("123456789012", 0.9)], threshold=threshold)
        assert result.serial_number == "123456789012"
        low: Any = "high"
        assert run_recognition_arbitration([c("123456789012", 0.5)], "serial", low) is None

    @pytest.mark.parametrize("threshold", [float("nan"), float("inf"), float("-inf"), True])
    def test_non_finite_falls_back_to_default(self, threshold: Any) -> None:
        # 0.65 is below the 0.75 default
        batch = [c("123456789012", 0.5)]
        assert run_recognition_arbitration(batch, "serial", threshold) is None
        assert extract_serial_and_part(batch, threshold=threshold).serial_number == ""

    def test_invalid_threshold_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        threshold: Any = "high"
        with caplog.at_level(logging.WARNING, logger="labelid.core.arbitration"):
            run_recognition_arbitration([c("123456789012", 0.9)], "serial", threshold)
        assert "Invalid threshold" in caplog.text
