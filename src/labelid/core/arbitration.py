"""Fuse decode candidates from independent backends into serial and part numbers.

Every candidate is normalized for the mode being arbitrated, scored on its
backend confidence and on how closely its shape matches a serial or part
number, then grouped by normalized text. Groups are ranked by mean score and
then by vote count, and the leader is accepted only if it has the shape the
mode expects and clears the score threshold.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Mapping
from typing import Any, Union

from labelid.core.text import mode_aware_text
from labelid.models.candidate import (
    PART,
    SCAN_MODES,
    SERIAL,
    DecodeCandidate,
    ExtractionResult,
    RecognitionDecision,
    ScanMode,
    other_mode,
)
from labelid.models.config import ArbitrationConfig

logger = logging.getLogger(__name__)

CandidateLike = Union[DecodeCandidate, Mapping[str, Any]]

SCORE_THRESHOLD = ArbitrationConfig().threshold
MAX_SCORE = 1.2

CONFIDENCE_WEIGHT = 0.6
SHAPE_BONUS = 0.25
FOREIGN_CHAR_PENALTY = 0.3
MODE_ALIGNMENT = 0.1

_SERIAL_SHAPE = re.compile(r"[a-z0-9]{12,18}")
_PART_SHAPE = re.compile(r"[a-z0-9-]{8,24}")
_FOREIGN_CHAR = re.compile(r"[^a-z0-9-]")


def is_likely_serial(text: str) -> bool:
    """12-18 lowercase alphanumerics, no hyphen, at least twice as many digits as letters."""
    if not _SERIAL_SHAPE.fullmatch(text) or "-" in text:
        return False
    digits = sum(1 for ch in text if "0" <= ch <= "9")
    letters = sum(1 for ch in text if "a" <= ch <= "z")
    return digits >= letters * 2


def is_likely_part(text: str) -> bool:
    """8-24 chars of [a-z0-9-], 2-4 hyphen-separated segments, one with 2+ digits."""
    if not _PART_SHAPE.fullmatch(text) or "-" not in text:
        return False
    segments = text.split("-")
    if not 2 <= len(segments) <= 4:
        return False
    return any(sum(1 for ch in seg if "0" <= ch <= "9") >= 2 for seg in segments)


def _matches_mode(text: str, mode: ScanMode) -> bool:
    return is_likely_serial(text) if mode == SERIAL else is_likely_part(text)


def score_candidate(text: str, confidence: float, mode: ScanMode) -> float:
    """Score already-normalized ``text``. Both shape bonuses may stack."""
    score = confidence * CONFIDENCE_WEIGHT

    serial_like = is_likely_serial(text)
    part_like = is_likely_part(text)
    if serial_like:
        score += SHAPE_BONUS
    if part_like:
        score += SHAPE_BONUS
    if _FOREIGN_CHAR.search(text):
        score -= FOREIGN_CHAR_PENALTY

    aligned = serial_like if mode == SERIAL else part_like
    score += MODE_ALIGNMENT if aligned else -MODE_ALIGNMENT

    return max(0.0, min(MAX_SCORE, score))


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(conf):
        return 0.0
    return max(0.0, min(1.0, conf))


def _coerce_threshold(value: Any) -> float:
    if value is None:
        return SCORE_THRESHOLD
    try:
        threshold = float(value)
    except (TypeError, ValueError):
        threshold = math.nan
    if isinstance(value, bool) or not math.isfinite(threshold):
        logger.warning("Invalid threshold %r, using %.2f", value, SCORE_THRESHOLD)
        return SCORE_THRESHOLD
    return threshold


def _as_candidate(item: CandidateLike) -> DecodeCandidate | None:
    if isinstance(item, DecodeCandidate):
        candidate = item
    elif isinstance(item, Mapping):
        candidate = DecodeCandidate.from_dict(dict(item))
    else:
        return None
    if not isinstance(candidate.text, str):
        return None
    return candidate


def rank_candidates(
    candidates: Iterable[CandidateLike], mode: ScanMode
) -> list[RecognitionDecision]:
    """Group candidates by normalized text and rank by (mean score, votes), best first.

    Ties on both keys keep first-seen order, so ranking is deterministic.
    """
    grouped: dict[str, list[float]] = {}
    for item in candidates:
        candidate = _as_candidate(item)
        if candidate is None:
            continue
        text = mode_aware_text(candidate.text, mode)
        if not text:
            continue
        score = score_candidate(text, _coerce_confidence(candidate.confidence), mode)
        grouped.setdefault(text, []).append(score)

    ranked = [
        RecognitionDecision(
            mode=mode, value=value, score=sum(scores) / len(scores), votes=len(scores)
        )
        for value, scores in grouped.items()
    ]
    ranked.sort(key=lambda d: (-d.score, -d.votes))
    return ranked


def run_recognition_arbitration(
    candidates: Iterable[CandidateLike],
    mode: ScanMode,
    threshold: float | None = None,
) -> RecognitionDecision | None:
    """Best decision for ``mode``, or None when nothing is trustworthy. Never raises.

    An unusable ``threshold`` (non-numeric, NaN, infinite) falls back to the default.
    """
    threshold = _coerce_threshold(threshold)
    try:
        ranked = rank_candidates(candidates, mode)
    except Exception:
        logger.warning("Arbitration failed for mode %s", mode, exc_info=True)
        return None

    if not ranked:
        logger.debug("mode=%s: no usable candidates", mode)
        return None

    best = ranked[0]
    if not _matches_mode(best.value, mode) or best.score < threshold:
        logger.debug(
            "mode=%s: rejected %r (score=%.3f votes=%d)", mode, best.value, best.score, best.votes
        )
        return None

    logger.debug(
        "mode=%s: accepted %r (score=%.3f votes=%d)", mode, best.value, best.score, best.votes
    )
    return best


def extract_serial_and_part(
    candidates: Iterable[CandidateLike],
    primary_mode: ScanMode = SERIAL,
    threshold: float | None = None,
) -> ExtractionResult:
    """Arbitrate one batch for both modes so a single scan can fill both fields."""
    if primary_mode not in SCAN_MODES:
        logger.warning("Unknown scan mode %r, treating as serial", primary_mode)
        primary_mode = SERIAL
    threshold = _coerce_threshold(threshold)
    try:
        batch = list(() if candidates is None else candidates)
    except (TypeError, ValueError):
        logger.warning("Candidate batch is not iterable: %r", type(candidates).__name__)
        batch = []
    decisions: dict[ScanMode, RecognitionDecision | None] = {
        primary_mode: run_recognition_arbitration(batch, primary_mode, threshold)
    }
    secondary = other_mode(primary_mode)
    decisions[secondary] = run_recognition_arbitration(batch, secondary, threshold)

    serial = decisions[SERIAL]
    part = decisions[PART]
    return ExtractionResult(
        serial_number=serial.value if serial else "",
        part_number=part.value if part else "",
        decisions={SERIAL: serial, PART: part},
    )
