"""Harvest decode candidates from the free text an OCR backend returns."""

from __future__ import annotations

import math
import re

from labelid.models.candidate import DecodeCandidate

_LABELLED = re.compile(
    r"(?<![A-Za-z0-9])"
    r"(?P<label>S\s*/\s*N|SN|Serial(?:\s*(?:No\.?|Number|#))?"
    r"|P\s*/\s*N|PN|Part(?:\s*(?:No\.?|Number|#))?"
    r"|Model(?:\s*(?:No\.?|Number))?)"
    r"(?:\s*[:#]\s*|\s+)"
    r"(?P<value>[A-Za-z0-9][A-Za-z0-9_-]*)",
    re.IGNORECASE,
)
_TOKEN = re.compile(r"[A-Za-z0-9_-]{8,24}")
_TOKEN_EDGES = "\"'.,;:()[]{}<>"


def _label_kind(label: str) -> str:
    head = label.lower().replace(" ", "")
    if head.startswith(("s/n", "sn", "serial")):
        return "serial"
    if head.startswith(("p/n", "pn", "part")):
        return "part"
    return "model"


def candidates_from_text(
    text: str, backend: str, confidence: float, format: str | None = None
) -> list[DecodeCandidate]:
    """Split OCR output into candidates.

    Values following a label such as ``S/N:`` or ``Part Number`` come first,
    tagged with region ``label:<kind>``; every other 8-24 character token
    containing a digit follows with region ``token``. Each raw text is emitted
    once, in first-seen order.
    """
    if not isinstance(text, str) or not text.strip():
        return []
    try:
        conf = float(confidence)
    except (TypeError, ValueError):
        conf = 0.0
    conf = max(0.0, min(1.0, conf)) if math.isfinite(conf) else 0.0

    seen: set[str] = set()
    out: list[DecodeCandidate] = []

    def emit(value: str, region: str) -> None:
        if value in seen:
            return
        seen.add(value)
        out.append(DecodeCandidate(value, backend, conf, format=format, region=region))

    for m in _LABELLED.finditer(text):
        emit(m.group("value"), f"label:{_label_kind(m.group('label'))}")

    for raw in text.split():
        token = raw.strip(_TOKEN_EDGES)
        if _TOKEN.fullmatch(token) and any(ch.isdigit() for ch in token):
            emit(token, "token")

    return out
