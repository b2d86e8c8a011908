"""Decode candidates and the decisions arbitrated from them."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

ScanMode = Literal["serial", "part"]

SERIAL: ScanMode = "serial"
PART: ScanMode = "part"
SCAN_MODES: tuple[ScanMode, ...] = (SERIAL, PART)


def other_mode(mode: ScanMode) -> ScanMode:
    return PART if mode == SERIAL else SERIAL


@dataclass(frozen=True, slots=True)
class DecodeCandidate:
    """One text observation from a decode backend for one frame.

    ``format`` and ``region`` are carried for display only and never scored.
    """

    text: str
    backend: str = ""
    confidence: float = 0.0  # 0.0-1.0
    format: str | None = None
    region: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DecodeCandidate:
        # Accept the camelCase names used by browser-side backends
        backend = data.get("backend", data.get("backendId", data.get("engine", "")))
        confidence = data.get("confidence", data.get("engineConfidence", 0.0))
        return cls(
            text=data.get("text", ""),
            backend=str(backend or ""),
            confidence=confidence,
            format=data.get("format"),
            region=data.get("region"),
        )


@dataclass(frozen=True, slots=True)
class RecognitionDecision:
    mode: ScanMode
    value: str
    score: float  # 0.0-1.2
    votes: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    serial_number: str = ""
    part_number: str = ""
    decisions: dict[ScanMode, RecognitionDecision | None] = field(
        default_factory=lambda: {SERIAL: None, PART: None}
    )

    @property
    def serial(self) -> RecognitionDecision | None:
        return self.decisions.get(SERIAL)

    @property
    def part(self) -> RecognitionDecision | None:
        return self.decisions.get(PART)

    def to_dict(self) -> dict[str, Any]:
        return {
            "serial_number": self.serial_number,
            "part_number": self.part_number,
            "decisions": {
                mode: (d.to_dict() if d is not None else None)
                for mode, d in self.decisions.items()
            },
        }
