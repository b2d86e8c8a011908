"""Data models for frame quality reports."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

BrightnessLevel = Literal["too-dark", "dark", "normal", "bright", "overexposed"]
ContrastLevel = Literal["low", "medium", "high"]
SharpnessLevel = Literal["blurry", "acceptable", "sharp"]
NoiseLevel = Literal["low", "medium", "high"]


@dataclass(frozen=True, slots=True)
class BrightnessReport:
    value: int = 0
    level: BrightnessLevel = "normal"
    suggestion: str = ""


@dataclass(frozen=True, slots=True)
class ContrastReport:
    value: int = 0  # population std-dev of luma
    range: int = 0  # max - min luma, selects the level
    level: ContrastLevel = "low"
    suggestion: str = ""


@dataclass(frozen=True, slots=True)
class SharpnessReport:
    value: int = 0  # 0-100, higher is sharper
    level: SharpnessLevel = "blurry"
    suggestion: str = ""


@dataclass(frozen=True, slots=True)
class NoiseReport:
    value: int = 0  # 0-100
    level: NoiseLevel = "low"
    suggestion: str = ""


@dataclass(frozen=True, slots=True)
class BarcodeReport:
    has_barcode: bool = False
    confidence: int = 0  # 0-100


@dataclass(frozen=True, slots=True)
class SkewReport:
    angle: float = 0.0
    is_acceptable: bool = True
    suggestion: str = ""


@dataclass(frozen=True, slots=True)
class QualityReport:
    brightness: BrightnessReport = field(default_factory=BrightnessReport)
    contrast: ContrastReport = field(default_factory=ContrastReport)
    sharpness: SharpnessReport = field(default_factory=SharpnessReport)
    noise: NoiseReport = field(default_factory=NoiseReport)
    barcode_detected: BarcodeReport = field(default_factory=BarcodeReport)
    skew_angle: SkewReport = field(default_factory=SkewReport)
    overall_score: int = 0
    recommendations: tuple[str, ...] = ()
    is_ready_for_capture: bool = False

    @property
    def grade(self) -> str:
        if self.overall_score >= 80:
            return "good"
        if self.overall_score >= 60:
            return "fair"
        if self.overall_score >= 40:
            return "poor"
        return "bad"

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["recommendations"] = list(self.recommendations)
        d["grade"] = self.grade
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QualityReport:
        parts: dict[str, Any] = {}
        for name, sub in (
            ("brightness", BrightnessReport),
            ("contrast", ContrastReport),
            ("sharpness", SharpnessReport),
            ("noise", NoiseReport),
            ("barcode_detected", BarcodeReport),
            ("skew_angle", SkewReport),
        ):
            raw = data.get(name)
            if isinstance(raw, dict):
                parts[name] = sub(**{k: v for k, v in raw.items() if k in sub.__dataclass_fields__})
        return cls(
            **parts,
            overall_score=int(data.get("overall_score", 0)),
            recommendations=tuple(data.get("recommendations", ())),
            is_ready_for_capture=bool(data.get("is_ready_for_capture", False)),
        )
