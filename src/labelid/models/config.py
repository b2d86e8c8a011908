"""Configuration models with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class GateConfig:
    max_dimension: int = 480

    # Brightness (mean luma) upper bounds per level
    too_dark: float = 30.0
    dark: float = 80.0
    normal: float = 200.0
    bright: float = 230.0

    # Contrast (max - min luma range) upper bounds per level
    contrast_low: float = 30.0
    contrast_medium: float = 80.0

    # Sharpness
    edge_threshold: float = 20.0
    sharpness_blurry: float = 15.0
    sharpness_acceptable: float = 35.0

    # Noise
    noise_samples: int = 1000
    noise_low: float = 20.0
    noise_medium: float = 50.0

    # Barcode likelihood
    bar_transition_threshold: float = 50.0
    bar_column_fraction: float = 0.3
    barcode_present: float = 30.0

    # Skew
    max_skew: float = 15.0
    estimate_skew: bool = False
    skew_edge_threshold: float = 50.0

    # Readiness
    ready_score: int = 60
    ready_barcode_confidence: int = 50

    load_timeout: float = 5.0


@dataclass(slots=True)
class ArbitrationConfig:
    threshold: float = 0.75


def _build(cls: Any, data: Any) -> Any:
    if not isinstance(data, dict):
        return cls()
    kwargs = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
    return cls(**kwargs)


def load_config(path: str) -> tuple[GateConfig, ArbitrationConfig]:
    """Load gate and arbitration settings from a YAML file.

    The file may hold a ``gate:`` and an ``arbitration:`` mapping. Missing
    sections and unknown keys fall back to defaults.
    """
    import yaml  # type: ignore[import-untyped]

    with open(path) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        return GateConfig(), ArbitrationConfig()

    return _build(GateConfig, data.get("gate")), _build(ArbitrationConfig, data.get("arbitration"))
