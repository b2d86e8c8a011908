"""Capture-readiness gate: scores a frame and decides whether it is worth decoding."""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from labelid.core.detector import (
    BRIGHTNESS_LEVELS,
    CONTRAST_LEVELS,
    NOISE_LEVELS,
    SHARPNESS_LEVELS,
    analyze_barcode_likelihood,
    analyze_brightness,
    analyze_contrast,
    analyze_noise,
    analyze_sharpness,
    analyze_skew,
    compute_luma,
    downsample,
    round_half_up,
)
from labelid.io.image_reader import ImageSource, load_rgba
from labelid.models.config import GateConfig
from labelid.models.report import (
    BarcodeReport,
    BrightnessReport,
    ContrastReport,
    NoiseReport,
    QualityReport,
    SharpnessReport,
    SkewReport,
)

logger = logging.getLogger(__name__)

# Composite weights (sum to 1.0)
WEIGHT_BRIGHTNESS = 0.20
WEIGHT_CONTRAST = 0.20
WEIGHT_SHARPNESS = 0.25
WEIGHT_NOISE = 0.15
WEIGHT_BARCODE = 0.20

REC_ADD_LIGHT = "Add light: move toward a window or turn on the flash."
REC_REDUCE_LIGHT = "Reduce light: avoid backlighting and adjust the angle."
REC_CONTRAST = "Increase contrast: change the lighting angle so the barcode stands out."
REC_STEADY = "Hold steady: use both hands and make sure the camera has focused."
REC_NOISE = "Reduce noise: keep still and shoot under steady light."
REC_BARCODE = "Check the barcode: keep it fully in frame and unobstructed."
REC_SKEW = "Adjust the angle: square the camera to the barcode and avoid rotating it."
REC_READY = "Image quality looks good, ready to capture."


def compute_overall_score(
    brightness: BrightnessReport,
    contrast: ContrastReport,
    sharpness: SharpnessReport,
    noise: NoiseReport,
    barcode: BarcodeReport,
) -> int:
    """Weighted composite in [0, 100]; barcode contributes its raw confidence."""
    total = (
        BRIGHTNESS_LEVELS[brightness.level][1] * WEIGHT_BRIGHTNESS
        + CONTRAST_LEVELS[contrast.level][1] * WEIGHT_CONTRAST
        + SHARPNESS_LEVELS[sharpness.level][1] * WEIGHT_SHARPNESS
        + NOISE_LEVELS[noise.level][1] * WEIGHT_NOISE
        + barcode.confidence * WEIGHT_BARCODE
    )
    return max(0, min(100, round_half_up(total)))


def build_recommendations(
    brightness: BrightnessReport,
    contrast: ContrastReport,
    sharpness: SharpnessReport,
    noise: NoiseReport,
    barcode: BarcodeReport,
    skew: SkewReport,
) -> tuple[str, ...]:
    recs: list[str] = []
    if brightness.level in ("too-dark", "dark"):
        recs.append(REC_ADD_LIGHT)
    if brightness.level == "overexposed":
        recs.append(REC_REDUCE_LIGHT)
    if contrast.level == "low":
        recs.append(REC_CONTRAST)
    if sharpness.level == "blurry":
        recs.append(REC_STEADY)
    if noise.level == "high":
        recs.append(REC_NOISE)
    if not barcode.has_barcode:
        recs.append(REC_BARCODE)
    if not skew.is_acceptable:
        recs.append(REC_SKEW)
    if not recs:
        recs.append(REC_READY)
    return tuple(recs)


def default_report() -> QualityReport:
    """Neutral report used whenever a frame cannot be analyzed."""
    return QualityReport(
        brightness=BrightnessReport(value=128, level="normal", suggestion="Brightness unavailable"),
        contrast=ContrastReport(
            value=100, range=100, level="high", suggestion="Contrast unavailable"
        ),
        sharpness=SharpnessReport(value=50, level="acceptable", suggestion="Sharpness unavailable"),
        noise=NoiseReport(value=30, level="medium", suggestion="Noise unavailable"),
        barcode_detected=BarcodeReport(has_barcode=False, confidence=0),
        skew_angle=SkewReport(angle=0.0, is_acceptable=True, suggestion="Skew unavailable"),
        overall_score=50,
        recommendations=("Please try again.",),
        is_ready_for_capture=False,
    )


def analyze_pixels(pixels: NDArray[np.uint8], config: GateConfig | None = None) -> QualityReport:
    """Score an (H, W, 3|4) uint8 buffer. May raise on malformed arrays."""
    config = config or GateConfig()
    luma = compute_luma(downsample(pixels, config.max_dimension))

    brightness = analyze_brightness(luma, config)
    contrast = analyze_contrast(luma, config)
    sharpness = analyze_sharpness(luma, config)
    noise = analyze_noise(luma, config)
    barcode = analyze_barcode_likelihood(luma, config)
    skew = analyze_skew(luma, config)

    overall = compute_overall_score(brightness, contrast, sharpness, noise, barcode)
    ready = overall >= config.ready_score and barcode.confidence >= config.ready_barcode_confidence

    return QualityReport(
        brightness=brightness,
        contrast=contrast,
        sharpness=sharpness,
        noise=noise,
        barcode_detected=barcode,
        skew_angle=skew,
        overall_score=overall,
        recommendations=build_recommendations(
            brightness, contrast, sharpness, noise, barcode, skew
        ),
        is_ready_for_capture=ready,
    )


def diagnose_image(source: ImageSource, config: GateConfig | None = None) -> QualityReport:
    """Judge whether a frame is worth decoding. Failures yield ``default_report()``."""
    config = config or GateConfig()
    try:
        pixels = load_rgba(source, timeout=config.load_timeout)
        report = analyze_pixels(pixels, config)
    except Exception:
        logger.warning("Frame diagnosis failed, returning default report", exc_info=True)
        return default_report()

    logger.debug(
        "score=%d (%s) brightness=%d/%s contrast=%d/%s sharpness=%d/%s noise=%d/%s "
        "barcode=%d skew=%.1f ready=%s",
        report.overall_score,
        report.grade,
        report.brightness.value,
        report.brightness.level,
        report.contrast.value,
        report.contrast.level,
        report.sharpness.value,
        report.sharpness.level,
        report.noise.value,
        report.noise.level,
        report.barcode_detected.confidence,
        report.skew_angle.angle,
        report.is_ready_for_capture,
    )
    return report


def format_report(report: QualityReport) -> str:
    """Multi-line human summary of a report."""
    b, c, s, n = report.brightness, report.contrast, report.sharpness, report.noise
    lines = [
        f"Overall score: {report.overall_score}/100 ({report.grade})",
        f"  Brightness: {b.value} ({b.level})",
        f"    {b.suggestion}",
        f"  Contrast: {c.value} (range {c.range}, {c.level})",
        f"    {c.suggestion}",
        f"  Sharpness: {s.value}% ({s.level})",
        f"    {s.suggestion}",
        f"  Noise: {n.value}% ({n.level})",
        f"    {n.suggestion}",
        f"  Barcode: {report.barcode_detected.confidence}% confidence",
        f"  Skew: {report.skew_angle.angle:.1f} deg, {report.skew_angle.suggestion}",
        "Recommendations:",
    ]
    lines.extend(f"  - {r}" for r in report.recommendations)
    lines.append(f"Ready for capture: {'yes' if report.is_ready_for_capture else 'no'}")
    return "\n".join(lines)
