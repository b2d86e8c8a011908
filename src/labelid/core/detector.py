"""Per-dimension frame measurements from pixel data."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from labelid.models.config import GateConfig
from labelid.models.report import (
    BarcodeReport,
    BrightnessReport,
    BrightnessLevel,
    ContrastReport,
    ContrastLevel,
    NoiseReport,
    NoiseLevel,
    SharpnessReport,
    SharpnessLevel,
    SkewReport,
)

# level -> (advisory, composite sub-score)
BRIGHTNESS_LEVELS: dict[str, tuple[str, int]] = {
    "too-dark": ("Image is too dark to read. Move closer to a light source or add lighting.", 0),
    "dark": ("Image is dark, recognition may suffer. Improve the lighting.", 70),
    "normal": ("Lighting is good for capture.", 100),
    "bright": ("Image is bright but still readable.", 70),
    "overexposed": ("Image is overexposed and detail is lost. Reduce light or change angle.", 0),
}

CONTRAST_LEVELS: dict[str, tuple[str, int]] = {
    "low": ("Contrast is very low, the barcode is barely visible. Adjust angle or lighting.", 0),
    "medium": ("Contrast is moderate. Worth a try, but success may be limited.", 60),
    "high": ("Contrast is good, the barcode is clear.", 100),
}

SHARPNESS_LEVELS: dict[str, tuple[str, int]] = {
    "blurry": ("Image is blurry from focus or hand shake. Steady the phone and retake.", 0),
    "acceptable": ("Sharpness is fair and may affect recognition. Keep the phone steady.", 60),
    "sharp": ("Image is sharp, good for recognition.", 100),
}

NOISE_LEVELS: dict[str, tuple[str, int]] = {
    "low": ("Noise is low, image quality is good.", 100),
    "medium": ("Slight noise, still readable.", 60),
    "high": ("Heavy noise hurts recognition. Improve lighting or switch camera.", 0),
}

SKEW_OK = "Barcode angle looks fine."
SKEW_TILTED = "Barcode is tilted {angle:.0f} degrees. Square the camera to the label."


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def downsample(pixels: NDArray[np.uint8], max_dim: int) -> NDArray[np.uint8]:
    """Return an RGB copy whose longer side is at most ``max_dim``."""
    rgb = np.ascontiguousarray(pixels[:, :, :3])
    h, w = rgb.shape[:2]
    if w <= max_dim and h <= max_dim:
        return rgb
    ratio = max_dim / max(w, h)
    new_size = (max(1, int(w * ratio)), max(1, int(h * ratio)))
    img = Image.fromarray(rgb).resize(new_size, Image.Resampling.LANCZOS)
    return np.array(img, dtype=np.uint8)


def compute_luma(pixels: NDArray[np.uint8]) -> NDArray[np.float64]:
    """Perceptual luma (0.299R + 0.587G + 0.114B) as an (H, W) float array."""
    rgb = pixels[:, :, :3].astype(np.float64)
    return rgb[:, :, 0] * 0.299 + rgb[:, :, 1] * 0.587 + rgb[:, :, 2] * 0.114


def analyze_brightness(luma: NDArray[np.float64], config: GateConfig) -> BrightnessReport:
    value = round_half_up(float(luma.mean()))
    level: BrightnessLevel
    if value < config.too_dark:
        level = "too-dark"
    elif value < config.dark:
        level = "dark"
    elif value < config.normal:
        level = "normal"
    elif value < config.bright:
        level = "bright"
    else:
        level = "overexposed"
    return BrightnessReport(value=value, level=level, suggestion=BRIGHTNESS_LEVELS[level][0])


def analyze_contrast(luma: NDArray[np.float64], config: GateConfig) -> ContrastReport:
    """Std-dev is reported as the value; the max-min range picks the level."""
    spread = round_half_up(float(luma.max() - luma.min()))
    std = round_half_up(float(luma.std()))
    level: ContrastLevel
    if spread < config.contrast_low:
        level = "low"
    elif spread < config.contrast_medium:
        level = "medium"
    else:
        level = "high"
    return ContrastReport(
        value=std, range=spread, level=level, suggestion=CONTRAST_LEVELS[level][0]
    )


def analyze_sharpness(luma: NDArray[np.float64], config: GateConfig) -> SharpnessReport:
    """Density of horizontal neighbour transitions above ``edge_threshold``."""
    h, w = luma.shape
    diffs = np.abs(luma[:-1, 1:] - luma[:-1, :-1])
    edge_count = int(np.count_nonzero(diffs > config.edge_threshold))
    value = min(100, round_half_up(edge_count / (w * h) * 1000))
    level: SharpnessLevel
    if value < config.sharpness_blurry:
        level = "blurry"
    elif value < config.sharpness_acceptable:
        level = "acceptable"
    else:
        level = "sharp"
    return SharpnessReport(value=value, level=level, suggestion=SHARPNESS_LEVELS[level][0])


def analyze_noise(luma: NDArray[np.float64], config: GateConfig) -> NoiseReport:
    """Mean luma jump between evenly strided pixels and their successor."""
    flat = luma.ravel()
    n = flat.size
    sample_size = max(1, min(config.noise_samples, n))
    step = max(1, n // sample_size)
    idx = np.arange(0, n, step)
    idx = idx[idx + 1 < n]
    total = float(np.abs(flat[idx + 1] - flat[idx]).sum()) if idx.size else 0.0
    value = min(100, round_half_up(total / sample_size * 2))
    level: NoiseLevel
    if value < config.noise_low:
        level = "low"
    elif value < config.noise_medium:
        level = "medium"
    else:
        level = "high"
    return NoiseReport(value=value, level=level, suggestion=NOISE_LEVELS[level][0])


def analyze_barcode_likelihood(luma: NDArray[np.float64], config: GateConfig) -> BarcodeReport:
    """Share of columns crossed by many strong luma transitions.

    A structural heuristic for parallel bars, not a barcode locator.
    """
    h, w = luma.shape
    cols = luma[:, : w - 1]
    transitions = np.count_nonzero(
        np.abs(cols[1:] - cols[:-1]) > config.bar_transition_threshold, axis=0
    )
    line_columns = int(np.count_nonzero(transitions > h * config.bar_column_fraction))
    confidence = round_half_up(min(100.0, line_columns / w * 100 * 2))
    return BarcodeReport(has_barcode=confidence > config.barcode_present, confidence=confidence)


def estimate_skew_angle(luma: NDArray[np.float64], edge_threshold: float = 50.0) -> float:
    """Dominant edge orientation in degrees, folded to the nearest axis ([-45, 45]).

    Builds a 1-degree histogram of Sobel gradient orientations over strong
    edges. Returns 0.0 when the frame has no strong edges.
    """
    if luma.shape[0] < 3 or luma.shape[1] < 3:
        return 0.0
    p = luma
    gx = (
        (p[:-2, 2:] + 2 * p[1:-1, 2:] + p[2:, 2:])
        - (p[:-2, :-2] + 2 * p[1:-1, :-2] + p[2:, :-2])
    )
    gy = (
        (p[2:, :-2] + 2 * p[2:, 1:-1] + p[2:, 2:])
        - (p[:-2, :-2] + 2 * p[:-2, 1:-1] + p[:-2, 2:])
    )
    strong = np.hypot(gx, gy) > edge_threshold
    if not strong.any():
        return 0.0
    angles = np.mod(np.degrees(np.arctan2(gy[strong], gx[strong])), 180.0)
    hist = np.bincount(np.floor(angles).astype(np.int64) % 180, minlength=180)
    angle = float(np.argmax(hist))
    if angle > 90:
        angle -= 180
    if angle > 45:
        angle -= 90
    elif angle < -45:
        angle += 90
    return angle


def analyze_skew(luma: NDArray[np.float64], config: GateConfig) -> SkewReport:
    if not config.estimate_skew:
        return SkewReport(angle=0.0, is_acceptable=True, suggestion=SKEW_OK)
    angle = estimate_skew_angle(luma, config.skew_edge_threshold)
    if abs(angle) <= config.max_skew:
        return SkewReport(angle=angle, is_acceptable=True, suggestion=SKEW_OK)
    return SkewReport(angle=angle, is_acceptable=False, suggestion=SKEW_TILTED.format(angle=angle))
