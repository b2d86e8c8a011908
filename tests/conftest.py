"""Programmatic test frames and candidate fixtures."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from labelid.models.candidate import DecodeCandidate


def gray(value: int, size: tuple[int, int] = (480, 480)) -> np.ndarray:
    h, w = size
    return np.full((h, w, 3), value, dtype=np.uint8)


def row_stripes(h: int = 200, w: int = 200, columns: int | None = None) -> np.ndarray:
    """Rows alternating black/white, optionally only in the first ``columns`` columns."""
    arr = np.full((h, w, 3), 128, dtype=np.uint8)
    cols = w if columns is None else columns
    arr[0::2, :cols] = 0
    arr[1::2, :cols] = 255
    return arr


def plane_wave(angle_deg: float, size: int = 200, period: float = 24.0) -> np.ndarray:
    """Smooth sinusoidal stripes whose gradient points at ``angle_deg``."""
    y, x = np.mgrid[0:size, 0:size].astype(np.float64)
    theta = np.radians(angle_deg)
    phase = (x * np.cos(theta) + y * np.sin(theta)) * 2 * np.pi / period
    luma = (127.5 + 127.5 * np.sin(phase)).astype(np.uint8)
    return np.stack([luma, luma, luma], axis=2)


@pytest.fixture
def gray_frame() -> np.ndarray:
    return gray(128)


@pytest.fixture
def black_frame() -> np.ndarray:
    return gray(0)


@pytest.fixture
def striped_frame() -> np.ndarray:
    return row_stripes()


@pytest.fixture
def checker_frame() -> np.ndarray:
    arr = np.zeros((200, 200, 3), dtype=np.uint8)
    arr[::2, ::2] = 255
    arr[1::2, 1::2] = 255
    return arr


@pytest.fixture
def striped_png(tmp_path: Path, striped_frame: np.ndarray) -> str:
    path = tmp_path / "label.png"
    Image.fromarray(striped_frame).save(path)
    return str(path)


@pytest.fixture
def gray_png(tmp_path: Path, gray_frame: np.ndarray) -> str:
    path = tmp_path / "flat.png"
    Image.fromarray(gray_frame).save(path)
    return str(path)


@pytest.fixture
def label_candidates() -> list[DecodeCandidate]:
    """A realistic batch: two backends agree on the serial, OCR garbles one copy."""
    return [
        DecodeCandidate("99J2O4501234", "zxing", 0.92, format="CODE_128"),
        DecodeCandidate("99j204501234", "quagga", 0.85, format="CODE_128"),
        DecodeCandidate("99J2 0450 1234", "ocr", 0.70),
        DecodeCandidate("ZT41142-T010000Z", "ocr", 0.88, region="label:part"),
        DecodeCandidate("ZEBRA", "ocr", 0.95),
    ]
