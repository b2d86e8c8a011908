"""Unified frame reading: bytes, base64, paths, Pillow images and arrays to RGBA."""

from __future__ import annotations

import base64
import binascii
import io
import os
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import Union

import numpy as np
from numpy.typing import NDArray
from PIL import Image

ImageSource = Union[bytes, bytearray, memoryview, str, Path, Image.Image, np.ndarray]


class ImageLoadError(Exception):
    """The source could not be turned into a pixel buffer."""


class ImageLoadTimeout(ImageLoadError):
    """Decoding did not finish within the allowed time."""


def _decode_base64(text: str) -> bytes:
    if text.startswith("data:"):
        _, _, text = text.partition(",")
    try:
        return base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError("Source string is neither a file path nor base64 data") from e


def _open(fp: str | Path | io.BytesIO) -> Image.Image:
    try:
        img = Image.open(fp)
        img.load()
    except (OSError, ValueError) as e:
        raise ImageLoadError(f"Cannot decode image: {e}") from e
    return img


def _open_bytes(payload: bytes) -> Image.Image:
    if not payload:
        raise ImageLoadError("Empty image payload")
    return _open(io.BytesIO(payload))


def _array_to_rgba(arr: np.ndarray) -> NDArray[np.uint8]:
    if arr.dtype != np.uint8:
        arr = np.clip(np.nan_to_num(arr.astype(np.float64)), 0, 255).astype(np.uint8)
    if arr.ndim == 2:
        rgb = np.stack([arr, arr, arr], axis=2)
        alpha = np.full(arr.shape, 255, dtype=np.uint8)
        return np.dstack([rgb, alpha])
    if arr.ndim == 3 and arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2], 255, dtype=np.uint8)
        return np.dstack([arr, alpha])
    if arr.ndim == 3 and arr.shape[2] == 4:
        return arr.copy()
    raise ImageLoadError(f"Unsupported array shape {arr.shape}")


def _read(source: ImageSource) -> NDArray[np.uint8]:
    if isinstance(source, np.ndarray):
        pixels = _array_to_rgba(source)
    else:
        if isinstance(source, Image.Image):
            img = source
        elif isinstance(source, (bytes, bytearray, memoryview)):
            img = _open_bytes(bytes(source))
        elif isinstance(source, Path) or (isinstance(source, str) and os.path.isfile(source)):
            img = _open(source)
        elif isinstance(source, str):
            img = _open_bytes(_decode_base64(source))
        else:
            raise ImageLoadError(f"Unsupported image source type: {type(source).__name__}")
        pixels = np.array(img.convert("RGBA"), dtype=np.uint8)

    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise ImageLoadError("Image has no pixels")
    return pixels


def load_rgba(source: ImageSource, timeout: float | None = 5.0) -> NDArray[np.uint8]:
    """Decode ``source`` into an (H, W, 4) uint8 array.

    Decoding runs on a worker thread; if it has not finished after ``timeout``
    seconds ``ImageLoadTimeout`` is raised and the worker is abandoned.
    The caller's object is never modified.
    """
    if timeout is None:
        return _read(source)

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="labelid-load")
    try:
        future = executor.submit(_read, source)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise ImageLoadTimeout(f"Image load exceeded {timeout:.1f}s") from e
    finally:
        executor.shutdown(wait=False)
