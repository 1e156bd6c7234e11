"""Image decoding into plain pixel arrays."""

from __future__ import annotations

import base64
import binascii
import io
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from relief_engine.errors import ImageDecodeFailure


def _to_array(img: Image.Image) -> np.ndarray:
    """Convert a PIL image to an RGB or RGBA uint8 array."""
    has_alpha = img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )
    array = np.array(img.convert("RGBA" if has_alpha else "RGB"))
    if array.size == 0:
        raise ImageDecodeFailure("Decoded image is empty")
    return array


def load_image(image_path: Union[str, Path]) -> np.ndarray:
    """
    Load an image from file.

    Args:
        image_path: Path to the image file

    Returns:
        Image as an (H, W, 3) or (H, W, 4) uint8 array
    """
    try:
        with Image.open(image_path) as img:
            return _to_array(img)
    except FileNotFoundError as exc:
        raise ImageDecodeFailure(f"Could not load image: {image_path}") from exc
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeFailure(f"Could not decode image {image_path}: {exc}") from exc


def decode_image_bytes(data: bytes) -> np.ndarray:
    """Decode encoded image bytes (PNG, JPEG, ...) into a pixel array."""
    if not data:
        raise ImageDecodeFailure("Image data is empty")
    try:
        with Image.open(io.BytesIO(data)) as img:
            return _to_array(img)
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeFailure(f"Could not decode image bytes: {exc}") from exc


def decode_data_url(data_url: str) -> np.ndarray:
    """
    Decode a base64 image, with or without a `data:image/...;base64,` prefix.

    Args:
        data_url: Data URL or bare base64 payload

    Returns:
        Image as an (H, W, 3) or (H, W, 4) uint8 array
    """
    payload = data_url.strip()
    if payload.startswith("data:"):
        header, sep, payload = payload.partition(",")
        if not sep or ";base64" not in header:
            raise ImageDecodeFailure("Only base64 data URLs are supported")
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeFailure(f"Invalid base64 image payload: {exc}") from exc
    return decode_image_bytes(raw)


def as_pixel_array(image: Union[str, Path, bytes, np.ndarray]) -> np.ndarray:
    """
    Normalize any supported image source to a pixel array.

    Accepts a decoded array, encoded bytes, a data URL, or a file path.
    """
    if isinstance(image, np.ndarray):
        if image.size == 0 or image.ndim not in (2, 3):
            raise ImageDecodeFailure(f"Unsupported image array shape: {image.shape}")
        if image.ndim == 3 and image.shape[2] not in (1, 2, 3, 4):
            raise ImageDecodeFailure(f"Unsupported channel count: {image.shape[2]}")
        return image
    if isinstance(image, (bytes, bytearray)):
        return decode_image_bytes(bytes(image))
    if isinstance(image, str) and image.lstrip().startswith("data:"):
        return decode_data_url(image)
    return load_image(image)
