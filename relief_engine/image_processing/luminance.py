"""Resampling and luminance extraction onto the square sample grid."""

from __future__ import annotations

import cv2
import numpy as np

from relief_engine.config import clamp_resolution


LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


def to_rgb_float(image: np.ndarray) -> np.ndarray:
    """
    Convert a decoded image to float RGB in [0, 1].

    Integer images are scaled by their dtype maximum; float images with
    values above 1 are read as 0-255. Gray images are broadcast to three
    channels. Alpha is composited over white, so transparent pixels read as
    bright background.
    """
    image = np.asarray(image)
    if image.ndim == 2:
        image = image[:, :, None]
    if image.ndim != 3 or image.shape[2] not in (1, 2, 3, 4):
        raise ValueError(f"Unsupported image shape: {image.shape}")

    if np.issubdtype(image.dtype, np.integer):
        values = image.astype(np.float64) / float(np.iinfo(image.dtype).max)
    elif image.dtype == np.bool_:
        values = image.astype(np.float64)
    else:
        values = image.astype(np.float64)
        max_val = float(np.nanmax(values)) if values.size else 0.0
        if max_val > 1.0:
            values = values / 255.0

    channels = values.shape[2]
    if channels in (2, 4):
        alpha = values[:, :, -1:]
        color = values[:, :, :-1]
        values = color * alpha + (1.0 - alpha)
    if values.shape[2] == 1:
        values = np.repeat(values, 3, axis=2)
    return values


def sample_image(image: np.ndarray, resolution: int, mirrored: bool = False) -> np.ndarray:
    """
    Resample an image onto an R x R grid.

    Args:
        image: Decoded image array (gray, RGB or RGBA)
        resolution: Grid side length R (already clamped by the caller)
        mirrored: Flip the horizontal axis before resampling

    Returns:
        (R, R, 3) float RGB samples
    """
    rgb = to_rgb_float(image)
    if mirrored:
        rgb = rgb[:, ::-1]
    height, width = rgb.shape[:2]
    if (height, width) == (resolution, resolution):
        return np.ascontiguousarray(rgb)

    shrinking = resolution < height or resolution < width
    interp = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
    resized = cv2.resize(
        np.ascontiguousarray(rgb, dtype=np.float32),
        (resolution, resolution),
        interpolation=interp,
    )
    return resized.astype(np.float64)


def brightness_map(samples: np.ndarray) -> np.ndarray:
    """
    Per-cell luminance of RGB samples.

    Cells without a finite sample default to 1.0 (white).
    """
    samples = np.asarray(samples, dtype=np.float64)
    luma = samples[:, :, :3] @ LUMA_WEIGHTS
    luma = np.where(np.isfinite(luma), luma, 1.0)
    return np.clip(luma, 0.0, 1.0)


def extract_brightness(
    image: np.ndarray, resolution: int, mirrored: bool = False
) -> np.ndarray:
    """Sample an image to the clamped grid and return its (R, R) brightness map."""
    res = clamp_resolution(resolution)
    return brightness_map(sample_image(image, res, mirrored=mirrored))


def texture_from_image(image: np.ndarray, mirrored: bool = False) -> np.ndarray:
    """Full-resolution uint8 RGB texture matching the sampled orientation."""
    rgb = to_rgb_float(image)
    if mirrored:
        rgb = rgb[:, ::-1]
    return np.ascontiguousarray(np.round(rgb * 255.0).clip(0, 255).astype(np.uint8))
