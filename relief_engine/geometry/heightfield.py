"""Brightness-to-height mapping."""

from __future__ import annotations

import numpy as np


def build_height_map(
    brightness: np.ndarray,
    mask: np.ndarray,
    depth: float,
    base_height: float,
    inverted: bool = False,
) -> np.ndarray:
    """
    Map brightness and foreground classification to per-cell heights.

    Foreground cells get `base_height + b * depth`, where b is the brightness
    (or 1 - brightness when inverted). Background cells are 0. Values are not
    clamped.
    """
    brightness = np.asarray(brightness, dtype=np.float64)
    mask = np.asarray(mask, dtype=bool)
    if brightness.shape != mask.shape:
        raise ValueError(
            f"brightness shape {brightness.shape} != mask shape {mask.shape}"
        )
    level = 1.0 - brightness if inverted else brightness
    return np.where(mask, base_height + level * depth, 0.0)
