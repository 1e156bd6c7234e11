"""Foreground segmentation for cutout reliefs."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

import cv2
import numpy as np
from scipy import ndimage

from relief_engine.config import SegmentationConfig


@dataclass(frozen=True)
class SegmentationResult:
    """Foreground mask plus the intermediate maps that produced it."""

    mask: np.ndarray
    blurred: np.ndarray
    raw_foreground: np.ndarray
    dilated: np.ndarray
    removed_holes: List[int] = field(default_factory=list)
    fallback_used: bool = False

    @property
    def foreground_count(self) -> int:
        """Number of foreground cells in the final mask."""
        return int(np.count_nonzero(self.mask))

    @property
    def component_count(self) -> int:
        """Number of separate printed pieces the mask would produce."""
        return count_components(self.mask)


_FOUR_CONNECTED = ndimage.generate_binary_structure(2, 1)


def count_components(mask: np.ndarray) -> int:
    """Count 4-connected foreground components."""
    _, count = ndimage.label(np.asarray(mask, dtype=bool), structure=_FOUR_CONNECTED)
    return int(count)


def _neighbors4(idx: int, size: int) -> Iterator[int]:
    r, c = divmod(idx, size)
    if r > 0:
        yield idx - size
    if r < size - 1:
        yield idx + size
    if c > 0:
        yield idx - 1
    if c < size - 1:
        yield idx + 1


def _flood(
    seeds: List[int], member: np.ndarray, visited: np.ndarray, size: int
) -> List[int]:
    """
    Breadth-first flood over a flat grid.

    Unvisited seeds are marked and queued before expansion; a neighbor
    joins when `member` is set for it and it has not been visited yet.

    Returns:
        Flat indices of the region in visit order
    """
    queue = deque()
    for seed in seeds:
        if not visited[seed]:
            visited[seed] = True
            queue.append(seed)
    region = []
    while queue:
        idx = queue.popleft()
        region.append(idx)
        for nb in _neighbors4(idx, size):
            if not visited[nb] and member[nb]:
                visited[nb] = True
                queue.append(nb)
    return region


def box_blur(values: np.ndarray, radius: int) -> np.ndarray:
    """
    Mean filter over a (2*radius+1) square window clamped at the grid edges.

    The divisor is the number of in-bounds samples, so edge cells are not
    darkened by padding.
    """
    values = np.asarray(values, dtype=np.float64)
    if radius <= 0:
        return values.copy()
    ksize = (2 * radius + 1, 2 * radius + 1)
    sums = cv2.boxFilter(
        values, cv2.CV_64F, ksize, normalize=False, borderType=cv2.BORDER_CONSTANT
    )
    counts = cv2.boxFilter(
        np.ones_like(values),
        cv2.CV_64F,
        ksize,
        normalize=False,
        borderType=cv2.BORDER_CONSTANT,
    )
    return sums / counts


def edge_background(blurred: np.ndarray, threshold: float) -> np.ndarray:
    """Cells reachable from the grid border through cells brighter than threshold."""
    size = blurred.shape[0]
    bright = (blurred > threshold).ravel()
    border = np.zeros((size, size), dtype=bool)
    border[0, :] = border[-1, :] = True
    border[:, 0] = border[:, -1] = True
    seeds = [int(idx) for idx in np.flatnonzero(border.ravel() & bright)]

    visited = np.zeros(size * size, dtype=bool)
    _flood(seeds, bright, visited, size)
    return visited.reshape(size, size)


def dilate4(mask: np.ndarray, passes: int) -> np.ndarray:
    """4-connected binary dilation repeated `passes` times."""
    if passes <= 0:
        return mask.copy()
    kernel = cv2.getStructuringElement(cv2.MORPH_CROSS, (3, 3))
    dilated = cv2.dilate(mask.astype(np.uint8), kernel, iterations=passes)
    return dilated > 0


def remove_enclosed_holes(
    mask: np.ndarray,
    brightness: np.ndarray,
    threshold: float,
    max_ratio: float,
    min_size: int,
) -> List[int]:
    """
    Clear small bright regions enclosed by the foreground, in place.

    A region is a 4-connected set of foreground cells whose raw brightness
    exceeds `threshold`. It is cleared when
    `min_size <= len(region) < max_ratio * foreground_count`, with the
    foreground count taken before any region is cleared.

    Returns:
        Sizes of the removed regions in discovery order
    """
    size = mask.shape[0]
    flat_mask = mask.reshape(-1)
    fg_count = int(np.count_nonzero(flat_mask))
    removed: List[int] = []
    if fg_count == 0:
        return removed

    member = (flat_mask & (brightness.reshape(-1) > threshold)).copy()
    visited = np.zeros(size * size, dtype=bool)
    limit = fg_count * max_ratio
    for start in np.flatnonzero(member):
        if visited[start]:
            continue
        region = _flood([int(start)], member, visited, size)
        if min_size <= len(region) < limit:
            flat_mask[region] = False
            removed.append(len(region))
    return removed


def segment_foreground(
    brightness: np.ndarray,
    threshold: float,
    config: Optional[SegmentationConfig] = None,
) -> SegmentationResult:
    """
    Classify grid cells as printable foreground or background.

    Args:
        brightness: (R, R) brightness map in [0, 1]
        threshold: Background brightness threshold; comparisons are strict
        config: Segmentation constants (defaults are the tuned values)

    Returns:
        SegmentationResult whose mask is never empty
    """
    config = config or SegmentationConfig()
    brightness = np.asarray(brightness, dtype=np.float64)
    if brightness.ndim != 2 or brightness.shape[0] != brightness.shape[1]:
        raise ValueError(f"brightness must be a square 2D grid, got {brightness.shape}")

    blurred = box_blur(brightness, config.blur_radius)
    background = edge_background(blurred, threshold)
    raw_foreground = ~background
    dilated = dilate4(raw_foreground, config.dilation_passes)

    mask = dilated.copy()
    removed = remove_enclosed_holes(
        mask,
        brightness,
        threshold,
        max_ratio=config.hole_max_ratio,
        min_size=config.hole_min_size,
    )

    fallback_used = not mask.any()
    if fallback_used:
        mask[:] = True

    return SegmentationResult(
        mask=mask,
        blurred=blurred,
        raw_foreground=raw_foreground,
        dilated=dilated,
        removed_holes=removed,
        fallback_used=fallback_used,
    )
