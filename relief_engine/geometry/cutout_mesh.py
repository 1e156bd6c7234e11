"""Cutout-mode synthesis: one extruded box per foreground cell."""

from __future__ import annotations

import numpy as np

from relief_engine.config import PLATE_SIZE
from relief_engine.geometry.mesh_models import ReliefMesh
from relief_engine.utils.progress import iter_progress


_WALL_UV = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])

# (row offset, col offset, outward normal)
_SIDES = (
    (-1, 0, (0.0, 1.0, 0.0)),
    (1, 0, (0.0, -1.0, 0.0)),
    (0, -1, (-1.0, 0.0, 0.0)),
    (0, 1, (1.0, 0.0, 0.0)),
)


def _wall_corners(dr: int, dc: int, x0: float, x1: float, y0: float, y1: float):
    """Top edge endpoints of the wall facing (dr, dc), ordered for outward winding."""
    if dr == -1:
        return (x0, y0), (x1, y0)
    if dr == 1:
        return (x1, y1), (x0, y1)
    if dc == -1:
        return (x0, y1), (x0, y0)
    return (x1, y0), (x1, y1)


def build_cutout_mesh(
    height_map: np.ndarray,
    mask: np.ndarray,
    size: float = PLATE_SIZE,
    show_progress: bool = False,
) -> ReliefMesh:
    """
    Extrude every foreground cell into an independent box.

    Each cell emits a top quad at its height, a bottom quad at Z=0 and a side
    quad only toward neighbors that are background or outside the grid.
    Quads never share vertices.

    Args:
        height_map: (R, R) heights
        mask: (R, R) foreground mask
        size: World-space edge length of the square footprint
        show_progress: Show a progress bar over grid rows

    Returns:
        ReliefMesh with 4 vertices and 2 triangles per emitted quad
    """
    height_map = np.asarray(height_map, dtype=np.float64)
    mask = np.asarray(mask, dtype=bool)
    if height_map.shape != mask.shape or height_map.ndim != 2:
        raise ValueError(
            f"height_map {height_map.shape} and mask {mask.shape} must match"
        )
    res = mask.shape[0]
    cell = size / res
    half = size / 2.0

    max_quads = 6 * int(np.count_nonzero(mask))
    positions = np.zeros((max_quads, 4, 3))
    normals = np.zeros((max_quads, 4, 3))
    uvs = np.zeros((max_quads, 4, 2))
    quad = 0

    for r in iter_progress(range(res), desc="Cutout rows", enabled=show_progress):
        y0 = half - r * cell
        y1 = y0 - cell
        v0 = 1.0 - r / res
        v1 = 1.0 - (r + 1) / res
        for c in np.flatnonzero(mask[r]):
            h = height_map[r, c]
            x0 = -half + c * cell
            x1 = x0 + cell
            u0 = c / res
            u1 = (c + 1) / res

            positions[quad] = [(x0, y1, h), (x1, y1, h), (x1, y0, h), (x0, y0, h)]
            normals[quad] = (0.0, 0.0, 1.0)
            uvs[quad] = [(u0, v1), (u1, v1), (u1, v0), (u0, v0)]
            quad += 1

            positions[quad] = [(x0, y0, 0.0), (x1, y0, 0.0), (x1, y1, 0.0), (x0, y1, 0.0)]
            normals[quad] = (0.0, 0.0, -1.0)
            uvs[quad] = [(u0, v0), (u1, v0), (u1, v1), (u0, v1)]
            quad += 1

            for dr, dc, outward in _SIDES:
                nr, nc = r + dr, c + dc
                if 0 <= nr < res and 0 <= nc < res and mask[nr, nc]:
                    continue
                (ax, ay), (bx, by) = _wall_corners(dr, dc, x0, x1, y0, y1)
                positions[quad] = [(ax, ay, h), (bx, by, h), (bx, by, 0.0), (ax, ay, 0.0)]
                normals[quad] = outward
                uvs[quad] = _WALL_UV
                quad += 1

    base = np.arange(quad, dtype=np.int64) * 4
    indices = np.stack(
        [base, base + 1, base + 2, base, base + 2, base + 3], axis=1
    ).ravel()
    return ReliefMesh(
        positions=positions[:quad].reshape(-1, 3),
        normals=normals[:quad].reshape(-1, 3),
        uvs=uvs[:quad].reshape(-1, 2),
        indices=indices,
    )
