"""Plate-mode synthesis: displaced top grid, flat bottom, four side walls."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from relief_engine.config import PLATE_SIZE
from relief_engine.geometry.mesh_merge import (
    compute_vertex_normals,
    flip_winding,
    merge_parts,
)
from relief_engine.geometry.mesh_models import MeshPart, ReliefMesh


# name, outward normal, boundary cells (row, col) in strip order
_WallSpec = Tuple[str, Tuple[float, float, float], List[Tuple[int, int]]]


def _grid_indices(rows: int, cols: int) -> np.ndarray:
    """Two counter-clockwise (seen from +Z) triangles per grid quad."""
    r, c = np.meshgrid(np.arange(rows - 1), np.arange(cols - 1), indexing="ij")
    a = (r * cols + c).ravel()
    b = ((r + 1) * cols + c).ravel()
    cc = ((r + 1) * cols + c + 1).ravel()
    d = (r * cols + c + 1).ravel()
    return np.stack([a, b, d, b, cc, d], axis=1).ravel()


def _grid_xy(resolution: int, size: float) -> Tuple[np.ndarray, np.ndarray]:
    half = size / 2.0
    xs = np.linspace(-half, half, resolution)
    ys = np.linspace(half, -half, resolution)
    return xs, ys


def build_top_surface(height_map: np.ndarray, size: float = PLATE_SIZE) -> MeshPart:
    """Top surface: one vertex per cell, Z displaced by the height map."""
    res = height_map.shape[0]
    xs, ys = _grid_xy(res, size)
    gx, gy = np.meshgrid(xs, ys)
    positions = np.stack([gx.ravel(), gy.ravel(), height_map.ravel()], axis=1)

    cols, rows = np.meshgrid(np.arange(res), np.arange(res))
    uvs = np.stack([cols.ravel() / res, 1.0 - rows.ravel() / res], axis=1)

    indices = _grid_indices(res, res)
    normals = compute_vertex_normals(positions, indices)
    return MeshPart("top", positions, normals, uvs, indices)


def build_bottom(size: float = PLATE_SIZE) -> MeshPart:
    """Flat single-quad bottom at Z=0 facing -Z."""
    half = size / 2.0
    positions = np.array(
        [
            [-half, half, 0.0],
            [half, half, 0.0],
            [-half, -half, 0.0],
            [half, -half, 0.0],
        ]
    )
    uvs = np.array([[0.0, 1.0], [1.0, 1.0], [0.0, 0.0], [1.0, 0.0]])
    # Upward-facing plane, then reversed.
    indices = flip_winding(np.array([0, 2, 1, 2, 3, 1]))
    normals = np.tile([0.0, 0.0, -1.0], (4, 1))
    return MeshPart("bottom", positions, normals, uvs, indices)


def _wall_specs(res: int) -> List[_WallSpec]:
    last = res - 1
    # Each boundary is walked with the outward normal on the right-hand side
    # seen from above, so the strip triangles face out.
    return [
        ("wall_top", (0.0, 1.0, 0.0), [(0, c) for c in range(last, -1, -1)]),
        ("wall_bottom", (0.0, -1.0, 0.0), [(last, c) for c in range(res)]),
        ("wall_left", (-1.0, 0.0, 0.0), [(r, 0) for r in range(res)]),
        ("wall_right", (1.0, 0.0, 0.0), [(r, last) for r in range(last, -1, -1)]),
    ]


def build_side_wall(
    height_map: np.ndarray,
    cells: List[Tuple[int, int]],
    outward: Tuple[float, float, float],
    name: str,
    size: float = PLATE_SIZE,
) -> MeshPart:
    """
    Ribbon of quads joining one boundary of the top surface to Z=0.

    Vertex 2i is the top-surface boundary vertex of cells[i]; vertex 2i+1 is
    directly below it at Z=0.
    """
    res = height_map.shape[0]
    xs, ys = _grid_xy(res, size)
    steps = len(cells) - 1

    positions = np.zeros((2 * len(cells), 3))
    uvs = np.zeros((2 * len(cells), 2))
    for i, (r, c) in enumerate(cells):
        positions[2 * i] = (xs[c], ys[r], height_map[r, c])
        positions[2 * i + 1] = (xs[c], ys[r], 0.0)
        u = float(i % 2)
        uvs[2 * i] = (u, 1.0)
        uvs[2 * i + 1] = (u, 0.0)

    a = np.arange(steps) * 2
    b = a + 1
    cc = a + 2
    d = a + 3
    indices = np.stack([a, b, cc, cc, b, d], axis=1).ravel()

    normals = compute_vertex_normals(positions, indices)
    # Zero-height boundary spans have no area to average over.
    flat = np.linalg.norm(normals, axis=1) == 0
    normals[flat] = outward
    return MeshPart(name, positions, normals, uvs, indices)


def build_plate_mesh(height_map: np.ndarray, size: float = PLATE_SIZE) -> ReliefMesh:
    """
    Build the plate-mode relief: top, bottom, then the four side walls.

    Args:
        height_map: (R, R) heights, R >= 2
        size: World-space edge length of the square plate

    Returns:
        Merged ReliefMesh
    """
    height_map = np.asarray(height_map, dtype=np.float64)
    if height_map.ndim != 2 or height_map.shape[0] != height_map.shape[1]:
        raise ValueError(f"height_map must be square, got {height_map.shape}")
    res = height_map.shape[0]
    if res < 2:
        raise ValueError("plate mode requires a grid of at least 2x2")

    parts = [build_top_surface(height_map, size), build_bottom(size)]
    for name, outward, cells in _wall_specs(res):
        parts.append(build_side_wall(height_map, cells, outward, name, size))
    return merge_parts(parts)
