"""Normal computation and sub-mesh concatenation."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from relief_engine.geometry.mesh_models import MeshPart, ReliefMesh


def compute_vertex_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """
    Compute smooth per-vertex normals by averaging adjacent face normals.

    Face normals are left unnormalized before accumulation so larger faces
    weigh more. Vertices with no adjacent area get a zero normal.

    Args:
        positions: (N, 3) vertex positions
        indices: flat or (M, 3) triangle indices

    Returns:
        (N, 3) unit normals
    """
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    faces = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    normals = np.zeros_like(positions)
    if faces.size == 0:
        return normals

    tri = positions[faces]
    face_normals = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
    for corner in range(3):
        np.add.at(normals, faces[:, corner], face_normals)

    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    np.divide(normals, lengths, out=normals, where=lengths > 0)
    return normals


def flip_winding(indices: np.ndarray) -> np.ndarray:
    """Reverse triangle winding by swapping each triangle's first and last index."""
    faces = np.asarray(indices, dtype=np.int64).reshape(-1, 3).copy()
    faces[:, [0, 2]] = faces[:, [2, 0]]
    return faces.ravel()


def merge_parts(parts: Sequence[MeshPart]) -> ReliefMesh:
    """
    Concatenate sub-meshes into one indexed buffer.

    Each part's indices are offset by the running vertex count.
    """
    positions = []
    normals = []
    uvs = []
    indices = []
    offset = 0
    for part in parts:
        part_positions = np.asarray(part.positions, dtype=np.float64).reshape(-1, 3)
        positions.append(part_positions)
        normals.append(np.asarray(part.normals, dtype=np.float64).reshape(-1, 3))
        uvs.append(np.asarray(part.uvs, dtype=np.float64).reshape(-1, 2))
        indices.append(np.asarray(part.indices, dtype=np.int64).ravel() + offset)
        offset += part_positions.shape[0]

    if not parts:
        return ReliefMesh(
            positions=np.zeros((0, 3)),
            normals=np.zeros((0, 3)),
            uvs=np.zeros((0, 2)),
            indices=np.zeros(0, dtype=np.int64),
        )

    return ReliefMesh(
        positions=np.concatenate(positions),
        normals=np.concatenate(normals),
        uvs=np.concatenate(uvs),
        indices=np.concatenate(indices),
    )
