"""Mesh data contracts produced by relief synthesis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

import numpy as np

from relief_engine.errors import GeometryConstructionFailure


@dataclass(frozen=True)
class ReliefMesh:
    """
    Indexed triangle mesh with per-vertex normals and texture coordinates.

    Attributes:
        positions: (N, 3) float vertex positions
        normals: (N, 3) float unit normals
        uvs: (N, 2) float texture coordinates
        indices: flat int triangle index list, length a multiple of 3
    """

    positions: np.ndarray
    normals: np.ndarray
    uvs: np.ndarray
    indices: np.ndarray

    def __post_init__(self) -> None:
        positions = np.asarray(self.positions, dtype=np.float64).reshape(-1, 3)
        normals = np.asarray(self.normals, dtype=np.float64).reshape(-1, 3)
        uvs = np.asarray(self.uvs, dtype=np.float64).reshape(-1, 2)
        indices = np.asarray(self.indices, dtype=np.int64).ravel()

        count = positions.shape[0]
        if normals.shape[0] != count:
            raise GeometryConstructionFailure(
                f"normals length {normals.shape[0]} != vertex count {count}"
            )
        if uvs.shape[0] != count:
            raise GeometryConstructionFailure(
                f"uvs length {uvs.shape[0]} != vertex count {count}"
            )
        if indices.size % 3 != 0:
            raise GeometryConstructionFailure(
                f"index count {indices.size} is not a multiple of 3"
            )
        if indices.size and (indices.min() < 0 or indices.max() >= count):
            raise GeometryConstructionFailure("triangle index out of range")

        for name, array in (
            ("positions", positions),
            ("normals", normals),
            ("uvs", uvs),
            ("indices", indices),
        ):
            array.setflags(write=False)
            object.__setattr__(self, name, array)

    @property
    def vertex_count(self) -> int:
        """Number of vertices."""
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        """Number of triangles."""
        return int(self.indices.size // 3)

    @property
    def faces(self) -> np.ndarray:
        """Triangle indices reshaped to (M, 3)."""
        return self.indices.reshape(-1, 3)

    def face_normals(self) -> np.ndarray:
        """Unnormalized geometric face normals from the triangle winding."""
        tri = self.positions[self.faces]
        return np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])

    def bounds(self) -> np.ndarray:
        """Return [[min_x, min_y, min_z], [max_x, max_y, max_z]]."""
        if self.vertex_count == 0:
            return np.zeros((2, 3))
        return np.stack([self.positions.min(axis=0), self.positions.max(axis=0)])

    def summary(self) -> Dict[str, Any]:
        """Return a JSON-serializable description of the mesh size."""
        return {
            "vertices": self.vertex_count,
            "triangles": self.triangle_count,
            "bounds": self.bounds().tolist(),
        }


@dataclass(frozen=True)
class MeshPart:
    """Un-merged sub-mesh; indices are local to the part."""

    name: str
    positions: np.ndarray
    normals: np.ndarray
    uvs: np.ndarray
    indices: np.ndarray

    @property
    def vertex_count(self) -> int:
        """Number of vertices in this part."""
        return int(np.asarray(self.positions).reshape(-1, 3).shape[0])
