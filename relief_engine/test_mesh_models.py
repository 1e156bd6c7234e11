"""Tests for mesh contracts, normals and merging."""

from __future__ import annotations

import json
import unittest

import numpy as np

from relief_engine.errors import GeometryConstructionFailure
from relief_engine.geometry.mesh_merge import (
    compute_vertex_normals,
    flip_winding,
    merge_parts,
)
from relief_engine.geometry.mesh_models import MeshPart, ReliefMesh


def _square_part(name: str, z: float = 0.0) -> MeshPart:
    positions = np.array(
        [[0.0, 0.0, z], [1.0, 0.0, z], [1.0, 1.0, z], [0.0, 1.0, z]]
    )
    indices = np.array([0, 1, 2, 0, 2, 3])
    return MeshPart(
        name,
        positions,
        compute_vertex_normals(positions, indices),
        positions[:, :2],
        indices,
    )


class TestReliefMesh(unittest.TestCase):
    def test_counts_and_faces(self) -> None:
        part = _square_part("quad")
        mesh = ReliefMesh(part.positions, part.normals, part.uvs, part.indices)
        self.assertEqual(mesh.vertex_count, 4)
        self.assertEqual(mesh.triangle_count, 2)
        self.assertEqual(mesh.faces.shape, (2, 3))
        self.assertEqual(mesh.indices.dtype, np.int64)

    def test_arrays_are_read_only(self) -> None:
        part = _square_part("quad")
        mesh = ReliefMesh(part.positions, part.normals, part.uvs, part.indices)
        with self.assertRaises(ValueError):
            mesh.positions[0, 0] = 5.0

    def test_index_out_of_range(self) -> None:
        with self.assertRaises(GeometryConstructionFailure):
            ReliefMesh(np.zeros((3, 3)), np.zeros((3, 3)), np.zeros((3, 2)), [0, 1, 3])

    def test_index_count_multiple_of_three(self) -> None:
        with self.assertRaises(GeometryConstructionFailure):
            ReliefMesh(np.zeros((3, 3)), np.zeros((3, 3)), np.zeros((3, 2)), [0, 1])

    def test_attribute_length_mismatch(self) -> None:
        with self.assertRaises(GeometryConstructionFailure):
            ReliefMesh(np.zeros((3, 3)), np.zeros((2, 3)), np.zeros((3, 2)), [0, 1, 2])
        with self.assertRaises(GeometryConstructionFailure):
            ReliefMesh(np.zeros((3, 3)), np.zeros((3, 3)), np.zeros((4, 2)), [0, 1, 2])

    def test_summary_json_safe(self) -> None:
        part = _square_part("quad", z=2.0)
        mesh = ReliefMesh(part.positions, part.normals, part.uvs, part.indices)
        summary = mesh.summary()
        json.dumps(summary)
        self.assertEqual(summary["bounds"][1], [1.0, 1.0, 2.0])


class TestNormalsAndMerge(unittest.TestCase):
    def test_flat_square_normals_face_up(self) -> None:
        part = _square_part("quad")
        np.testing.assert_allclose(part.normals, np.tile([0.0, 0.0, 1.0], (4, 1)))

    def test_degenerate_triangle_gives_zero_normal(self) -> None:
        positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
        normals = compute_vertex_normals(positions, [0, 1, 2])
        np.testing.assert_array_equal(normals, np.zeros((3, 3)))

    def test_flip_winding(self) -> None:
        flipped = flip_winding(np.array([0, 1, 2, 3, 4, 5]))
        np.testing.assert_array_equal(flipped, [2, 1, 0, 5, 4, 3])
        positions = _square_part("quad").positions
        normals = compute_vertex_normals(positions, flip_winding([0, 1, 2, 0, 2, 3]))
        self.assertTrue(np.all(normals[:, 2] < 0))

    def test_merge_offsets_indices(self) -> None:
        mesh = merge_parts([_square_part("a"), _square_part("b", z=1.0)])
        self.assertEqual(mesh.vertex_count, 8)
        np.testing.assert_array_equal(mesh.indices[6:], [4, 5, 6, 4, 6, 7])
        self.assertEqual(mesh.positions[4, 2], 1.0)

    def test_merge_empty(self) -> None:
        mesh = merge_parts([])
        self.assertEqual(mesh.vertex_count, 0)
        self.assertEqual(mesh.triangle_count, 0)


if __name__ == "__main__":
    unittest.main()
