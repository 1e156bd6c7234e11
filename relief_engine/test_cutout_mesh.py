"""Tests for cutout-mode mesh synthesis."""

from __future__ import annotations

import unittest

import numpy as np

from relief_engine.geometry.cutout_mesh import build_cutout_mesh


class TestCutoutMesh(unittest.TestCase):
    def test_isolated_cell_is_closed_box(self) -> None:
        mask = np.zeros((3, 3), dtype=bool)
        mask[1, 1] = True
        height = np.where(mask, 4.0, 0.0)
        mesh = build_cutout_mesh(height, mask, size=30.0)
        self.assertEqual(mesh.vertex_count, 24)
        self.assertEqual(mesh.triangle_count, 12)
        bounds = mesh.bounds()
        np.testing.assert_allclose(bounds[0], [-5.0, -5.0, 0.0])
        np.testing.assert_allclose(bounds[1], [5.0, 5.0, 4.0])

    def test_block_shares_no_inner_walls(self) -> None:
        mask = np.zeros((4, 4), dtype=bool)
        mask[1:3, 1:3] = True
        mesh = build_cutout_mesh(np.where(mask, 2.0, 0.0), mask)
        # 4 tops, 4 bottoms, 8 perimeter walls
        self.assertEqual(mesh.vertex_count, 16 * 4)
        self.assertEqual(mesh.triangle_count, 16 * 2)

    def test_grid_edge_gets_walls(self) -> None:
        mask = np.ones((2, 2), dtype=bool)
        mesh = build_cutout_mesh(np.full((2, 2), 1.0), mask)
        self.assertEqual(mesh.triangle_count, 16 * 2)

    def test_winding_matches_normals(self) -> None:
        mask = np.random.default_rng(4).random((6, 6)) > 0.4
        height = np.where(mask, 3.0, 0.0)
        mesh = build_cutout_mesh(height, mask)
        face_normals = mesh.face_normals()
        stored = mesh.normals[mesh.faces[:, 0]]
        self.assertTrue(np.all(np.sum(face_normals * stored, axis=1) > 0))

    def test_top_uvs_follow_pixel_grid(self) -> None:
        mask = np.zeros((4, 4), dtype=bool)
        mask[0, 1] = True
        mesh = build_cutout_mesh(np.where(mask, 1.0, 0.0), mask)
        np.testing.assert_allclose(
            mesh.uvs[:4], [[0.25, 0.75], [0.5, 0.75], [0.5, 1.0], [0.25, 1.0]]
        )

    def test_empty_mask(self) -> None:
        mask = np.zeros((3, 3), dtype=bool)
        mesh = build_cutout_mesh(np.zeros((3, 3)), mask)
        self.assertEqual(mesh.vertex_count, 0)
        self.assertEqual(mesh.triangle_count, 0)

    def test_shape_mismatch(self) -> None:
        with self.assertRaises(ValueError):
            build_cutout_mesh(np.zeros((3, 3)), np.ones((2, 2), dtype=bool))


if __name__ == "__main__":
    unittest.main()
