"""Tests for the relief workflow and session."""

from __future__ import annotations

import unittest
from unittest import mock

import numpy as np

from relief_engine.config import ReliefConfig, ReliefParams
from relief_engine.errors import (
    DEGENERATE_INPUT_FALLBACK,
    GeometryConstructionFailure,
    ImageDecodeFailure,
)
from relief_engine.relief_workflow import ReliefSession, ReliefWorkflow, build_relief
from relief_engine.utils.generation_context import GenerationContext


def _dark_disc(size: int = 32) -> np.ndarray:
    yy, xx = np.mgrid[0:size, 0:size]
    image = np.full((size, size, 3), 255, dtype=np.uint8)
    inside = (yy - size / 2) ** 2 + (xx - size / 2) ** 2 < (size / 4) ** 2
    image[inside] = 20
    return image


def _quiet() -> GenerationContext:
    return GenerationContext(quiet=True)


class TestReliefWorkflow(unittest.TestCase):
    def test_plate_build(self) -> None:
        params = ReliefParams(resolution=16)
        result = build_relief(_dark_disc(), params, context=_quiet(), keep_maps=True)
        self.assertEqual(result.resolution, 16)
        self.assertEqual(result.foreground_count, 256)
        self.assertEqual(result.mesh.vertex_count, 256 + 4 + 8 * 16)
        self.assertEqual(result.texture.shape, (32, 32, 3))
        self.assertTrue(result.maps.mask.all())

    def test_cutout_build(self) -> None:
        params = ReliefParams(resolution=32, cutout=True)
        ctx = _quiet()
        result = build_relief(_dark_disc(), params, context=ctx, keep_maps=True)
        self.assertFalse(result.fallback_used)
        self.assertLess(result.foreground_count, 32 * 32)
        self.assertFalse(result.maps.mask[0, 0])
        self.assertTrue(result.maps.mask[16, 16])
        self.assertEqual(result.mesh.vertex_count % 4, 0)
        self.assertTrue(np.all(result.maps.height[~result.maps.mask] == 0.0))
        self.assertEqual(len(ctx.events(DEGENERATE_INPUT_FALLBACK)), 0)

    def test_all_white_cutout_falls_back(self) -> None:
        params = ReliefParams(resolution=8, cutout=True)
        ctx = _quiet()
        image = np.full((8, 8, 3), 255, dtype=np.uint8)
        result = build_relief(image, params, context=ctx)
        self.assertTrue(result.fallback_used)
        self.assertEqual(result.foreground_count, 64)
        self.assertEqual(len(ctx.events(DEGENERATE_INPUT_FALLBACK)), 1)

    def test_deterministic(self) -> None:
        params = ReliefParams(resolution=24, cutout=True)
        first = build_relief(_dark_disc(), params, context=_quiet())
        second = build_relief(_dark_disc(), params, context=_quiet())
        np.testing.assert_array_equal(first.mesh.positions, second.mesh.positions)
        np.testing.assert_array_equal(first.mesh.indices, second.mesh.indices)

    def test_resolution_clamped(self) -> None:
        image = np.zeros((300, 300, 3), dtype=np.uint8)
        result = build_relief(image, ReliefParams(resolution=400), context=_quiet())
        self.assertEqual(result.resolution, 256)

    def test_stages_recorded(self) -> None:
        ctx = _quiet()
        build_relief(_dark_disc(), ReliefParams(resolution=8), context=ctx)
        stages = [timing.stage for timing in ctx.stages]
        self.assertEqual(
            stages, ["decode", "luminance", "segment", "height", "synthesize"]
        )

    def test_decode_failure(self) -> None:
        with self.assertRaises(ImageDecodeFailure):
            build_relief(b"not an image", context=_quiet())

    def test_invalid_params_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ReliefWorkflow(ReliefConfig(params=ReliefParams(depth=-1.0)))

    def test_synthesis_errors_wrapped(self) -> None:
        ctx = _quiet()
        workflow = ReliefWorkflow(ReliefConfig(params=ReliefParams(resolution=8)), ctx)
        with mock.patch(
            "relief_engine.relief_workflow.build_plate_mesh",
            side_effect=RuntimeError("boom"),
        ):
            with self.assertRaises(GeometryConstructionFailure):
                workflow.run(_dark_disc())
        self.assertEqual(len(ctx.events("geometry_error")), 1)


class TestReliefSession(unittest.TestCase):
    def setUp(self) -> None:
        config = ReliefConfig(params=ReliefParams(resolution=8))
        self.session = ReliefSession(config, context=_quiet())

    def test_build_replaces_current(self) -> None:
        first = self.session.build(_dark_disc())
        self.assertIs(self.session.current, first)
        second = self.session.build(_dark_disc(), ReliefParams(resolution=12))
        self.assertIs(self.session.current, second)
        self.assertEqual(second.resolution, 12)

    def test_failed_build_keeps_previous(self) -> None:
        first = self.session.build(_dark_disc())
        with mock.patch(
            "relief_engine.relief_workflow.build_plate_mesh",
            side_effect=ValueError("bad grid"),
        ):
            self.assertIsNone(self.session.build(_dark_disc()))
        self.assertIs(self.session.current, first)
        self.assertIsInstance(self.session.last_error, GeometryConstructionFailure)

    def test_decode_failure_propagates(self) -> None:
        first = self.session.build(_dark_disc())
        with self.assertRaises(ImageDecodeFailure):
            self.session.build(b"junk")
        self.assertIs(self.session.current, first)

    def test_stale_build_discarded(self) -> None:
        stale = self.session.request_build()
        latest = self.session.request_build()
        self.assertIsNone(self.session.build(_dark_disc(), ticket=stale))
        self.assertIsNone(self.session.current)
        result = self.session.build(_dark_disc(), ticket=latest)
        self.assertIs(self.session.current, result)
        self.assertEqual(len(self.session.context.events("stale_build_discarded")), 1)

    def test_each_build_gets_its_own_context(self) -> None:
        run_ids = set()
        for _ in range(5):
            self.session.build(_dark_disc())
            run_ids.add(self.session.last_context.run_id)
            self.assertEqual(len(self.session.last_context.stages), 5)
            self.assertEqual(len(self.session.last_context.events("mesh_built")), 1)
        self.assertEqual(len(run_ids), 5)
        self.assertNotIn(self.session.context.run_id, run_ids)
        self.assertEqual(self.session.context.stages, [])
        self.assertEqual(self.session.context.logs, [])
        self.assertIsNone(self.session.context.config)

    def test_failed_build_context_recorded(self) -> None:
        with mock.patch(
            "relief_engine.relief_workflow.build_plate_mesh",
            side_effect=ValueError("bad grid"),
        ):
            self.session.build(_dark_disc())
        self.assertEqual(len(self.session.last_context.events("geometry_error")), 1)
        failures = self.session.context.events("build_failed_keeping_previous")
        self.assertEqual(failures[0]["build_run_id"], self.session.last_context.run_id)

    def test_release(self) -> None:
        result = self.session.build(_dark_disc())
        self.assertIs(self.session.release(), result)
        self.assertIsNone(self.session.current)


if __name__ == "__main__":
    unittest.main()
