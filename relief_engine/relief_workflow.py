"""
Relief workflow: image -> brightness -> foreground -> heights -> mesh.

Every run is a full rebuild from the source image. Stages only read the
output of the stage before them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import threading
from typing import Any, Dict, Optional, Union

import numpy as np

from relief_engine.config import ReliefConfig, ReliefParams
from relief_engine.errors import DEGENERATE_INPUT_FALLBACK, GeometryConstructionFailure
from relief_engine.geometry.cutout_mesh import build_cutout_mesh
from relief_engine.geometry.heightfield import build_height_map
from relief_engine.geometry.mesh_models import ReliefMesh
from relief_engine.geometry.plate_mesh import build_plate_mesh
from relief_engine.geometry.segmentation import segment_foreground
from relief_engine.image_processing.image_loader import as_pixel_array
from relief_engine.image_processing.luminance import (
    extract_brightness,
    texture_from_image,
)
from relief_engine.utils.generation_context import GenerationContext
from relief_engine.utils.progress import progress_bar


ImageSource = Union[str, Path, bytes, np.ndarray]


@dataclass(frozen=True)
class ReliefMaps:
    """Per-cell maps of one run, each (R, R)."""

    brightness: np.ndarray
    mask: np.ndarray
    height: np.ndarray
    fallback_used: bool = False

    @property
    def resolution(self) -> int:
        return int(self.brightness.shape[0])

    @property
    def foreground_count(self) -> int:
        return int(np.count_nonzero(self.mask))


@dataclass(frozen=True)
class ReliefResult:
    """Output of one run, handed over to the caller."""

    mesh: ReliefMesh
    texture: np.ndarray
    params: ReliefParams
    resolution: int
    foreground_count: int
    fallback_used: bool = False
    maps: Optional[ReliefMaps] = None

    def summary(self) -> Dict[str, Any]:
        """Return a JSON-serializable description of this result."""
        return {
            "resolution": self.resolution,
            "foreground_count": self.foreground_count,
            "fallback_used": self.fallback_used,
            "mesh": self.mesh.summary(),
            "params": self.params.to_dict(),
        }


class ReliefWorkflow:
    """Single synchronous relief build for one parameter set."""

    def __init__(
        self,
        config: Optional[ReliefConfig] = None,
        context: Optional[GenerationContext] = None,
    ) -> None:
        self.config = config or ReliefConfig()
        self.config.validate()
        self.context = context or GenerationContext()
        self.context.config = self.config

    @property
    def params(self) -> ReliefParams:
        return self.config.params

    def compute_maps(self, pixels: np.ndarray) -> ReliefMaps:
        """Run luminance, segmentation and height mapping on decoded pixels."""
        params = self.params

        with self.context.time_block("luminance"):
            brightness = extract_brightness(
                pixels, params.grid_size, mirrored=params.mirrored
            )

        fallback_used = False
        with self.context.time_block("segment"):
            if params.cutout:
                segmentation = segment_foreground(
                    brightness, params.cutout_threshold, self.config.segmentation
                )
                mask = segmentation.mask
                fallback_used = segmentation.fallback_used
                if segmentation.removed_holes:
                    self.context.log(
                        "info",
                        "holes_removed",
                        sizes=segmentation.removed_holes,
                    )
                pieces = segmentation.component_count
                if pieces > 1:
                    self.context.log("warning", "disconnected_cutout", pieces=pieces)
            else:
                mask = np.ones(brightness.shape, dtype=bool)

        if fallback_used:
            self.context.log(
                "info",
                DEGENERATE_INPUT_FALLBACK,
                resolution=brightness.shape[0],
                threshold=params.cutout_threshold,
            )

        with self.context.time_block("height"):
            height = build_height_map(
                brightness,
                mask,
                depth=params.depth,
                base_height=params.base_height,
                inverted=params.inverted,
            )

        maps = ReliefMaps(
            brightness=brightness, mask=mask, height=height, fallback_used=fallback_used
        )
        self.context.log(
            "info",
            "foreground",
            cutout=params.cutout,
            fg_pixels=maps.foreground_count,
            total=brightness.size,
            base_height=params.base_height,
            depth=params.depth,
        )
        return maps

    def synthesize(self, maps: ReliefMaps) -> ReliefMesh:
        """
        Build the mesh for the configured mode.

        Raises:
            GeometryConstructionFailure: if synthesis fails for any reason
        """
        size = self.config.geometry.size
        try:
            with self.context.time_block("synthesize"):
                if self.params.cutout:
                    mesh = build_cutout_mesh(
                        maps.height,
                        maps.mask,
                        size=size,
                        show_progress=self.config.show_progress,
                    )
                else:
                    mesh = build_plate_mesh(maps.height, size=size)
        except GeometryConstructionFailure as exc:
            self.context.log("error", "geometry_error", error=exc)
            raise
        except Exception as exc:
            self.context.log("error", "geometry_error", error=repr(exc))
            raise GeometryConstructionFailure(f"Mesh synthesis failed: {exc}") from exc

        self.context.log(
            "info",
            "mesh_built",
            mode="cutout" if self.params.cutout else "plate",
            vertices=mesh.vertex_count,
            indices=mesh.indices.size,
        )
        return mesh

    def run(self, image: ImageSource, keep_maps: bool = False) -> ReliefResult:
        """
        Run the complete pipeline.

        Args:
            image: Decoded pixel array, encoded bytes, data URL or file path
            keep_maps: Attach the intermediate maps to the result

        Returns:
            ReliefResult owning a fresh mesh

        Raises:
            ImageDecodeFailure: before any stage runs when the image is unusable
            GeometryConstructionFailure: when synthesis fails
        """
        bar = progress_bar(3, desc="Relief", enabled=self.config.show_progress)
        try:
            with self.context.time_block("decode"):
                pixels = as_pixel_array(image)
            bar.update()

            maps = self.compute_maps(pixels)
            bar.update()

            mesh = self.synthesize(maps)
            bar.update()
        finally:
            bar.close()

        return ReliefResult(
            mesh=mesh,
            texture=texture_from_image(pixels, mirrored=self.params.mirrored),
            params=self.params,
            resolution=maps.resolution,
            foreground_count=maps.foreground_count,
            fallback_used=maps.fallback_used,
            maps=maps if keep_maps else None,
        )


def build_relief(
    image: ImageSource,
    params: Optional[ReliefParams] = None,
    context: Optional[GenerationContext] = None,
    keep_maps: bool = False,
) -> ReliefResult:
    """Convenience wrapper running one workflow with default settings."""
    config = ReliefConfig(params=params or ReliefParams())
    return ReliefWorkflow(config, context=context).run(image, keep_maps=keep_maps)


class ReliefSession:
    """
    Holds the single current relief result.

    A build commits only if no newer build was requested after it started,
    so the latest parameters always win. Failed synthesis leaves the current
    result in place. Each build runs with its own GenerationContext; the
    session context only records session-level events.
    """

    def __init__(
        self,
        config: Optional[ReliefConfig] = None,
        context: Optional[GenerationContext] = None,
    ) -> None:
        self.config = config or ReliefConfig()
        self.context = context or GenerationContext()
        self.last_error: Optional[GeometryConstructionFailure] = None
        self.last_context: Optional[GenerationContext] = None
        self._current: Optional[ReliefResult] = None
        self._ticket = 0
        self._lock = threading.Lock()

    @property
    def current(self) -> Optional[ReliefResult]:
        return self._current

    def request_build(self) -> int:
        """Reserve a ticket for a new build; older tickets become stale."""
        with self._lock:
            self._ticket += 1
            return self._ticket

    def is_latest(self, ticket: int) -> bool:
        return ticket == self._ticket

    def _run_context(self, image: ImageSource) -> GenerationContext:
        source = str(image) if isinstance(image, (str, Path)) else None
        if source is not None and source.startswith("data:"):
            source = "data-url"
        return GenerationContext(source=source, quiet=self.context.quiet)

    def build(
        self,
        image: ImageSource,
        params: Optional[ReliefParams] = None,
        ticket: Optional[int] = None,
    ) -> Optional[ReliefResult]:
        """
        Rebuild from scratch and swap the result in.

        Args:
            image: Image source accepted by ReliefWorkflow.run
            params: Parameters for this build; defaults to the session config
            ticket: Ticket from request_build(); a new one is taken if omitted

        Returns:
            The committed result, or None when the build failed or was
            superseded by a newer request

        Raises:
            ImageDecodeFailure: the image could not be decoded
        """
        if ticket is None:
            ticket = self.request_build()
        config = self.config if params is None else replace(self.config, params=params)
        run_context = self._run_context(image)

        try:
            result = ReliefWorkflow(config, context=run_context).run(image)
        except GeometryConstructionFailure as exc:
            with self._lock:
                self.last_error = exc
                self.last_context = run_context
            self.context.log(
                "warning",
                "build_failed_keeping_previous",
                ticket=ticket,
                build_run_id=run_context.run_id,
            )
            return None

        with self._lock:
            stale = not self.is_latest(ticket)
            if not stale:
                self._current = result
                self.last_context = run_context
                self.last_error = None
        if stale:
            self.context.log(
                "info",
                "stale_build_discarded",
                ticket=ticket,
                build_run_id=run_context.run_id,
            )
            return None
        return result

    def release(self) -> Optional[ReliefResult]:
        """Drop the current result and return it to the caller."""
        with self._lock:
            previous, self._current = self._current, None
        return previous
