"""Configuration models for the image relief engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


MAX_RESOLUTION = 256
MIN_RESOLUTION = 2
PLATE_SIZE = 60.0


def clamp_resolution(resolution: int) -> int:
    """Clamp a requested sampling resolution to the supported grid sizes."""
    return max(MIN_RESOLUTION, min(int(resolution), MAX_RESOLUTION))


@dataclass
class ReliefParams:
    """User-facing relief parameters for one pipeline run."""

    depth: float = 5.0
    base_height: float = 3.0
    resolution: int = 128
    inverted: bool = False
    mirrored: bool = False
    cutout: bool = False
    cutout_threshold: float = 0.92

    @property
    def grid_size(self) -> int:
        """Side length R of the sample grid actually used."""
        return clamp_resolution(self.resolution)

    def validate(self) -> None:
        """Validate configuration values."""
        if self.depth < 0:
            raise ValueError("depth must be >= 0")
        if self.base_height < 0:
            raise ValueError("base_height must be >= 0")
        if self.resolution < MIN_RESOLUTION:
            raise ValueError(f"resolution must be >= {MIN_RESOLUTION}")
        if not (0.0 < self.cutout_threshold < 1.0):
            raise ValueError("cutout_threshold must be in (0, 1)")

    def to_dict(self) -> Dict[str, object]:
        """Return a JSON-serializable dict."""
        return {
            "depth": float(self.depth),
            "base_height": float(self.base_height),
            "resolution": int(self.resolution),
            "inverted": bool(self.inverted),
            "mirrored": bool(self.mirrored),
            "cutout": bool(self.cutout),
            "cutout_threshold": float(self.cutout_threshold),
        }


@dataclass
class SegmentationConfig:
    """Tuned constants for cutout-mode foreground segmentation."""

    blur_radius: int = 3
    dilation_passes: int = 2
    hole_max_ratio: float = 0.08
    hole_min_size: int = 5

    def validate(self) -> None:
        """Validate configuration values."""
        if self.blur_radius < 0:
            raise ValueError("blur_radius must be >= 0")
        if self.dilation_passes < 0:
            raise ValueError("dilation_passes must be >= 0")
        if not (0.0 <= self.hole_max_ratio <= 1.0):
            raise ValueError("hole_max_ratio must be in [0, 1]")
        if self.hole_min_size < 1:
            raise ValueError("hole_min_size must be >= 1")

    def to_dict(self) -> Dict[str, object]:
        """Return a JSON-serializable dict."""
        return {
            "blur_radius": self.blur_radius,
            "dilation_passes": self.dilation_passes,
            "hole_max_ratio": self.hole_max_ratio,
            "hole_min_size": self.hole_min_size,
        }


@dataclass
class PlateGeometryConfig:
    """Physical layout of the generated relief."""

    size: float = PLATE_SIZE

    def validate(self) -> None:
        """Validate configuration values."""
        if self.size <= 0:
            raise ValueError("size must be > 0")

    def to_dict(self) -> Dict[str, object]:
        """Return a JSON-serializable dict."""
        return {"size": self.size}


@dataclass
class ReliefConfig:
    """Root configuration for the relief workflow."""

    params: ReliefParams = field(default_factory=ReliefParams)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    geometry: PlateGeometryConfig = field(default_factory=PlateGeometryConfig)
    show_progress: bool = False

    def validate(self) -> None:
        """Validate configuration values across groups."""
        self.params.validate()
        self.segmentation.validate()
        self.geometry.validate()

    def to_dict(self) -> Dict[str, object]:
        """Return a JSON-serializable dict matching the canonical schema."""
        return {
            "params": self.params.to_dict(),
            "segmentation": self.segmentation.to_dict(),
            "geometry": self.geometry.to_dict(),
            "show_progress": self.show_progress,
        }
