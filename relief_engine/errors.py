"""Error types raised by the relief pipeline."""

from __future__ import annotations


DEGENERATE_INPUT_FALLBACK = "degenerate_input_fallback"


class ReliefError(Exception):
    """Base class for relief pipeline failures."""


class ImageDecodeFailure(ReliefError, ValueError):
    """The source image could not be decoded into a pixel buffer."""


class GeometryConstructionFailure(ReliefError, RuntimeError):
    """Mesh synthesis failed; any previously built mesh stays current."""
