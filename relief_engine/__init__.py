"""Image-to-relief mesh engine: luminance heightfields and cut-out extrusions."""

from relief_engine.config import ReliefConfig, ReliefParams
from relief_engine.errors import (
    GeometryConstructionFailure,
    ImageDecodeFailure,
    ReliefError,
)
from relief_engine.geometry.mesh_models import ReliefMesh
from relief_engine.relief_workflow import (
    ReliefResult,
    ReliefSession,
    ReliefWorkflow,
    build_relief,
)

__all__ = [
    "GeometryConstructionFailure",
    "ImageDecodeFailure",
    "ReliefConfig",
    "ReliefError",
    "ReliefMesh",
    "ReliefParams",
    "ReliefResult",
    "ReliefSession",
    "ReliefWorkflow",
    "build_relief",
]
