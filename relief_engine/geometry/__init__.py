"""Segmentation, height mapping and mesh synthesis (no rendering imports)."""

from .cutout_mesh import build_cutout_mesh
from .heightfield import build_height_map
from .mesh_merge import compute_vertex_normals, merge_parts
from .mesh_models import MeshPart, ReliefMesh
from .plate_mesh import build_plate_mesh
from .segmentation import SegmentationResult, segment_foreground

__all__ = [
    "build_cutout_mesh",
    "build_height_map",
    "compute_vertex_normals",
    "merge_parts",
    "MeshPart",
    "ReliefMesh",
    "build_plate_mesh",
    "SegmentationResult",
    "segment_foreground",
]
