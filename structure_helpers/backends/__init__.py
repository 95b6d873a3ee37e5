"""Host backends implementing the structure set interface."""

from .voxel import (
    HOST_MAX_MARGIN,
    HOST_MAX_ID_LENGTH,
    VoxelGrid,
    VoxelSegmentVolume,
    VoxelStructure,
    VoxelStructureSet,
    box_mask,
    sphere_mask,
)

__all__ = [
    "HOST_MAX_MARGIN",
    "HOST_MAX_ID_LENGTH",
    "VoxelGrid",
    "VoxelSegmentVolume",
    "VoxelStructure",
    "VoxelStructureSet",
    "box_mask",
    "sphere_mask",
]
