"""
Voxel reference implementation of the planning host interface.

Volumes are boolean masks on a regular grid shared by every structure in a
structure set. High resolution refines the grid by a factor of two along
each axis; boolean operations refuse to mix grids. Margins are exact
Euclidean distance thresholds and, like the real host, are limited to
``max_margin`` mm per call.

This backend exists so the structure helpers can run without a treatment
planning system. It is not a clinical contouring engine.

UNIT CONVENTIONS
----------------
All geometric values are in MILLIMETERS.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING
import logging

import numpy as np
from scipy import ndimage

from ..core.host import SegmentVolume, Structure, StructureSet
from ..core.types import AxisAlignedMargins, MarginGeometry

if TYPE_CHECKING:
    import trimesh

logger = logging.getLogger(__name__)

HOST_MAX_MARGIN = 50.0  # mm per margin call
HOST_MAX_ID_LENGTH = 16


@dataclass(frozen=True)
class VoxelGrid:
    """
    Regular image grid.

    Voxel ``(i, j, k)`` is centred at ``origin + (i, j, k) * spacing``.
    """
    shape: Tuple[int, int, int]
    spacing: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    high_resolution: bool = False

    def refined(self) -> "VoxelGrid":
        """Grid with half the spacing covering the same extent."""
        return VoxelGrid(
            shape=tuple(2 * n for n in self.shape),
            spacing=tuple(s / 2.0 for s in self.spacing),
            origin=tuple(o - s / 4.0 for o, s in zip(self.origin, self.spacing)),
            high_resolution=True,
        )

    @property
    def voxel_volume_mm3(self) -> float:
        return float(np.prod(self.spacing))

    def centers(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Voxel centre coordinates as three broadcastable arrays."""
        axes = [
            o + np.arange(n) * s
            for n, s, o in zip(self.shape, self.spacing, self.origin)
        ]
        return np.meshgrid(*axes, indexing="ij", sparse=True)


def box_mask(
    grid: VoxelGrid,
    lower: Sequence[float],
    upper: Sequence[float],
) -> np.ndarray:
    """Mask of voxels whose centres lie in the axis-aligned box [lower, upper] (mm)."""
    x, y, z = grid.centers()
    return (
        (x >= lower[0]) & (x <= upper[0])
        & (y >= lower[1]) & (y <= upper[1])
        & (z >= lower[2]) & (z <= upper[2])
    )


def sphere_mask(
    grid: VoxelGrid,
    center: Sequence[float],
    radius: float,
) -> np.ndarray:
    """Mask of voxels whose centres lie within ``radius`` mm of ``center``."""
    x, y, z = grid.centers()
    d2 = (x - center[0]) ** 2 + (y - center[1]) ** 2 + (z - center[2]) ** 2
    return d2 <= radius ** 2


def _shift(mask: np.ndarray, axis: int, offset: int) -> np.ndarray:
    """Shift ``mask`` by ``offset`` voxels along ``axis``, filling with False."""
    out = np.zeros_like(mask)
    n = mask.shape[axis]
    if abs(offset) >= n:
        return out
    src = [slice(None)] * mask.ndim
    dst = [slice(None)] * mask.ndim
    if offset > 0:
        src[axis] = slice(0, n - offset)
        dst[axis] = slice(offset, n)
    else:
        src[axis] = slice(-offset, n)
        dst[axis] = slice(0, n + offset)
    out[tuple(dst)] = mask[tuple(src)]
    return out


def _directional_dilate(mask: np.ndarray, counts: Sequence[int]) -> np.ndarray:
    """
    Grow ``mask`` by ``counts = [-X, -Y, -Z, +X, +Y, +Z]`` voxels.

    Growing toward -X by n sets voxel x when any of x+1..x+n is set.
    """
    result = mask
    for axis in range(3):
        grown = result.copy()
        for k in range(1, counts[axis] + 1):
            grown |= _shift(result, axis, -k)
        for k in range(1, counts[axis + 3] + 1):
            grown |= _shift(result, axis, k)
        result = grown
    return result


class VoxelSegmentVolume(SegmentVolume):
    """
    Boolean mask on a VoxelGrid.

    Parameters
    ----------
    mask : np.ndarray
        Boolean array with shape ``grid.shape``. Copied.
    grid : VoxelGrid
        Grid the mask lives on.
    max_margin : float
        Per-call margin limit in mm.
    """

    def __init__(self, mask: np.ndarray, grid: VoxelGrid, max_margin: float = HOST_MAX_MARGIN):
        mask = np.asarray(mask, dtype=bool)
        if mask.shape != tuple(grid.shape):
            raise ValueError(f"Mask shape {mask.shape} does not match grid shape {grid.shape}")
        self._mask = mask.copy()
        self._mask.setflags(write=False)
        self.grid = grid
        self.max_margin = max_margin

    @classmethod
    def empty(cls, grid: VoxelGrid, max_margin: float = HOST_MAX_MARGIN) -> "VoxelSegmentVolume":
        return cls(np.zeros(grid.shape, dtype=bool), grid, max_margin)

    @property
    def mask(self) -> np.ndarray:
        """Read-only view of the voxel mask."""
        return self._mask

    @property
    def is_empty(self) -> bool:
        return not self._mask.any()

    @property
    def voxel_count(self) -> int:
        return int(self._mask.sum())

    @property
    def volume_cc(self) -> float:
        return self.voxel_count * self.grid.voxel_volume_mm3 / 1000.0

    def _new(self, mask: np.ndarray) -> "VoxelSegmentVolume":
        return VoxelSegmentVolume(mask, self.grid, self.max_margin)

    def _check_limit(self, distance: float) -> None:
        if abs(distance) > self.max_margin + 1e-9:
            raise ValueError(
                f"Margin {distance} mm exceeds the host limit of {self.max_margin} mm per call"
            )

    def margin(self, distance: float) -> "VoxelSegmentVolume":
        self._check_limit(distance)
        if distance == 0 or self.is_empty:
            return self._new(self._mask)

        # One False layer around the grid so everything beyond it counts as outside
        padded = np.pad(self._mask, 1, mode="constant", constant_values=False)
        inner = (slice(1, -1),) * 3
        if distance > 0:
            dist = ndimage.distance_transform_edt(~padded, sampling=self.grid.spacing)
            return self._new((dist <= distance)[inner])
        dist = ndimage.distance_transform_edt(padded, sampling=self.grid.spacing)
        return self._new((dist > -distance)[inner])

    def asymmetric_margin(self, margins: AxisAlignedMargins) -> "VoxelSegmentVolume":
        distances = margins.as_tuple()
        for d in distances:
            self._check_limit(d)

        spacing = self.grid.spacing
        counts = [int(round(d / spacing[k % 3])) for k, d in enumerate(distances)]

        if margins.geometry == MarginGeometry.OUTER:
            return self._new(_directional_dilate(self._mask, counts))

        # Cropping from -X equals growing the complement toward +X
        mirrored = counts[3:] + counts[:3]
        return self._new(~_directional_dilate(~self._mask, mirrored))

    def _check_compatible(self, other: SegmentVolume) -> "VoxelSegmentVolume":
        if not isinstance(other, VoxelSegmentVolume):
            raise TypeError(f"Cannot combine VoxelSegmentVolume with {type(other).__name__}")
        if other.grid != self.grid:
            raise ValueError(
                "Cannot combine volumes on different grids "
                f"(high_resolution={self.grid.high_resolution} vs {other.grid.high_resolution})"
            )
        return other

    def or_(self, other: SegmentVolume) -> "VoxelSegmentVolume":
        return self._new(self._mask | self._check_compatible(other)._mask)

    def and_(self, other: SegmentVolume) -> "VoxelSegmentVolume":
        return self._new(self._mask & self._check_compatible(other)._mask)

    def sub(self, other: SegmentVolume) -> "VoxelSegmentVolume":
        return self._new(self._mask & ~self._check_compatible(other)._mask)

    def xor(self, other: SegmentVolume) -> "VoxelSegmentVolume":
        return self._new(self._mask ^ self._check_compatible(other)._mask)

    def not_(self) -> "VoxelSegmentVolume":
        return self._new(~self._mask)

    def refined(self) -> "VoxelSegmentVolume":
        """The same region on the high resolution grid."""
        if self.grid.high_resolution:
            return self._new(self._mask)
        mask = self._mask
        for axis in range(3):
            mask = np.repeat(mask, 2, axis=axis)
        return VoxelSegmentVolume(mask, self.grid.refined(), self.max_margin)

    def to_mesh(self) -> "trimesh.Trimesh":
        """Surface mesh of the region in mm (marching cubes)."""
        import trimesh
        from trimesh.voxel import ops as voxel_ops

        if self.is_empty:
            return trimesh.Trimesh()
        mesh = voxel_ops.matrix_to_marching_cubes(
            self._mask, pitch=np.asarray(self.grid.spacing)
        )
        mesh.apply_translation(np.asarray(self.grid.origin))
        return mesh

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VoxelSegmentVolume):
            return NotImplemented
        return self.grid == other.grid and np.array_equal(self._mask, other._mask)

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"VoxelSegmentVolume(voxels={self.voxel_count}, "
            f"high_resolution={self.grid.high_resolution})"
        )


class VoxelStructure(Structure):
    """
    Structure backed by a VoxelSegmentVolume.

    Its resolution is that of its current volume. Approved structures are
    read-only: they refuse conversion and volume assignment.
    """

    def __init__(
        self,
        structure_id: str,
        dicom_type: str,
        volume: VoxelSegmentVolume,
        is_approved: bool = False,
    ):
        self._id = structure_id
        self._dicom_type = dicom_type
        self._volume = volume
        self.is_approved = is_approved

    @property
    def id(self) -> str:
        return self._id

    @property
    def dicom_type(self) -> str:
        return self._dicom_type

    @property
    def segment_volume(self) -> VoxelSegmentVolume:
        return self._volume

    @segment_volume.setter
    def segment_volume(self, volume: SegmentVolume) -> None:
        if self.is_approved:
            raise RuntimeError(f"Structure '{self._id}' is approved and cannot be modified")
        if not isinstance(volume, VoxelSegmentVolume):
            raise TypeError(f"Expected VoxelSegmentVolume, got {type(volume).__name__}")
        self._volume = volume

    @property
    def is_high_resolution(self) -> bool:
        return self._volume.grid.high_resolution

    @property
    def volume_cc(self) -> float:
        return self._volume.volume_cc

    @property
    def is_empty(self) -> bool:
        return self._volume.is_empty

    def can_convert_to_high_resolution(self) -> bool:
        return not self.is_approved and not self.is_high_resolution

    def convert_to_high_resolution(self) -> None:
        if not self.can_convert_to_high_resolution():
            raise RuntimeError(f"Structure '{self._id}' cannot be converted to high resolution")
        self._volume = self._volume.refined()
        logger.debug(f"Structure '{self._id}' converted to high resolution")

    def __repr__(self) -> str:
        return (
            f"VoxelStructure(id={self._id!r}, dicom_type={self._dicom_type!r}, "
            f"high_resolution={self.is_high_resolution})"
        )


class VoxelStructureSet(StructureSet):
    """
    In-memory structure set on a shared VoxelGrid.

    Enforces the host rules: ids are unique and at most
    ``HOST_MAX_ID_LENGTH`` characters long.
    """

    structure_class = VoxelStructure

    def __init__(self, grid: VoxelGrid, max_margin: float = HOST_MAX_MARGIN):
        self.grid = grid
        self.max_margin = max_margin
        self._structures: List[VoxelStructure] = []

    @property
    def structures(self) -> Tuple[VoxelStructure, ...]:
        return tuple(self._structures)

    def add_structure(self, dicom_type: str, structure_id: str) -> VoxelStructure:
        if not structure_id:
            raise ValueError("Structure id cannot be empty")
        if len(structure_id) > HOST_MAX_ID_LENGTH:
            raise ValueError(
                f"Structure id '{structure_id}' exceeds {HOST_MAX_ID_LENGTH} characters"
            )
        if self.has_id(structure_id):
            raise ValueError(f"Structure id '{structure_id}' already exists")
        structure = self.structure_class(
            structure_id, dicom_type, VoxelSegmentVolume.empty(self.grid, self.max_margin)
        )
        self._structures.append(structure)
        return structure

    def remove_structure(self, structure: Structure) -> None:
        for i, s in enumerate(self._structures):
            if s is structure:
                del self._structures[i]
                return
        raise ValueError(f"Structure '{structure.id}' is not in this structure set")

    def volume_from_mask(self, mask: np.ndarray) -> VoxelSegmentVolume:
        return VoxelSegmentVolume(mask, self.grid, self.max_margin)

    def add_structure_from_mask(
        self,
        structure_id: str,
        mask: np.ndarray,
        dicom_type: str = "ORGAN",
        high_resolution: bool = False,
        is_approved: bool = False,
    ) -> VoxelStructure:
        """Add a structure and fill it from a mask on the set's base grid."""
        structure = self.add_structure(dicom_type, structure_id)
        structure.segment_volume = self.volume_from_mask(mask)
        if high_resolution:
            structure.convert_to_high_resolution()
        structure.is_approved = is_approved
        return structure

    def get(self, structure_id: str) -> Optional[VoxelStructure]:
        for s in self._structures:
            if s.id == structure_id:
                return s
        return None


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
