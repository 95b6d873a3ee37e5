"""
Shared fixtures for structure helper tests.

RecordingVolume is a SegmentVolume double that logs every primitive call
and labels its results, so tests can assert exactly which host calls an
operation issued. RecordingStructure and RecordingStructureSet wrap it in
the host interface. The voxel backend fixtures give real geometry.
"""

import pytest

from structure_helpers.core.host import SegmentVolume, Structure, StructureSet
from structure_helpers.core.types import AxisAlignedMargins


class RecordingVolume(SegmentVolume):
    """Volume double that records primitive calls in a shared log."""

    def __init__(self, label="V", log=None, limit=50.0):
        self.label = label
        self.log = log if log is not None else []
        self.limit = limit

    def _child(self, label):
        return RecordingVolume(label, self.log, self.limit)

    def margin(self, distance):
        if abs(distance) > self.limit + 1e-9:
            raise ValueError(f"margin {distance} over limit")
        self.log.append(("margin", distance))
        return self._child(f"m({self.label},{distance:g})")

    def asymmetric_margin(self, margins: AxisAlignedMargins):
        if margins.max_component() > self.limit + 1e-9:
            raise ValueError(f"asymmetric margin {margins.as_tuple()} over limit")
        self.log.append(("asymmetric_margin", margins.geometry, margins.as_tuple()))
        return self._child(f"am({self.label})")

    def or_(self, other):
        self.log.append(("or", self.label, other.label))
        return self._child(f"({self.label}|{other.label})")

    def and_(self, other):
        self.log.append(("and", self.label, other.label))
        return self._child(f"({self.label}&{other.label})")

    def sub(self, other):
        self.log.append(("sub", self.label, other.label))
        return self._child(f"({self.label}-{other.label})")

    def xor(self, other):
        self.log.append(("xor", self.label, other.label))
        return self._child(f"({self.label}^{other.label})")

    def not_(self):
        self.log.append(("not", self.label))
        return self._child(f"~{self.label}")


@pytest.fixture
def recording_volume():
    """A fresh RecordingVolume labelled 'V' with an empty call log."""
    return RecordingVolume("V")


@pytest.fixture
def grid():
    """64 mm cube at 1 mm spacing."""
    from structure_helpers.backends import VoxelGrid

    return VoxelGrid(shape=(64, 64, 64), spacing=(1.0, 1.0, 1.0))


@pytest.fixture
def small_grid():
    """16 mm cube at 1 mm spacing, for high resolution tests."""
    from structure_helpers.backends import VoxelGrid

    return VoxelGrid(shape=(16, 16, 16), spacing=(1.0, 1.0, 1.0))


@pytest.fixture
def structure_set(grid):
    from structure_helpers.backends import VoxelStructureSet

    return VoxelStructureSet(grid)


@pytest.fixture
def small_structure_set(small_grid):
    from structure_helpers.backends import VoxelStructureSet

    return VoxelStructureSet(small_grid)


@pytest.fixture
def sphere_structure(structure_set):
    """PTV sphere of radius 5 mm at the grid centre."""
    from structure_helpers.backends import sphere_mask

    mask = sphere_mask(structure_set.grid, (32, 32, 32), 5.0)
    return structure_set.add_structure_from_mask("PTV", mask, "PTV")


class RecordingStructure(Structure):
    """Structure double holding a RecordingVolume."""

    def __init__(self, structure_id, dicom_type="CONTROL", volume=None, high_resolution=False):
        self._id = structure_id
        self._dicom_type = dicom_type
        self._volume = volume if volume is not None else RecordingVolume(structure_id)
        self._high_resolution = high_resolution

    @property
    def id(self):
        return self._id

    @property
    def dicom_type(self):
        return self._dicom_type

    @property
    def segment_volume(self):
        return self._volume

    @segment_volume.setter
    def segment_volume(self, volume):
        self._volume = volume

    @property
    def is_high_resolution(self):
        return self._high_resolution

    def can_convert_to_high_resolution(self):
        return not self._high_resolution

    def convert_to_high_resolution(self):
        self._high_resolution = True


class RecordingStructureSet(StructureSet):
    """Structure set double whose structures share one call log."""

    def __init__(self, log=None, fixed_resolution=()):
        self.log = log if log is not None else []
        self._structures = []
        self.added = []
        self.fixed_resolution = set(fixed_resolution)
        self.resolution_at_removal = {}

    @property
    def structures(self):
        return tuple(self._structures)

    def add_structure(self, dicom_type, structure_id):
        if self.has_id(structure_id):
            raise ValueError(f"Structure id '{structure_id}' already exists")
        structure = RecordingStructure(
            structure_id, dicom_type, RecordingVolume(structure_id, self.log)
        )
        if structure_id in self.fixed_resolution:
            structure.can_convert_to_high_resolution = lambda: False
        self._structures.append(structure)
        self.added.append((dicom_type, structure_id))
        return structure

    def remove_structure(self, structure):
        self.resolution_at_removal[structure.id] = structure.is_high_resolution
        self._structures = [s for s in self._structures if s is not structure]

    def add_labelled(self, structure_id, high_resolution=False):
        """Add a structure whose volume is labelled with its id."""
        structure = self.add_structure("ORGAN", structure_id)
        structure._high_resolution = high_resolution
        return structure


@pytest.fixture
def recording_structure_set():
    """An empty RecordingStructureSet."""
    return RecordingStructureSet()
