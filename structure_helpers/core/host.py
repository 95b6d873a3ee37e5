"""
Abstract interface to the treatment planning host.

The geometry engine and the structure registry are external collaborators.
This module defines the surface the structure helpers consume; a host
adapter (or the reference voxel backend) implements it.

Precondition: a structure set is accessed by one writer at a time. Nothing
here locks; callers serialise operations on the same structure set.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from .types import AxisAlignedMargins


class SegmentVolume(ABC):
    """
    Opaque volumetric region with value semantics.

    Every operation returns a new volume and leaves ``self`` untouched.
    """

    @abstractmethod
    def margin(self, distance: float) -> "SegmentVolume":
        """Isotropic margin in mm. Valid only up to the host's per-call limit."""
        pass

    @abstractmethod
    def asymmetric_margin(self, margins: AxisAlignedMargins) -> "SegmentVolume":
        """Axis-aligned margin. Each component must be within the per-call limit."""
        pass

    @abstractmethod
    def or_(self, other: "SegmentVolume") -> "SegmentVolume":
        pass

    @abstractmethod
    def and_(self, other: "SegmentVolume") -> "SegmentVolume":
        pass

    @abstractmethod
    def sub(self, other: "SegmentVolume") -> "SegmentVolume":
        pass

    @abstractmethod
    def xor(self, other: "SegmentVolume") -> "SegmentVolume":
        pass

    @abstractmethod
    def not_(self) -> "SegmentVolume":
        pass


class Structure(ABC):
    """A named region in a structure set owning exactly one segment volume."""

    @property
    @abstractmethod
    def id(self) -> str:
        pass

    @property
    @abstractmethod
    def dicom_type(self) -> str:
        pass

    @property
    @abstractmethod
    def segment_volume(self) -> SegmentVolume:
        pass

    @segment_volume.setter
    @abstractmethod
    def segment_volume(self, volume: SegmentVolume) -> None:
        pass

    @property
    @abstractmethod
    def is_high_resolution(self) -> bool:
        pass

    @abstractmethod
    def can_convert_to_high_resolution(self) -> bool:
        """Whether the host allows in-place conversion (e.g. not approved)."""
        pass

    @abstractmethod
    def convert_to_high_resolution(self) -> None:
        """Irreversible, in-place conversion. Raises if not convertible."""
        pass


class StructureSet(ABC):
    """Registry of structures for one planning case."""

    @property
    @abstractmethod
    def structures(self) -> Sequence[Structure]:
        pass

    @abstractmethod
    def add_structure(self, dicom_type: str, structure_id: str) -> Structure:
        pass

    @abstractmethod
    def remove_structure(self, structure: Structure) -> None:
        pass

    def contains(self, structure: Structure) -> bool:
        return any(s is structure for s in self.structures)

    def structure_ids(self) -> List[str]:
        return [s.id for s in self.structures]

    def has_id(self, structure_id: str) -> bool:
        return any(s.id == structure_id for s in self.structures)


__all__ = ["SegmentVolume", "Structure", "StructureSet"]
