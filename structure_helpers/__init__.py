"""
Structure Helpers - boolean and margin operations on radiotherapy structures.

This library composes union, intersection, subtraction, symmetric difference
and margins on structures in a treatment planning structure set. It works
around the host's 50 mm per-call margin limit, keeps resolutions consistent
across inputs, and never leaves temporary structures behind.

Main Entry Points:
    - generate_ring(): ring between two distances around structures
    - crop_extending_outside() / crop_extending_inside()
    - union_structures(), intersection_of_structures(), sub_structures(),
      non_overlap_structure()
    - stepped_margin() / stepped_asymmetric_margin(): margins of any size
    - unique_structure_id(): collision-free temporary ids

Example:
    >>> from structure_helpers import generate_ring
    >>> from structure_helpers.backends import VoxelGrid, VoxelStructureSet, sphere_mask
    >>>
    >>> ss = VoxelStructureSet(VoxelGrid(shape=(64, 64, 64)))
    >>> ptv = ss.add_structure_from_mask("PTV", sphere_mask(ss.grid, (32, 32, 32), 5.0), "PTV")
    >>> ring, report = generate_ring(ss, ptv, 10.0, 20.0)
"""

from .core import (
    MarginGeometry,
    AxisAlignedMargins,
    SegmentVolume,
    Structure,
    StructureSet,
    StructureOpsError,
    InvalidArgumentError,
    InvalidMarginError,
    EmptyInputError,
    IdentifierTooLongError,
    IdentifierExhaustedError,
    ResolutionConversionFailedError,
)
from .naming import unique_structure_id
from .margins import (
    stepped_margin,
    margin_structure,
    stepped_asymmetric_margin,
    outer_asymmetric_margin,
    inner_asymmetric_margin,
)
from .temporaries import TemporaryStructures, remove_structures
from .resolution import (
    high_resolution_needed,
    ensure_resolution,
    clone_high_resolution,
    convert_all_to_high_res,
)
from .aggregate import total_segment_volume
from .composite import (
    generate_ring,
    ring_structure,
    crop_extending_outside,
    crop_extending_inside,
    non_overlap_structure,
    intersection_of_structures,
    sub_structures,
    union_structures,
)

__all__ = [
    # Composite operations
    "generate_ring",
    "ring_structure",
    "crop_extending_outside",
    "crop_extending_inside",
    "non_overlap_structure",
    "intersection_of_structures",
    "sub_structures",
    "union_structures",
    # Building blocks
    "unique_structure_id",
    "stepped_margin",
    "margin_structure",
    "stepped_asymmetric_margin",
    "outer_asymmetric_margin",
    "inner_asymmetric_margin",
    "TemporaryStructures",
    "remove_structures",
    "high_resolution_needed",
    "ensure_resolution",
    "clone_high_resolution",
    "convert_all_to_high_res",
    "total_segment_volume",
    # Core types
    "MarginGeometry",
    "AxisAlignedMargins",
    "SegmentVolume",
    "Structure",
    "StructureSet",
    # Errors
    "StructureOpsError",
    "InvalidArgumentError",
    "InvalidMarginError",
    "EmptyInputError",
    "IdentifierTooLongError",
    "IdentifierExhaustedError",
    "ResolutionConversionFailedError",
]
