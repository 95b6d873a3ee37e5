"""Core types, host interfaces and exceptions for structure operations."""

from .types import MarginGeometry, AxisAlignedMargins
from .host import SegmentVolume, Structure, StructureSet
from .errors import (
    StructureOpsError,
    InvalidArgumentError,
    InvalidMarginError,
    EmptyInputError,
    IdentifierTooLongError,
    IdentifierExhaustedError,
    ResolutionConversionFailedError,
)

__all__ = [
    "MarginGeometry",
    "AxisAlignedMargins",
    "SegmentVolume",
    "Structure",
    "StructureSet",
    "StructureOpsError",
    "InvalidArgumentError",
    "InvalidMarginError",
    "EmptyInputError",
    "IdentifierTooLongError",
    "IdentifierExhaustedError",
    "ResolutionConversionFailedError",
]
