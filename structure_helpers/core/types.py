"""
Value types shared by the margin helpers and host backends.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple

from .errors import InvalidMarginError


class MarginGeometry(Enum):
    """Direction of an axis-aligned margin: grow (outer) or crop (inner)."""
    OUTER = "outer"
    INNER = "inner"


@dataclass(frozen=True)
class AxisAlignedMargins:
    """
    Six non-negative margin distances in mm, tagged with a geometry.

    Component order is ``[-X, -Y, -Z, +X, +Y, +Z]``. Direction is carried by
    ``geometry``, never by the sign of a component.
    """
    geometry: MarginGeometry
    x1: float
    y1: float
    z1: float
    x2: float
    y2: float
    z2: float

    def __post_init__(self):
        for name, value in zip(("x1", "y1", "z1", "x2", "y2", "z2"), self.as_tuple()):
            if value < 0:
                raise InvalidMarginError(
                    f"Asymmetric margin component {name} must be non-negative, got {value}"
                )

    @classmethod
    def from_sequence(
        cls,
        values: Sequence[float],
        geometry: MarginGeometry = MarginGeometry.OUTER,
    ) -> "AxisAlignedMargins":
        if values is None or len(values) != 6:
            count = 0 if values is None else len(values)
            raise InvalidMarginError(
                f"Asymmetric margins need exactly 6 values, got {count}"
            )
        return cls(geometry, *(float(v) for v in values))

    def as_tuple(self) -> Tuple[float, float, float, float, float, float]:
        return (self.x1, self.y1, self.z1, self.x2, self.y2, self.z2)

    def max_component(self) -> float:
        return max(self.as_tuple())


__all__ = ["MarginGeometry", "AxisAlignedMargins"]
