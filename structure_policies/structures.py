"""
Policies for structure set operations.

This module contains the policy dataclasses that parameterize identifier
allocation, stepped margins and resolution handling. All policies are
JSON-serializable and support the "requested vs effective" pattern.

UNIT CONVENTIONS
----------------
All geometric values are in MILLIMETERS, matching the treatment planning host.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Tuple

from .base import coerce_float, coerce_int, known_fields


@dataclass
class NamingPolicy:
    """
    Policy for generating unique structure identifiers.

    JSON Schema:
    {
        "max_length": int,
        "max_attempts": int,
        "separator": str
    }
    """
    max_length: int = 16  # Host limit on structure ids
    max_attempts: int = 1000
    separator: str = "_"

    def __post_init__(self):
        if self.max_length < 1:
            raise ValueError(f"max_length must be positive, got {self.max_length}")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NamingPolicy":
        d = known_fields(cls, d)
        if "max_length" in d:
            d["max_length"] = coerce_int(d["max_length"], 16)
        if "max_attempts" in d:
            d["max_attempts"] = coerce_int(d["max_attempts"], 1000)
        return cls(**d)


@dataclass
class MarginPolicy:
    """
    Policy for margin decomposition.

    The host's margin primitive only accepts distances up to ``max_step``
    per call. Larger margins are applied as repeated ``max_step`` calls plus
    a remainder.

    JSON Schema:
    {
        "max_step": float (mm),
        "epsilon": float (mm)
    }
    """
    max_step: float = 50.0  # mm
    epsilon: float = 1e-9  # mm

    def __post_init__(self):
        if self.max_step <= 0:
            raise ValueError(f"max_step must be positive, got {self.max_step}")
        if self.epsilon < 0:
            raise ValueError(f"epsilon must be non-negative, got {self.epsilon}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MarginPolicy":
        d = known_fields(cls, d)
        if "max_step" in d:
            d["max_step"] = coerce_float(d["max_step"], 50.0)
        if "epsilon" in d:
            d["epsilon"] = coerce_float(d["epsilon"], 1e-9)
        return cls(**d)


@dataclass
class ResolutionPolicy:
    """
    Policy for reconciling ordinary and high resolution structures.

    When a combination needs high resolution, each low resolution input is
    either converted in place (if allowed and the host permits it) or cloned
    into a temporary structure that is converted instead.

    JSON Schema:
    {
        "allow_in_place_conversion": bool,
        "protected_dicom_types": [str],
        "fallback_dicom_type": str,
        "temporary_dicom_type": str
    }

    Structures whose dicom type is in ``protected_dicom_types`` (or empty)
    are cloned with ``fallback_dicom_type`` because the host allows only one
    structure of those types per set.
    """
    allow_in_place_conversion: bool = True
    protected_dicom_types: Tuple[str, ...] = ("EXTERNAL", "SUPPORT")
    fallback_dicom_type: str = "CONTROL"
    temporary_dicom_type: str = "CONTROL"

    def __post_init__(self):
        if isinstance(self.protected_dicom_types, list):
            self.protected_dicom_types = tuple(self.protected_dicom_types)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["protected_dicom_types"] = list(self.protected_dicom_types)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ResolutionPolicy":
        return cls(**known_fields(cls, d))


@dataclass
class StructureOpsPolicy:
    """
    Bundle of all policies used by composite structure operations.

    JSON Schema:
    {
        "naming": NamingPolicy,
        "margin": MarginPolicy,
        "resolution": ResolutionPolicy
    }
    """
    naming: NamingPolicy = field(default_factory=NamingPolicy)
    margin: MarginPolicy = field(default_factory=MarginPolicy)
    resolution: ResolutionPolicy = field(default_factory=ResolutionPolicy)

    def __post_init__(self):
        if isinstance(self.naming, dict):
            self.naming = NamingPolicy.from_dict(self.naming)
        if isinstance(self.margin, dict):
            self.margin = MarginPolicy.from_dict(self.margin)
        if isinstance(self.resolution, dict):
            self.resolution = ResolutionPolicy.from_dict(self.resolution)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "naming": self.naming.to_dict(),
            "margin": self.margin.to_dict(),
            "resolution": self.resolution.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StructureOpsPolicy":
        return cls(
            naming=NamingPolicy.from_dict(d.get("naming") or {}),
            margin=MarginPolicy.from_dict(d.get("margin") or {}),
            resolution=ResolutionPolicy.from_dict(d.get("resolution") or {}),
        )


__all__ = [
    "NamingPolicy",
    "MarginPolicy",
    "ResolutionPolicy",
    "StructureOpsPolicy",
]
