"""
Base utilities for structure operation policies.

This module provides shared helpers and the OperationReport dataclass
returned by every composite structure operation.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List
import json


def coerce_float(value: Any, default: float = 0.0) -> float:
    """
    Coerce a value to float, with fallback to default.

    Parameters
    ----------
    value : Any
        Value to coerce
    default : float
        Default value if coercion fails

    Returns
    -------
    float
        Coerced float value
    """
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def coerce_int(value: Any, default: int = 0) -> int:
    """Coerce a value to int, with fallback to default."""
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def known_fields(cls: type, d: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys that are not dataclass fields of ``cls``."""
    return {k: v for k, v in d.items() if k in cls.__dataclass_fields__}


@dataclass
class OperationReport:
    """
    Standard report structure for all structure operations.

    Every composite operation returns its resulting volume together with a
    report carrying the requested vs effective policy, warnings and
    operation-specific metadata.

    Warnings are the non-fatal channel (e.g. a structure that could not be
    converted in place and was cloned instead, or a temporary structure that
    could not be removed during cleanup). Fatal problems are raised, never
    reported here.
    """
    operation: str = "unknown"
    success: bool = True
    requested_policy: Dict[str, Any] = field(default_factory=dict)
    effective_policy: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)


__all__ = [
    "OperationReport",
    "coerce_float",
    "coerce_int",
    "known_fields",
]
