"""
Structure Policies - Centralized policy definitions for structure set operations.

This package provides all policy dataclasses used by the structure_helpers
library. All policies are JSON-serializable and support the "requested vs
effective" pattern for tracking runtime adjustments.

Usage:
    from structure_policies import StructureOpsPolicy, OperationReport
    from structure_policies.structures import MarginPolicy
"""

from .base import (
    OperationReport,
    coerce_float,
    coerce_int,
    known_fields,
)

from .structures import (
    NamingPolicy,
    MarginPolicy,
    ResolutionPolicy,
    StructureOpsPolicy,
)

__all__ = [
    # Base
    "OperationReport",
    "coerce_float",
    "coerce_int",
    "known_fields",
    # Structure policies
    "NamingPolicy",
    "MarginPolicy",
    "ResolutionPolicy",
    "StructureOpsPolicy",
]
