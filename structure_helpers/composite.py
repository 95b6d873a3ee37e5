"""
Composite structure operations.

Rings, crops and boolean combinations of structure collections. Every
operation:

- accepts a single structure or a collection for each side,
- brings all inputs to a common resolution (high resolution is contagious),
- removes every temporary structure it created before returning or raising,
- returns ``(volume, report)`` where ``volume`` is None for "no result".

UNIT CONVENTIONS
----------------
All distances are in MILLIMETERS.
"""

from typing import Any, List, Optional, Sequence, Tuple, Union
import logging

from structure_policies import OperationReport, StructureOpsPolicy

from .aggregate import total_segment_volume
from .core.errors import InvalidArgumentError, InvalidMarginError
from .core.host import SegmentVolume, Structure, StructureSet
from .margins import stepped_margin
from .resolution import convert_temporary, high_resolution_needed
from .temporaries import TemporaryStructures

logger = logging.getLogger(__name__)

StructureInput = Union[Structure, Sequence[Structure], None]
OperationResult = Tuple[Optional[SegmentVolume], OperationReport]


def _as_list(structures: StructureInput) -> List[Structure]:
    if structures is None:
        return []
    if isinstance(structures, Structure):
        return [structures]
    return [s for s in structures if s is not None]


def _require_structure_set(structure_set: StructureSet) -> None:
    if structure_set is None:
        raise InvalidArgumentError("Structure set cannot be None")


def _start_report(operation: str, policy: StructureOpsPolicy, **params: Any) -> OperationReport:
    return OperationReport(
        operation=operation,
        success=True,
        requested_policy=policy.to_dict(),
        effective_policy=policy.to_dict(),
        metadata={"parameters": params},
    )


def _finish_report(
    report: OperationReport,
    temps: TemporaryStructures,
    result: Optional[SegmentVolume],
    high_res: bool,
) -> None:
    report.metadata["high_resolution"] = high_res
    report.metadata["temporaries_created"] = temps.created_count
    report.metadata["temporaries_removed"] = temps.removed_count
    report.metadata["empty_result"] = result is None
    logger.info(
        f"{report.operation}: high_res={high_res}, "
        f"temporaries={temps.created_count}, empty_result={result is None}"
    )


def _ring(
    operation: str,
    structure_set: StructureSet,
    structures: StructureInput,
    start_distance: float,
    end_distance: float,
    high_res: bool,
    policy: Optional[StructureOpsPolicy],
    temp_ids: Tuple[str, str],
    temp_dicom_type: Optional[str],
) -> OperationResult:
    _require_structure_set(structure_set)
    if start_distance < 0 or end_distance < 0:
        raise InvalidMarginError(
            f"Ring distances must be non-negative, got {start_distance} and {end_distance}"
        )
    if end_distance <= start_distance:
        raise InvalidMarginError(
            f"Ring end distance ({end_distance}) must be greater than start distance ({start_distance})"
        )
    base = _as_list(structures)
    if not base:
        raise InvalidArgumentError("Ring base structure collection cannot be empty")
    if policy is None:
        policy = StructureOpsPolicy()
    if temp_dicom_type is None:
        temp_dicom_type = policy.resolution.temporary_dicom_type

    report = _start_report(
        operation, policy,
        start_distance=start_distance, end_distance=end_distance, high_res=high_res,
    )
    needed = high_resolution_needed(base, flag=high_res)

    with TemporaryStructures(structure_set, policy.naming, report) as temps:
        sv = total_segment_volume(base, structure_set, needed, temps, policy, report)

        inner = temps.create(temp_ids[0], temp_dicom_type)
        outer = temps.create(temp_ids[1], temp_dicom_type)
        if needed:
            convert_temporary(inner, report)
            convert_temporary(outer, report)
        inner.segment_volume = stepped_margin(sv, start_distance, policy.margin)
        outer.segment_volume = stepped_margin(sv, end_distance, policy.margin)

        result = outer.segment_volume.sub(inner.segment_volume)

    _finish_report(report, temps, result, needed)
    return result, report


def generate_ring(
    structure_set: StructureSet,
    structures: StructureInput,
    start_distance: float,
    end_distance: float,
    high_res: bool = False,
    policy: Optional[StructureOpsPolicy] = None,
) -> OperationResult:
    """
    Build a ring between ``start_distance`` and ``end_distance`` around structures.

    Parameters
    ----------
    structure_set : StructureSet
        Set the structures belong to.
    structures : Structure or sequence of Structure
        Base structures; their union is the ring's reference volume.
    start_distance, end_distance : float
        Inner and outer ring distances in mm, ``0 <= start < end``.
    high_res : bool
        Require high resolution.
    policy : StructureOpsPolicy, optional
        Naming, margin and resolution policies.

    Returns
    -------
    volume : SegmentVolume
        ``margin(V, end) - margin(V, start)`` for the union ``V``.
    report : OperationReport
        Report with resolution and temporary structure metadata.
    """
    return _ring(
        "generate_ring", structure_set, structures, start_distance, end_distance,
        high_res, policy, ("_Exp1", "_Exp2"), None,
    )


def ring_structure(
    structure_set: StructureSet,
    structure: Structure,
    start_distance: float,
    end_distance: float,
    high_res: bool = False,
    policy: Optional[StructureOpsPolicy] = None,
) -> Tuple[Structure, OperationReport]:
    """
    Replace ``structure``'s volume with a ring around itself and return it.

    The margin carriers are AVOIDANCE structures named ``_tempr1``/``_tempr2``.
    """
    if structure is None:
        raise InvalidArgumentError("Structure cannot be None")
    result, report = _ring(
        "ring_structure", structure_set, [structure], start_distance, end_distance,
        high_res, policy, ("_tempr1", "_tempr2"), "AVOIDANCE",
    )
    structure.segment_volume = result
    return structure, report


def _crop(
    operation: str,
    structure_set: StructureSet,
    primary: StructureInput,
    crop_from: StructureInput,
    crop_distance: float,
    outside: bool,
    policy: Optional[StructureOpsPolicy],
) -> OperationResult:
    _require_structure_set(structure_set)
    if crop_distance < 0:
        raise InvalidMarginError(f"Crop distance must be non-negative, got {crop_distance}")
    if policy is None:
        policy = StructureOpsPolicy()

    primary_list = _as_list(primary)
    crop_list = _as_list(crop_from)
    report = _start_report(operation, policy, crop_distance=crop_distance)
    needed = high_resolution_needed(primary_list, crop_list)

    with TemporaryStructures(structure_set, policy.naming, report) as temps:
        if not primary_list:
            result = None
        else:
            svp = total_segment_volume(primary_list, structure_set, needed, temps, policy, report)
            if not crop_list:
                result = svp
            else:
                boundary = total_segment_volume(crop_list, structure_set, needed, temps, policy, report)
                if outside:
                    cut = stepped_margin(boundary.not_(), crop_distance, policy.margin)
                else:
                    cut = stepped_margin(boundary, crop_distance, policy.margin)
                result = svp.sub(cut)

    _finish_report(report, temps, result, needed)
    return result, report


def crop_extending_outside(
    structure_set: StructureSet,
    primary: StructureInput,
    crop_from: StructureInput,
    crop_distance: float,
    policy: Optional[StructureOpsPolicy] = None,
) -> OperationResult:
    """
    Crop the parts of ``primary`` that extend outside ``crop_from``.

    The region outside ``crop_from`` is grown by ``crop_distance`` mm and
    subtracted from the union of ``primary``.

    Returns None when ``primary`` is empty, and the unmodified union of
    ``primary`` when ``crop_from`` is empty.
    """
    return _crop(
        "crop_extending_outside", structure_set, primary, crop_from,
        crop_distance, True, policy,
    )


def crop_extending_inside(
    structure_set: StructureSet,
    primary: StructureInput,
    crop_from: StructureInput,
    crop_distance: float,
    policy: Optional[StructureOpsPolicy] = None,
) -> OperationResult:
    """
    Crop the parts of ``primary`` that extend inside ``crop_from``.

    ``crop_from`` is grown by ``crop_distance`` mm and subtracted from the
    union of ``primary``. Empty-input rules match crop_extending_outside.
    """
    return _crop(
        "crop_extending_inside", structure_set, primary, crop_from,
        crop_distance, False, policy,
    )


def non_overlap_structure(
    structure_set: StructureSet,
    structure_one: StructureInput,
    structure_two: StructureInput,
    policy: Optional[StructureOpsPolicy] = None,
) -> OperationResult:
    """Symmetric difference of two collections. One empty side yields the other's union."""
    _require_structure_set(structure_set)
    if policy is None:
        policy = StructureOpsPolicy()

    s1 = _as_list(structure_one)
    s2 = _as_list(structure_two)
    report = _start_report("non_overlap_structure", policy)
    needed = high_resolution_needed(s1, s2)

    with TemporaryStructures(structure_set, policy.naming, report) as temps:
        sv1 = total_segment_volume(s1, structure_set, needed, temps, policy, report) if s1 else None
        sv2 = total_segment_volume(s2, structure_set, needed, temps, policy, report) if s2 else None

        if sv1 is not None and sv2 is not None:
            result = sv1.xor(sv2)
        elif sv1 is not None:
            result = sv1
        else:
            result = sv2

    _finish_report(report, temps, result, needed)
    return result, report


def intersection_of_structures(
    structure_set: StructureSet,
    structure_one: StructureInput,
    structure_two: StructureInput,
    policy: Optional[StructureOpsPolicy] = None,
) -> OperationResult:
    """Intersection of two collections. Either side empty yields None."""
    _require_structure_set(structure_set)
    if policy is None:
        policy = StructureOpsPolicy()

    s1 = _as_list(structure_one)
    s2 = _as_list(structure_two)
    report = _start_report("intersection_of_structures", policy)
    needed = high_resolution_needed(s1, s2)

    with TemporaryStructures(structure_set, policy.naming, report) as temps:
        if not s1 or not s2:
            result = None
        else:
            sv1 = total_segment_volume(s1, structure_set, needed, temps, policy, report)
            sv2 = total_segment_volume(s2, structure_set, needed, temps, policy, report)
            result = sv1.and_(sv2)

    _finish_report(report, temps, result, needed)
    return result, report


def sub_structures(
    structure_set: StructureSet,
    structure_one: StructureInput,
    structure_two: StructureInput,
    policy: Optional[StructureOpsPolicy] = None,
) -> OperationResult:
    """
    Subtract ``structure_two`` from ``structure_one``.

    None when ``structure_one`` is empty; the union of ``structure_one``
    unchanged when ``structure_two`` is empty.
    """
    _require_structure_set(structure_set)
    if policy is None:
        policy = StructureOpsPolicy()

    s1 = _as_list(structure_one)
    s2 = _as_list(structure_two)
    report = _start_report("sub_structures", policy)
    needed = high_resolution_needed(s1, s2)

    with TemporaryStructures(structure_set, policy.naming, report) as temps:
        if not s1:
            result = None
        else:
            sv1 = total_segment_volume(s1, structure_set, needed, temps, policy, report)
            if not s2:
                result = sv1
            else:
                sv2 = total_segment_volume(s2, structure_set, needed, temps, policy, report)
                result = sv1.sub(sv2)

    _finish_report(report, temps, result, needed)
    return result, report


def union_structures(
    structure_set: StructureSet,
    structure_one: StructureInput,
    structure_two: StructureInput,
    policy: Optional[StructureOpsPolicy] = None,
) -> OperationResult:
    """Union of two collections. None when both are empty."""
    _require_structure_set(structure_set)
    if policy is None:
        policy = StructureOpsPolicy()

    s1 = _as_list(structure_one)
    s2 = _as_list(structure_two)
    report = _start_report("union_structures", policy)
    needed = high_resolution_needed(s1, s2)

    with TemporaryStructures(structure_set, policy.naming, report) as temps:
        sv1 = total_segment_volume(s1, structure_set, needed, temps, policy, report) if s1 else None
        sv2 = total_segment_volume(s2, structure_set, needed, temps, policy, report) if s2 else None

        if sv1 is not None and sv2 is not None:
            result = sv1.or_(sv2)
        elif sv1 is not None:
            result = sv1
        else:
            result = sv2

    _finish_report(report, temps, result, needed)
    return result, report


__all__ = [
    "generate_ring",
    "ring_structure",
    "crop_extending_outside",
    "crop_extending_inside",
    "non_overlap_structure",
    "intersection_of_structures",
    "sub_structures",
    "union_structures",
]
