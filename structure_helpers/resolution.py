"""
Resolution reconciliation for structure combinations.

Boolean combination of ordinary and high resolution volumes gives
geometrically wrong results, so every input of a combination is brought to
high resolution as soon as one of them is high resolution (or the caller
asks for it). Caller-owned structures are converted in place only when the
policy and the host allow it; otherwise a temporary clone is converted.
"""

from typing import Iterable, List, Optional
import logging

from structure_policies import OperationReport, ResolutionPolicy

from .core.errors import ResolutionConversionFailedError
from .core.host import Structure
from .temporaries import TemporaryStructures

logger = logging.getLogger(__name__)


def high_resolution_needed(*collections: Optional[Iterable[Structure]], flag: bool = False) -> bool:
    """True if ``flag`` is set or any structure in any collection is high resolution."""
    if flag:
        return True
    for collection in collections:
        if collection and any(s.is_high_resolution for s in collection):
            return True
    return False


def _clone_dicom_type(structure: Structure, policy: ResolutionPolicy) -> str:
    dicom_type = structure.dicom_type
    if not dicom_type or dicom_type in policy.protected_dicom_types:
        return policy.fallback_dicom_type
    return dicom_type


def _warn(report: Optional[OperationReport], message: str) -> None:
    logger.warning(message)
    if report is not None:
        report.add_warning(message)


def clone_high_resolution(
    structure: Structure,
    temps: TemporaryStructures,
    policy: Optional[ResolutionPolicy] = None,
) -> Structure:
    """
    Copy ``structure`` into a tracked temporary and convert the copy.

    Raises
    ------
    ResolutionConversionFailedError
        The temporary copy cannot be converted. The copy stays tracked by
        ``temps`` and is removed when the scope closes.
    """
    if policy is None:
        policy = ResolutionPolicy()

    temp = temps.create(structure.id, _clone_dicom_type(structure, policy))
    temp.segment_volume = structure.segment_volume

    if temp.is_high_resolution:
        return temp
    if not temp.can_convert_to_high_resolution():
        raise ResolutionConversionFailedError(
            structure.id, f"temporary copy '{temp.id}' cannot be converted"
        )
    try:
        temp.convert_to_high_resolution()
    except Exception as e:
        raise ResolutionConversionFailedError(
            structure.id, f"temporary copy '{temp.id}' failed to convert: {e}"
        ) from e

    logger.debug(f"Using high resolution copy '{temp.id}' of '{structure.id}'")
    return temp


def convert_temporary(structure: Structure, report: Optional[OperationReport] = None) -> bool:
    """
    Bring an operation-owned temporary to high resolution if the host allows it.

    A temporary that cannot be converted only gets a warning; the operation
    carries on with it. Returns whether ``structure`` ends up high resolution.
    """
    if structure.is_high_resolution:
        return True
    if not structure.can_convert_to_high_resolution():
        _warn(report, f"Temporary structure '{structure.id}' cannot be converted to high resolution")
        return False
    try:
        structure.convert_to_high_resolution()
    except Exception as e:
        _warn(report, f"Temporary structure '{structure.id}' failed to convert to high resolution: {e}")
        return False
    return structure.is_high_resolution


def ensure_resolution(
    structure: Structure,
    needed: bool,
    temps: TemporaryStructures,
    policy: Optional[ResolutionPolicy] = None,
    report: Optional[OperationReport] = None,
) -> Structure:
    """
    Return a structure whose volume is usable in a combination.

    Parameters
    ----------
    structure : Structure
        Caller-owned input structure.
    needed : bool
        Whether the combination requires high resolution.
    temps : TemporaryStructures
        Open scope that owns any clone created here.
    policy : ResolutionPolicy, optional
        Controls in-place conversion and clone dicom types.
    report : OperationReport, optional
        Receives warnings for non-essential conversion problems.

    Returns
    -------
    Structure
        ``structure`` itself when no conversion is needed or it was converted
        in place, otherwise a high resolution temporary clone.

    Raises
    ------
    ResolutionConversionFailedError
        High resolution is needed and not even a temporary clone can be
        converted.
    """
    if policy is None:
        policy = ResolutionPolicy()

    if not needed or structure.is_high_resolution:
        return structure

    if policy.allow_in_place_conversion and structure.can_convert_to_high_resolution():
        try:
            structure.convert_to_high_resolution()
        except Exception as e:
            _warn(report, f"In-place conversion of '{structure.id}' failed ({e}); using a temporary copy")
        else:
            if structure.is_high_resolution:
                logger.debug(f"Converted '{structure.id}' to high resolution in place")
                return structure
            _warn(report, f"'{structure.id}' is still low resolution after conversion; using a temporary copy")

    return clone_high_resolution(structure, temps, policy)


def convert_all_to_high_res(
    structures: Iterable[Structure],
    temps: TemporaryStructures,
    policy: Optional[ResolutionPolicy] = None,
) -> List[Structure]:
    """
    Clone every structure into a high resolution temporary.

    None entries are skipped. Inputs are never modified.
    """
    if structures is None:
        return []
    return [
        clone_high_resolution(structure, temps, policy)
        for structure in structures
        if structure is not None
    ]


__all__ = [
    "high_resolution_needed",
    "convert_temporary",
    "ensure_resolution",
    "clone_high_resolution",
    "convert_all_to_high_res",
]
