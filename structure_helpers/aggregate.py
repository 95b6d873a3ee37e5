"""
Union of a collection of structures into one segment volume.
"""

from typing import Iterable, Optional
import logging

from structure_policies import OperationReport, StructureOpsPolicy

from .core.errors import EmptyInputError, InvalidArgumentError
from .core.host import SegmentVolume, Structure, StructureSet
from .resolution import ensure_resolution, high_resolution_needed
from .temporaries import TemporaryStructures

logger = logging.getLogger(__name__)


def total_segment_volume(
    structures: Iterable[Structure],
    structure_set: StructureSet,
    high_res: bool = False,
    temps: Optional[TemporaryStructures] = None,
    policy: Optional[StructureOpsPolicy] = None,
    report: Optional[OperationReport] = None,
) -> SegmentVolume:
    """
    OR together the segment volumes of ``structures``.

    Parameters
    ----------
    structures : iterable of Structure
        Structures to combine, visited in order.
    structure_set : StructureSet
        Set the structures belong to; receives any temporary clones.
    high_res : bool
        Require high resolution. High resolution is also used when any of
        ``structures`` already is.
    temps : TemporaryStructures, optional
        Open scope owning temporary clones. When omitted, a private scope is
        opened and closed before returning.
    policy : StructureOpsPolicy, optional
        Naming and resolution policies.
    report : OperationReport, optional
        Receives non-fatal warnings.

    Returns
    -------
    SegmentVolume
        Union of all input volumes.

    Raises
    ------
    EmptyInputError
        ``structures`` is None or empty.
    ResolutionConversionFailedError
        A needed high resolution conversion was impossible.
    """
    if structure_set is None:
        raise InvalidArgumentError("Structure set cannot be None")
    members = list(structures) if structures is not None else []
    if not members:
        raise EmptyInputError("Cannot compute total volume of an empty structure collection")
    if policy is None:
        policy = StructureOpsPolicy()

    if temps is None:
        with TemporaryStructures(structure_set, policy.naming, report) as own_temps:
            return total_segment_volume(
                members, structure_set, high_res, own_temps, policy, report
            )

    needed = high_resolution_needed(members, flag=high_res)

    first = ensure_resolution(members[0], needed, temps, policy.resolution, report)
    volume = first.segment_volume
    for structure in members[1:]:
        usable = ensure_resolution(structure, needed, temps, policy.resolution, report)
        volume = volume.or_(usable.segment_volume)

    logger.debug(
        f"Total volume of {len(members)} structure(s), high_res={needed}"
    )
    return volume


__all__ = ["total_segment_volume"]
