"""
Unique structure identifier allocation.

The host limits structure ids to 16 characters and requires them to be
unique within a structure set. Temporary structures get an id derived from a
base string by appending ``_0``, ``_1``, ... until it is free.
"""

from typing import Optional
import logging

from structure_policies import NamingPolicy

from .core.errors import IdentifierExhaustedError, IdentifierTooLongError
from .core.host import StructureSet

logger = logging.getLogger(__name__)


def unique_structure_id(
    base_id: str,
    structure_set: StructureSet,
    policy: Optional[NamingPolicy] = None,
) -> str:
    """
    Generate a structure id that is unused in ``structure_set``.

    Parameters
    ----------
    base_id : str
        Preferred id. Returned unchanged if it is free and short enough.
    structure_set : StructureSet
        Structure set the id must be unique in.
    policy : NamingPolicy, optional
        Length and attempt limits.

    Returns
    -------
    str
        An id absent from ``structure_set``.

    Raises
    ------
    IdentifierTooLongError
        ``base_id`` is free but longer than ``policy.max_length``.
    IdentifierExhaustedError
        Every suffixed candidate collided within ``policy.max_attempts``
        probes, or the candidate truncated to fit the length limit collides.

    Notes
    -----
    Once ``base_id + suffix`` would exceed the length limit, the base is cut
    down so the candidate is exactly ``max_length`` characters. That
    truncated candidate is checked once; a collision there is an error
    rather than the start of a wider search.
    """
    if policy is None:
        policy = NamingPolicy()

    existing = set(structure_set.structure_ids())

    if base_id not in existing:
        if len(base_id) > policy.max_length:
            raise IdentifierTooLongError(base_id, policy.max_length)
        return base_id

    for i in range(policy.max_attempts):
        suffix = f"{policy.separator}{i}"

        if len(base_id) + len(suffix) <= policy.max_length:
            candidate = base_id + suffix
            if candidate not in existing:
                logger.debug(f"Allocated id '{candidate}' for base '{base_id}'")
                return candidate
            continue

        keep = policy.max_length - len(suffix)
        if keep <= 0:
            raise IdentifierExhaustedError(
                base_id, f"suffix '{suffix}' leaves no room within {policy.max_length} characters"
            )
        candidate = base_id[:keep] + suffix
        if candidate in existing:
            raise IdentifierExhaustedError(
                base_id, f"truncated candidate '{candidate}' already exists"
            )
        logger.debug(f"Allocated truncated id '{candidate}' for base '{base_id}'")
        return candidate

    raise IdentifierExhaustedError(
        base_id, f"no free id after {policy.max_attempts} attempts"
    )


__all__ = ["unique_structure_id"]
