"""
Scoped ownership of temporary structures.

Composite operations create helper structures in the caller's structure set
(margin carriers, high resolution clones). A TemporaryStructures scope tracks
them and removes every one of them when the scope closes, whether the
operation returned normally or raised.

Example
-------
>>> with TemporaryStructures(structure_set) as temps:
...     carrier = temps.create("_Exp1")
...     carrier.segment_volume = volume.margin(5.0)
...     result = carrier.segment_volume.sub(volume)
>>> # carrier is no longer in structure_set here
"""

from typing import Iterable, Iterator, List, Optional
import logging

from structure_policies import NamingPolicy, OperationReport

from .core.host import Structure, StructureSet
from .naming import unique_structure_id

logger = logging.getLogger(__name__)


def remove_structures(
    structure_set: StructureSet,
    structures: Iterable[Structure],
    report: Optional[OperationReport] = None,
) -> int:
    """
    Remove structures from a structure set in reverse order.

    Structures that are None or no longer in the set are skipped. A failure
    to remove one structure is logged (and recorded on ``report``) and does
    not stop removal of the others.

    Returns
    -------
    int
        Number of structures actually removed.
    """
    if structures is None:
        return 0

    removed = 0
    for structure in reversed(list(structures)):
        if structure is None:
            continue
        structure_id = None
        try:
            structure_id = structure.id
            if not structure_set.contains(structure):
                continue
            structure_set.remove_structure(structure)
            removed += 1
            logger.debug(f"Removed temporary structure '{structure_id}'")
        except Exception as e:
            message = f"Failed to remove temporary structure '{structure_id}': {e}"
            logger.error(message)
            if report is not None:
                report.add_warning(message)
    return removed


class TemporaryStructures:
    """
    Ownership scope for temporary structures created by one operation.

    Parameters
    ----------
    structure_set : StructureSet
        Structure set the temporaries live in.
    naming_policy : NamingPolicy, optional
        Limits used when allocating temporary ids.
    report : OperationReport, optional
        Receives a warning for each temporary that could not be removed.

    ``close()`` runs at most once; using the scope as a context manager runs
    it on every exit path.
    """

    def __init__(
        self,
        structure_set: StructureSet,
        naming_policy: Optional[NamingPolicy] = None,
        report: Optional[OperationReport] = None,
    ):
        self.structure_set = structure_set
        self.naming_policy = naming_policy or NamingPolicy()
        self.report = report
        self._tracked: List[Structure] = []
        self._opened = False
        self._closed = False
        self.created_count = 0
        self.removed_count = 0

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    def open(self) -> "TemporaryStructures":
        if self._opened:
            raise RuntimeError("Temporary structure scope already opened")
        self._opened = True
        return self

    def track(self, structure: Structure) -> Structure:
        """Take ownership of ``structure``; it will be removed on close."""
        if not self.is_open:
            raise RuntimeError("Temporary structure scope is not open")
        self._tracked.append(structure)
        self.created_count += 1
        return structure

    def create(self, base_id: str, dicom_type: str = "CONTROL") -> Structure:
        """Add a structure with a unique id derived from ``base_id`` and track it."""
        if not self.is_open:
            raise RuntimeError("Temporary structure scope is not open")
        structure_id = unique_structure_id(base_id, self.structure_set, self.naming_policy)
        structure = self.structure_set.add_structure(dicom_type, structure_id)
        logger.debug(f"Created temporary structure '{structure_id}' ({dicom_type})")
        return self.track(structure)

    def close(self) -> int:
        """Remove all tracked structures still in the set, newest first."""
        if self._closed:
            return 0
        self._closed = True
        self.removed_count = remove_structures(self.structure_set, self._tracked, self.report)
        self._tracked.clear()
        return self.removed_count

    def __enter__(self) -> "TemporaryStructures":
        return self.open()

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.close()
        return False

    def __len__(self) -> int:
        return len(self._tracked)

    def __iter__(self) -> Iterator[Structure]:
        return iter(list(self._tracked))

    def __contains__(self, structure: object) -> bool:
        return any(s is structure for s in self._tracked)


__all__ = ["TemporaryStructures", "remove_structures"]
