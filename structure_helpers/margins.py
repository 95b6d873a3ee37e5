"""
Stepped margins for distances beyond the host's per-call limit.

The host margin primitive accepts at most ``MarginPolicy.max_step`` (50 mm)
per call. These helpers decompose a larger margin into repeated full steps
followed by one remainder step, preserving direction.

UNIT CONVENTIONS
----------------
All distances are in MILLIMETERS.
"""

from typing import List, Optional, Sequence, Union
import logging
import math

from structure_policies import MarginPolicy

from .core.errors import InvalidArgumentError, InvalidMarginError
from .core.host import SegmentVolume, Structure
from .core.types import AxisAlignedMargins, MarginGeometry

logger = logging.getLogger(__name__)


def stepped_margin(
    volume: SegmentVolume,
    distance: float,
    policy: Optional[MarginPolicy] = None,
) -> SegmentVolume:
    """
    Apply an isotropic margin of any size.

    Parameters
    ----------
    volume : SegmentVolume
        Input volume. Not modified.
    distance : float
        Margin in mm. Positive grows, negative shrinks.
    policy : MarginPolicy, optional
        Per-call limit and zero tolerance.

    Returns
    -------
    SegmentVolume
        ``volume`` itself if ``|distance|`` is below ``policy.epsilon``,
        otherwise the result of ``floor(|d| / max_step)`` full steps and one
        remainder step.
    """
    if volume is None:
        raise InvalidArgumentError("Segment volume cannot be None")
    if policy is None:
        policy = MarginPolicy()

    if abs(distance) < policy.epsilon:
        return volume

    sign = 1.0 if distance > 0 else -1.0
    magnitude = abs(distance)
    n_steps = int(math.floor(magnitude / policy.max_step))
    remainder = magnitude % policy.max_step

    logger.debug(
        f"Margin {distance:+.3f} mm as {n_steps} x {policy.max_step:.1f} mm "
        f"+ {remainder:.3f} mm"
    )

    current = volume
    for _ in range(n_steps):
        current = current.margin(sign * policy.max_step)

    if remainder > policy.epsilon:
        current = current.margin(sign * remainder)

    return current


def margin_structure(
    structure: Structure,
    distance: float,
    policy: Optional[MarginPolicy] = None,
) -> Structure:
    """Apply a stepped isotropic margin to ``structure`` in place and return it."""
    if structure is None:
        raise InvalidArgumentError("Structure cannot be None")
    structure.segment_volume = stepped_margin(structure.segment_volume, distance, policy)
    return structure


def _coerce_margins(
    margins: Union[AxisAlignedMargins, Sequence[float]],
    geometry: MarginGeometry,
) -> AxisAlignedMargins:
    if isinstance(margins, AxisAlignedMargins):
        return margins
    if margins is None:
        raise InvalidMarginError("Asymmetric margins cannot be None")
    return AxisAlignedMargins.from_sequence(list(margins), geometry)


def stepped_asymmetric_margin(
    volume: SegmentVolume,
    margins: Union[AxisAlignedMargins, Sequence[float]],
    geometry: MarginGeometry = MarginGeometry.OUTER,
    policy: Optional[MarginPolicy] = None,
) -> SegmentVolume:
    """
    Apply an axis-aligned margin whose components may exceed the per-call limit.

    Parameters
    ----------
    volume : SegmentVolume
        Input volume. Not modified.
    margins : AxisAlignedMargins or sequence of 6 floats
        Non-negative distances ``[-X, -Y, -Z, +X, +Y, +Z]`` in mm. A sequence
        is tagged with ``geometry``; an AxisAlignedMargins keeps its own.
    geometry : MarginGeometry
        OUTER to grow, INNER to crop. Used only for plain sequences.
    policy : MarginPolicy, optional
        Per-call limit and zero tolerance.

    Returns
    -------
    SegmentVolume
        Result volume. When every component is within the limit this is a
        single host call; otherwise all axes advance together in full steps
        (an axis that has finished contributes 0) followed by one remainder
        call. No call ever exceeds the limit on any axis.

    Raises
    ------
    InvalidMarginError
        Wrong number of components or a negative component.
    """
    if volume is None:
        raise InvalidArgumentError("Segment volume cannot be None")
    if policy is None:
        policy = MarginPolicy()

    requested = _coerce_margins(margins, geometry)
    distances = requested.as_tuple()
    limit = policy.max_step

    if all(d <= limit for d in distances):
        return volume.asymmetric_margin(requested)

    counts = [int(math.floor(d / limit)) for d in distances]
    remainders = [d % limit for d in distances]
    max_steps = max(counts)

    logger.debug(
        f"Asymmetric {requested.geometry.value} margin {distances} as "
        f"{max_steps} stepped calls, remainders {remainders}"
    )

    current = volume
    for i in range(max_steps):
        step: List[float] = [limit if counts[k] > i else 0.0 for k in range(6)]
        current = current.asymmetric_margin(
            AxisAlignedMargins(requested.geometry, *step)
        )

    if any(r > policy.epsilon for r in remainders):
        current = current.asymmetric_margin(
            AxisAlignedMargins(requested.geometry, *remainders)
        )

    return current


def outer_asymmetric_margin(
    volume: SegmentVolume,
    margins: Sequence[float],
    policy: Optional[MarginPolicy] = None,
) -> SegmentVolume:
    """Grow ``volume`` by six non-negative per-direction distances."""
    return stepped_asymmetric_margin(volume, margins, MarginGeometry.OUTER, policy)


def inner_asymmetric_margin(
    volume: SegmentVolume,
    margins: Sequence[float],
    policy: Optional[MarginPolicy] = None,
) -> SegmentVolume:
    """Crop ``volume`` by six non-negative per-direction distances."""
    return stepped_asymmetric_margin(volume, margins, MarginGeometry.INNER, policy)


__all__ = [
    "stepped_margin",
    "margin_structure",
    "stepped_asymmetric_margin",
    "outer_asymmetric_margin",
    "inner_asymmetric_margin",
]
