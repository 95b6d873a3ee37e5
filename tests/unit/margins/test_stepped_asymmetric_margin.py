"""
Unit tests for stepped axis-aligned margins.
"""

import pytest

from structure_helpers import (
    AxisAlignedMargins,
    InvalidMarginError,
    MarginGeometry,
    inner_asymmetric_margin,
    outer_asymmetric_margin,
    stepped_asymmetric_margin,
)


def _asym_calls(volume):
    return [entry[2] for entry in volume.log if entry[0] == "asymmetric_margin"]


class TestAsymmetricDecomposition:
    """Tests for how axis margins are split into host calls."""

    def test_within_limit_is_single_call(self, recording_volume):
        """All components within the limit go through in one call."""
        outer_asymmetric_margin(recording_volume, [10, 0, 5, 50, 0, 0])
        assert _asym_calls(recording_volume) == [(10.0, 0.0, 5.0, 50.0, 0.0, 0.0)]

    def test_axes_advance_together(self, recording_volume):
        """Long axes step at the limit while finished axes contribute zero."""
        outer_asymmetric_margin(recording_volume, [120, 0, 10, 60, 0, 0])
        assert _asym_calls(recording_volume) == [
            (50.0, 0.0, 0.0, 50.0, 0.0, 0.0),
            (50.0, 0.0, 0.0, 0.0, 0.0, 0.0),
            (20.0, 0.0, 10.0, 10.0, 0.0, 0.0),
        ]

    def test_no_call_exceeds_limit(self, recording_volume):
        """Every component of every call is within the host limit."""
        outer_asymmetric_margin(recording_volume, [175, 3, 99, 51, 250, 0])
        calls = _asym_calls(recording_volume)
        assert calls
        for call in calls:
            assert all(0.0 <= c <= 50.0 for c in call)

    def test_components_sum_per_axis(self, recording_volume):
        """Each direction receives exactly its requested total."""
        requested = [175, 3, 99, 51, 250, 0]
        outer_asymmetric_margin(recording_volume, requested)
        calls = _asym_calls(recording_volume)
        for k in range(6):
            assert sum(call[k] for call in calls) == pytest.approx(requested[k])

    def test_exact_multiples_skip_remainder_call(self, recording_volume):
        """No trailing call when every component is a multiple of the limit."""
        outer_asymmetric_margin(recording_volume, [100, 0, 0, 50, 0, 0])
        assert _asym_calls(recording_volume) == [
            (50.0, 0.0, 0.0, 50.0, 0.0, 0.0),
            (50.0, 0.0, 0.0, 0.0, 0.0, 0.0),
        ]

    def test_geometry_is_carried_on_every_call(self, recording_volume):
        """INNER margins stay INNER across all steps."""
        inner_asymmetric_margin(recording_volume, [0, 0, 0, 0, 0, 110])
        geometries = [e[1] for e in recording_volume.log if e[0] == "asymmetric_margin"]
        assert geometries == [MarginGeometry.INNER] * 3

    def test_margins_object_keeps_its_geometry(self, recording_volume):
        """An AxisAlignedMargins argument overrides the geometry parameter."""
        margins = AxisAlignedMargins(MarginGeometry.INNER, 1, 1, 1, 1, 1, 1)
        stepped_asymmetric_margin(recording_volume, margins, MarginGeometry.OUTER)
        assert recording_volume.log[0][1] == MarginGeometry.INNER


class TestAsymmetricValidation:
    """Tests for rejected margin inputs."""

    @pytest.mark.parametrize("values", [[], [1, 2, 3], [1, 2, 3, 4, 5, 6, 7]])
    def test_wrong_length_raises(self, recording_volume, values):
        """Exactly six components are required."""
        with pytest.raises(InvalidMarginError):
            outer_asymmetric_margin(recording_volume, values)

    def test_negative_component_raises(self, recording_volume):
        """Negative components are rejected before any host call."""
        with pytest.raises(InvalidMarginError):
            outer_asymmetric_margin(recording_volume, [1, 2, -3, 4, 5, 6])
        assert recording_volume.log == []

    def test_none_margins_raise(self, recording_volume):
        with pytest.raises(InvalidMarginError):
            stepped_asymmetric_margin(recording_volume, None)


class TestAsymmetricOnVoxels:
    """Checks the decomposition against real voxel geometry."""

    def test_stepped_matches_single_call(self, structure_set):
        """Stepping gives the same mask as one call on a host with a higher limit."""
        from structure_helpers.backends import VoxelStructureSet, box_mask

        lenient = VoxelStructureSet(structure_set.grid, max_margin=100.0)
        mask = box_mask(lenient.grid, (2, 20, 20), (8, 30, 30))
        volume = lenient.volume_from_mask(mask)

        direct = volume.asymmetric_margin(
            AxisAlignedMargins(MarginGeometry.OUTER, 0, 0, 0, 52, 5, 0)
        )
        stepped = outer_asymmetric_margin(volume, [0, 0, 0, 52, 5, 0])
        assert stepped == direct
        assert stepped.mask.any(axis=(1, 2)).nonzero()[0].max() == 60

    def test_outer_grows_only_requested_directions(self, structure_set):
        """Growing toward +X leaves the -X face in place."""
        from structure_helpers.backends import box_mask

        volume = structure_set.volume_from_mask(
            box_mask(structure_set.grid, (20, 20, 20), (30, 30, 30))
        )
        grown = outer_asymmetric_margin(volume, [0, 0, 0, 60, 0, 0])

        xs = grown.mask.any(axis=(1, 2)).nonzero()[0]
        assert xs.min() == 20
        assert xs.max() == 63

    def test_inner_crops_requested_direction(self, structure_set):
        """Cropping 4 mm from +Z removes the top four slices."""
        from structure_helpers.backends import box_mask

        volume = structure_set.volume_from_mask(
            box_mask(structure_set.grid, (20, 20, 20), (30, 30, 30))
        )
        cropped = inner_asymmetric_margin(volume, [0, 0, 0, 0, 0, 4])

        zs = cropped.mask.any(axis=(0, 1)).nonzero()[0]
        assert zs.min() == 20
        assert zs.max() == 26
