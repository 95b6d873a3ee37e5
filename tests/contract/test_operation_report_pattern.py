"""
Test that composite operations return OperationReport with requested/effective policy.

This module validates the contract that every composite operation returns a
``(volume, report)`` tuple whose report records the operation name, both
policies, resolution and temporary structure metadata, and is JSON-serializable.
"""

import json

import pytest


def _inputs(structure_set):
    from structure_helpers.backends import sphere_mask

    a = structure_set.add_structure_from_mask(
        "A", sphere_mask(structure_set.grid, (28, 32, 32), 6.0), "PTV"
    )
    b = structure_set.add_structure_from_mask(
        "B", sphere_mask(structure_set.grid, (36, 32, 32), 6.0), "ORGAN"
    )
    return a, b


def _run(name, structure_set):
    import structure_helpers

    a, b = _inputs(structure_set)
    if name == "generate_ring":
        return structure_helpers.generate_ring(structure_set, a, 2.0, 4.0)
    if name in ("crop_extending_outside", "crop_extending_inside"):
        return getattr(structure_helpers, name)(structure_set, a, b, 1.0)
    return getattr(structure_helpers, name)(structure_set, a, b)


OPERATIONS = [
    "generate_ring",
    "crop_extending_outside",
    "crop_extending_inside",
    "non_overlap_structure",
    "intersection_of_structures",
    "sub_structures",
    "union_structures",
]


class TestCompositeOperationsReturnOperationReport:
    """Test every composite operation returns an OperationReport."""

    @pytest.mark.parametrize("operation", OPERATIONS)
    def test_returns_volume_and_report(self, structure_set, operation):
        """Test the operation returns a volume and an OperationReport."""
        from structure_helpers.backends import VoxelSegmentVolume
        from structure_policies import OperationReport

        volume, report = _run(operation, structure_set)

        assert isinstance(volume, VoxelSegmentVolume)
        assert isinstance(report, OperationReport)
        assert report.operation == operation
        assert report.success is True
        assert isinstance(report.requested_policy, dict)
        assert isinstance(report.effective_policy, dict)

    @pytest.mark.parametrize("operation", OPERATIONS)
    def test_report_metadata(self, structure_set, operation):
        """Test the report carries resolution and temporary structure counts."""
        _, report = _run(operation, structure_set)

        assert report.metadata["high_resolution"] is False
        assert report.metadata["temporaries_created"] == report.metadata["temporaries_removed"]
        assert report.metadata["empty_result"] is False
        assert "parameters" in report.metadata

    @pytest.mark.parametrize("operation", OPERATIONS)
    def test_report_is_json_serializable(self, structure_set, operation):
        """Test the report survives a JSON round trip."""
        _, report = _run(operation, structure_set)

        restored = json.loads(json.dumps(report.to_dict()))

        assert restored["operation"] == operation
        assert restored["requested_policy"]["margin"]["max_step"] == 50.0
        assert json.loads(report.to_json()) == restored

    def test_requested_policy_reflects_caller_policy(self, structure_set):
        """Test a caller policy shows up in the report."""
        from structure_helpers import union_structures
        from structure_policies import NamingPolicy, StructureOpsPolicy

        a, b = _inputs(structure_set)
        policy = StructureOpsPolicy(naming=NamingPolicy(max_attempts=10))

        _, report = union_structures(structure_set, a, b, policy)

        assert report.requested_policy["naming"]["max_attempts"] == 10
        assert report.effective_policy == report.requested_policy

    def test_ring_parameters_recorded(self, structure_set):
        from structure_helpers import generate_ring

        a, _ = _inputs(structure_set)
        _, report = generate_ring(structure_set, a, 2.0, 4.0)

        assert report.metadata["parameters"] == {
            "start_distance": 2.0,
            "end_distance": 4.0,
            "high_res": False,
        }
        assert report.metadata["temporaries_created"] == 2
