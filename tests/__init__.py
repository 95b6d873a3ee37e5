"""
Tests for Structure Helpers

This package contains validation tests for:
- Identifier allocation and stepped margins
- Temporary structure cleanup and resolution reconciliation
- Composite structure operations on the voxel backend
- Policy serialization and the OperationReport contract
"""
