"""
Exceptions raised by structure operations.

All of these propagate to the caller of a composite operation. Cleanup-time
removal failures and non-essential conversion problems are never raised;
they are logged and recorded as OperationReport warnings instead.
"""


class StructureOpsError(Exception):
    """Base class for structure operation failures."""
    pass


class InvalidArgumentError(StructureOpsError, ValueError):
    """A required argument is missing, empty or has the wrong shape."""
    pass


class InvalidMarginError(InvalidArgumentError):
    """A margin distance is negative, a ring span is not positive, or an
    asymmetric margin does not have six components."""
    pass


class EmptyInputError(InvalidArgumentError):
    """An aggregate volume was requested over no structures."""
    pass


class IdentifierTooLongError(StructureOpsError, ValueError):
    """A base identifier exceeds the host's length limit."""

    def __init__(self, base_id: str, max_length: int):
        self.base_id = base_id
        self.max_length = max_length
        super().__init__(
            f"Structure id '{base_id}' exceeds {max_length} characters"
        )


class IdentifierExhaustedError(StructureOpsError):
    """No unique identifier could be produced within the length and attempt limits."""

    def __init__(self, base_id: str, reason: str):
        self.base_id = base_id
        self.reason = reason
        super().__init__(f"Cannot make unique id for '{base_id}': {reason}")


class ResolutionConversionFailedError(StructureOpsError):
    """High resolution was needed but a structure could not be converted."""

    def __init__(self, structure_id: str, reason: str = ""):
        self.structure_id = structure_id
        message = f"Failed to convert '{structure_id}' to high resolution"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


__all__ = [
    "StructureOpsError",
    "InvalidArgumentError",
    "InvalidMarginError",
    "EmptyInputError",
    "IdentifierTooLongError",
    "IdentifierExhaustedError",
    "ResolutionConversionFailedError",
]
