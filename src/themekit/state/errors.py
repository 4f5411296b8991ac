"""Applied-component state errors."""


class StateError(Exception):
    """Base exception for applied-component state operations."""


class MissingStateError(StateError):
    """Raised when no state file has been written yet."""
