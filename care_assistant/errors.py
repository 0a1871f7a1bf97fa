"""Error kinds surfaced by the core.

The shell maps these onto its own failure responses. Rows hidden by visibility
rules are never reported through an error; getters return ``None`` and lists
come back empty.
"""


class CareCoreError(Exception):
    """Base class for every error raised by the core."""

    pass


class InvalidInputError(CareCoreError):
    """Input was rejected before any write was attempted."""

    pass


class NotFoundError(CareCoreError):
    """A mutation targeted a row that does not exist."""

    pass


class StorageError(CareCoreError):
    """The store failed and the enclosing transaction was rolled back."""

    pass


class ConstraintViolationError(StorageError):
    """A storage constraint rejected the write."""

    pass
