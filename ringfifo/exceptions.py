"""Exception classes for the ring buffer."""


class RingBufferError(Exception):
    """Base error for ring buffer operations."""


class ConfigurationError(RingBufferError):
    """Raised when a ring buffer cannot be built from the given settings."""

    def __init__(self, errors: list[str]):
        """Initialize ConfigurationError with list of error messages.

        Args:
            errors: List of error messages from validation.
        """
        message = "\n".join(errors)
        super().__init__(message)
        self.errors = errors


class CapacityExceededError(RingBufferError):
    """Raised by ``put`` when the buffer has no free slot."""


class UnderflowError(RingBufferError):
    """Raised by ``get`` when the buffer holds no element."""


class IndexOutOfRangeError(RingBufferError, IndexError):
    """Raised when a logical index is outside ``[0, count())``."""


class BufferReleasedError(RingBufferError):
    """Raised when a released buffer is used again."""
