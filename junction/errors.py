# junction/errors.py


class JunctionError(Exception):
    """Base class for every error raised by the junction package."""


class InvalidInput(JunctionError, ValueError):
    """
    Raised when a value outside the allowed domain reaches the core.

    Examples are a negative vehicle count, an emergency flag that is not 0/1,
    an unknown intersection type or a lane number the ring does not have.
    """


class ResourceExhausted(JunctionError, MemoryError):
    """Raised when the lane storage for a ring cannot be allocated."""


class FeedError(JunctionError):
    """Raised by a data feed that cannot read its source."""
