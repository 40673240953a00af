"""Exception types shared by the search and graph engine."""


class ValidationError(ValueError):
    """Malformed caller input. Surfaced synchronously, never retried."""


class DimensionMismatchError(ValidationError):
    """Two vectors that must share a dimension do not."""


class EmbeddingUnavailable(RuntimeError):
    """The embedding provider could not produce a vector for the text."""


class JobAlreadyRunning(RuntimeError):
    """A relationship job with the same id is still registered."""
