"""
Error taxonomy for the coaching subsystem.

None of these are fatal to the process. Each one has a defined
degradation path:
- TelemetryValidationError: the request is rejected before any cache work
- CacheUnavailableError: the cache is skipped and we regenerate
- GenerationError: a fallback message is returned instead
"""


class CoachingError(Exception):
    """Base class for coaching errors."""
    pass


class TelemetryValidationError(CoachingError, ValueError):
    """Raised when a telemetry sample is malformed or incomplete."""
    pass


class CacheUnavailableError(CoachingError):
    """Raised when the key-value store cannot be reached."""
    pass


class GenerationError(CoachingError):
    """Raised when the upstream model times out, errors, or returns nothing."""
    pass
