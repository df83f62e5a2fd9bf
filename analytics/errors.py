"""Exception hierarchy for the analytics backend."""


class AnalyticsError(Exception):
    """Base exception for all analytics failures."""


class GenerationError(AnalyticsError):
    """Raised when synthetic record construction fails."""


class PersistenceError(AnalyticsError):
    """Raised when a store read, write or delete fails."""


class UniqueConstraintViolation(PersistenceError):
    """Raised when an append-kind insert repeats a primary identity."""

    def __init__(self, kind: str, identity: str):
        super().__init__(f"Duplicate {kind} record: {identity}")
        self.kind = kind
        self.identity = identity


class UpstreamError(AnalyticsError):
    """Raised when the external explorer feed is unreachable or returns an error."""


class CacheLoadError(AnalyticsError):
    """Raised when a cache loader fails and no previous value exists."""

    def __init__(self, key: str):
        super().__init__(f"Failed to load '{key}' and no cached value is available")
        self.key = key


class SchedulerError(AnalyticsError):
    """Raised for invalid scheduler registrations."""
