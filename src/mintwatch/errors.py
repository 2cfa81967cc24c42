"""Exceptions raised by the mintwatch pipeline. All of them are fatal for a run."""

from typing import Optional


class MintwatchError(Exception):
    """Base class for every pipeline failure."""


class FetchError(MintwatchError):
    """Explorer request failed, returned garbage, or reported an error."""


class EmptyResultError(FetchError):
    """Pagination finished without collecting a single transfer."""


class CastError(MintwatchError):
    """A raw transfer field could not be converted to its typed column."""

    def __init__(self, field: str, detail: str = ""):
        message = f"Cannot cast field '{field}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.field = field


class AggregationError(MintwatchError):
    """Grouping broke an invariant of the mint table."""


class ConfigError(MintwatchError):
    """Missing configuration key or out-of-range option."""


class PublishError(MintwatchError):
    """Media upload, status query or post submission failed."""

    def __init__(self, reason: str, stage: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.stage = stage
