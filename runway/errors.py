"""Exception types raised by the pipeline."""

from typing import Optional


class RunwayError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(RunwayError):
    """Required settings are missing or invalid."""


class SourceError(RunwayError):
    """A content source could not be fetched or parsed."""


class GenerationError(RunwayError):
    """The language model endpoint returned an error or an unusable payload."""

    def __init__(
        self, message: str, status: Optional[int] = None, body: Optional[str] = None
    ):
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is not None:
            base = f"{base} (HTTP {self.status})"
        if self.body:
            base = f"{base}: {self.body}"
        return base
