"""Error taxonomy shared by the pipeline, the store and the routers."""


class ResuError(Exception):
    """Base class for every failure surfaced to API callers."""

    def __init__(self, message: str, step: str | None = None):
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self) -> str:
        if self.step:
            return f"[{self.step}] {self.message}"
        return self.message


class ConcurrencyRejected(ResuError):
    """Another generation run already holds the lease. Retry later."""


class ValidationFailed(ResuError):
    """A payload could not be reconciled with its strict schema.

    Attributes:
        field_path: Dotted path of the offending field ("$" for the whole payload)
    """

    def __init__(self, field_path: str, message: str, step: str | None = None):
        super().__init__(f"{field_path}: {message}", step=step)
        self.field_path = field_path


class ExternalServiceFailed(ResuError):
    """The completion service errored, timed out or returned nothing."""


class NotFound(ResuError):
    """Unknown resume identifier."""


class ConcurrentModification(ResuError):
    """The record changed after it was loaded. Reload and retry."""
