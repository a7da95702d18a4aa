"""Exception taxonomy for include resolution, rendering, and artifact storage"""


class PlantumlError(Exception):
    """Base class for all mdplantuml failures."""


class IncludeReadFailure(PlantumlError):
    """An include target could not be read, or expanding it would cycle or nest too deep."""

    def __init__(self, target: str, reason: str):
        super().__init__(f"Cannot include {target}: {reason}")
        self.target = target
        self.reason = reason


class RenderFailure(PlantumlError):
    """The rendering service was unreachable or answered with a non-2xx status."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class StorageFailure(PlantumlError):
    """The output directory could not be created or an artifact could not be written."""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path
