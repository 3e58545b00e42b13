from __future__ import annotations

from typing import Any, Dict, List, Optional


class EbrtError(Exception):
    """Base class for every error raised by the payload pipeline."""


class MalformedSpec(EbrtError):
    """The specification document cannot be used to build payloads."""


class InputValidationError(EbrtError):
    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        super().__init__(f"{len(errors)} invalid field(s)")


class InvalidScenario(EbrtError):
    def __init__(self, rule: str, message: str):
        self.rule = rule
        super().__init__(message)


class MissingRequiredField(EbrtError):
    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} is required")


class UpstreamUnavailable(EbrtError):
    """
    Transport failure or non-success status from the validator after retries.
    status_code/body are None when no HTTP response was received at all.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None, attempts: int = 0):
        self.status_code = status_code
        self.body = body
        self.attempts = attempts
        super().__init__(message)


class UpstreamResponseInvalid(EbrtError):
    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        super().__init__("Invalid validator response: " + "; ".join(f"{e['path']}: {e['message']}" for e in errors))


class NotFound(EbrtError):
    pass


class SubmissionInProgress(EbrtError):
    pass
