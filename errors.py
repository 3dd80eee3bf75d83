"""Typed failures raised by the studio core.

Every error carries a machine-readable ``code`` and a human-readable
``message`` so the UI can render a plain explanation without parsing strings.
"""

from __future__ import annotations

from typing import Optional


class StudioError(RuntimeError):
    """Base class for all studio failures."""

    code = "STUDIO_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        if code:
            self.code = code
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ParseError(StudioError):
    """Model output could not be turned into JSON."""

    code = "PARSE_ERROR"

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class NoImageReturnedError(StudioError):
    code = "NO_IMAGE_RETURNED"


class JobFailedError(StudioError):
    code = "JOB_FAILED"


class JobTimedOutError(StudioError):
    code = "JOB_TIMED_OUT"

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class PermissionDeniedError(StudioError):
    """The credential lacks billing or permission scope (HTTP 401/403)."""

    code = "PERMISSION_DENIED"


class MissingCredentialError(StudioError):
    code = "MISSING_CREDENTIAL"


class CredentialSelectionCancelled(StudioError):
    code = "CREDENTIAL_SELECTION_CANCELLED"


class ContentNotReadyError(StudioError):
    """An upstream stage has not produced what this stage needs yet."""

    code = "CONTENT_NOT_READY"


class ImageTooLargeError(StudioError):
    code = "IMAGE_TOO_LARGE"


class InvalidInputError(StudioError):
    """A request argument is blank or outside the supported set."""

    code = "INVALID_INPUT"


class UnknownSceneError(StudioError):
    code = "UNKNOWN_SCENE"


class SceneBusyError(StudioError):
    """The scene already has a generation in flight."""

    code = "SCENE_BUSY"
