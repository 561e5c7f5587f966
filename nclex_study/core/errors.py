"""
Error taxonomy for the study core.

Validation failures are raised at the service boundary, store failures
propagate unchanged, and scheduling arithmetic never raises.
"""

from __future__ import annotations


class NclexStudyError(Exception):
    """Base class for all study-core errors."""

    code = "error"
    retryable = False

    def __init__(self, message: str, **details: object):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, object]:
        """Serialize for API responses."""
        payload: dict[str, object] = {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.details:
            payload["details"] = {k: str(v) for k, v in self.details.items()}
        return payload


class InvalidInputError(NclexStudyError):
    """Raised when a caller supplies an out-of-range or malformed value."""

    code = "invalid_input"


class NotFoundError(NclexStudyError):
    """Raised when an attempt or question does not exist."""

    code = "not_found"


class ExhaustedContentError(NclexStudyError):
    """No question is available at the requested difficulty.

    This is an expected steady-state condition, not a data problem.
    """

    code = "exhausted_content"


class InvalidContentError(NclexStudyError):
    """Generated content failed schema validation."""

    code = "invalid_content"


class StoreUnavailableError(NclexStudyError):
    """A backing store could not be reached."""

    code = "store_unavailable"
    retryable = True


class ConcurrentUpdateError(StoreUnavailableError):
    """A concurrent writer changed the item between read and write."""

    code = "concurrent_update"


class ContentProviderUnavailableError(StoreUnavailableError):
    """The content provider (LLM API) could not be reached."""

    code = "content_provider_unavailable"
