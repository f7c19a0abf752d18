"""Error taxonomy shared by services, providers and the HTTP layer."""

from enum import Enum

EXCERPT_LENGTH = 100


class ProviderErrorKind(str, Enum):
    """Normalized failure categories for generative provider calls."""

    AUTHENTICATION_FAILED = "AuthenticationFailed"
    UNREACHABLE = "Unreachable"
    RATE_LIMITED = "RateLimited"
    MALFORMED_UPSTREAM_RESPONSE = "MalformedUpstreamResponse"
    UNKNOWN = "Unknown"


class QuizAppError(Exception):
    """Base class for errors that map onto a JSON error response."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def user_message(self) -> str:
        """Message that is safe to show to the client."""
        return self.message


class ValidationError(QuizAppError):
    """Bad or missing request parameters."""

    status_code = 400


class AuthenticationError(QuizAppError):
    """Missing or wrong credentials."""

    status_code = 401


class ForbiddenError(QuizAppError):
    """Credentials were presented but are not acceptable (bad or expired token)."""

    status_code = 403


class ConflictError(QuizAppError):
    """The resource already exists (e.g. a taken username)."""

    status_code = 409


class NotFoundError(QuizAppError):
    """Resource is missing or belongs to someone else.

    Both cases share this one error so that clients cannot probe for the
    existence of other users' quizzes and results.
    """

    status_code = 404


class ProviderError(QuizAppError):
    """The generative provider failed; ``kind`` says how."""

    status_code = 500

    def __init__(self, kind: ProviderErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    @property
    def user_message(self) -> str:
        if self.kind == ProviderErrorKind.AUTHENTICATION_FAILED:
            return "Invalid or expired API key. Please set your API key again."
        return self.message

    def __repr__(self) -> str:
        return f"ProviderError(kind={self.kind.value!r}, message={self.message!r})"


class MalformedGeneration(QuizAppError):
    """The provider answered, but not with usable quiz structure."""

    status_code = 500

    def __init__(self, reason: str, raw_text: str = ""):
        self.reason = reason
        self.excerpt = excerpt(raw_text)
        super().__init__(
            f"Failed to process AI response: {reason}. "
            f'Raw response starts with: "{self.excerpt}..."'
        )


class GenerationFailed(QuizAppError):
    """No questions could be generated at all."""

    status_code = 500


class PersistenceError(QuizAppError):
    """The storage layer failed."""

    status_code = 500


def excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    """Return the opening characters of ``text`` for diagnostics."""
    return (text or "")[:length]
