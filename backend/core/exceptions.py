"""
Domain errors raised by services and translated to HTTP responses in main.py.
"""

from typing import Any


class BlogForgeError(Exception):
    """Base class for errors that map onto a stable status code and message."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.message}


class UnauthorizedError(BlogForgeError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(BlogForgeError):
    status_code = 403
    default_message = "Forbidden"


class PremiumRequiredError(ForbiddenError):
    default_message = "Premium subscription required"


class InvalidInputError(BlogForgeError):
    status_code = 400
    default_message = "Invalid request"


class InsufficientTokensError(BlogForgeError):
    """Raised when the balance does not cover the generation cost."""

    status_code = 402
    default_message = "Insufficient tokens"

    def __init__(self, required: int, available: int):
        super().__init__()
        self.required = required
        self.available = available

    def to_payload(self) -> dict[str, Any]:
        return {
            "detail": self.message,
            "required": self.required,
            "available": self.available,
        }


class NotFoundError(BlogForgeError):
    status_code = 404
    default_message = "Not found"


class PostNotFoundError(NotFoundError):
    default_message = "Post not found"


class UserNotFoundError(NotFoundError):
    default_message = "User not found"


class AIGenerationError(BlogForgeError):
    """The language model call failed or returned an unusable response."""

    status_code = 500
    default_message = "Failed to generate blog post"


class GenerationTimeoutError(AIGenerationError):
    """The language model did not answer in time; the request may be retried."""

    status_code = 504
    default_message = "Generation timed out, please try again"
