"""
Domain exceptions.

Typed exceptions for the menu analysis engine. Every exception carries a
``retryable`` flag so callers can decide between "Retry" and "Go back"
without string matching on messages.
"""

from __future__ import annotations


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class MenuAnalysisError(Exception):
    """
    Base exception for all engine errors.

    Allows catching every engine error with a single except clause.
    """

    retryable: bool = False


# ═══════════════════════════════════════════════════════════
# INPUT / CALLER EXCEPTIONS (raised before any network call)
# ═══════════════════════════════════════════════════════════


class EmptyExtractionError(MenuAnalysisError):
    """
    No menu items survived extraction.

    Terminal: the input genuinely had no menu content.

    Example:
        >>> raise EmptyExtractionError("No menu items found in text")
    """


class InvalidRequestError(MenuAnalysisError):
    """
    Caller contract violation.

    Raised when:
    - both ``items`` and ``contentParts`` are populated
    - a text request is sent to the multimodal entry point (or vice versa)
    - a multimodal request has no image part
    """


class UnsupportedCombinationError(MenuAnalysisError):
    """
    Provider/backend-mode pair is not one of the four supported ones.

    Example:
        >>> raise UnsupportedCombinationError("openai/local is not supported")
    """


class ConfigurationError(MenuAnalysisError):
    """Configuration value missing or malformed."""


# ═══════════════════════════════════════════════════════════
# EXTERNAL SERVICE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ExternalServiceError(MenuAnalysisError):
    """
    External service call failed.

    Base class for transport, timeout and credential failures.
    """


class AuthenticationError(ExternalServiceError):
    """
    Credential problem.

    Raised when:
    - API key missing
    - service-account JSON malformed
    - token expired or rejected (401/403)

    Fatal until configuration is fixed.
    """


class TransportError(ExternalServiceError):
    """
    Network or HTTP failure.

    Example:
        >>> raise TransportError("Remote function error: 502", status_code=502)
    """

    retryable = True

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TimeoutError(ExternalServiceError):  # noqa: A001
    """
    Analysis call exceeded its timeout.

    Example:
        >>> raise TimeoutError("Analysis timed out after 30s")
    """

    retryable = True


# ═══════════════════════════════════════════════════════════
# MODEL OUTPUT EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class SchemaViolationError(MenuAnalysisError):
    """
    Model output unusable even after the repair pass.

    Retryable: the model is non-deterministic and a resubmission may
    come back well-formed.
    """

    retryable = True


# ═══════════════════════════════════════════════════════════
# INFRASTRUCTURE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class CacheError(MenuAnalysisError):
    """
    Cache operation failed.

    Raised when a response cannot be serialised for storage.
    """
