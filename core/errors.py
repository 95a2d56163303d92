"""
Exception hierarchy for code analysis.

AnalysisError
├── ValidationError
├── ModelInvocationError
│   ├── RateLimitedError
│   ├── ModelTimeoutError
│   └── ResponseSchemaError (also a ValidationError)
└── HeuristicAnalysisError
"""
from __future__ import annotations

from typing import Optional


class AnalysisError(Exception):
    """Base exception for every analysis failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(AnalysisError):
    """Malformed request, or a backend response with an unrecognized shape."""


class ModelInvocationError(AnalysisError):
    """The model backend could not produce a usable result."""


class RateLimitedError(ModelInvocationError):
    """The backend refused the call because of rate limiting or quota."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = 429,
        retry_after: Optional[float] = None,
    ):
        self.retry_after = retry_after
        super().__init__(message, status_code=status_code)


class ModelTimeoutError(ModelInvocationError):
    """The backend did not answer in time or the network failed."""


class ResponseSchemaError(ModelInvocationError, ValidationError):
    """The backend answered, but not with the requested schema."""


class HeuristicAnalysisError(AnalysisError):
    """A pattern rule raised. This is a bug in the rule, not bad input."""


def user_message(exc: Exception) -> str:
    """Human readable text for an analysis failure."""
    if isinstance(exc, RateLimitedError):
        wait = f" in about {int(exc.retry_after)} seconds" if exc.retry_after else " in a minute"
        return f"The analysis service is temporarily rate limited. Please try again{wait}."
    if isinstance(exc, ModelTimeoutError):
        return "The analysis service took too long to respond. Please try again."
    if isinstance(exc, ValidationError) and not isinstance(exc, ModelInvocationError):
        return exc.message
    return "An unexpected error occurred while analyzing the code. Please try again."
