"""
Custom exceptions for the validation pipeline.

Every failure that aborts a validation run derives from ValidationError,
which carries the repository (and the rule, where one is involved) so the
caller can log the error verbatim.
"""

from datetime import datetime
from enum import Enum
from typing import Optional


class TailorError(Exception):
    """Base exception for all tailor errors."""
    pass


class ConfigurationError(TailorError):
    """Raised when application settings or rule definitions are invalid."""
    pass


class ValidationError(TailorError):
    """
    Base exception for errors that abort a validation run.

    A run either yields a list of failure messages or raises exactly one
    of these.
    """
    def __init__(self, message: str, repository: Optional[str] = None, rule: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.repository = repository
        self.rule = rule


class FetchErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    TRANSPORT = "transport"
    DECODE = "decode"


class FetchError(ValidationError):
    """A GitHub record could not be fetched or decoded."""
    def __init__(
        self,
        message: str,
        kind: FetchErrorKind = FetchErrorKind.TRANSPORT,
        status_code: Optional[int] = None,
        repository: Optional[str] = None,
    ):
        super().__init__(message, repository=repository)
        self.kind = kind
        self.status_code = status_code


class RateLimitExceeded(FetchError):
    """GitHub API rate limit exceeded"""
    def __init__(self, reset_time: datetime, repository: Optional[str] = None):
        super().__init__(
            f"Rate limit exceeded. Resets at {reset_time}",
            kind=FetchErrorKind.RATE_LIMITED,
            repository=repository,
        )
        self.reset_time = reset_time


class AuthorityCheckError(ValidationError):
    """
    The permission of a disable directive's author could not be verified.

    An exemption whose authority is unknown can neither be granted nor
    denied, so the whole run is aborted.
    """
    def __init__(self, message: str, login: str, repository: Optional[str] = None):
        super().__init__(message, repository=repository)
        self.login = login


class ExpressionError(ValidationError):
    """A rule expression is malformed or cannot be evaluated."""
    def __init__(
        self,
        reason: str,
        repository: Optional[str] = None,
        rule: Optional[str] = None,
    ):
        if rule and repository:
            message = f'Failed to run "{rule}" from "{repository}": {reason}'
        else:
            message = reason
        super().__init__(message, repository=repository, rule=rule)
        self.reason = reason


class UnknownRepositoryError(ValidationError):
    """No rules are configured for the job's repository."""
    pass
