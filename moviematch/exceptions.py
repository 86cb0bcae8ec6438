"""
Movie Matcher — Domain error taxonomy.

Services raise these; ``moviematch.main`` renders them as
``{"error": message}`` with the attached HTTP status.
"""

from __future__ import annotations


class MovieMatchError(Exception):
    """Base class for every error surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgumentError(MovieMatchError, ValueError):
    status_code = 400


class ConflictError(MovieMatchError):
    """Duplicate or already-processed state."""

    status_code = 400


class UnauthenticatedError(MovieMatchError):
    status_code = 401


class NotFoundError(MovieMatchError, LookupError):
    status_code = 404


class ForbiddenError(NotFoundError):
    """Authenticated but not entitled to the resource.

    Rendered as 404, the same as a record that does not exist.
    """
