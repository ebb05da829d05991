"""Exceptions raised by recommendation collaborators."""

from __future__ import annotations

from aumai_smartrecommend.models import ErrorKind, StageError

__all__ = [
    "RecommendationError",
    "SearchBackendError",
    "CatalogError",
    "stage_error",
]


class RecommendationError(Exception):
    """Base class for errors raised inside the recommendation pipeline."""


class SearchBackendError(RecommendationError):
    """A search provider could not answer a query."""


class CatalogError(RecommendationError):
    """The tool catalog lookup failed."""


def stage_error(kind: ErrorKind, exc: BaseException) -> StageError:
    """Wrap *exc* as a :class:`StageError` of the given *kind*."""
    message = str(exc) or type(exc).__name__
    return StageError(kind=kind, message=message)
