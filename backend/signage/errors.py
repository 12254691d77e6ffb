"""Error taxonomy shared by the resolver, media binding and repositories."""

from __future__ import annotations


class SignageError(Exception):
    """Base class for signage backend failures."""


class RepositoryError(SignageError):
    """A content/playlist/schedule/screen query failed (network, query, decode)."""


class ResolutionError(SignageError):
    """A media reference could not be turned into a fetchable URL."""

    def __init__(self, message: str, *, content_id: str | None = None) -> None:
        super().__init__(message)
        self.content_id = content_id
