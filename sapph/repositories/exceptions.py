"""Custom exceptions for the repository layer."""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Base exception raised when a repository operation fails."""


class NotFoundRepositoryError(RepositoryError):
    """Raised when an expected document is missing."""


class ParticipantRepositoryError(RepositoryError):
    """Raised when a user acts on a conversation they are not part of."""


__all__ = [
    "NotFoundRepositoryError",
    "ParticipantRepositoryError",
    "RepositoryError",
]
