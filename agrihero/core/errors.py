from __future__ import annotations

from typing import Any


class AgriHeroError(Exception):
    """Base error for AgriHero admin."""


class RepositoryError(AgriHeroError):
    """Storage layer failure."""


class DuplicateKeyError(RepositoryError):
    """A unique field already holds the requested value in another record."""

    def __init__(self, *, entity: str, field: str, value: Any) -> None:
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity} with {field}={value!r} already exists")


class DatabaseError(RepositoryError):
    """Relational backend failure."""
