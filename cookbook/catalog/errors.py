from __future__ import annotations


class CatalogError(Exception):
    """Base class for every error raised by the catalog core."""


class ValidationError(CatalogError):
    """Malformed or out-of-range filter / policy input."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFoundError(CatalogError):
    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConcurrencyError(CatalogError):
    """A rating recomputation kept losing the race against other writers."""

    def __init__(self, recipe_id: int, attempts: int) -> None:
        super().__init__(
            f"rating update for recipe {recipe_id} conflicted {attempts} time(s)"
        )
        self.recipe_id = recipe_id
        self.attempts = attempts
