"""Name resolution helpers for budget categories.

Pure functions that resolve user-friendly names (partial, case-insensitive)
to categories. No I/O; they operate on the engine's current categories.
"""

from __future__ import annotations

from pocket_budget.models.schemas import Category


class ResolverError(Exception):
    """Raised when an entity cannot be resolved by name."""

    def __init__(
        self,
        entity_type: str,
        query: str,
        available: list[str] | None = None,
    ):
        self.entity_type = entity_type
        self.query = query
        self.available = available or []
        detail = f"No {entity_type} found matching '{query}'."
        if self.available:
            detail += f" Available: {', '.join(self.available)}"
        super().__init__(detail)


def _match(candidates: list[Category], name: str) -> Category | None:
    q = name.strip().lower()
    if not q:
        return None
    # Exact name wins over a partial match
    for c in candidates:
        if c.name.lower() == q:
            return c
    for c in candidates:
        if q in c.name.lower():
            return c
    return None


def resolve_category(categories: list[Category], name: str) -> Category:
    """Find any category by name (partial, case-insensitive).

    Raises :class:`ResolverError` if nothing matches.
    """
    found = _match(categories, name)
    if found is None:
        raise ResolverError("category", name, available=[c.name for c in categories])
    return found


def resolve_pocket(categories: list[Category], name: str) -> Category:
    """Find a pocket (non-income category) by name.

    Raises :class:`ResolverError` if nothing matches.
    """
    pockets = [c for c in categories if not c.is_influx]
    found = _match(pockets, name)
    if found is None:
        raise ResolverError("pocket", name, available=[c.name for c in pockets])
    return found


def resolve_income(categories: list[Category], name: str) -> Category:
    """Find an income category by name.

    Raises :class:`ResolverError` if nothing matches.
    """
    incomes = [c for c in categories if c.is_influx]
    found = _match(incomes, name)
    if found is None:
        raise ResolverError("income category", name, available=[c.name for c in incomes])
    return found
