"""Parameterized predicate building for list queries.

Each listing declares a fixed allow-list of filters (``FilterSpec``) keyed by
filter name. Callers hand in a mapping of filter name to value; only declared
names are accepted and every value is bound as a ``$n`` parameter, so no
caller-supplied text ever reaches the SQL string.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

FilterOperator = Literal["eq", "ilike", "gte", "lte"]

MAX_PAGE_LIMIT = 100


class FilterError(ValueError):
    """Raised when a filter name is not in the allow-list for a listing."""


def escape_like(value: str) -> str:
    """Make ``%``, ``_`` and backslash match literally in an ILIKE pattern."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True, slots=True)
class FilterSpec:
    columns: tuple[str, ...]
    operator: FilterOperator = "eq"
    cast: str | None = None

    @classmethod
    def on(cls, column: str, operator: FilterOperator = "eq", *, cast: str | None = None) -> FilterSpec:
        return cls(columns=(column,), operator=operator, cast=cast)


@dataclass(slots=True)
class QueryBuilder:
    params: list[Any] = field(default_factory=list)
    conditions: list[str] = field(default_factory=list)

    def bind(self, value: Any) -> str:
        self.params.append(value)
        return f"${len(self.params)}"

    def where(self, condition: str) -> None:
        self.conditions.append(condition)

    def apply(self, filters: Mapping[str, Any], allowed: Mapping[str, FilterSpec]) -> None:
        unknown = sorted(name for name in filters if name not in allowed)
        if unknown:
            raise FilterError(f"unsupported filters: {', '.join(unknown)}")

        for name, value in filters.items():
            if value is None:
                continue
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    continue
            self.where(self._predicate(allowed[name], value))

    def where_sql(self) -> str:
        return " and ".join(self.conditions) if self.conditions else "true"

    def _predicate(self, spec: FilterSpec, value: Any) -> str:
        suffix = f"::{spec.cast}" if spec.cast else ""
        if spec.operator == "ilike":
            token = self.bind(f"%{escape_like(str(value))}%")
            clauses = [f"coalesce({column}, '') ilike {token}" for column in spec.columns]
            return clauses[0] if len(clauses) == 1 else "(" + " or ".join(clauses) + ")"

        token = self.bind(value) + suffix
        column = spec.columns[0]
        if spec.operator == "eq":
            return f"{column} = {token}"
        if spec.operator == "gte":
            return f"{column} >= {token}"
        if spec.operator == "lte":
            return f"{column} <= {token}"
        raise FilterError(f"unsupported operator: {spec.operator}")


@dataclass(frozen=True, slots=True)
class Page:
    page: int = 1
    limit: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise FilterError("page must be a positive integer")
        if not 1 <= self.limit <= MAX_PAGE_LIMIT:
            raise FilterError(f"limit must be between 1 and {MAX_PAGE_LIMIT}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def pagination(self, total: int) -> dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "total_pages": math.ceil(total / self.limit) if total else 0,
        }
