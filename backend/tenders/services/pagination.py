"""Limit/offset pagination shared by listing use-cases."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Pagination:
    limit: int = 0
    offset: int = 0

    def apply(self, query: Any):
        """Apply to a SQLAlchemy query; limit <= 0 means unlimited."""
        if self.offset > 0:
            query = query.offset(self.offset)
        if self.limit > 0:
            query = query.limit(self.limit)
        return query


UNLIMITED = Pagination()
