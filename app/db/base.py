"""
Abstract relational store.

Queries use a small Prisma-like vocabulary so services don't depend on the client:

    where={"status": "published", "author_id": ["a", "b"], "title": {"contains": "soil"},
           "created_at": {"gte": "2024-01-01"}}
    order={"created_at": "desc"}

A scalar means equality, None means IS NULL, a list means IN. Operator dicts accept
equals, in, not, gt, gte, lt, lte and contains (case-insensitive substring).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

Where = dict[str, Any]
Order = dict[str, str]


@dataclass
class Page:
    rows: list[dict] = field(default_factory=list)
    total: Optional[int] = None


class TableGateway(ABC):
    """CRUD over one table. Rows are plain dicts keyed by column name."""

    name: str

    @abstractmethod
    async def find_many(
        self,
        where: Optional[Where] = None,
        *,
        order: Optional[Order] = None,
        skip: int = 0,
        take: Optional[int] = None,
        columns: str = "*",
        count: bool = False,
    ) -> Page:
        """Matching rows in order; Page.total is the unpaginated match count when count=True."""
        ...

    @abstractmethod
    async def find_unique(self, id: str, columns: str = "*") -> Optional[dict]:
        ...

    @abstractmethod
    async def create(self, data: dict) -> dict:
        """Insert one row and return it as stored (defaults and id filled in)."""
        ...

    @abstractmethod
    async def update(self, id: str, data: dict) -> Optional[dict]:
        """Update one row; None when no row has that id."""
        ...

    @abstractmethod
    async def delete(self, id: str) -> bool:
        ...

    @abstractmethod
    async def count(self, where: Optional[Where] = None) -> int:
        ...

    async def find_first(self, where: Optional[Where] = None, order: Optional[Order] = None) -> Optional[dict]:
        page = await self.find_many(where, order=order, take=1)
        return page.rows[0] if page.rows else None


class Database(ABC):
    """Handle to the relational store, injected into services."""

    @abstractmethod
    def table(self, name: str) -> TableGateway:
        ...

    @abstractmethod
    async def rpc(self, function: str, params: Optional[dict] = None) -> Any:
        """Call a stored procedure."""
        ...
