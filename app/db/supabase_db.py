"""Relational store backed by Supabase (PostgREST)."""

import logging
from typing import Any, Callable, Optional

import httpx
from fastapi.concurrency import run_in_threadpool
from postgrest.exceptions import APIError
from supabase import Client

from app.core.errors import DatabaseError
from app.db.base import Database, Order, Page, TableGateway, Where

logger = logging.getLogger(__name__)


def _apply_where(query: Any, where: Optional[Where]) -> Any:
    for column, condition in (where or {}).items():
        ops = condition if isinstance(condition, dict) else {"equals": condition}
        for op, value in ops.items():
            if op == "equals":
                if value is None:
                    query = query.is_(column, "null")
                elif isinstance(value, (list, tuple, set)):
                    query = query.in_(column, list(value))
                else:
                    query = query.eq(column, value)
            elif op == "in":
                query = query.in_(column, list(value))
            elif op == "not":
                query = query.neq(column, value)
            elif op in ("gt", "gte", "lt", "lte"):
                query = getattr(query, op)(column, value)
            elif op == "contains":
                query = query.ilike(column, f"%{value}%")
            else:
                raise ValueError(f"Unsupported filter operator: {op}")
    return query


class SupabaseTable(TableGateway):
    def __init__(self, client: Client, name: str) -> None:
        self.client = client
        self.name = name

    async def _execute(self, build: Callable[[], Any]) -> Any:
        """Run a query builder's execute() in the threadpool, translating client errors."""
        try:
            return await run_in_threadpool(lambda: build().execute())
        except APIError as e:
            logger.error("Database error on %s: %s (code=%s)", self.name, e.message, e.code)
            raise DatabaseError(f"Database error on {self.name}", details=e.message) from e
        except httpx.HTTPError as e:
            logger.error("Database request to %s failed: %s", self.name, e)
            raise DatabaseError(f"Database error on {self.name}", details=str(e)) from e

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
        def build():
            query = self.client.table(self.name).select(columns, count="exact" if count else None)
            query = _apply_where(query, where)
            for column, direction in (order or {}).items():
                query = query.order(column, desc=direction == "desc")
            if take is not None:
                query = query.range(skip, skip + take - 1)
            return query

        response = await self._execute(build)
        return Page(rows=list(response.data or []), total=response.count if count else None)

    async def find_unique(self, id: str, columns: str = "*") -> Optional[dict]:
        response = await self._execute(
            lambda: self.client.table(self.name).select(columns).eq("id", id).limit(1)
        )
        return response.data[0] if response.data else None

    async def create(self, data: dict) -> dict:
        response = await self._execute(lambda: self.client.table(self.name).insert(data))
        if not response.data:
            raise DatabaseError(f"Database error on {self.name}", details="Insert returned no row")
        return response.data[0]

    async def update(self, id: str, data: dict) -> Optional[dict]:
        response = await self._execute(
            lambda: self.client.table(self.name).update(data).eq("id", id)
        )
        return response.data[0] if response.data else None

    async def delete(self, id: str) -> bool:
        response = await self._execute(lambda: self.client.table(self.name).delete().eq("id", id))
        return bool(response.data)

    async def count(self, where: Optional[Where] = None) -> int:
        response = await self._execute(
            lambda: _apply_where(
                self.client.table(self.name).select("id", count="exact", head=True), where
            )
        )
        return response.count or 0


class SupabaseDatabase(Database):
    def __init__(self, client: Client) -> None:
        self.client = client

    def table(self, name: str) -> SupabaseTable:
        return SupabaseTable(self.client, name)

    async def rpc(self, function: str, params: Optional[dict] = None) -> Any:
        try:
            response = await run_in_threadpool(
                lambda: self.client.rpc(function, params or {}).execute()
            )
        except APIError as e:
            raise DatabaseError(f"Database function {function} failed", details=e.message) from e
        except httpx.HTTPError as e:
            raise DatabaseError(f"Database function {function} failed", details=str(e)) from e
        return response.data
