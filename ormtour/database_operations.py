from typing import Any

import asyncpg

from ormtour.db_context import DatabaseManager

NO_TRANSACTION_MESSAGE = (
    "No active transaction found. "
    "Repository methods must be called within a transaction context."
)


def affected_rows(status: str) -> int:
    """'UPDATE 3' -> 3, 'INSERT 0 1' -> 1"""
    _, _, count = status.rpartition(" ")
    return int(count) if count.isdigit() else 0


class DatabaseOperations:
    """Runs repository statements on the connection of the current transaction"""

    @staticmethod
    def get_connection() -> asyncpg.Connection:
        conn = DatabaseManager.get_current_connection()
        if conn is None:
            raise ValueError(NO_TRANSACTION_MESSAGE)
        return conn

    async def fetch_all(self, query: str, params: list[Any]) -> list[asyncpg.Record]:
        conn = self.get_connection()
        DatabaseManager.log_query(query, params)
        return await conn.fetch(query, *params)

    async def fetch_one(self, query: str, params: list[Any]) -> asyncpg.Record | None:
        conn = self.get_connection()
        DatabaseManager.log_query(query, params)
        return await conn.fetchrow(query, *params)

    async def fetch_value(self, query: str, params: list[Any]) -> Any:
        conn = self.get_connection()
        DatabaseManager.log_query(query, params)
        return await conn.fetchval(query, *params)

    async def execute_count(self, query: str, params: list[Any]) -> int:
        """Run an UPDATE/DELETE and return how many rows it touched"""
        conn = self.get_connection()
        DatabaseManager.log_query(query, params)
        return affected_rows(await conn.execute(query, *params))
