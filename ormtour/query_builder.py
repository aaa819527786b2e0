"""
Immutable SQL builder used by Repository.
Produces (query, params) pairs with asyncpg-style $n placeholders; nothing is executed here.
"""

import re
from collections.abc import Callable
from typing import Any

_PLACEHOLDER = re.compile(r"\$(\d+)")


def shift_placeholders(sql: str, offset: int) -> str:
    """Renumber $n placeholders to $(n + offset)"""
    if not offset:
        return sql
    return _PLACEHOLDER.sub(lambda m: f"${int(m.group(1)) + offset}", sql)


class QueryBuilder:
    """
    Usage:
        builder = QueryBuilder("zoos")
        query, params = builder.where("open", True).order_by("name").build()
        query, params = builder.where("open", False).build_update({"open": True})
    """

    def __init__(self, table_name: str):
        self.table_name = table_name
        self.select_fields = "*"
        self.where_conditions: list[str] = []
        self.or_where_conditions: list[str] = []
        self.params: list[Any] = []
        self.order_by_parts: list[str] = []
        self.limit_count: int | None = None
        self.offset_count: int | None = None

    def _clone(self) -> "QueryBuilder":
        new_builder = QueryBuilder(self.table_name)
        new_builder.select_fields = self.select_fields
        new_builder.where_conditions = self.where_conditions.copy()
        new_builder.or_where_conditions = self.or_where_conditions.copy()
        new_builder.params = self.params.copy()
        new_builder.order_by_parts = self.order_by_parts.copy()
        new_builder.limit_count = self.limit_count
        new_builder.offset_count = self.offset_count
        return new_builder

    @property
    def has_conditions(self) -> bool:
        return bool(self.where_conditions or self.or_where_conditions)

    def _add_condition(
        self, field: Any, value: Any, operator: str, is_or: bool = False
    ) -> "QueryBuilder":
        new_builder = self._clone()
        field = str(field)
        operator = operator.upper() if operator.isalpha() else operator

        # None compares with IS NULL / IS NOT NULL
        if value is None and operator in ("=", "!=", "<>"):
            condition = f"{field} IS NULL" if operator == "=" else f"{field} IS NOT NULL"
        else:
            new_builder.params.append(value)
            condition = f"{field} {operator} ${len(new_builder.params)}"

        if is_or:
            new_builder.or_where_conditions.append(condition)
        else:
            new_builder.where_conditions.append(condition)
        return new_builder

    def _add_in_condition(
        self, field: Any, values: Any, is_not: bool = False, is_or: bool = False
    ) -> "QueryBuilder":
        new_builder = self._clone()
        if not isinstance(values, (list, tuple, set)):
            values = [values]
        values = list(values)

        if not values:
            # IN () is invalid SQL; an empty IN matches nothing, NOT IN everything
            condition = "TRUE" if is_not else "FALSE"
        else:
            start = len(new_builder.params) + 1
            placeholders = ", ".join(f"${start + i}" for i in range(len(values)))
            condition = f"{field} {'NOT ' if is_not else ''}IN ({placeholders})"
            new_builder.params.extend(values)

        if is_or:
            new_builder.or_where_conditions.append(condition)
        else:
            new_builder.where_conditions.append(condition)
        return new_builder

    def _add_group_condition(
        self, group_function: Callable[["QueryBuilder"], "QueryBuilder"], is_or: bool
    ) -> "QueryBuilder":
        group_builder = QueryBuilder("")
        result = group_function(group_builder)
        if result is not None:
            group_builder = result
        if not group_builder.has_conditions:
            return self

        new_builder = self._clone()
        condition = shift_placeholders(
            group_builder._where_expression(), len(new_builder.params)
        )
        if is_or:
            new_builder.or_where_conditions.append(f"({condition})")
        else:
            new_builder.where_conditions.append(f"({condition})")
        new_builder.params.extend(group_builder.params)
        return new_builder

    @staticmethod
    def _split_args(name: str, args: tuple) -> tuple[str, Any]:
        if len(args) == 2:
            return args[0], args[1]
        if len(args) == 1:
            return "=", args[0]
        raise TypeError(f"{name}() expects (field, value) or (field, operator, value)")

    def select(self, *fields: str) -> "QueryBuilder":
        """Set the SELECT fields; no argument means *"""
        new_builder = self._clone()
        new_builder.select_fields = ", ".join(fields) if fields else "*"
        return new_builder

    def where(self, field_or_function: Any, *args: Any) -> "QueryBuilder":
        """Add a WHERE condition: where(field, value), where(field, op, value) or where(lambda qb: ...)"""
        if callable(field_or_function):
            return self._add_group_condition(field_or_function, is_or=False)
        operator, value = self._split_args("where", args)
        return self._add_condition(field_or_function, value, operator)

    def or_where(self, field_or_function: Any, *args: Any) -> "QueryBuilder":
        if callable(field_or_function):
            return self._add_group_condition(field_or_function, is_or=True)
        operator, value = self._split_args("or_where", args)
        return self._add_condition(field_or_function, value, operator, is_or=True)

    def where_any(
        self, conditions: tuple[Any, str, Any] | list[tuple[Any, str, Any]]
    ) -> "QueryBuilder":
        """Add one (field, operator, value) condition or a list of them"""
        if isinstance(conditions, tuple):
            conditions = [conditions]
        new_builder = self
        for field, operator, value in conditions:
            new_builder = new_builder._add_condition(field, value, operator)
        return new_builder

    def where_in(self, field: Any, values: Any) -> "QueryBuilder":
        return self._add_in_condition(field, values)

    def where_not_in(self, field: Any, values: Any) -> "QueryBuilder":
        return self._add_in_condition(field, values, is_not=True)

    def or_where_in(self, field: Any, values: Any) -> "QueryBuilder":
        return self._add_in_condition(field, values, is_or=True)

    def order_by(self, field: Any) -> "QueryBuilder":
        """Add ORDER BY ascending for a field. Chain to add multiple fields."""
        new_builder = self._clone()
        new_builder.order_by_parts.append(str(field))
        return new_builder

    order_by_asc = order_by

    def order_by_desc(self, field: Any) -> "QueryBuilder":
        new_builder = self._clone()
        new_builder.order_by_parts.append(f"{field} DESC")
        return new_builder

    def limit(self, count: int) -> "QueryBuilder":
        new_builder = self._clone()
        new_builder.limit_count = count
        return new_builder

    def offset(self, count: int) -> "QueryBuilder":
        new_builder = self._clone()
        new_builder.offset_count = count
        return new_builder

    def paginate(self, page: int, per_page: int = 10) -> "QueryBuilder":
        """LIMIT/OFFSET for a 1-based page number"""
        if page < 1:
            raise ValueError("Page number must be 1 or greater")
        if per_page < 1:
            raise ValueError("Per page count must be 1 or greater")
        return self.limit(per_page).offset((page - 1) * per_page)

    def _where_expression(self) -> str:
        parts = []
        if self.where_conditions:
            and_clause = " AND ".join(self.where_conditions)
            if len(self.where_conditions) > 1 and self.or_where_conditions:
                and_clause = f"({and_clause})"
            parts.append(and_clause)
        if self.or_where_conditions:
            or_clause = " OR ".join(self.or_where_conditions)
            if len(self.or_where_conditions) > 1 and self.where_conditions:
                or_clause = f"({or_clause})"
            parts.append(or_clause)
        return " OR ".join(parts)

    def _where_clause(self) -> str:
        return f" WHERE {self._where_expression()}" if self.has_conditions else ""

    def build(self) -> tuple[str, list[Any]]:
        """Build the SELECT statement and its parameters"""
        query = f"SELECT {self.select_fields} FROM {self.table_name}{self._where_clause()}"
        if self.order_by_parts:
            query += f" ORDER BY {', '.join(self.order_by_parts)}"
        if self.limit_count is not None:
            query += f" LIMIT {self.limit_count}"
        if self.offset_count is not None:
            query += f" OFFSET {self.offset_count}"
        return query, list(self.params)

    def build_count(self) -> tuple[str, list[Any]]:
        return f"SELECT COUNT(*) FROM {self.table_name}{self._where_clause()}", list(
            self.params
        )

    def build_update(
        self, values: dict[str, Any], returning: bool = False
    ) -> tuple[str, list[Any]]:
        """Build an UPDATE of every row matching the current conditions.

        SET values take $1..$n, the WHERE parameters follow.
        """
        if not values:
            raise ValueError("build_update() needs at least one column to set")
        set_clause = ", ".join(f"{column} = ${i + 1}" for i, column in enumerate(values))
        where_clause = shift_placeholders(self._where_clause(), len(values))
        query = f"UPDATE {self.table_name} SET {set_clause}{where_clause}"
        if returning:
            query += " RETURNING *"
        return query, list(values.values()) + list(self.params)

    def build_delete(self) -> tuple[str, list[Any]]:
        """Build a DELETE of every row matching the current conditions"""
        return f"DELETE FROM {self.table_name}{self._where_clause()}", list(self.params)

    def to_sql(self) -> str:
        query, _ = self.build()
        return query

    def __str__(self) -> str:
        query, params = self.build()
        return f"Query: {query}\nParams: {params}"
