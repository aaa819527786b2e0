"""Create tables from resource declarations.

auto_migrate drops and recreates tables, leaving them empty.
auto_upgrade only creates missing tables and adds missing columns; it never
drops or alters an existing column.
"""

from dataclasses import replace

from ormtour.db_context import DatabaseManager
from ormtour.entities import Resource, registered_resources
from ormtour.logger import get_logger
from ormtour.properties import Column, column_for

logger = get_logger("migrations")


def columns_of(model: type[Resource]) -> list[Column]:
    parents = dict(model.parents().values())
    columns = []
    for name, field_info in model.model_fields.items():
        column = column_for(name, field_info)
        belongs_to = parents.get(name)
        if belongs_to is not None:
            parent = belongs_to.resolve()
            column = replace(
                column,
                sql_type="INTEGER",
                nullable=not belongs_to.required,
                references=f"{parent.table_name()} ({parent.key_name()})",
            )
        columns.append(column)
    return columns


def create_table_sql(model: type[Resource], if_not_exists: bool = False) -> str:
    definitions = ",\n    ".join(column.definition() for column in columns_of(model))
    guard = "IF NOT EXISTS " if if_not_exists else ""
    return f"CREATE TABLE {guard}{model.table_name()} (\n    {definitions}\n)"


def drop_table_sql(model: type[Resource]) -> str:
    return f"DROP TABLE IF EXISTS {model.table_name()} CASCADE"


def add_column_sql(model: type[Resource], column: Column) -> str:
    # New columns on tables that already hold rows cannot start out NOT NULL
    if not column.key and column.default is None:
        column = replace(column, nullable=True)
    return f"ALTER TABLE {model.table_name()} ADD COLUMN IF NOT EXISTS {column.definition()}"


def dependency_order(models: list[type[Resource]]) -> list[type[Resource]]:
    """Parents before the resources that belong to them"""
    ordered: list[type[Resource]] = []
    visiting: set[type[Resource]] = set()

    def visit(model: type[Resource]):
        if model in ordered:
            return
        if model in visiting:
            raise ValueError(f"Circular belongs_to declarations involving {model.__name__}")
        visiting.add(model)
        for _, belongs_to in model.parents().values():
            parent = belongs_to.resolve()
            if parent in models and parent is not model:
                visit(parent)
        visiting.discard(model)
        ordered.append(model)

    for model in models:
        visit(model)
    return ordered


def _models_or_registered(models: tuple[type[Resource], ...]) -> list[type[Resource]]:
    return dependency_order(list(models) if models else registered_resources())


async def auto_migrate(*models: type[Resource], db_name: str = "default") -> None:
    """Drop and recreate the tables of the given resources (all registered ones by default)"""
    ordered = _models_or_registered(models)
    for model in reversed(ordered):
        await DatabaseManager.execute(drop_table_sql(model), db_name=db_name)
    for model in ordered:
        logger.info("Migrating %s", model.table_name())
        await DatabaseManager.execute(create_table_sql(model), db_name=db_name)


async def auto_upgrade(*models: type[Resource], db_name: str = "default") -> None:
    """Create missing tables and add missing columns, keeping existing data"""
    for model in _models_or_registered(models):
        logger.info("Upgrading %s", model.table_name())
        await DatabaseManager.execute(
            create_table_sql(model, if_not_exists=True), db_name=db_name
        )
        for column in columns_of(model):
            # the key is created together with the table
            if column.key:
                continue
            await DatabaseManager.execute(add_column_sql(model, column), db_name=db_name)
