"""Repository class"""

import copy
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

import asyncpg
from pydantic import BaseModel, Field

from ormtour.database_operations import DatabaseOperations
from ormtour.db_context import DatabaseManager
from ormtour.entities import Resource
from ormtour.entity_mapper import EntityMapper
from ormtour.exceptions import UnknownAssociationError, UpdateConflictError
from ormtour.logger import get_logger
from ormtour.query_builder import QueryBuilder
from ormtour.search_condition_builder import SearchConditionBuilder

logger = get_logger("repository")

# Database errors that make a save fail instead of propagating
SAVE_FAILURES = (asyncpg.IntegrityConstraintViolationError, asyncpg.DataError)


class RepositoryConfig(BaseModel):
    """Configuration options for Repository"""

    db_schema: str | None = Field(default=None, description="Database schema name")


T = TypeVar("T", bound=Resource)
U = TypeVar("U", bound=BaseModel)


class Repository(Generic[T, U]):
    """Reads and writes one resource class.

    Every method touching the database must run inside a transaction context
    (``DatabaseManager.transaction()`` or ``@transactional``).

    Type Parameters:
        T: Resource class
        U: Update model type, used to validate changes passed to update/update_all
    """

    def __init__(
        self,
        entity_class: type[T],
        update_class: type[U] | None = None,
        table_name: str | None = None,
        config: RepositoryConfig | None = None,
    ):
        if entity_class is None:
            raise ValueError("entity_class is required")

        self.entity_class = entity_class
        self.update_class = update_class
        self.table_name = table_name or entity_class.table_name()
        self.config = config or RepositoryConfig()
        self._qualified_table_name = (
            f"{self.config.db_schema}.{self.table_name}"
            if self.config.db_schema
            else self.table_name
        )
        self._query_builder: QueryBuilder | None = None

        self.db_ops = DatabaseOperations()
        self.entity_mapper = EntityMapper(entity_class)

    @property
    def model_name(self) -> str:
        return self.entity_class.__name__

    @property
    def key_name(self) -> str:
        return self.entity_class.key_name()

    def _get_or_create_query_builder(self) -> QueryBuilder:
        if self._query_builder is None:
            return QueryBuilder(self._qualified_table_name)
        return self._query_builder

    def _clone_with_query_builder(self, query_builder: QueryBuilder) -> "Repository[T, U]":
        """Shallow copy keeping subclass finders, with a new query builder"""
        new_repo = copy.copy(self)
        new_repo._query_builder = query_builder
        return new_repo

    def _changes_dict(self, changes: U | Mapping[str, Any]) -> dict[str, Any]:
        """Explicitly set values of an update model or mapping"""
        if isinstance(changes, BaseModel):
            return changes.model_dump(exclude_unset=True)
        # Checked first: update models ignore keys they do not declare
        unknown = set(changes) - set(self.entity_class.model_fields)
        if unknown:
            raise AttributeError(
                f"{self.model_name} has no property {', '.join(sorted(unknown))}"
            )
        if self.update_class is not None:
            return self.update_class(**changes).model_dump(exclude_unset=True)
        return dict(changes)

    # Fluent query methods that return a new repository instance
    def select(self, *fields: str) -> "Repository[T, U]":
        return self._clone_with_query_builder(
            self._get_or_create_query_builder().select(*fields)
        )

    def where(self, field: Any, *args: Any) -> "Repository[T, U]":
        """Add a WHERE condition: where(field, value) or where(field, operator, value)"""
        return self._clone_with_query_builder(
            self._get_or_create_query_builder().where(field, *args)
        )

    def or_where(self, field: Any, *args: Any) -> "Repository[T, U]":
        return self._clone_with_query_builder(
            self._get_or_create_query_builder().or_where(field, *args)
        )

    def where_any(self, conditions: Any) -> "Repository[T, U]":
        return self._clone_with_query_builder(
            self._get_or_create_query_builder().where_any(conditions)
        )

    def where_in(self, field: Any, values: list) -> "Repository[T, U]":
        return self._clone_with_query_builder(
            self._get_or_create_query_builder().where_in(field, values)
        )

    def where_not_in(self, field: Any, values: list) -> "Repository[T, U]":
        return self._clone_with_query_builder(
            self._get_or_create_query_builder().where_not_in(field, values)
        )

    def matching(self, conditions: BaseModel | Mapping[str, Any] | None) -> "Repository[T, U]":
        """Scope to the criteria of a search model or mapping"""
        return self._clone_with_query_builder(
            SearchConditionBuilder.apply_search_conditions(
                self._get_or_create_query_builder(), conditions
            )
        )

    def order_by(self, field: Any) -> "Repository[T, U]":
        return self._clone_with_query_builder(
            self._get_or_create_query_builder().order_by(field)
        )

    def order_by_asc(self, field: Any) -> "Repository[T, U]":
        return self.order_by(field)

    def order_by_desc(self, field: Any) -> "Repository[T, U]":
        return self._clone_with_query_builder(
            self._get_or_create_query_builder().order_by_desc(field)
        )

    def limit(self, count: int) -> "Repository[T, U]":
        return self._clone_with_query_builder(
            self._get_or_create_query_builder().limit(count)
        )

    def offset(self, count: int) -> "Repository[T, U]":
        return self._clone_with_query_builder(
            self._get_or_create_query_builder().offset(count)
        )

    def paginate(self, page: int, per_page: int = 10) -> "Repository[T, U]":
        return self._clone_with_query_builder(
            self._get_or_create_query_builder().paginate(page, per_page)
        )

    # Execution methods for fluent queries
    async def get(self) -> list[T]:
        """Execute the query and return every matching resource"""
        builder = self._get_or_create_query_builder()

        # Custom SELECT fields return plain dictionaries
        if builder.select_fields.strip() != "*":
            rows = await self.db_ops.fetch_all(*builder.build())
            return [dict(row) for row in rows]  # type: ignore[misc]

        if not builder.order_by_parts:
            builder = builder.order_by(self.key_name)
        rows = await self.db_ops.fetch_all(*builder.build())
        return self.entity_mapper.map_rows_to_entities(rows)

    async def all(self) -> list[T]:
        return await self.get()

    async def first(self) -> T | None:
        """Execute the query and return the first matching resource (by key unless ordered)"""
        builder = self._get_or_create_query_builder()
        if not builder.order_by_parts:
            builder = builder.order_by(self.key_name)
        query, params = builder.limit(1).build()
        row = await self.db_ops.fetch_one(query, params)
        if row:
            return self.entity_mapper.map_row_to_entity(row)
        return None

    async def count(self) -> int:
        query, params = self._get_or_create_query_builder().build_count()
        result = await self.db_ops.fetch_value(query, params)
        return result or 0

    async def exists(self) -> bool:
        return await self.count() > 0

    def to_sql(self) -> str:
        return self._get_or_create_query_builder().to_sql()

    def build(self) -> tuple[str, list[Any]]:
        return self._get_or_create_query_builder().build()

    @staticmethod
    def get_query_tracker():
        """Get the current query tracker, or None when queries are not tracked"""
        return DatabaseManager.get_query_tracker()

    # Lookups
    async def find_by_id(self, entity_id: Any) -> T | None:
        """Find a resource by its key"""
        return await self.where(self.key_name, entity_id).first()

    async def reload(self, entity: T) -> T | None:
        """Discard local changes by loading the stored values again"""
        if entity.new:
            return None
        query, params = (
            QueryBuilder(self._qualified_table_name)
            .where(self.key_name, entity.key)
            .build()
        )
        row = await self.db_ops.fetch_one(query, params)
        if row is None:
            return None
        return self.entity_mapper.refresh(entity, row)

    async def find_one_by(self, search: BaseModel | Mapping[str, Any]) -> T | None:
        """First resource matching the criteria; None when there are no criteria"""
        if not SearchConditionBuilder.conditions_of(search):
            return None
        return await self.matching(search).first()

    async def find_many_by(
        self,
        search: BaseModel | Mapping[str, Any] | None = None,
        sort: BaseModel | None = None,
    ) -> list[T]:
        builder = SearchConditionBuilder.apply_search_conditions(
            self._get_or_create_query_builder(), search
        )
        builder = SearchConditionBuilder.apply_sort(builder, sort)
        return await self._clone_with_query_builder(builder).get()

    # Create
    def new(self, **attributes: Any) -> T:
        """Build a resource without storing it"""
        return self.entity_class(**attributes)

    async def create(self, **attributes: Any) -> T:
        """Build a resource and save it in one go.

        Check ``saved`` on the result: a resource that could not be stored is
        returned unsaved, with the reasons in ``errors``.
        """
        entity = self.new(**attributes)
        await self.save(entity)
        return entity

    async def create_many(self, entities: list[T]) -> list[T]:
        """Insert several new resources with one statement"""
        if not entities:
            return []

        dumps = [self._insertable(entity) for entity in entities]
        columns = list(dict.fromkeys(column for dump in dumps for column in dump))
        if not columns:
            columns = [self.key_name]

        params: list[Any] = []
        rows_sql = []
        for dump in dumps:
            cells = []
            for column in columns:
                if column in dump:
                    params.append(dump[column])
                    cells.append(f"${len(params)}")
                else:
                    cells.append("DEFAULT")
            rows_sql.append(f"({', '.join(cells)})")

        rows = await self.db_ops.fetch_all(
            f"INSERT INTO {self._qualified_table_name} ({', '.join(columns)}) "
            f"VALUES {', '.join(rows_sql)} RETURNING *",
            params,
        )
        for entity, row in zip(entities, rows, strict=True):
            self.entity_mapper.refresh(entity, row)
        return entities

    async def first_or_new(
        self,
        conditions: BaseModel | Mapping[str, Any],
        attributes: Mapping[str, Any] | None = None,
    ) -> T:
        """First resource matching the conditions, else an unsaved one.

        The fallback is built from the conditions merged with ``attributes``;
        on overlap the attributes win.
        """
        found = await self.matching(conditions).first()
        if found is not None:
            return found
        merged = SearchConditionBuilder.conditions_of(conditions) | dict(attributes or {})
        return self.new(**merged)

    async def first_or_create(
        self,
        conditions: BaseModel | Mapping[str, Any],
        attributes: Mapping[str, Any] | None = None,
    ) -> T:
        """Like first_or_new, but the fallback is saved"""
        entity = await self.first_or_new(conditions, attributes)
        if entity.new:
            await self.save(entity)
        return entity

    def _insertable(self, entity: T) -> dict[str, Any]:
        """Columns for an INSERT: values that are set explicitly or not None.

        An explicit None is stored as NULL instead of the column default. The
        key is left to the database when it is empty or when the resource was
        destroyed, so a re-saved resource gets a fresh key from the sequence.
        """
        values = {
            name: value
            for name, value in entity.model_dump().items()
            if value is not None or name in entity.model_fields_set
        }
        if values.get(self.key_name) is None or entity.destroyed:
            values.pop(self.key_name, None)
        return values

    async def save(self, entity: T) -> bool:
        """Store a new resource or the changed attributes of a loaded one.

        Returns True when the resource is persisted and clean afterwards.
        """
        # Fail early (ValueError) when no transaction is active
        self.db_ops.get_connection()

        errors = entity.validation_errors()
        if errors:
            return self._save_failed(entity, errors)

        if entity.new:
            values = self._insertable(entity)
            if values:
                placeholders = ", ".join(f"${i + 1}" for i in range(len(values)))
                query = (
                    f"INSERT INTO {self._qualified_table_name} ({', '.join(values)}) "
                    f"VALUES ({placeholders}) RETURNING *"
                )
            else:
                query = f"INSERT INTO {self._qualified_table_name} DEFAULT VALUES RETURNING *"
            params = list(values.values())
        else:
            changes = entity.dirty_attributes
            if not changes:
                return True
            query, params = (
                QueryBuilder(self._qualified_table_name)
                .where(self.key_name, entity.key)
                .build_update(changes, returning=True)
            )

        try:
            # Savepoint so a rejected statement leaves the outer transaction usable
            async with DatabaseManager.transaction():
                row = await self.db_ops.fetch_one(query, params)
        except SAVE_FAILURES as e:
            return self._save_failed(entity, [str(e)])

        if row is None:
            return self._save_failed(entity, [f"{self.model_name} {entity.key} no longer exists"])
        self.entity_mapper.refresh(entity, row)
        logger.debug("Saved %s %s", self.model_name, entity.key)
        return True

    def _save_failed(self, entity: T, errors: list[str]) -> bool:
        entity.record_errors(errors)
        logger.warning("%s not saved: %s", self.model_name, "; ".join(errors))
        return False

    # Update
    async def update(self, entity: T, changes: U | Mapping[str, Any]) -> bool:
        """Assign the changes and save, in one call.

        Raises UpdateConflictError when the resource already holds unsaved
        changes, so those are never stored by accident.
        """
        if entity.dirty:
            raise UpdateConflictError(self.model_name)
        entity.set_attributes(**self._changes_dict(changes))
        return await self.save(entity)

    async def update_all(self, changes: U | Mapping[str, Any]) -> int:
        """Set the same values on every resource matched by the current query.

        Without conditions this touches every row of the table. Returns the
        number of rows updated.
        """
        values = self._changes_dict(changes)
        if not values:
            return 0
        query, params = self._get_or_create_query_builder().build_update(values)
        return await self.db_ops.execute_count(query, params)

    # Destroy
    async def destroy(self, entity: T) -> bool:
        """Delete one resource.

        It becomes new again and its key stays readable; saving it again
        inserts a new row under a key from the sequence.
        """
        if entity.new:
            return False
        query, params = (
            QueryBuilder(self._qualified_table_name)
            .where(self.key_name, entity.key)
            .build_delete()
        )
        deleted = await self.db_ops.execute_count(query, params) > 0
        if deleted:
            entity.mark_destroyed()
        return deleted

    async def destroy_all(self) -> int:
        """Delete every resource matched by the current query (all of them without conditions)"""
        query, params = self._get_or_create_query_builder().build_delete()
        return await self.db_ops.execute_count(query, params)

    # Associations
    def children(self, parent: Resource, name: str) -> "Repository[Any, Any]":
        """Repository scoped to the resources a has-many association points at"""
        association = type(parent).children().get(name)
        if association is None:
            raise UnknownAssociationError(type(parent).__name__, name)
        child_repo: Repository[Any, Any] = Repository(association.resolve(), config=self.config)
        return child_repo.where(association.foreign_key, parent.key)

    async def parent(self, child: T, name: str) -> Resource | None:
        """Load the resource a belongs-to association points at"""
        declared = self.entity_class.parents().get(name)
        if declared is None:
            raise UnknownAssociationError(self.model_name, name)
        field_name, belongs_to = declared
        parent_id = getattr(child, field_name)
        if parent_id is None:
            return None
        parent_repo: Repository[Any, Any] = Repository(belongs_to.resolve(), config=self.config)
        return await parent_repo.find_by_id(parent_id)
