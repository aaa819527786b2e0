from typing import Any, Generic, TypeVar

from ormtour.entities import Resource


T = TypeVar("T", bound=Resource)


class EntityMapper(Generic[T]):
    """Builds resources from database rows and marks them as loaded"""

    def __init__(self, entity_class: type[T]):
        self.entity_class = entity_class

    def map_row_to_entity(self, row: Any) -> T:
        fields = self.entity_class.model_fields
        entity = self.entity_class(**{k: v for k, v in dict(row).items() if k in fields})
        entity.mark_saved()
        return entity

    def map_rows_to_entities(self, rows: list[Any]) -> list[T]:
        return [self.map_row_to_entity(row) for row in rows]

    def refresh(self, entity: T, row: Any) -> T:
        """Copy the stored values of a row back onto an existing resource"""
        fields = type(entity).model_fields
        for name, value in dict(row).items():
            if name in fields:
                setattr(entity, name, value)
        entity.mark_saved()
        return entity
