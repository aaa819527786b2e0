from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from ormtour.query_builder import QueryBuilder


class SearchConditionBuilder:
    """Turns search models, plain condition mappings and sort models into builder calls"""

    @staticmethod
    def conditions_of(search: BaseModel | Mapping[str, Any] | None) -> dict[str, Any]:
        """Criteria of a search model or mapping.

        Search model fields left at None are skipped. A None in a mapping is a
        condition of its own and matches NULL.
        """
        if search is None:
            return {}
        if isinstance(search, BaseModel):
            return {k: v for k, v in search.model_dump().items() if v is not None}
        return dict(search)

    @classmethod
    def apply_search_conditions(
        cls, builder: QueryBuilder, search: BaseModel | Mapping[str, Any] | None
    ) -> QueryBuilder:
        for field, value in cls.conditions_of(search).items():
            builder = builder.where(field, value)
        return builder

    @staticmethod
    def apply_sort(builder: QueryBuilder, sort_model: BaseModel | None) -> QueryBuilder:
        """Apply sorting to the builder using order_by (ASC default) and order_by_desc."""
        if not sort_model:
            return builder

        sort_dict = {k: v for k, v in sort_model.model_dump().items() if v is not None}
        for field, order in sort_dict.items():
            if str(getattr(order, "value", order)).upper() == "DESC":
                builder = builder.order_by_desc(field)
            else:
                builder = builder.order_by(field)
        return builder
