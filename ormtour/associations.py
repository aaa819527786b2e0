"""Relationships between resources, decided by foreign keys.

    class Post(Resource):
        id: Serial = None
        comments: ClassVar[HasMany] = HasMany("Comment")

    class Comment(Resource):
        id: Serial = None
        post_id: Annotated[int | None, BelongsTo("Post")] = None

A BelongsTo is required unless declared with required=False: the parent must
exist for the child to be valid.
"""

from typing import TYPE_CHECKING

import inflection

if TYPE_CHECKING:
    from ormtour.entities import Resource


class BelongsTo:
    """Foreign key metadata pointing at a parent resource"""

    def __init__(self, parent: str, required: bool = True):
        self.parent = parent
        self.required = required

    def resolve(self) -> type["Resource"]:
        from ormtour.entities import resource_class

        return resource_class(self.parent)

    def __repr__(self) -> str:
        return f"BelongsTo({self.parent!r}, required={self.required})"


class HasMany:
    """One-to-many relationship declared on the parent"""

    def __init__(self, child: str, foreign_key: str | None = None):
        self.child = child
        self._foreign_key = foreign_key
        self.name: str | None = None
        self.owner: type["Resource"] | None = None

    def __set_name__(self, owner, name):
        self.name = name
        self.owner = owner

    @property
    def foreign_key(self) -> str:
        if self._foreign_key:
            return self._foreign_key
        if self.owner is None:
            raise RuntimeError("HasMany must be declared on a resource class")
        return f"{inflection.underscore(self.owner.__name__)}_id"

    def resolve(self) -> type["Resource"]:
        from ormtour.entities import resource_class

        return resource_class(self.child)

    def __repr__(self) -> str:
        return f"HasMany({self.child!r}, name={self.name!r})"


def association_name(foreign_key: str) -> str:
    """post_id -> post"""
    return foreign_key[:-3] if foreign_key.endswith("_id") else foreign_key
