from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

import inflection
from pydantic import BaseModel, PrivateAttr
from pydantic.config import ConfigDict

from ormtour.associations import BelongsTo, HasMany, association_name
from ormtour.properties import property_of

_registry: dict[str, type["Resource"]] = {}


def resource_class(name: str) -> type["Resource"]:
    """Look up a resource class by its class name"""
    try:
        return _registry[name]
    except KeyError:
        raise LookupError(f"Unknown resource '{name}'") from None


def registered_resources() -> list[type["Resource"]]:
    """Every resource class defined so far, in definition order"""
    return list(_registry.values())


T = TypeVar("T")


class Field(Generic[T]):
    """Type-safe column reference.

    Usage:
        class CommentSchema(SchemaBase):
            rating = Field[int]("rating")

        comments.where(CommentSchema.rating, ">", 3)
        comments.where_any(CommentSchema.rating.gt(3))
    """

    def __init__(self, column_name: str):
        self._column_name = column_name

    @property
    def column(self) -> str:
        return self._column_name

    def _condition(self, operator: str, value: Any) -> tuple[str, str, Any]:
        return (self._column_name, operator, value)

    def eq(self, value: T) -> tuple[str, str, Any]:
        return self._condition("=", value)

    def ne(self, value: T) -> tuple[str, str, Any]:
        return self._condition("!=", value)

    def gt(self, value: T) -> tuple[str, str, Any]:
        return self._condition(">", value)

    def gte(self, value: T) -> tuple[str, str, Any]:
        return self._condition(">=", value)

    def lt(self, value: T) -> tuple[str, str, Any]:
        return self._condition("<", value)

    def lte(self, value: T) -> tuple[str, str, Any]:
        return self._condition("<=", value)

    def like(self, pattern: str) -> tuple[str, str, Any]:
        return self._condition("LIKE", pattern)

    def __str__(self) -> str:
        return self._column_name

    def __repr__(self) -> str:
        return f"Field({self._column_name})"


class SchemaBase:
    """Groups the typed fields of one table.

    Usage:
        class ZooSchema(SchemaBase):
            name = Field[str]("name")
            open = Field[bool]("open")
    """

    pass


class Resource(BaseModel):
    """Base class for persisted records.

    A resource knows whether it was ever stored (``saved``/``new``) and which
    attributes changed since it was last loaded or saved (``dirty``).
    Assignments are validated against the declared field types.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        use_enum_values=True, validate_assignment=True
    )

    # Override to store the resource somewhere else than the pluralized class name
    storage_name: ClassVar[str | None] = None
    # False keeps a class out of the registry (and out of a bare auto_migrate())
    registered: ClassVar[bool] = True

    _original: dict[str, Any] | None = PrivateAttr(default=None)
    _errors: list[str] = PrivateAttr(default_factory=list)
    _destroyed: bool = PrivateAttr(default=False)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        # Not inherited: subclasses of an unregistered class register by default
        if not vars(cls).get("registered", True):
            return
        existing = _registry.get(cls.__name__)
        if existing is not None and (existing.__module__, existing.__qualname__) != (
            cls.__module__,
            cls.__qualname__,
        ):
            raise TypeError(
                f"Resource name '{cls.__name__}' is already taken by "
                f"{existing.__module__}.{existing.__qualname__}"
            )
        _registry[cls.__name__] = cls

    @classmethod
    def table_name(cls) -> str:
        """Zoo -> zoos, BlogPost -> blog_posts"""
        return cls.storage_name or inflection.pluralize(
            inflection.underscore(cls.__name__)
        )

    @classmethod
    def key_name(cls) -> str:
        for name, field_info in cls.model_fields.items():
            prop = property_of(field_info)
            if prop and prop.key:
                return name
        return "id"

    @classmethod
    def parents(cls) -> dict[str, tuple[str, BelongsTo]]:
        """Map association name -> (foreign key field, BelongsTo)"""
        result = {}
        for name, field_info in cls.model_fields.items():
            for meta in field_info.metadata:
                if isinstance(meta, BelongsTo):
                    result[association_name(name)] = (name, meta)
        return result

    @classmethod
    def children(cls) -> dict[str, HasMany]:
        result = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, HasMany):
                    result[name] = value
        return result

    @property
    def key(self) -> Any:
        return getattr(self, self.key_name())

    @property
    def new(self) -> bool:
        return self._original is None

    @property
    def saved(self) -> bool:
        return self._original is not None

    @property
    def dirty_attributes(self) -> dict[str, Any]:
        current = self.model_dump()
        if self._original is None:
            return {name: current[name] for name in self.model_fields_set}
        return {
            name: value
            for name, value in current.items()
            if self._original.get(name) != value
        }

    @property
    def dirty(self) -> bool:
        return bool(self.dirty_attributes)

    @property
    def clean(self) -> bool:
        return not self.dirty

    @property
    def attributes(self) -> dict[str, Any]:
        return self.model_dump()

    @property
    def errors(self) -> list[str]:
        return list(self._errors)

    def set_attributes(self, **attributes: Any) -> "Resource":
        """Assign several properties at once"""
        for name in attributes:
            if name not in type(self).model_fields:
                raise AttributeError(f"{type(self).__name__} has no property '{name}'")
        for name, value in attributes.items():
            setattr(self, name, value)
        return self

    def validation_errors(self) -> list[str]:
        """Messages for required properties and parents that are missing"""
        errors = []
        for name, field_info in type(self).model_fields.items():
            if getattr(self, name) is not None:
                continue
            prop = property_of(field_info)
            if prop and prop.required and not prop.key:
                errors.append(f"{inflection.humanize(name)} must not be blank")
        for association, (field_name, belongs_to) in self.parents().items():
            if belongs_to.required and getattr(self, field_name) is None:
                errors.append(f"{inflection.humanize(association)} must not be blank")
        return errors

    @property
    def destroyed(self) -> bool:
        """Deleted from the database since it was last saved"""
        return self._destroyed

    def mark_saved(self) -> None:
        """Record the current attribute values as the persisted state"""
        self._original = self.model_dump()
        self._errors = []
        self._destroyed = False

    def mark_new(self) -> None:
        self._original = None

    def mark_destroyed(self) -> None:
        self._original = None
        self._destroyed = True

    def record_errors(self, errors: list[str]) -> None:
        self._errors = list(errors)


# Sorting functionality
class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"
