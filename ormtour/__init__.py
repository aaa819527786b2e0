"""Small resource layer over asyncpg, used by the walkthroughs in examples/"""

from ormtour.associations import BelongsTo, HasMany
from ormtour.config import DatabaseConfig
from ormtour.db_context import DatabaseManager, transactional
from ormtour.entities import Field, Resource, SchemaBase, SortOrder
from ormtour.exceptions import OrmTourError, UnknownAssociationError, UpdateConflictError
from ormtour.logger import get_logger, setup_logger
from ormtour.migrations import auto_migrate, auto_upgrade
from ormtour.properties import (
    Boolean,
    DateTime,
    Integer,
    Property,
    Serial,
    String,
    Text,
)
from ormtour.repository import Repository, RepositoryConfig

__all__ = [
    "BelongsTo",
    "Boolean",
    "DatabaseConfig",
    "DatabaseManager",
    "DateTime",
    "Field",
    "HasMany",
    "Integer",
    "OrmTourError",
    "Property",
    "Repository",
    "RepositoryConfig",
    "Resource",
    "SchemaBase",
    "Serial",
    "SortOrder",
    "String",
    "Text",
    "UnknownAssociationError",
    "UpdateConflictError",
    "auto_migrate",
    "auto_upgrade",
    "get_logger",
    "setup_logger",
    "transactional",
]
