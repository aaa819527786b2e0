"""Exceptions raised by the resource layer"""


class OrmTourError(Exception):
    """Base class for errors raised by ormtour"""


class UpdateConflictError(OrmTourError):
    """Raised when update() is called on a resource holding unsaved changes"""

    def __init__(self, model_name: str):
        self.model_name = model_name
        super().__init__(f"{model_name}#update cannot be called on a dirty resource")


class UnknownAssociationError(OrmTourError):
    """Raised when an association name is not declared on a resource"""

    def __init__(self, model_name: str, name: str):
        self.model_name = model_name
        self.name = name
        super().__init__(f"{model_name} has no association named '{name}'")
