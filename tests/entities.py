from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ormtour import SortOrder


# Search models - all fields optional for flexible querying
class ZooSearch(BaseModel):
    id: int | None = None
    name: str | None = None
    open: bool | None = None
    inception: datetime | None = None


class ZooSort(BaseModel):
    """Defines which fields can be sorted for Zoo"""

    model_config = ConfigDict(use_enum_values=True)

    name: SortOrder | None = None
    id: SortOrder | None = None
