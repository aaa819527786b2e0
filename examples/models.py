"""
Resources shared by the walkthroughs: a zoo record, and blog posts with comments.
"""

from datetime import datetime
from typing import Annotated, ClassVar

from pydantic import BaseModel

from ormtour import (
    BelongsTo,
    Boolean,
    DateTime,
    Field,
    HasMany,
    Integer,
    Repository,
    Resource,
    SchemaBase,
    Serial,
    String,
    Text,
)


class Zoo(Resource):
    id: Serial = None
    name: String = None
    description: Text = None
    inception: DateTime = None
    open: Boolean = False


class ZooUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    inception: datetime | None = None
    open: bool | None = None


class ZooRepository(Repository[Zoo, ZooUpdate]):
    def __init__(self):
        super().__init__(Zoo, ZooUpdate)


class Post(Resource):
    id: Serial = None

    comments: ClassVar[HasMany] = HasMany("Comment")
    trackbacks: ClassVar[HasMany] = HasMany("Trackback")


class Comment(Resource):
    id: Serial = None
    rating: Integer = None
    # required: a comment cannot be stored without its post
    post_id: Annotated[int | None, BelongsTo("Post")] = None


class Trackback(Resource):
    id: Serial = None
    url: String = None
    # optional parent
    post_id: Annotated[int | None, BelongsTo("Post", required=False)] = None


class CommentSchema(SchemaBase):
    rating = Field[int]("rating")
    post_id = Field[int]("post_id")


class PostRepository(Repository[Post, BaseModel]):
    def __init__(self):
        super().__init__(Post)


class CommentRepository(Repository[Comment, BaseModel]):
    def __init__(self):
        super().__init__(Comment)

    def popular(self) -> "CommentRepository":
        """Comments rated above 3"""
        return self.where_any(CommentSchema.rating.gt(3))
