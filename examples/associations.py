"""
Walkthrough: relationships between resources.

A Post has many Comments and a Comment belongs to a Post. Which records are
related is decided by foreign keys: every comment row carries a post_id.

    python -m examples.associations

The declarations live in examples/models.py:

    class Post(Resource):
        id: Serial = None
        comments: ClassVar[HasMany] = HasMany("Comment")

    class Comment(Resource):
        id: Serial = None
        rating: Integer = None
        post_id: Annotated[int | None, BelongsTo("Post")] = None

The related class is named by a string, so it may be declared further down.
HasMany derives the foreign key from the owner (Post -> post_id); BelongsTo
adds a post_id column referencing posts(id).
"""

import asyncio
import sys

from examples.db_setup import close_connections, setup_database
from examples.models import Comment, CommentRepository, Post, PostRepository, Trackback
from ormtour import Repository, auto_migrate, setup_logger, transactional

setup_logger(sys.stdout, "debug")

posts = PostRepository()
comments = CommentRepository()
trackbacks: Repository = Repository(Trackback)


@transactional()
async def walkthrough():
    post = await posts.create()
    print(f"post = {post!r}")

    for rating in (1, 4, 5):
        await comments.create(post_id=post.id, rating=rating)

    # The children of a has-many association, as a repository that can be
    # narrowed further
    post_comments = posts.children(post, "comments")
    print(f"post has {await post_comments.count()} comments")
    for comment in await post_comments.order_by_desc("rating").get():
        print(repr(comment))

    # And back from a child to its parent
    first_comment = await post_comments.first()
    print(f"comment belongs to {await comments.parent(first_comment, 'post')!r}")

    # Finders are ordinary methods on the repository: popular() keeps the
    # comments rated above 3
    print(f"popular comments: {await comments.popular().count()}")

    # belongs_to is required by default: the parent must exist for the child to
    # be valid, so this comment is not stored.
    orphan = await comments.create(rating=5)
    print(f"orphan.saved = {orphan.saved}, errors = {orphan.errors}")

    # Declared with required=False, the parent becomes optional.
    trackback = await trackbacks.create(url="https://example.com/elsewhere")
    print(f"trackback.saved = {trackback.saved}")


async def main():
    await setup_database()
    try:
        await auto_migrate(Post, Comment, Trackback)
        await walkthrough()
    finally:
        await close_connections()


if __name__ == "__main__":
    asyncio.run(main())
