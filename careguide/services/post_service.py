"""
Care Guide Notes API — Post Service
=====================================

What:  Community feed posts: create, list (with author), edit, delete.
Who:   Called by the /api/v1/posts route handlers.

Access rules:
    - Any authenticated user posts and reads the feed
    - Authors edit/delete their own posts; ADMIN and SUPER_ADMIN may
      moderate any post
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from careguide.exceptions import DatabaseError, NotFoundError, PermissionDeniedError
from careguide.models.post import Post
from careguide.models.user import User
from careguide.query_builder import QueryBuilder
from careguide.schemas.common import PaginationMeta
from careguide.schemas.note import PostCreate, PostUpdate

logger = logging.getLogger(__name__)

POST_SEARCHABLE_FIELDS = ["content"]


def _with_author():
    return selectinload(Post.author).load_only(User.name, User.email)


class PostService:
    async def create_post(
        self, db: AsyncSession, payload: PostCreate, actor: User
    ) -> Dict[str, Any]:
        try:
            post = Post(content=payload.content, author_id=actor.id)
            db.add(post)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating post for %s: %s", actor.id, str(e))
            raise DatabaseError(
                message="Could not create the post. Please try again.",
                context={"error_type": type(e).__name__},
            )
        logger.info("Post %s created by %s", post.id, actor.id)
        return post.to_dict()

    async def get_all_posts(
        self,
        sessions: async_sessionmaker[AsyncSession],
        query: Mapping[str, str],
    ) -> Tuple[List[Dict[str, Any]], PaginationMeta]:
        builder = QueryBuilder(select(Post).options(_with_author()), query)
        builder.filter().search(POST_SEARCHABLE_FIELDS).sort().fields().paginate()
        try:
            return await builder.execute(sessions)
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve posts. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def update_post(
        self, db: AsyncSession, post_id: uuid.UUID, payload: PostUpdate, actor: User
    ) -> Dict[str, Any]:
        post = await self._load(db, post_id)
        if not actor.is_privileged and post.author_id != actor.id:
            raise PermissionDeniedError("You can only edit your own posts")

        for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(post, field, value)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not update the post. Please try again.",
                context={"post_id": str(post_id)},
            )
        return post.to_dict()

    async def delete_post(self, db: AsyncSession, post_id: uuid.UUID, actor: User) -> None:
        post = await self._load(db, post_id)
        if not actor.is_privileged and post.author_id != actor.id:
            raise PermissionDeniedError("You can only delete your own posts")
        try:
            await db.delete(post)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not delete the post. Please try again.",
                context={"post_id": str(post_id)},
            )
        logger.info("Post %s deleted by %s", post_id, actor.id)

    async def _load(self, db: AsyncSession, post_id: uuid.UUID) -> Post:
        # Author is loaded up front so the updated post serializes with it
        try:
            result = await db.execute(
                select(Post).where(Post.id == post_id).options(_with_author())
            )
            post = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the post. Please try again.",
                context={"post_id": str(post_id)},
            )
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return post


post_service = PostService()
