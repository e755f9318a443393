from typing import Optional, List
import logging

from pymongo import DESCENDING

from jouwblog.config import config
from jouwblog.errors import ValidationError, NotFoundError
from jouwblog.models import Comment
from jouwblog.services.database import DatabaseService, db_service
from jouwblog.services.executors import BlogExecutors, executors, COMMENT
from jouwblog.services.pagination import get_page, holds_all, skip_for
from jouwblog.services.redis_repositories import CommentRedisRepository

logger = logging.getLogger(__name__)

NEWEST_FIRST = [('comment_timestamp', DESCENDING), ('comment_id', DESCENDING)]


def newest_first(comments: List[Comment]) -> List[Comment]:
    return sorted(comments, key=lambda c: (c.comment_timestamp or 0, c.comment_id or ''), reverse=True)


class CommentService:
    """Comments have no local tier; Redis in front of MongoDB only."""

    def __init__(
        self,
        database: Optional[DatabaseService] = None,
        redis_repository: Optional[CommentRedisRepository] = None,
        background: Optional[BlogExecutors] = None,
        post_service=None,
        user_service=None
    ):
        self.database = database or db_service
        self.redis_repository = redis_repository or CommentRedisRepository()
        self.background = background or executors
        self.post_service = post_service
        self.user_service = user_service

    def _backfill(self, comments: List[Comment]):
        for comment in comments:
            self.background.submit(COMMENT, self.redis_repository.save_comment, comment)

    def find_comments_page(self, post_id: str, size: int, page: int) -> List[Comment]:
        if size <= 0 or page <= 0:
            raise ValidationError("Invalid page size or page number")

        total = self.count_post_comments(post_id)

        redis_comments = newest_first(self.redis_repository.find_comments(post_id))
        if holds_all(len(redis_comments), total):
            return get_page(redis_comments, page, size)

        documents = self.database.find_many(
            config.COMMENTS_COLLECTION,
            {'post_id': post_id},
            sort=NEWEST_FIRST,
            skip=skip_for(page, size),
            limit=size
        )
        comments = [Comment.from_dict(document) for document in documents]
        self._backfill(comments)
        return comments

    def find_comment(self, post_id: str, comment_id: str) -> Optional[Comment]:
        redis_comment = self.redis_repository.find_comment(post_id, comment_id)
        if redis_comment is not None:
            return redis_comment

        document = self.database.find_one(
            config.COMMENTS_COLLECTION,
            {'post_id': post_id, 'comment_id': comment_id}
        )
        if document is None:
            return None

        comment = Comment.from_dict(document)
        self._backfill([comment])
        return comment

    def count_post_comments(self, post_id: str) -> int:
        return self.database.count(config.COMMENTS_COLLECTION, {'post_id': post_id})

    def create_comment(self, comment: Comment) -> Comment:
        comment.likes = 0

        is_valid, error_message = comment.validate()
        if not is_valid:
            raise ValidationError(error_message)

        post = self.post_service.find_post_by_id(comment.post_id) if self.post_service else None
        if self.post_service is not None and post is None:
            raise NotFoundError(f"Post with id {comment.post_id} not found")

        if self.user_service is not None and self.user_service.find_user(comment.user_id) is None:
            raise NotFoundError(f"User with id {comment.user_id} not found")

        comment.assign_identity()
        self.database.insert_one(config.COMMENTS_COLLECTION, comment.to_dict())

        if not self.redis_repository.save_comment(comment):
            logger.warning(f"Comment {comment.comment_id} stored in MongoDB but not in Redis")

        if post is not None:
            self.post_service.adjust_replies(post.user_id, post.post_id, 1)

        logger.info(f"Created comment {comment.comment_id} on post {comment.post_id}")
        return comment

    def delete_comment(self, post_id: str, comment_id: str) -> bool:
        deleted = self.database.delete_one(
            config.COMMENTS_COLLECTION,
            {'post_id': post_id, 'comment_id': comment_id}
        )
        self.redis_repository.delete_comment(post_id, comment_id)

        if deleted and self.post_service is not None:
            post = self.post_service.find_post_by_id(post_id)
            if post is not None:
                self.post_service.adjust_replies(post.user_id, post_id, -1)

        if deleted:
            logger.info(f"Deleted comment {comment_id} of post {post_id}")
        return deleted

    def delete_post_comments(self, post_id: str) -> int:
        deleted = self.database.delete_many(config.COMMENTS_COLLECTION, {'post_id': post_id})
        self.redis_repository.delete_post_comments(post_id)
        logger.info(f"Deleted {deleted} comments of post {post_id}")
        return deleted
