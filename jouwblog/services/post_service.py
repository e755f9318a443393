from typing import Optional, List
import logging

from pymongo import DESCENDING

from jouwblog.config import config
from jouwblog.errors import ValidationError, NotFoundError
from jouwblog.models import Post
from jouwblog.models.common import now_millis
from jouwblog.services.database import DatabaseService, db_service
from jouwblog.services.entity_caches import PostCache
from jouwblog.services.executors import BlogExecutors, executors, POST
from jouwblog.services.pagination import get_page, holds_all, skip_for
from jouwblog.services.redis_repositories import PostRedisRepository

logger = logging.getLogger(__name__)

NEWEST_FIRST = [('post_timestamp', DESCENDING), ('post_id', DESCENDING)]


def newest_first(posts: List[Post]) -> List[Post]:
    return sorted(posts, key=lambda p: (p.post_timestamp or 0, p.post_id or ''), reverse=True)


class PostService:
    def __init__(
        self,
        database: Optional[DatabaseService] = None,
        redis_repository: Optional[PostRedisRepository] = None,
        cache: Optional[PostCache] = None,
        background: Optional[BlogExecutors] = None,
        user_service=None,
        comment_service=None
    ):
        self.database = database or db_service
        self.redis_repository = redis_repository or PostRedisRepository()
        self.background = background or executors
        self.cache = cache or PostCache(self.redis_repository, self.background)
        self.user_service = user_service
        self.comment_service = comment_service

    def _refresh(self, post: Post, sync: bool = True) -> bool:
        """Push a post that MongoDB just returned into both cache tiers."""
        self.cache.add_post(post)
        if sync:
            return self.redis_repository.save_post(post)
        self.background.submit(POST, self.redis_repository.save_post, post)
        return True

    def find_post(self, post_id: str, user_id: str) -> Optional[Post]:
        cached = self.cache.get_post(post_id)
        if cached is not None and cached.user_id == user_id:
            return cached

        redis_post = self.redis_repository.find_post(user_id, post_id)
        if redis_post is not None:
            self.cache.add_post(redis_post)
            return redis_post

        document = self.database.find_one(
            config.POSTS_COLLECTION,
            {'post_id': post_id, 'user_id': user_id}
        )
        if document is None:
            logger.debug(f"Post {post_id} of user {user_id} not found")
            return None

        post = Post.from_dict(document)
        self._refresh(post, sync=False)
        return post

    def find_all_page(self, user_id: str, size: int, page: int) -> List[Post]:
        if size <= 0 or page <= 0:
            raise ValidationError("Invalid page size or page number")

        total = self.count_user_posts(user_id)

        cached = newest_first(self.cache.get_user_posts(user_id))
        if holds_all(len(cached), total):
            logger.debug(f"Page {page} of user {user_id} served from local cache")
            return get_page(cached, page, size)

        redis_posts = newest_first(self.redis_repository.find_all_user_posts(user_id))
        if holds_all(len(redis_posts), total):
            for post in redis_posts:
                self.cache.add_post(post)
            logger.debug(f"Page {page} of user {user_id} served from Redis")
            return get_page(redis_posts, page, size)

        documents = self.database.find_many(
            config.POSTS_COLLECTION,
            {'user_id': user_id},
            sort=NEWEST_FIRST,
            skip=skip_for(page, size),
            limit=size
        )
        posts = [Post.from_dict(document) for document in documents]
        for post in posts:
            self._refresh(post, sync=False)
        return posts

    def count_user_posts(self, user_id: str) -> int:
        return self.database.count(config.POSTS_COLLECTION, {'user_id': user_id})

    def save_post(self, post: Post) -> Optional[Post]:
        if post.post_id is None:
            return self._create_post(post)
        return self._update_post(post)

    def _create_post(self, post: Post) -> Post:
        post.likes = 0
        post.replies = 0

        is_valid, error_message = post.validate()
        if not is_valid:
            raise ValidationError(error_message)

        if self.user_service is not None and self.user_service.find_user(post.user_id) is None:
            raise NotFoundError(f"User with id {post.user_id} not found")

        post.assign_identity()
        self.database.insert_one(config.POSTS_COLLECTION, post.to_dict())

        if not self._refresh(post):
            logger.warning(f"Post {post.post_id} stored in MongoDB but not in Redis")

        logger.info(f"Created post {post.post_id} by user {post.user_id}")
        return post

    def _update_post(self, post: Post) -> Optional[Post]:
        is_valid, error_message = post.validate()
        if not is_valid:
            raise ValidationError(error_message)

        document = self.database.find_one_and_update(
            config.POSTS_COLLECTION,
            {'post_id': post.post_id, 'user_id': post.user_id},
            {'$set': {
                'title': post.title,
                'text': post.text,
                'update_timestamp': now_millis()
            }}
        )
        if document is None:
            logger.warning(f"Post {post.post_id} of user {post.user_id} does not exist, nothing updated")
            return None

        updated = Post.from_dict(document)
        if not self._refresh(updated):
            logger.warning(f"Cannot update post {updated.post_id} in Redis")

        logger.info(f"Updated post {updated.post_id}")
        return updated

    def like_post(self, user_id: str, post_id: str) -> Optional[Post]:
        return self._increment(user_id, post_id, 'likes', 1)

    def adjust_replies(self, user_id: str, post_id: str, delta: int) -> Optional[Post]:
        return self._increment(user_id, post_id, 'replies', delta)

    def _increment(self, user_id: str, post_id: str, field: str, delta: int) -> Optional[Post]:
        query = {'post_id': post_id, 'user_id': user_id}
        if delta < 0:
            # Counters never drop below zero
            query[field] = {'$gte': -delta}

        document = self.database.find_one_and_update(
            config.POSTS_COLLECTION,
            query,
            {'$inc': {field: delta}}
        )
        if document is None:
            return None

        post = Post.from_dict(document)
        self._refresh(post)
        return post

    def find_post_by_id(self, post_id: str) -> Optional[Post]:
        """Look a post up without knowing its author (comments only carry the post id)."""
        cached = self.cache.get_post(post_id)
        if cached is not None:
            return cached

        document = self.database.find_one(config.POSTS_COLLECTION, {'post_id': post_id})
        if document is None:
            return None

        post = Post.from_dict(document)
        self._refresh(post, sync=False)
        return post

    def delete_post(self, post_id: str, user_id: str) -> bool:
        deleted = self.database.delete_one(
            config.POSTS_COLLECTION,
            {'post_id': post_id, 'user_id': user_id}
        )

        if deleted and self.comment_service is not None:
            self.comment_service.delete_post_comments(post_id)

        self.redis_repository.delete_post(user_id, post_id)
        self.cache.remove_post(post_id)

        if deleted:
            logger.info(f"Deleted post {post_id} of user {user_id}")
        return deleted

    def delete_user_posts(self, user_id: str) -> int:
        documents = self.database.find_many(config.POSTS_COLLECTION, {'user_id': user_id})
        for document in documents:
            post_id = document['post_id']
            if self.comment_service is not None:
                self.comment_service.delete_post_comments(post_id)
            self.cache.remove_post(post_id)

        deleted = self.database.delete_many(config.POSTS_COLLECTION, {'user_id': user_id})
        self.redis_repository.delete_all_user_posts(user_id)
        self.cache.invalidate_user(user_id)

        logger.info(f"Deleted {deleted} posts of user {user_id}")
        return deleted
