"""
First cache tier: per-process caches of users and posts.

Entries that fall out of these caches on their own (expiry or size pressure)
are written back to Redis in the background so the next process to miss
locally still finds them one tier down.
"""

from typing import List, Optional
import logging
import threading

from jouwblog.config import config
from jouwblog.models import User, Post
from jouwblog.services.executors import BlogExecutors, executors, USER, POST
from jouwblog.services.local_cache import LocalCache, RemovalCause
from jouwblog.services.redis_repositories import UserRedisRepository, PostRedisRepository

logger = logging.getLogger(__name__)


def _require(value, message: str):
    if value is None:
        raise ValueError(message)


class UserCache:
    def __init__(
        self,
        repository: UserRedisRepository,
        background: Optional[BlogExecutors] = None,
        clock=None
    ):
        self.repository = repository
        self.background = background or executors
        extra = {'clock': clock} if clock else {}

        self.users_by_username = LocalCache(
            'users_by_username',
            max_size=config.USER_CACHE_MAX_SIZE,
            expire_after_access=config.USER_CACHE_TTL_SECONDS,
            **extra
        )
        self.users_by_id = LocalCache(
            'users_by_id',
            max_size=config.USER_CACHE_MAX_SIZE,
            expire_after_access=config.USER_CACHE_TTL_SECONDS,
            removal_listener=self._on_user_removal,
            **extra
        )

    def _on_user_removal(self, key, user: User, cause: RemovalCause):
        if key is None or user is None or not cause.was_evicted:
            return

        self.users_by_username.invalidate(user.username)
        self.background.submit(USER, self._save_to_redis, user)

    def _save_to_redis(self, user: User):
        if self.repository.save_user(user):
            logger.debug(f"User {user.username} (ID: {user.user_id}) saved to Redis")
        else:
            logger.warning(f"User {user.username} (ID: {user.user_id}) could not be saved to Redis")

    def add_user(self, user: User):
        _require(user, "user cannot be None")
        _require(user.user_id, "user ID cannot be None")
        _require(user.username, "username cannot be None")

        self.users_by_id.put(user.user_id, user)
        self.users_by_username.put(user.username, user)

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        _require(user_id, "user_id cannot be None")
        return self.users_by_id.get_if_present(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        _require(username, "username cannot be None")
        return self.users_by_username.get_if_present(username)

    def invalidate(self, user_id: str):
        _require(user_id, "user_id cannot be None")

        user = self.users_by_id.invalidate(user_id)
        if user is not None:
            self.users_by_username.invalidate(user.username)

    def invalidate_by_username(self, username: str):
        _require(username, "username cannot be None")

        user = self.users_by_username.invalidate(username)
        if user is not None:
            self.users_by_id.invalidate(user.user_id)

    def update_user(self, user: User):
        _require(user, "user cannot be None")
        _require(user.user_id, "user ID cannot be None")
        _require(user.username, "username cannot be None")

        existing = self.users_by_id.get_if_present(user.user_id)
        if existing is not None and existing.username != user.username:
            self.users_by_username.invalidate(existing.username)

        self.users_by_id.put(user.user_id, user)
        self.users_by_username.put(user.username, user)

    def clear(self):
        self.users_by_id.invalidate_all()
        self.users_by_username.invalidate_all()

    def stats(self):
        return [self.users_by_id.stats(), self.users_by_username.stats()]


class PostCache:
    def __init__(
        self,
        repository: PostRedisRepository,
        background: Optional[BlogExecutors] = None,
        clock=None
    ):
        self.repository = repository
        self.background = background or executors
        self._index_lock = threading.Lock()
        extra = {'clock': clock} if clock else {}

        self.user_posts = LocalCache(
            'user_posts',
            max_size=config.USER_POSTS_CACHE_MAX_SIZE,
            expire_after_write=config.USER_POSTS_CACHE_TTL_SECONDS,
            **extra
        )
        self.posts = LocalCache(
            'posts',
            max_size=config.POST_CACHE_MAX_SIZE,
            expire_after_access=config.POST_CACHE_TTL_SECONDS,
            removal_listener=self._on_post_removal,
            **extra
        )

    def _on_post_removal(self, key, post: Post, cause: RemovalCause):
        if key is None or post is None or not cause.was_evicted:
            return

        self._unindex(post.user_id, post.post_id)
        self.background.submit(POST, self._save_to_redis, post)

    def _save_to_redis(self, post: Post):
        if self.repository.save_post(post):
            logger.debug(f"Post {post.post_id} saved to Redis")
        else:
            logger.warning(f"Post {post.post_id} could not be saved to Redis")

    def _unindex(self, user_id: str, post_id: str):
        with self._index_lock:
            post_ids = self.user_posts.get_if_present(user_id)
            if post_ids is not None and post_id in post_ids:
                post_ids.remove(post_id)

    def get_user_post_ids(self, user_id: str) -> List[str]:
        _require(user_id, "user_id cannot be None")
        with self._index_lock:
            return list(self.user_posts.get(user_id, lambda _: []))

    def get_user_posts(self, user_id: str) -> List[Post]:
        _require(user_id, "user_id cannot be None")

        post_ids = self.get_user_post_ids(user_id)
        posts = []
        for post_id in post_ids:
            post = self.posts.get_if_present(post_id)
            if post is not None:
                posts.append(post)
        return posts

    def add_post(self, post: Post):
        _require(post, "post cannot be None")
        _require(post.post_id, "post_id cannot be None")
        _require(post.user_id, "user_id cannot be None")

        self.posts.put(post.post_id, post)

        with self._index_lock:
            post_ids = self.user_posts.get(post.user_id, lambda _: [])
            if post.post_id not in post_ids:
                post_ids.append(post.post_id)

    def get_post(self, post_id: str) -> Optional[Post]:
        _require(post_id, "post_id cannot be None")
        return self.posts.get_if_present(post_id)

    def remove_post(self, post_id: str):
        _require(post_id, "post_id cannot be None")

        post = self.posts.invalidate(post_id)
        if post is not None:
            self._unindex(post.user_id, post_id)

    def invalidate_user(self, user_id: str):
        _require(user_id, "user_id cannot be None")
        self.user_posts.invalidate(user_id)

    def stats(self):
        return [self.posts.stats(), self.user_posts.stats()]
