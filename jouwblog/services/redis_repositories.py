"""
Redis-backed second cache tier.

Every entity is stored as a hash; a set per owner indexes the ids so a user's
posts or a post's comments can be listed. All keys carry the configured TTL.
Redis failures are logged and reported as a miss so the services can fall
back to MongoDB.
"""

from typing import Optional, List, Type
import logging

import redis

from jouwblog.models import User, Post, Comment
from jouwblog.services.redis_cache import RedisCache, redis_cache

logger = logging.getLogger(__name__)


class _HashRepository:
    model: Type = None

    def __init__(self, cache: Optional[RedisCache] = None):
        self.cache = cache or redis_cache

    @property
    def redis(self) -> redis.Redis:
        return self.cache.client

    @property
    def ttl(self) -> int:
        return self.cache.ttl_seconds

    def _decode(self, key: str, mapped_result) -> Optional[object]:
        if not mapped_result:
            return None
        try:
            return self.model.from_hash(mapped_result)
        except ValueError as e:
            logger.warning(f"Discarding malformed hash {key}: {e}")
            return None

    def _load_members(self, keys: List[str]) -> list:
        if not keys:
            return []

        pipe = self.redis.pipeline(transaction=False)
        for key in keys:
            pipe.hgetall(key)
        results = pipe.execute()

        entities = []
        for key, mapped_result in zip(keys, results):
            entity = self._decode(key, mapped_result)
            if entity is not None:
                entities.append(entity)
        return entities


class UserRedisRepository(_HashRepository):
    PREFIX = 'user:'
    PREFIX_SEARCH_ID = 'user_search:'

    model = User

    def find_user(self, user_id: str) -> Optional[User]:
        if not user_id or not user_id.strip():
            return None

        key = self.PREFIX + user_id
        try:
            user = self._decode(key, self.redis.hgetall(key))
        except redis.RedisError as e:
            logger.error(f"Error while finding user {user_id}: {e}")
            return None

        if user is None:
            logger.debug(f"User {user_id} not found in Redis")
        return user

    def search_user(self, username: str) -> Optional[User]:
        if not username or not username.strip():
            return None

        try:
            user_id = self.redis.get(self.PREFIX_SEARCH_ID + username)
        except redis.RedisError as e:
            logger.error(f"Error while searching user {username}: {e}")
            return None

        if not user_id:
            logger.debug(f"Username {username} not indexed in Redis")
            return None

        user = self.find_user(user_id)
        if user is not None and user.username != username:
            # Index is stale after a rename
            return None
        return user

    def save_user(self, user: User) -> bool:
        if not user.user_id or not user.username:
            logger.warning("Invalid user data for save operation")
            return False

        key = self.PREFIX + user.user_id
        name_key = self.PREFIX_SEARCH_ID + user.username

        try:
            pipe = self.redis.pipeline()
            pipe.hset(key, mapping=user.to_hash())
            pipe.expire(key, self.ttl)
            pipe.set(name_key, user.user_id, ex=self.ttl)
            pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Error while saving user {user.user_id}: {e}")
            return False

        logger.debug(f"User {user.user_id} saved to Redis")
        return True

    def delete_search_key(self, username: str) -> bool:
        try:
            self.redis.delete(self.PREFIX_SEARCH_ID + username)
        except redis.RedisError as e:
            logger.error(f"Error while deleting username index {username}: {e}")
            return False
        return True

    def delete_user(self, user_id: str, username: Optional[str] = None) -> bool:
        if not user_id:
            return False

        keys = [self.PREFIX + user_id]
        if username:
            keys.append(self.PREFIX_SEARCH_ID + username)

        try:
            self.redis.delete(*keys)
        except redis.RedisError as e:
            logger.error(f"Error while deleting user {user_id}: {e}")
            return False

        logger.debug(f"User {user_id} deleted from Redis")
        return True


class PostRedisRepository(_HashRepository):
    PREFIX = 'post:'
    USER_POSTS_SET_PREFIX = 'user_posts:'

    model = Post

    @classmethod
    def build_post_key(cls, user_id: str, post_id: str) -> str:
        return f"{cls.PREFIX}{user_id}:{post_id}"

    @classmethod
    def build_user_posts_key(cls, user_id: str) -> str:
        return cls.USER_POSTS_SET_PREFIX + user_id

    def find_post(self, user_id: str, post_id: str) -> Optional[Post]:
        if not user_id or not user_id.strip() or not post_id or not post_id.strip():
            return None

        key = self.build_post_key(user_id, post_id)
        try:
            post = self._decode(key, self.redis.hgetall(key))
        except redis.RedisError as e:
            logger.error(f"Error finding post: user_id={user_id}, post_id={post_id}, error={e}")
            return None

        if post is None:
            logger.debug(f"Post not found: user_id={user_id}, post_id={post_id}")
        else:
            logger.debug(f"Found post: user_id={user_id}, post_id={post_id}")
        return post

    def find_all_user_posts(self, user_id: str) -> List[Post]:
        if not user_id or not user_id.strip():
            logger.warning("Invalid user argument for find posts operation, user_id is blank")
            return []

        try:
            post_ids = self.redis.smembers(self.build_user_posts_key(user_id))
            if not post_ids:
                logger.debug(f"No posts found for user: {user_id}")
                return []

            return self._load_members([self.build_post_key(user_id, post_id) for post_id in post_ids])
        except redis.RedisError as e:
            logger.error(f"Error finding all posts for user: {user_id}, error={e}")
            return []

    def save_post(self, post: Post) -> bool:
        if not post.user_id or not post.post_id:
            logger.warning("Invalid post data for save operation")
            return False

        key = self.build_post_key(post.user_id, post.post_id)
        user_posts_key = self.build_user_posts_key(post.user_id)

        try:
            pipe = self.redis.pipeline()
            pipe.hset(key, mapping=post.to_hash())
            pipe.expire(key, self.ttl)
            pipe.sadd(user_posts_key, post.post_id)
            pipe.expire(user_posts_key, self.ttl)
            pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Error saving post: user_id={post.user_id}, post_id={post.post_id}, error={e}")
            return False

        logger.debug(f"Post saved successfully: user_id={post.user_id}, post_id={post.post_id}")
        return True

    def delete_post(self, user_id: str, post_id: str) -> bool:
        if not user_id or not post_id:
            return False

        try:
            pipe = self.redis.pipeline()
            pipe.delete(self.build_post_key(user_id, post_id))
            pipe.srem(self.build_user_posts_key(user_id), post_id)
            pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Error deleting post: user_id={user_id}, post_id={post_id}, error={e}")
            return False

        logger.debug(f"Post deleted: user_id={user_id}, post_id={post_id}")
        return True

    def delete_all_user_posts(self, user_id: str) -> bool:
        if not user_id:
            return False

        user_posts_key = self.build_user_posts_key(user_id)
        try:
            post_ids = self.redis.smembers(user_posts_key) or set()
            keys = [self.build_post_key(user_id, post_id) for post_id in post_ids]
            self.redis.delete(user_posts_key, *keys)
        except redis.RedisError as e:
            logger.error(f"Error deleting posts of user {user_id}: {e}")
            return False

        logger.debug(f"Deleted {len(keys)} cached posts of user {user_id}")
        return True


class CommentRedisRepository(_HashRepository):
    PREFIX = 'comments:'
    POST_COMMENT = 'post_comments:'

    model = Comment

    @classmethod
    def build_key(cls, post_id: str, comment_id: str) -> str:
        return f"{cls.PREFIX}{post_id}:{comment_id}"

    @classmethod
    def build_members_key(cls, post_id: str) -> str:
        return cls.POST_COMMENT + post_id

    def find_comments(self, post_id: str) -> List[Comment]:
        if not post_id or not post_id.strip():
            logger.warning("Invalid comment argument for find operation, post_id is blank")
            return []

        try:
            comment_ids = self.redis.smembers(self.build_members_key(post_id))
            if not comment_ids:
                logger.debug(f"No comments found for post: {post_id}")
                return []

            return self._load_members([self.build_key(post_id, comment_id) for comment_id in comment_ids])
        except redis.RedisError as e:
            logger.error(f"Error finding all comments for post_id: {post_id}, error={e}")
            return []

    def find_comment(self, post_id: str, comment_id: str) -> Optional[Comment]:
        if not post_id or not post_id.strip() or not comment_id or not comment_id.strip():
            logger.warning("Invalid comment arguments for find operation")
            return None

        key = self.build_key(post_id, comment_id)
        try:
            comment = self._decode(key, self.redis.hgetall(key))
        except redis.RedisError as e:
            logger.error(f"Error finding comment: comment_id={comment_id}, post_id={post_id}, error={e}")
            return None

        if comment is None:
            logger.debug(f"Comment not found: comment_id={comment_id}, post_id={post_id}")
        return comment

    def save_comment(self, comment: Comment) -> bool:
        if not comment.post_id or not comment.comment_id:
            logger.warning("Invalid comment data for save operation")
            return False

        key = self.build_key(comment.post_id, comment.comment_id)
        members_key = self.build_members_key(comment.post_id)

        try:
            pipe = self.redis.pipeline()
            pipe.hset(key, mapping=comment.to_hash())
            pipe.expire(key, self.ttl)
            pipe.sadd(members_key, comment.comment_id)
            pipe.expire(members_key, self.ttl)
            pipe.execute()
        except redis.RedisError as e:
            logger.error(
                f"Error saving comment: comment_id={comment.comment_id}, "
                f"post_id={comment.post_id}, error={e}"
            )
            return False

        logger.debug(f"Comment saved successfully: comment_id={comment.comment_id}, post_id={comment.post_id}")
        return True

    def delete_comment(self, post_id: str, comment_id: str) -> bool:
        if not post_id or not comment_id:
            logger.warning("Invalid comment argument for delete operation, post_id or comment_id is blank")
            return False

        try:
            pipe = self.redis.pipeline()
            pipe.delete(self.build_key(post_id, comment_id))
            pipe.srem(self.build_members_key(post_id), comment_id)
            pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Error deleting comment: comment_id={comment_id}, post_id={post_id}, error={e}")
            return False

        logger.debug(f"Comment deleted: comment_id={comment_id}, post_id={post_id}")
        return True

    def delete_post_comments(self, post_id: str) -> bool:
        if not post_id:
            return False

        members_key = self.build_members_key(post_id)
        try:
            comment_ids = self.redis.smembers(members_key) or set()
            keys = [self.build_key(post_id, comment_id) for comment_id in comment_ids]
            self.redis.delete(members_key, *keys)
        except redis.RedisError as e:
            logger.error(f"Error deleting comments of post {post_id}: {e}")
            return False

        return True
