"""
Services for the JouwBlog backend.
"""

from .database import DatabaseService
from .redis_cache import RedisCache
from .local_cache import LocalCache, RemovalCause
from .entity_caches import UserCache, PostCache
from .user_service import UserService
from .post_service import PostService
from .comment_service import CommentService

__all__ = [
    'DatabaseService', 'RedisCache', 'LocalCache', 'RemovalCause',
    'UserCache', 'PostCache', 'UserService', 'PostService', 'CommentService'
]
