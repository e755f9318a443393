"""
Process-wide service instances used by the route handlers.

Nothing here opens a connection; MongoDB and Redis are reached on first use.
"""

from jouwblog.services.comment_service import CommentService
from jouwblog.services.database import db_service
from jouwblog.services.executors import executors
from jouwblog.services.post_service import PostService
from jouwblog.services.redis_cache import redis_cache
from jouwblog.services.user_service import UserService

user_service = UserService(database=db_service, background=executors)
post_service = PostService(database=db_service, background=executors, user_service=user_service)
comment_service = CommentService(
    database=db_service,
    background=executors,
    post_service=post_service,
    user_service=user_service
)

user_service.post_service = post_service
post_service.comment_service = comment_service


def cache_stats():
    return {
        'users': user_service.cache.stats(),
        'posts': post_service.cache.stats()
    }


def shutdown():
    executors.shutdown(wait=True)
    redis_cache.close()
    db_service.close()
