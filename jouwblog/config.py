import os


class Config:
    FLASK_PORT = int(os.getenv('FLASK_PORT', 8080))
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    MONGODB_URI = os.getenv('MONGODB_URI', 'mongodb://localhost:27017/jouwblog')
    MONGODB_DATABASE = os.getenv('MONGODB_DATABASE', 'jouwblog')
    MONGODB_TIMEOUT_MS = int(os.getenv('MONGODB_TIMEOUT_MS', 5000))

    REDIS_URI = os.getenv('REDIS_URI', 'redis://localhost:6379/0')
    REDIS_TTL_SECONDS = int(os.getenv('REDIS_TTL_SECONDS', 1800))

    USER_CACHE_MAX_SIZE = int(os.getenv('USER_CACHE_MAX_SIZE', 50_000))
    USER_CACHE_TTL_SECONDS = int(os.getenv('USER_CACHE_TTL_SECONDS', 900))

    POST_CACHE_MAX_SIZE = int(os.getenv('POST_CACHE_MAX_SIZE', 100_000))
    POST_CACHE_TTL_SECONDS = int(os.getenv('POST_CACHE_TTL_SECONDS', 900))

    # Index outlives the posts it points at
    USER_POSTS_CACHE_MAX_SIZE = int(os.getenv('USER_POSTS_CACHE_MAX_SIZE', 10_000))
    USER_POSTS_CACHE_TTL_SECONDS = int(os.getenv('USER_POSTS_CACHE_TTL_SECONDS', 1200))

    MAX_PAGE_SIZE = int(os.getenv('MAX_PAGE_SIZE', 100))

    USERS_COLLECTION = 'users'
    POSTS_COLLECTION = 'posts'
    COMMENTS_COLLECTION = 'comments'

    @classmethod
    def redis_display_uri(cls):
        # Hide credentials in logs
        if '@' in cls.REDIS_URI:
            scheme, _, rest = cls.REDIS_URI.partition('://')
            return f"{scheme}://***@{rest.split('@', 1)[1]}"
        return cls.REDIS_URI

    @classmethod
    def validate_page_size(cls, size):
        return 0 < size <= cls.MAX_PAGE_SIZE


config = Config()
