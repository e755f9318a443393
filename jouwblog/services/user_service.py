from typing import Optional, Dict, Any
import logging

from pymongo.errors import DuplicateKeyError

from jouwblog.config import config
from jouwblog.errors import ValidationError, NotFoundError, DuplicateError
from jouwblog.models import User
from jouwblog.services.database import DatabaseService, db_service
from jouwblog.services.entity_caches import UserCache
from jouwblog.services.executors import BlogExecutors, executors, USER
from jouwblog.services.redis_repositories import UserRedisRepository

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ['username', 'name', 'email']


class UserService:
    def __init__(
        self,
        database: Optional[DatabaseService] = None,
        redis_repository: Optional[UserRedisRepository] = None,
        cache: Optional[UserCache] = None,
        background: Optional[BlogExecutors] = None,
        post_service=None
    ):
        self.database = database or db_service
        self.redis_repository = redis_repository or UserRedisRepository()
        self.background = background or executors
        self.cache = cache or UserCache(self.redis_repository, self.background)
        # Set after construction; posts depend on users for author checks
        self.post_service = post_service

    def _remember(self, user: User, from_store: bool):
        self.cache.add_user(user)
        if from_store:
            self.background.submit(USER, self.redis_repository.save_user, user)

    def find_user(self, user_id: str) -> Optional[User]:
        cached = self.cache.get_user_by_id(user_id)
        if cached is not None:
            logger.debug(f"User {user_id} served from local cache")
            return cached

        redis_user = self.redis_repository.find_user(user_id)
        if redis_user is not None:
            self._remember(redis_user, from_store=False)
            return redis_user

        document = self.database.find_one(config.USERS_COLLECTION, {'user_id': user_id})
        if document is None:
            return None

        user = User.from_dict(document)
        self._remember(user, from_store=True)
        return user

    def find_user_by_username(self, username: str) -> Optional[User]:
        cached = self.cache.get_user_by_username(username)
        if cached is not None:
            return cached

        redis_user = self.redis_repository.search_user(username)
        if redis_user is not None:
            self._remember(redis_user, from_store=False)
            return redis_user

        document = self.database.find_one(config.USERS_COLLECTION, {'username': username})
        if document is None:
            return None

        user = User.from_dict(document)
        self._remember(user, from_store=True)
        return user

    def _check_unique(self, user: User):
        for field in ('username', 'email'):
            existing = self.database.find_one(config.USERS_COLLECTION, {field: getattr(user, field)})
            if existing is not None and existing.get('user_id') != user.user_id:
                raise DuplicateError(f"User with this {field} already exists")

    def create_user(self, user: User) -> User:
        is_valid, error_message = user.validate()
        if not is_valid:
            raise ValidationError(error_message)

        self._check_unique(user)

        try:
            self.database.insert_one(config.USERS_COLLECTION, user.to_dict())
        except DuplicateKeyError:
            raise DuplicateError("User already exists")

        if not self.redis_repository.save_user(user):
            logger.warning(f"User {user.user_id} stored in MongoDB but not in Redis")
        self.cache.add_user(user)

        logger.info(f"Created user {user.user_id} ({user.username})")
        return user

    def update_user(self, user_id: str, changes: Dict[str, Any]) -> User:
        if not isinstance(changes, dict):
            raise ValidationError("User changes must be a JSON object")

        existing = self.find_user(user_id)
        if existing is None:
            raise NotFoundError(f"User with id {user_id} not found")

        update_data = {field: changes[field] for field in UPDATABLE_FIELDS if field in changes}
        if not update_data:
            raise ValidationError(f"Nothing to update, allowed fields: {', '.join(UPDATABLE_FIELDS)}")

        updated = User.from_dict({**existing.to_dict(), **update_data})
        is_valid, error_message = updated.validate()
        if not is_valid:
            raise ValidationError(error_message)

        self._check_unique(updated)

        try:
            matched = self.database.update_one(config.USERS_COLLECTION, {'user_id': user_id}, update_data)
        except DuplicateKeyError:
            raise DuplicateError("User with this username or email already exists")
        if not matched:
            self.cache.invalidate(user_id)
            raise NotFoundError(f"User with id {user_id} not found")

        if existing.username != updated.username:
            self.redis_repository.delete_search_key(existing.username)
        self.redis_repository.save_user(updated)
        self.cache.update_user(updated)

        logger.info(f"Updated user {user_id}")
        return updated

    def delete_user(self, user_id: str) -> bool:
        document = self.database.find_one(config.USERS_COLLECTION, {'user_id': user_id})
        if document is None:
            return False

        if self.post_service is not None:
            self.post_service.delete_user_posts(user_id)

        self.database.delete_one(config.USERS_COLLECTION, {'user_id': user_id})
        self.redis_repository.delete_user(user_id, document.get('username'))
        self.cache.invalidate(user_id)

        logger.info(f"Deleted user {user_id}")
        return True
