import copy
import fnmatch

import pytest

from jouwblog.services.comment_service import CommentService
from jouwblog.services.entity_caches import UserCache, PostCache
from jouwblog.services.post_service import PostService
from jouwblog.services.redis_cache import RedisCache
from jouwblog.services.redis_repositories import (
    UserRedisRepository, PostRedisRepository, CommentRedisRepository
)
from jouwblog.services.user_service import UserService


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class InlineExecutors:
    """Runs background work immediately so tests can assert on its effects."""

    def __init__(self):
        self.submitted = []

    def submit(self, name, fn, *args):
        self.submitted.append((name, fn, args))
        return fn(*args)

    def shutdown(self, wait=True):
        pass


def _matches(document, query):
    for field, expected in query.items():
        actual = document.get(field)
        if isinstance(expected, dict):
            if '$gte' in expected and not (actual is not None and actual >= expected['$gte']):
                return False
        elif actual != expected:
            return False
    return True


class FakeDatabase:
    """In-memory stand-in exposing the DatabaseService interface."""

    def __init__(self):
        self.collections = {}
        self.fail_with = None
        self.find_many_calls = 0

    def _docs(self, name):
        if self.fail_with is not None:
            raise self.fail_with
        return self.collections.setdefault(name, [])

    def insert_one(self, collection_name, document):
        self._docs(collection_name).append(copy.deepcopy(document))
        return str(len(self.collections[collection_name]))

    def find_one(self, collection_name, query):
        for document in self._docs(collection_name):
            if _matches(document, query):
                return copy.deepcopy(document)
        return None

    def find_many(self, collection_name, query, sort=None, skip=None, limit=None):
        self.find_many_calls += 1
        results = [d for d in self._docs(collection_name) if _matches(d, query)]
        for field, direction in reversed(sort or []):
            results.sort(key=lambda d: d.get(field), reverse=direction < 0)
        if skip:
            results = results[skip:]
        if limit:
            results = results[:limit]
        return copy.deepcopy(results)

    def count(self, collection_name, query):
        return len([d for d in self._docs(collection_name) if _matches(d, query)])

    def _apply(self, document, update):
        for field, value in update.get('$set', {}).items():
            document[field] = value
        for field, value in update.get('$inc', {}).items():
            document[field] = document.get(field, 0) + value

    def update_one(self, collection_name, query, update, use_operators=False):
        for document in self._docs(collection_name):
            if _matches(document, query):
                self._apply(document, update if use_operators else {'$set': update})
                return True
        return False

    def find_one_and_update(self, collection_name, query, update):
        for document in self._docs(collection_name):
            if _matches(document, query):
                self._apply(document, update)
                return copy.deepcopy(document)
        return None

    def delete_one(self, collection_name, query):
        docs = self._docs(collection_name)
        for index, document in enumerate(docs):
            if _matches(document, query):
                del docs[index]
                return True
        return False

    def delete_many(self, collection_name, query):
        docs = self._docs(collection_name)
        kept = [d for d in docs if not _matches(d, query)]
        deleted = len(docs) - len(kept)
        self.collections[collection_name] = kept
        return deleted


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.calls = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return queue

    def execute(self):
        results = [getattr(self.redis, name)(*args, **kwargs) for name, args, kwargs in self.calls]
        self.calls = []
        return results


class FakeRedis:
    """Just enough of redis.Redis (decode_responses=True) for the repositories."""

    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.error = None

    def _check(self):
        if self.error is not None:
            raise self.error

    def pipeline(self, transaction=True):
        self._check()
        return FakePipeline(self)

    def ping(self):
        self._check()
        return True

    def hset(self, key, mapping=None):
        self._check()
        self.data.setdefault(key, {}).update(mapping or {})
        return len(mapping or {})

    def hgetall(self, key):
        self._check()
        return dict(self.data.get(key, {}))

    def expire(self, key, seconds):
        self._check()
        self.ttls[key] = seconds
        return key in self.data

    def set(self, key, value, ex=None):
        self._check()
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    def get(self, key):
        self._check()
        return self.data.get(key)

    def sadd(self, key, *members):
        self._check()
        self.data.setdefault(key, set()).update(members)
        return len(members)

    def srem(self, key, *members):
        self._check()
        existing = self.data.get(key, set())
        existing.difference_update(members)
        return len(members)

    def smembers(self, key):
        self._check()
        return set(self.data.get(key, set()))

    def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def keys(self, pattern='*'):
        return [k for k in self.data if fnmatch.fnmatch(k, pattern)]

    def close(self):
        pass


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def inline_executors():
    return InlineExecutors()


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_cache(fake_redis):
    return RedisCache(client=fake_redis)


@pytest.fixture
def user_redis(redis_cache):
    return UserRedisRepository(redis_cache)


@pytest.fixture
def post_redis(redis_cache):
    return PostRedisRepository(redis_cache)


@pytest.fixture
def comment_redis(redis_cache):
    return CommentRedisRepository(redis_cache)


@pytest.fixture
def services(fake_db, user_redis, post_redis, comment_redis, inline_executors, clock):
    user_service = UserService(
        database=fake_db,
        redis_repository=user_redis,
        cache=UserCache(user_redis, inline_executors, clock=clock),
        background=inline_executors
    )
    post_service = PostService(
        database=fake_db,
        redis_repository=post_redis,
        cache=PostCache(post_redis, inline_executors, clock=clock),
        background=inline_executors,
        user_service=user_service
    )
    comment_service = CommentService(
        database=fake_db,
        redis_repository=comment_redis,
        background=inline_executors,
        post_service=post_service,
        user_service=user_service
    )
    user_service.post_service = post_service
    post_service.comment_service = comment_service
    return user_service, post_service, comment_service


@pytest.fixture
def user_service(services):
    return services[0]


@pytest.fixture
def post_service(services):
    return services[1]


@pytest.fixture
def comment_service(services):
    return services[2]
