"""
Named thread pools for work that must not block a request: write-behind of
evicted cache entries and Redis back-fill after a MongoDB read.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Optional
import logging

logger = logging.getLogger(__name__)

USER = 'user'
POST = 'post'
COMMENT = 'comment'


class BlogExecutors:
    def __init__(self, max_workers: int = 4):
        self.max_workers = max_workers
        self._pools: Dict[str, ThreadPoolExecutor] = {}

    def _pool(self, name: str) -> ThreadPoolExecutor:
        pool = self._pools.get(name)
        if pool is None:
            pool = self._pools.setdefault(
                name,
                ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix=f"blog-{name}")
            )
        return pool

    def submit(self, name: str, fn: Callable, *args) -> Optional[Future]:
        try:
            future = self._pool(name).submit(fn, *args)
        except RuntimeError as e:
            # Pool already shut down while the app is stopping
            logger.warning(f"Dropping background task on {name} executor: {e}")
            return None
        future.add_done_callback(lambda f: self._log_failure(name, f))
        return future

    @staticmethod
    def _log_failure(name: str, future: Future):
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Background task on {name} executor failed: {error}")

    def shutdown(self, wait: bool = True):
        for name, pool in self._pools.items():
            pool.shutdown(wait=wait)
            logger.info(f"Executor {name} stopped")
        self._pools.clear()


executors = BlogExecutors()
