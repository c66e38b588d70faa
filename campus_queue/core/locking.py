"""Named mutexes that keep periodic jobs from overlapping.

With Redis the lock spans every process sharing that Redis; without it the
lock only covers the current process.
"""

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional, Union

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger("campus_queue.lock")

_RELEASE_IF_OWNER = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""

_process_locks: dict[str, threading.Lock] = {}
_process_locks_guard = threading.Lock()


class _HoldMixin:
    name: str

    def acquire(self) -> bool:
        raise NotImplementedError

    def release(self) -> None:
        raise NotImplementedError

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """Yield whether the lock was obtained; release it on exit if so."""

        acquired = self.acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()


class RedisLock(_HoldMixin):
    """``SET NX EX`` lock; the TTL frees it if the holder dies mid-run."""

    def __init__(
        self,
        name: str,
        client: Redis,
        *,
        ttl_seconds: int,
        wait_timeout: float,
        retry_interval: float,
        log: logging.Logger,
    ) -> None:
        self.name = name
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.wait_timeout = wait_timeout
        self.retry_interval = retry_interval
        self.log = log
        self._token: Optional[str] = None

    def acquire(self) -> bool:
        token = uuid.uuid4().hex
        deadline = time.monotonic() + self.wait_timeout
        while True:
            if self.client.set(self.name, token, nx=True, ex=self.ttl_seconds):
                self._token = token
                self.log.debug("lock_acquired", extra={"lock": self.name})
                return True
            if time.monotonic() >= deadline:
                self.log.info("lock_busy", extra={"lock": self.name})
                return False
            time.sleep(self.retry_interval)

    def release(self) -> None:
        if self._token is None:
            return
        try:
            self.client.eval(_RELEASE_IF_OWNER, 1, self.name, self._token)
        except RedisError:
            # The TTL still frees the key.
            self.log.exception("lock_release_failed", extra={"lock": self.name})
        finally:
            self._token = None


class ProcessLock(_HoldMixin):
    """In-process lock; instances with the same name share one mutex."""

    def __init__(self, name: str, *, wait_timeout: float, log: logging.Logger) -> None:
        self.name = name
        self.wait_timeout = wait_timeout
        self.log = log
        self._held = False
        with _process_locks_guard:
            self._mutex = _process_locks.setdefault(name, threading.Lock())

    def acquire(self) -> bool:
        if self.wait_timeout > 0:
            self._held = self._mutex.acquire(timeout=self.wait_timeout)
        else:
            self._held = self._mutex.acquire(blocking=False)
        if not self._held:
            self.log.info("lock_busy_local", extra={"lock": self.name})
        return self._held

    def release(self) -> None:
        if self._held:
            self._held = False
            self._mutex.release()


def make_lock(
    name: str,
    *,
    redis_client: Optional[Redis],
    ttl_seconds: int = 20,
    wait_timeout: float = 5,
    retry_interval: float = 0.05,
    log: Optional[logging.Logger] = None,
) -> Union[RedisLock, ProcessLock]:
    """Pick the Redis lock when a client is available, else the process lock.

    ``wait_timeout=0`` makes a single attempt.
    """

    log = log or logger
    if redis_client is not None:
        return RedisLock(
            name,
            redis_client,
            ttl_seconds=ttl_seconds,
            wait_timeout=wait_timeout,
            retry_interval=retry_interval,
            log=log,
        )
    return ProcessLock(name, wait_timeout=wait_timeout, log=log)
