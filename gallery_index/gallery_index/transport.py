"""
Shared HTTP plumbing for talking to the remote catalog.
"""

import threading
from concurrent.futures import Future
from typing import Callable, Dict, Hashable, TypeVar

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import constants as c

T = TypeVar("T")


def create_session(
    user_agent: str = c.CATALOG_USER_AGENT,
    referer: str = c.CATALOG_REFERER,
    retries: int = c.CATALOG_RETRY_COUNT,
    pool_size: int = c.DEFAULT_THREAD_POOL_SIZE,
    status_forcelist: tuple = (500, 502, 503, 504),
) -> requests.Session:
    """
    Creates a keep-alive session carrying the catalog headers.

    The connection pool is sized for the thread pool that fans out over it,
    otherwise urllib3 discards connections under parallel load.
    """
    session = requests.Session()
    retry = Retry(
        total=retries,
        read=retries,
        connect=retries,
        backoff_factor=0.5,
        status_forcelist=status_forcelist,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=pool_size, pool_maxsize=pool_size)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({
        "User-Agent": user_agent,
        "Referer": referer,
    })
    return session


class SingleFlight:
    """
    Collapses concurrent calls for the same key into one execution.

    The first caller for a key runs the function; callers arriving while it is
    in flight block on the same result (or exception). Nothing is remembered
    once the call completes.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._calls: Dict[Hashable, Future] = {}

    def do(self, key: Hashable, fn: Callable[[], T]) -> T:
        with self._lock:
            future = self._calls.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._calls[key] = future

        if not leader:
            return future.result()

        try:
            result = fn()
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._calls.pop(key, None)

    def in_flight(self) -> int:
        with self._lock:
            return len(self._calls)
