import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Hashable

from music_admin.core.logger import logger


class SingleFlight:
    """
    Coalesces concurrent calls for the same key into one execution.

    The first caller for a key runs `fn`; every caller arriving while it is
    still running waits on the same Future and receives the same result or
    the same exception. Once the call finishes the key is released, so the
    next caller triggers a fresh execution.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._calls: Dict[Hashable, Future] = {}

    def do(self, key: Hashable, fn: Callable[[], Any]) -> Any:
        with self._lock:
            future = self._calls.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._calls[key] = future

        if not leader:
            logger.debug(f"⏳ Joining in-flight call {key!r}")
            return future.result()

        try:
            future.set_result(fn())
        except BaseException as e:
            future.set_exception(e)
        finally:
            with self._lock:
                self._calls.pop(key, None)

        return future.result()

    def in_flight(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._calls
