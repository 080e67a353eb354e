"""
Render-scoped resolution cache.

Deduplicates fetches within one render execution: concurrent callers asking
for the same key share a single in-flight computation, successful results
are kept until the render is torn down, and failures are never stored so a
later call retries.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Hashable, List, Optional, TypeVar

from .context import CancelSignal
from .exceptions import Cancelled

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Call(Generic[T]):
    """A computation in flight and the callers waiting on it."""

    done: bool = False
    value: Optional[T] = None
    error: Optional[BaseException] = None
    waiters: List[threading.Event] = field(default_factory=list)


class ResolutionCache(Generic[T]):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values: Dict[Hashable, T] = {}
        self._inflight: Dict[Hashable, _Call[T]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._values

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def get_or_compute(
        self,
        key: Hashable,
        compute: Callable[[], T],
        cancel: Optional[CancelSignal] = None,
    ) -> T:
        wake: Optional[threading.Event] = None
        with self._lock:
            if key in self._values:
                LOGGER.debug("cache.hit key=%r", key)
                return self._values[key]
            call = self._inflight.get(key)
            if call is None:
                call = _Call()
                self._inflight[key] = call
                leader = True
            else:
                wake = threading.Event()
                call.waiters.append(wake)
                leader = False

        if leader:
            LOGGER.debug("cache.claim key=%r", key)
            return self._run(key, call, compute)

        LOGGER.debug("cache.wait key=%r", key)
        assert wake is not None
        if cancel is None:
            wake.wait()
        else:
            with cancel.on_cancel(wake.set):
                wake.wait()
        with self._lock:
            if not call.done:
                call.waiters.remove(wake)
                raise Cancelled(cancel.reason if cancel else None)
        if call.error is not None:
            raise call.error
        return call.value  # type: ignore[return-value]

    def _run(self, key: Hashable, call: _Call[T], compute: Callable[[], T]) -> T:
        try:
            value = compute()
        except BaseException as exc:
            self._publish(key, call, error=exc)
            raise
        self._publish(key, call, value=value)
        return value

    def _publish(
        self,
        key: Hashable,
        call: _Call[T],
        value: Optional[T] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        with self._lock:
            self._inflight.pop(key, None)
            if error is None:
                self._values[key] = value  # type: ignore[assignment]
            else:
                LOGGER.debug("cache.fail key=%r error=%s", key, error)
            call.value = value
            call.error = error
            call.done = True
            waiters, call.waiters = call.waiters, []
        for wake in waiters:
            wake.set()
