"""
Render-scoped state passed explicitly into every resolution call.

A RenderContext belongs to exactly one render execution. It carries the
optional HTTP client override, per-URI extra headers and the cancellation
signal shared by every task of that render.
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from concurrent.futures import Future
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, Mapping, Optional, TypeVar

from .exceptions import Cancelled
from .headers import HeaderInput

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class CancelSignal:
    """One-shot cancellation flag with callbacks, safe across threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._reason: Optional[str] = None
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._ids = itertools.count()
        self._timer: Optional[threading.Timer] = None
        self._deadline: Optional[float] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
            timer, self._timer = self._timer, None
            self._deadline = None
        if timer is not None:
            timer.cancel()
        LOGGER.debug("render cancelled: %s (%d callbacks)", reason, len(callbacks))
        for cb in callbacks:
            try:
                cb()
            except Exception:
                LOGGER.exception("cancel callback %r failed", cb)

    def cancel_after(self, seconds: float) -> None:
        """Cancel automatically once ``seconds`` have elapsed."""
        timer = threading.Timer(seconds, self.cancel, args=("deadline exceeded",))
        timer.daemon = True
        with self._lock:
            if self._event.is_set():
                return
            if self._timer is not None:
                self._timer.cancel()
            self._timer = timer
            self._deadline = time.monotonic() + seconds
        timer.start()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is none."""
        with self._lock:
            deadline = self._deadline
        if deadline is None:
            return None
        return max(deadline - time.monotonic(), 0.0)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise Cancelled(self._reason)

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    @contextmanager
    def on_cancel(self, fn: Callable[[], None]) -> Iterator[None]:
        """Run ``fn`` if the signal fires while the block is active."""
        with self._lock:
            fired = self._event.is_set()
            token = None
            if not fired:
                token = next(self._ids)
                self._callbacks[token] = fn
        if fired:
            fn()
        try:
            yield
        finally:
            if token is not None:
                with self._lock:
                    self._callbacks.pop(token, None)

    def wait_for(self, future: "Future[T]") -> T:
        """
        Block until ``future`` completes or the signal fires.

        A future that completed is always honoured, even if cancellation
        arrived afterwards.
        """
        wake = threading.Event()
        future.add_done_callback(lambda _f: wake.set())
        with self.on_cancel(wake.set):
            wake.wait()
        if future.done():
            return future.result()
        raise Cancelled(self._reason)


@dataclass
class RenderContext:
    client: Optional[object] = None  # requests.Session override
    extra_headers: Dict[str, HeaderInput] = field(default_factory=dict)
    cancel: CancelSignal = field(default_factory=CancelSignal)

    def extra_headers_for(self, *uris: str) -> Optional[Mapping]:
        """First extra-header entry keyed by any of ``uris``."""
        for uri in uris:
            if uri in self.extra_headers:
                return self.extra_headers[uri]
        return None
