"""
HTTP(S) backend.

Minimal transport:
  - GET only, headers sent exactly as merged (client defaults never leak in)
  - Injected ``requests.Session`` from the RenderContext, else a default one
  - Cancellation releases the caller and closes the connection
  - Bounded body excerpts on non-2xx responses

Known limit: a worker blocked waiting for response headers is not
interrupted by cancellation. It stays on the socket until the server answers
or the request times out. When the render has a deadline
(``CancelSignal.cancel_after``) the remaining time is used as the request
timeout, so such workers end with the render.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import closing
from typing import TYPE_CHECKING, Dict, Optional

import requests
from urllib3.util import SKIP_HEADER

from ..exceptions import Cancelled, HTTPStatusError, NetworkError
from ..headers import Headers, flatten_headers
from ..options import ResolverOptions
from .base import FetchRequest, FetchResult, guess_content_type

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from ..context import CancelSignal, RenderContext

LOGGER = logging.getLogger(__name__)

# urllib3 fills these in itself unless told to skip them. Host is left to the
# transport: HTTP/1.1 requires it.
_SKIPPABLE = ("Accept-Encoding", "User-Agent")

# floor for a deadline-derived timeout; requests rejects zero
_MIN_TIMEOUT = 0.001


def _close_late_response(future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    LOGGER.debug("Closing response that arrived after cancellation")
    future.result().close()


def wire_headers(headers: Headers) -> Dict[str, str]:
    """
    Flatten merged headers for the wire.

    Transport defaults absent from the merged set are marked with urllib3's
    SKIP_HEADER so they are not sent at all.
    """
    flat = flatten_headers(headers)
    present = {k.lower() for k in flat}
    for name in _SKIPPABLE:
        if name.lower() not in present:
            flat[name] = SKIP_HEADER
    return flat


def _decode_excerpt(raw: bytes, encoding: Optional[str]) -> str:
    try:
        return raw.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        LOGGER.debug("Unknown charset %r, decoding excerpt as utf-8", encoding)
        return raw.decode("utf-8", errors="replace")


class HTTPHandler:
    def __init__(self, options: Optional[ResolverOptions] = None):
        self._options = options or ResolverOptions()
        self.default_headers: Headers = {"User-Agent": [self._options.user_agent]}
        self._lock = threading.Lock()
        self._session: Optional[requests.Session] = None
        self._pool: Optional[ThreadPoolExecutor] = None

    def _default_session(self) -> requests.Session:
        with self._lock:
            if self._session is None:
                self._session = requests.Session()
            return self._session

    def _executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=self._options.max_workers,
                    thread_name_prefix="pydatasource-http",
                )
            return self._pool

    def close(self) -> None:
        with self._lock:
            pool, self._pool = self._pool, None
            session, self._session = self._session, None
        if pool is not None:
            pool.shutdown(wait=False)
        if session is not None:
            session.close()

    # ----- Fetch -----

    def fetch(self, request: FetchRequest, context: "RenderContext") -> FetchResult:
        cancel = context.cancel
        cancel.raise_if_cancelled()

        client = context.client or self._default_session()
        prepared = requests.Request(
            "GET", request.uri, headers=wire_headers(request.headers)
        ).prepare()
        settings = client.merge_environment_settings(prepared.url, {}, True, None, None)
        settings["stream"] = True
        remaining = cancel.remaining()
        if remaining is not None:
            settings["timeout"] = max(remaining, _MIN_TIMEOUT)

        LOGGER.info("GET %s", request.uri)
        future = self._executor().submit(client.send, prepared, **settings)
        try:
            resp = cancel.wait_for(future)
        except Cancelled:
            LOGGER.info("GET %s cancelled before a response arrived", request.uri)
            future.add_done_callback(_close_late_response)
            raise
        except requests.RequestException as e:
            LOGGER.error("GET %s failed: %s", request.uri, e)
            raise NetworkError(f"GET {request.uri}: {e}") from e

        with closing(resp), cancel.on_cancel(resp.close):
            code = resp.status_code
            LOGGER.debug("GET %s returned status %d", request.uri, code)
            if not 200 <= code < 300:
                excerpt = self._excerpt(resp, cancel)
                LOGGER.error("GET %s failed with code %d", request.uri, code)
                raise HTTPStatusError(request.uri, code, excerpt)
            body = self._read(resp, cancel, request.uri)

        content_type = resp.headers.get("Content-Type") or guess_content_type(
            request.parsed.path
        )
        return FetchResult(body=body, content_type=content_type or "")

    def _read(self, resp, cancel: "CancelSignal", uri: str) -> bytes:
        chunks = []
        try:
            for chunk in resp.iter_content(chunk_size=self._options.chunk_size):
                cancel.raise_if_cancelled()
                chunks.append(chunk)
        except Cancelled:
            LOGGER.info("GET %s cancelled while reading the body", uri)
            raise
        except Exception as e:
            # closing the response from the cancel callback interrupts the read
            if cancel.cancelled:
                raise Cancelled(cancel.reason) from e
            LOGGER.error("Reading body of %s failed: %s", uri, e)
            raise NetworkError(f"reading {uri}: {e}") from e
        return b"".join(chunks)

    def _excerpt(self, resp, cancel: "CancelSignal") -> str:
        limit = self._options.body_excerpt_limit
        try:
            raw = next(resp.iter_content(chunk_size=limit), b"")
        except requests.RequestException as e:
            LOGGER.debug("No body excerpt available: %s", e)
            return ""
        cancel.raise_if_cancelled()
        return _decode_excerpt(raw[:limit], resp.encoding).strip()
