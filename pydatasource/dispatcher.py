"""
Render-scoped datasource registry and scheme dispatcher.

Public API:
  - Datasources.define(alias, uri, headers=None) / register(definition)
  - Datasources.datasource(alias_or_uri) -> decoded value
  - Datasources.include(alias_or_uri) -> raw body text
  - Datasources.exists(alias) -> bool
  - Datasources.reachable(alias_or_uri) -> bool
  - Datasources.aliases() -> List[str]
  - Datasources.register_handler(scheme, handler)

One instance serves one render execution: it owns the resolution cache and
is bound to that render's RenderContext. Closing it discards the cache.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import SplitResult, urlsplit, urlunsplit

from .cache import ResolutionCache
from .context import RenderContext
from .decoding import as_text, decode
from .exceptions import (
    Cancelled,
    ConfigError,
    DatasourceError,
    FetchFailed,
    UnsupportedScheme,
)
from .handlers import FetchHandler, FetchRequest, FetchResult, FileHandler, HTTPHandler
from .headers import HeaderInput, header_signature, merge_headers
from .models import SourceDefinition
from .options import ResolverOptions

LOGGER = logging.getLogger(__name__)


class Scheme(str, Enum):
    HTTP = "http"
    HTTPS = "https"
    FILE = "file"


def _scheme_key(scheme: Union[Scheme, str]) -> str:
    if isinstance(scheme, Scheme):
        return scheme.value
    return str(scheme).lower()


def canonical_uri(parsed: SplitResult) -> str:
    return urlunsplit(
        (
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            parsed.path,
            parsed.query,
            parsed.fragment,
        )
    )


@dataclass(frozen=True)
class _Binding:
    """A source with its handler resolved."""

    definition: SourceDefinition
    parsed: SplitResult
    handler: FetchHandler

    @property
    def canonical(self) -> str:
        return canonical_uri(self.parsed)


class Datasources:
    def __init__(
        self,
        context: Optional[RenderContext] = None,
        sources: Iterable[SourceDefinition] = (),
        *,
        handlers: Optional[Mapping[Union[Scheme, str], FetchHandler]] = None,
        options: Optional[ResolverOptions] = None,
    ):
        self._context = context or RenderContext()
        self._options = options or ResolverOptions()
        self._owned: List[FetchHandler] = []
        if handlers is None:
            http = HTTPHandler(self._options)
            files = FileHandler()
            self._owned = [http, files]
            handlers = {Scheme.HTTP: http, Scheme.HTTPS: http, Scheme.FILE: files}
        self._handlers: Dict[str, FetchHandler] = {
            _scheme_key(k): v for k, v in handlers.items()
        }
        self._lock = threading.Lock()
        self._sources: Dict[str, _Binding] = {}
        self._cache: ResolutionCache[FetchResult] = ResolutionCache()
        for definition in sources:
            self.register(definition)

    @property
    def context(self) -> RenderContext:
        return self._context

    # ----- Registration -----

    def register_handler(self, scheme: Union[Scheme, str], handler: FetchHandler) -> None:
        key = _scheme_key(scheme)
        with self._lock:
            self._handlers[key] = handler
        LOGGER.debug("Registered handler for scheme %s: %r", key, handler)

    def register(self, definition: SourceDefinition) -> None:
        binding = self._bind(definition)
        with self._lock:
            if definition.alias in self._sources:
                raise ConfigError(f"datasource {definition.alias!r} is already defined")
            self._sources[definition.alias] = binding
        LOGGER.debug("Defined datasource %s -> %s", definition.alias, definition.uri)

    def define(
        self, alias: str, uri: str, headers: HeaderInput = None
    ) -> SourceDefinition:
        definition = SourceDefinition(alias=alias, uri=uri, headers=headers or {})
        self.register(definition)
        return definition

    def _handler_for(self, uri: str) -> Tuple[SplitResult, FetchHandler]:
        try:
            parsed = urlsplit(uri)
        except ValueError as e:
            raise UnsupportedScheme(uri) from e
        if not parsed.scheme:
            raise UnsupportedScheme(uri)
        with self._lock:
            handler = self._handlers.get(parsed.scheme.lower())
        if handler is None:
            raise UnsupportedScheme(uri, parsed.scheme)
        return parsed, handler

    def _bind(self, definition: SourceDefinition) -> _Binding:
        parsed, handler = self._handler_for(definition.uri)
        return _Binding(definition=definition, parsed=parsed, handler=handler)

    def _resolve(self, target: str) -> _Binding:
        with self._lock:
            binding = self._sources.get(target)
        if binding is not None:
            return binding
        try:
            scheme = urlsplit(target).scheme
        except ValueError as e:
            raise UnsupportedScheme(target) from e
        if not scheme:
            raise ConfigError(f"undefined datasource {target!r}")
        return self._bind(SourceDefinition(alias=target, uri=target))

    # ----- Queries -----

    def exists(self, alias: str) -> bool:
        with self._lock:
            return alias in self._sources

    def aliases(self) -> List[str]:
        with self._lock:
            return sorted(self._sources)

    def datasource(self, target: str) -> Any:
        result = self._fetch(target)
        return decode(result.body, result.content_type)

    def include(self, target: str) -> str:
        result = self._fetch(target)
        return as_text(result.body, result.content_type)

    def reachable(self, target: str) -> bool:
        try:
            self._fetch(target)
        except Cancelled:
            raise
        except DatasourceError as e:
            LOGGER.debug("Datasource %s unreachable: %s", target, e)
            return False
        return True

    def _fetch(self, target: str) -> FetchResult:
        self._context.cancel.raise_if_cancelled()
        binding = self._resolve(target)
        definition = binding.definition
        canonical = binding.canonical
        extra = self._context.extra_headers_for(definition.uri, canonical)
        headers = merge_headers(
            binding.handler.default_headers, definition.headers, extra
        )
        request = FetchRequest(uri=definition.uri, parsed=binding.parsed, headers=headers)
        key = (canonical, header_signature(headers))

        def compute() -> FetchResult:
            try:
                return binding.handler.fetch(request, self._context)
            except Cancelled:
                raise
            except Exception as e:
                raise FetchFailed(target, e) from e

        return self._cache.get_or_compute(key, compute, self._context.cancel)

    # ----- Teardown -----

    def close(self) -> None:
        self._cache.clear()
        for handler in self._owned:
            handler.close()

    def __enter__(self) -> "Datasources":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
