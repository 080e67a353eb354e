"""
Header merging for datasource requests.

Three layers are combined into one canonical header set:
  - defaults   supplied by the backend handler (e.g. User-Agent)
  - configured declared on the SourceDefinition
  - extra      per-URI overrides carried by the RenderContext

Keys are case-insensitive. A key declared in ``configured`` replaces the
default; declaring it with an empty list suppresses it. ``extra`` only ever
adds values.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

HeaderValues = Union[str, Sequence[str], None]
HeaderInput = Optional[Mapping[str, HeaderValues]]
Headers = Dict[str, List[str]]


def _as_list(values: HeaderValues) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        return [values]
    return [str(v) for v in values]


def merge_headers(
    defaults: HeaderInput,
    configured: HeaderInput,
    extra: HeaderInput = None,
) -> Headers:
    canonical: Dict[str, str] = {}
    merged: Dict[str, List[str]] = {}

    for key, values in (configured or {}).items():
        low = key.lower()
        canonical.setdefault(low, key)
        # an empty list still claims the key, which suppresses the default
        merged.setdefault(low, []).extend(_as_list(values))

    for key, values in (extra or {}).items():
        vals = _as_list(values)
        if not vals:
            continue
        low = key.lower()
        canonical.setdefault(low, key)
        merged.setdefault(low, []).extend(vals)

    for key, values in (defaults or {}).items():
        low = key.lower()
        if low in merged:
            continue
        canonical[low] = key
        merged[low] = _as_list(values)

    return {canonical[low]: list(merged[low]) for low in sorted(merged) if merged[low]}


def header_signature(headers: Mapping[str, Iterable[str]]) -> Tuple:
    """Hashable, order-stable signature of a merged header set."""
    return tuple(
        sorted((k.lower(), tuple(v)) for k, v in headers.items())
    )


def flatten_headers(headers: Mapping[str, Iterable[str]]) -> Dict[str, str]:
    """Join multi-valued headers for transports that take one string per key."""
    return {k: ", ".join(v) for k, v in headers.items()}
