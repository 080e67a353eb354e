"""Build source definitions from ``-d``/``-H`` style arguments and JSON config files."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlsplit

from pydantic import ValidationError

from .exceptions import ConfigError
from .models import DatasourceFile, SourceDefinition

LOGGER = logging.getLogger(__name__)


def _to_uri(value: str) -> str:
    """URIs pass through; anything without a scheme is a local path."""
    if urlsplit(value).scheme:
        return value
    return Path(os.path.abspath(value)).as_uri()


def parse_source(value: str) -> SourceDefinition:
    """
    Parse ``alias=url``. Without an alias, the alias is the file name stem of
    the path or URL, e.g. ``data/config.json`` -> ``config``.
    """
    value = value.strip()
    if not value:
        raise ConfigError("empty datasource argument")
    alias, sep, target = value.partition("=")
    if not sep or "/" in alias or ":" in alias:
        target = value
        stem = Path(urlsplit(value).path or value).stem
        if not stem:
            raise ConfigError(f"cannot derive an alias from {value!r}")
        alias = stem
    try:
        return SourceDefinition(alias=alias, uri=_to_uri(target.strip()))
    except ValidationError as e:
        raise ConfigError(f"invalid datasource {value!r}: {e}") from e


def parse_header(value: str) -> tuple:
    """Parse ``alias=Name: value`` into ``(alias, name, value)``."""
    alias, sep, header = value.partition("=")
    name, colon, hval = header.partition(":")
    if not sep or not colon or not alias.strip() or not name.strip():
        raise ConfigError(f"invalid header {value!r}, expected 'alias=Name: value'")
    return alias.strip(), name.strip(), hval.strip()


def load_config_file(path: str) -> List[SourceDefinition]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"configuration file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in configuration file {path}: {e}") from e
    try:
        doc = DatasourceFile.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration file {path}: {e}") from e
    LOGGER.debug("Loaded %d datasources from %s", len(doc.datasources), path)
    return doc.definitions()


def build_sources(
    datasources: Iterable[str] = (),
    headers: Iterable[str] = (),
    config_path: Optional[str] = None,
) -> List[SourceDefinition]:
    """
    Combine config file entries, ``-d`` arguments and ``-H`` headers.

    Aliases must be unique across the file and the arguments. Headers given
    with ``-H`` are appended to the definition's own headers; headers for an
    alias that is not defined are ignored with a warning.
    """
    defs: Dict[str, SourceDefinition] = {}
    loaded = load_config_file(config_path) if config_path else []
    for definition in loaded + [parse_source(v) for v in datasources]:
        if definition.alias in defs:
            raise ConfigError(f"datasource {definition.alias!r} is defined twice")
        defs[definition.alias] = definition

    extra: Dict[str, Dict[str, List[str]]] = {}
    for raw in headers:
        alias, name, hval = parse_header(raw)
        extra.setdefault(alias, {}).setdefault(name, []).append(hval)

    out: List[SourceDefinition] = []
    for alias, definition in defs.items():
        added = extra.pop(alias, None)
        if added:
            merged = {k: list(v) for k, v in definition.headers.items()}
            for name, values in added.items():
                merged.setdefault(name, []).extend(values)
            definition = definition.model_copy(update={"headers": merged})
        out.append(definition)
    for alias in extra:
        LOGGER.warning("Ignoring headers for undefined datasource %s", alias)
    return out
