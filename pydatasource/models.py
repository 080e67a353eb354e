"""Pydantic models for datasource definitions and configuration files."""

from __future__ import annotations

import os
from typing import Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _env_extra_mode(default: str = "forbid") -> str:
    """
    Determine the extra-mode from environment vars.

    PYDATASOURCE_EXTRA: allow|forbid|ignore
    Convenience booleans: "true/1/on" -> forbid (strict), "false/0/off" -> ignore
    """
    raw = (os.getenv("PYDATASOURCE_EXTRA") or default).strip().lower()

    if raw in {"allow", "forbid", "ignore"}:
        return raw

    if raw in {"1", "true", "yes", "on", "strict"}:
        return "forbid"
    if raw in {"0", "false", "no", "off", "lenient"}:
        return "ignore"

    return default


_EXTRA = _env_extra_mode()


class DatasourceModel(BaseModel):
    """
    Project-wide base model.

    Default is extra='forbid' so typos in config files surface early; switch
    at runtime by setting an env var before import:
      export PYDATASOURCE_EXTRA=ignore   # or allow/forbid
    """

    model_config = ConfigDict(extra=_EXTRA, frozen=True)


def _normalize_headers(value) -> Dict[str, List[str]]:
    if value is None:
        return {}
    out: Dict[str, List[str]] = {}
    for key, vals in dict(value).items():
        if not isinstance(key, str) or not key.strip():
            raise ValueError(f"invalid header name: {key!r}")
        if vals is None:
            out[key] = []
        elif isinstance(vals, str):
            out[key] = [vals]
        else:
            out[key] = [str(v) for v in vals]
    return out


class SourceDefinition(DatasourceModel):
    """A named datasource: alias, target URI and request headers."""

    alias: str = Field(..., min_length=1)
    uri: str = Field(..., min_length=1)
    # keys that differ only by case are kept apart, in declaration order
    headers: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("alias", "uri")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("headers", mode="before")
    @classmethod
    def _headers(cls, v):
        return _normalize_headers(v)


# ─── Config file ────────────────────────────────────────────────────────────
class SourceEntry(DatasourceModel):
    """One entry of the ``datasources`` table in a config file."""

    url: str = Field(..., min_length=1)
    headers: Dict[str, Union[str, List[str]]] = Field(default_factory=dict)


class DatasourceFile(DatasourceModel):
    """Top-level JSON config document."""

    datasources: Dict[str, SourceEntry] = Field(default_factory=dict)

    def definitions(self) -> List[SourceDefinition]:
        return [
            SourceDefinition(alias=alias, uri=entry.url, headers=entry.headers)
            for alias, entry in self.datasources.items()
        ]


__all__ = [
    "DatasourceModel",
    "DatasourceFile",
    "SourceDefinition",
    "SourceEntry",
]
