from __future__ import annotations

import csv
import io
import json
import logging
from typing import Any, Optional, Tuple

import yaml

from .exceptions import DecodeError

LOGGER = logging.getLogger(__name__)

JSON_MIMETYPE = "application/json"
JSON_ARRAY_MIMETYPE = "application/array+json"
YAML_MIMETYPES = frozenset(
    {"application/yaml", "application/x-yaml", "text/yaml", "text/x-yaml"}
)
CSV_MIMETYPE = "text/csv"
TEXT_MIMETYPE = "text/plain"
_TEXTUAL_APPLICATION = frozenset(
    {"application/xml", "application/javascript", "application/x-env"}
)


def parse_content_type(value: Optional[str]) -> Tuple[str, Optional[str]]:
    """Split ``type/subtype; charset=x`` into (mimetype, charset)."""
    if not value:
        return "", None
    parts = [p.strip() for p in value.split(";")]
    mimetype = parts[0].lower()
    charset = None
    for param in parts[1:]:
        name, _, val = param.partition("=")
        if name.strip().lower() == "charset" and val:
            charset = val.strip().strip('"') or None
    return mimetype, charset


def is_json(mimetype: str) -> bool:
    return mimetype == JSON_MIMETYPE or mimetype.endswith("+json")


def is_text(mimetype: str) -> bool:
    return (
        not mimetype
        or mimetype.startswith("text/")
        or mimetype in _TEXTUAL_APPLICATION
        or mimetype in YAML_MIMETYPES
        or is_json(mimetype)
    )


def _text(body: bytes, charset: Optional[str], content_type: str) -> str:
    try:
        return body.decode(charset or "utf-8")
    except (LookupError, UnicodeDecodeError) as e:
        raise DecodeError(f"cannot decode body as text: {e}", content_type) from e


def as_text(body: bytes, content_type: Optional[str]) -> str:
    """Body as text, honouring the charset parameter; no structural decoding."""
    mimetype, charset = parse_content_type(content_type)
    return _text(body, charset, mimetype)


def decode(body: bytes, content_type: Optional[str]) -> Any:
    """
    Decode a fetched body according to its content type.

    JSON (including ``+json`` types) and YAML become structured values, CSV a
    list of rows, other textual types a string; anything else is returned as
    raw bytes for the caller to interpret. A JSON echo of request headers
    simply decodes to its ``{name: [values]}`` mapping.
    """
    mimetype, charset = parse_content_type(content_type)
    LOGGER.debug("decoder.dispatch type=%s bytes=%d", mimetype or "-", len(body))

    if is_json(mimetype):
        text = _text(body, charset, mimetype)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise DecodeError(f"malformed JSON: {e}", mimetype) from e

    if mimetype in YAML_MIMETYPES:
        text = _text(body, charset, mimetype)
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise DecodeError(f"malformed YAML: {e}", mimetype) from e

    if mimetype == CSV_MIMETYPE:
        text = _text(body, charset, mimetype)
        try:
            return [row for row in csv.reader(io.StringIO(text))]
        except csv.Error as e:
            raise DecodeError(f"malformed CSV: {e}", mimetype) from e

    if is_text(mimetype):
        return _text(body, charset, mimetype)

    return bytes(body)
