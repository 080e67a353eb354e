"""Local filesystem backend for ``file:`` URIs."""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING
from urllib.parse import unquote

from ..decoding import JSON_ARRAY_MIMETYPE
from ..exceptions import NetworkError
from ..headers import Headers
from .base import FetchRequest, FetchResult, guess_content_type

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from ..context import RenderContext

LOGGER = logging.getLogger(__name__)


class FileHandler:
    """Reads files; a directory yields a JSON array of its entry names."""

    def __init__(self) -> None:
        self.default_headers: Headers = {}

    def close(self) -> None:
        pass

    def fetch(self, request: FetchRequest, context: "RenderContext") -> FetchResult:
        context.cancel.raise_if_cancelled()
        path = unquote(request.parsed.path)
        if request.parsed.netloc and request.parsed.netloc != "localhost":
            path = f"//{request.parsed.netloc}{path}"
        LOGGER.info("Reading %s", path)
        try:
            if os.path.isdir(path):
                names = sorted(os.listdir(path))
                return FetchResult(
                    body=json.dumps(names).encode("utf-8"),
                    content_type=JSON_ARRAY_MIMETYPE,
                )
            with open(path, "rb") as f:
                body = f.read()
        except OSError as e:
            LOGGER.error("Reading %s failed: %s", path, e)
            raise NetworkError(f"reading {path}: {e}") from e
        return FetchResult(body=body, content_type=guess_content_type(path) or "")
