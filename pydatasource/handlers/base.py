"""
Backend handler seam.

Every backend (HTTP(S), file, or an external plug-in) answers the same
question: given a resolved URI and its merged headers, produce the payload
bytes and their content type. The dispatcher never performs I/O itself; it
only calls this interface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol
from urllib.parse import SplitResult

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from ..context import RenderContext


@dataclass(frozen=True)
class FetchRequest:
    uri: str
    parsed: SplitResult
    headers: Dict[str, List[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class FetchResult:
    body: bytes
    content_type: str


class FetchHandler(Protocol):
    """Minimal backend contract required by the dispatcher."""

    # Headers merged underneath every source served by this handler
    default_headers: Dict[str, List[str]]

    def fetch(self, request: FetchRequest, context: "RenderContext") -> FetchResult: ...

    def close(self) -> None: ...


def guess_content_type(path: str, default: Optional[str] = "text/plain") -> Optional[str]:
    import mimetypes

    guessed, _ = mimetypes.guess_type(path, strict=False)
    if guessed:
        return guessed
    lowered = path.lower()
    if lowered.endswith((".yaml", ".yml")):
        return "application/yaml"
    if lowered.endswith(".env"):
        return "application/x-env"
    return default
