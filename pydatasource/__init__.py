"""Pluggable datasource resolution for template rendering."""

__version__ = "0.1.0"

from .context import CancelSignal, RenderContext  # noqa: E402
from .crypto import KMS, BotoKMSBackend, CryptoBackend, b64decode, b64encode  # noqa: E402
from .dispatcher import Datasources, Scheme  # noqa: E402
from .headers import merge_headers  # noqa: E402
from .models import SourceDefinition  # noqa: E402
from .options import ResolverOptions  # noqa: E402

__all__ = [
    "BotoKMSBackend",
    "CancelSignal",
    "CryptoBackend",
    "Datasources",
    "KMS",
    "RenderContext",
    "ResolverOptions",
    "Scheme",
    "SourceDefinition",
    "b64decode",
    "b64encode",
    "merge_headers",
]
