"""Library exceptions."""

from __future__ import annotations

from typing import Optional


class DatasourceError(Exception):
    """Datasource base exception."""


# Configuration
class ConfigError(DatasourceError):
    """Duplicate, undefined or malformed datasource definition."""


class UnsupportedScheme(DatasourceError):
    """No backend handler is registered for the URI scheme."""

    def __init__(self, uri: str, scheme: Optional[str] = None):
        self.uri = uri
        self.scheme = scheme
        message = (
            f"unsupported scheme '{scheme}' in {uri!r}"
            if scheme
            else f"cannot determine scheme of {uri!r}"
        )
        super().__init__(message)


# Fetching
class FetchFailed(DatasourceError):
    """A backend handler failed; the original error is kept as ``cause``."""

    def __init__(self, source: str, cause: BaseException):
        self.source = source
        self.cause = cause
        super().__init__(f"failed to fetch {source!r}: {cause}")


class NetworkError(DatasourceError):
    """Transport-level failure (connection, DNS, I/O)."""


class HTTPStatusError(DatasourceError):
    """Non-2xx response."""

    def __init__(self, url: str, code: int, body_excerpt: str = ""):
        self.url = url
        self.code = code
        self.body_excerpt = body_excerpt
        message = f"HTTP {code} from {url}"
        if body_excerpt:
            message += f": {body_excerpt}"
        super().__init__(message)


class DecodeError(DatasourceError):
    """Payload does not match its declared content type, or bad base64."""

    def __init__(self, message: str, content_type: Optional[str] = None):
        super().__init__(message)
        self.content_type = content_type


# Crypto
class CryptoError(DatasourceError):
    """Encryption service error."""

    def __init__(self, message: str, key_id: Optional[str] = None):
        super().__init__(message)
        self.key_id = key_id


class EncryptionFailed(CryptoError):
    """The encrypt call of the backing service failed."""


class DecryptionFailed(CryptoError):
    """The decrypt call of the backing service failed."""


# Lifecycle
class Cancelled(DatasourceError):
    """The render context was cancelled before the operation completed."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(f"cancelled: {reason}" if reason else "cancelled")
