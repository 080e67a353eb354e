"""Backend handlers for datasource schemes.

Contains:
- base: the FetchHandler protocol and FetchRequest/FetchResult value types
- http: HTTP(S) GET via requests
- file: local files and directory listings
"""

from .base import FetchHandler, FetchRequest, FetchResult
from .file import FileHandler
from .http import HTTPHandler

__all__ = ["FetchHandler", "FetchRequest", "FetchResult", "FileHandler", "HTTPHandler"]
