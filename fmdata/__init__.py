"""
fmdata - Client for the FileMaker Data API.

Layers:
- core: Types, transport, session tokens and the raw HTTP client
- sdk: High-level Client with per-layout record operations
- utils: Helpers for FileMaker field values
"""

from fmdata.core.errors import FMDataError, ProtocolError, RemoteError, ValidationError
from fmdata.sdk import Client, LayoutOperations
from fmdata.utils import DateUtil, parse_boolean, parse_number, quote

__version__ = "0.1.0"
__all__ = [
    "Client",
    "DateUtil",
    "FMDataError",
    "LayoutOperations",
    "ProtocolError",
    "RemoteError",
    "ValidationError",
    "parse_boolean",
    "parse_number",
    "quote",
]
