"""
Core layer - Raw types, transport and HTTP client.

This layer provides:
- Typed dataclasses for request parameters and responses
- Session token management
- Low-level HTTP client with auth, retry and error handling
"""

from fmdata.core.client import APIClient
from fmdata.core.errors import FMDataError, ProtocolError, RemoteError, ValidationError
from fmdata.core.session import SessionManager
from fmdata.core.transport import HttpxTransport
from fmdata.core.types import (
    ContainerResponse,
    CreateParams,
    CreateResponse,
    DataInfo,
    DeleteParams,
    DeleteResponse,
    GetParams,
    GetResponse,
    HTTPResponse,
    ListParams,
    MultipartForm,
    RangeParams,
    Record,
    ScriptParams,
    ScriptResult,
    Sort,
    UpdateParams,
    UpdateResponse,
    UploadFile,
)

__all__ = [
    "APIClient",
    "ContainerResponse",
    "CreateParams",
    "CreateResponse",
    "DataInfo",
    "DeleteParams",
    "DeleteResponse",
    "FMDataError",
    "GetParams",
    "GetResponse",
    "HTTPResponse",
    "ListParams",
    "MultipartForm",
    "ProtocolError",
    "RangeParams",
    "Record",
    "RemoteError",
    "ScriptParams",
    "ScriptResult",
    "SessionManager",
    "Sort",
    "UpdateParams",
    "UpdateResponse",
    "UploadFile",
    "HttpxTransport",
    "ValidationError",
]
