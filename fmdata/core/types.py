"""
Core types for FileMaker Data API requests and responses.

Parameter dataclasses map Python attribute names to the dotted wire keys the
Data API expects. Any field left at ``None`` is omitted from the request.
"""

from dataclasses import dataclass, field
from typing import Any

# =============================================================================
# Transport Types
# =============================================================================


@dataclass
class HTTPResponse:
    """Raw response returned by a transport."""

    status: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        """Check if the status is 2xx."""
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup, first value of a repeated header."""
        values = self.header_list(name)
        return values[0] if values else None

    def header_list(self, name: str) -> list[str]:
        """All values of a header, in the order they were received."""
        name = name.lower()
        return [value for key, value in self.headers if key == name]


@dataclass
class UploadFile:
    """In-memory file to upload into a container field."""

    name: str
    content: bytes


@dataclass
class FilePart:
    """One file part of a multipart form."""

    field_name: str
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class MultipartForm:
    """Multipart request body. The transport generates the boundary."""

    parts: list[FilePart] = field(default_factory=list)

    def add_file(self, field_name: str, filename: str, content: bytes) -> "MultipartForm":
        self.parts.append(FilePart(field_name, filename, content))
        return self


# =============================================================================
# Request Parameters
# =============================================================================


@dataclass
class ScriptParams:
    """Scripts to run around a request."""

    script: str | None = None
    script_param: str | None = None
    script_prerequest: str | None = None
    script_prerequest_param: str | None = None
    script_presort: str | None = None
    script_presort_param: str | None = None

    def script_dict(self) -> dict[str, str]:
        """Script parameters keyed by their wire names."""
        wire = {
            "script": self.script,
            "script.param": self.script_param,
            "script.prerequest": self.script_prerequest,
            "script.prerequest.param": self.script_prerequest_param,
            "script.presort": self.script_presort,
            "script.presort.param": self.script_presort_param,
        }
        return {k: v for k, v in wire.items() if v is not None}


@dataclass
class CreateParams(ScriptParams):
    """Parameters for creating a record."""


@dataclass
class UpdateParams(ScriptParams):
    """Parameters for updating a record."""

    mod_id: int | None = None


@dataclass
class DeleteParams(ScriptParams):
    """Parameters for deleting a record."""


@dataclass
class RangeParams:
    """Offset and limit for a record or portal range."""

    offset: int | None = None
    limit: int | None = None


@dataclass
class Sort:
    """Sort rule for range and find requests."""

    field_name: str
    sort_order: str = "ascend"

    def to_dict(self) -> dict[str, str]:
        """Convert to dict for API request."""
        return {"fieldName": self.field_name, "sortOrder": self.sort_order}


@dataclass
class GetParams(ScriptParams):
    """Parameters for fetching a single record."""

    layout_response: str | None = None
    portal_ranges: dict[str, RangeParams | None] = field(default_factory=dict)


@dataclass
class ListParams(GetParams):
    """Parameters for range and find requests."""

    offset: int | None = None
    limit: int | None = None
    sort: Sort | list[Sort] | None = None

    def sort_list(self) -> list[dict[str, str]] | None:
        """Sort rules as a list, wrapping a single rule."""
        if self.sort is None:
            return None
        rules = self.sort if isinstance(self.sort, list) else [self.sort]
        return [rule.to_dict() for rule in rules]


# =============================================================================
# Response Types
# =============================================================================


@dataclass
class ScriptResult:
    """Script results reported alongside a response."""

    result: str | None = None
    error: str | None = None
    prerequest_result: str | None = None
    prerequest_error: str | None = None
    presort_result: str | None = None
    presort_error: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScriptResult":
        """Create from API response dict."""
        return cls(
            result=data.get("scriptResult"),
            error=data.get("scriptError"),
            prerequest_result=data.get("scriptResult.prerequest"),
            prerequest_error=data.get("scriptError.prerequest"),
            presort_result=data.get("scriptResult.presort"),
            presort_error=data.get("scriptError.presort"),
        )


@dataclass
class CreateResponse:
    """Result of a create call."""

    record_id: str
    mod_id: str
    scripts: ScriptResult = field(default_factory=ScriptResult)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CreateResponse":
        """Create from API response dict."""
        return cls(
            record_id=str(data.get("recordId", "")),
            mod_id=str(data.get("modId", "")),
            scripts=ScriptResult.from_dict(data),
        )


@dataclass
class UpdateResponse:
    """Result of an update call."""

    mod_id: str
    scripts: ScriptResult = field(default_factory=ScriptResult)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UpdateResponse":
        """Create from API response dict."""
        return cls(mod_id=str(data.get("modId", "")), scripts=ScriptResult.from_dict(data))


@dataclass
class DeleteResponse:
    """Result of a delete call."""

    scripts: ScriptResult = field(default_factory=ScriptResult)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeleteResponse":
        """Create from API response dict."""
        return cls(scripts=ScriptResult.from_dict(data))


@dataclass
class Record:
    """A record (row) on a layout."""

    record_id: str
    mod_id: str
    field_data: dict[str, Any] = field(default_factory=dict)
    portal_data: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Record":
        """Create from API response dict."""
        return cls(
            record_id=str(data.get("recordId", "")),
            mod_id=str(data.get("modId", "")),
            field_data=data.get("fieldData") or {},
            portal_data=data.get("portalData") or {},
        )


@dataclass
class DataInfo:
    """Counts reported by find and range calls."""

    found_count: int = 0
    returned_count: int = 0
    total_record_count: int = 0
    database: str | None = None
    layout: str | None = None
    table: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DataInfo":
        """Create from API response dict."""
        return cls(
            found_count=data.get("foundCount", 0),
            returned_count=data.get("returnedCount", 0),
            total_record_count=data.get("totalRecordCount", 0),
            database=data.get("database"),
            layout=data.get("layout"),
            table=data.get("table"),
        )


@dataclass
class GetResponse:
    """Records returned by get, range and find calls."""

    data: list[Record] = field(default_factory=list)
    data_info: DataInfo | None = None
    scripts: ScriptResult = field(default_factory=ScriptResult)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GetResponse":
        """Create from API response dict."""
        info = data.get("dataInfo")
        return cls(
            data=[Record.from_dict(r) for r in data.get("data") or []],
            data_info=DataInfo.from_dict(info) if info else None,
            scripts=ScriptResult.from_dict(data),
        )

    @classmethod
    def empty(cls) -> "GetResponse":
        """An empty result set with zeroed counts."""
        return cls(data=[], data_info=DataInfo())


@dataclass
class ContainerResponse:
    """Contents of a container field."""

    content_type: str | None
    body: bytes
