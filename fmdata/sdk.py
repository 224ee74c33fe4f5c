"""
FileMaker Data API SDK - High-level client with nice ergonomics.

This layer provides a clean, typed interface for record operations on
layouts. Built on top of the core APIClient.
"""

import json
import urllib.parse
from collections.abc import Callable
from pathlib import Path
from typing import Any

from fmdata.core.client import APIClient
from fmdata.core.errors import RemoteError
from fmdata.core.transport import DEFAULT_TIMEOUT, Transport
from fmdata.core.types import (
    ContainerResponse,
    CreateParams,
    CreateResponse,
    DeleteParams,
    DeleteResponse,
    GetParams,
    GetResponse,
    ListParams,
    MultipartForm,
    RangeParams,
    ScriptResult,
    UpdateParams,
    UpdateResponse,
    UploadFile,
)

# Remote error code for a find request that matched no records
NO_RECORDS_CODE = "401"


def _segment(value: Any) -> str:
    """Percent-encode a value for use as a single path segment."""
    return urllib.parse.quote(str(value), safe="")


def json_compact(value: Any) -> str:
    """Serialize to JSON without whitespace."""
    return json.dumps(value, separators=(",", ":"))


def _portal_params(portal_ranges: dict[str, RangeParams | None], prefix: str) -> dict[str, int]:
    params: dict[str, int] = {}
    for portal, portal_range in portal_ranges.items():
        if portal_range is None:
            continue
        if portal_range.offset is not None:
            params[f"{prefix}offset.{portal}"] = portal_range.offset
        if portal_range.limit is not None:
            params[f"{prefix}limit.{portal}"] = portal_range.limit
    return params


class Client:
    """
    High-level FileMaker Data API client.

    Example:
        client = Client("https://fms.example.com", "Contacts", "user", "secret")

        contacts = client.layout("Contacts")
        created = contacts.create({"name": "Jane"})
        found = contacts.find({"name": "==Jane"}, ignore_empty_result=True)

        client.clear_token()

    """

    def __init__(
        self,
        uri: str | None = None,
        database: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        transport: Transport | None = None,
        clock: Callable[[], float] | None = None,
    ):
        """
        Initialize the client.

        Args:
            uri: Server base URI (or FM_DATA_URI env var)
            database: Database name (or FM_DATA_DATABASE env var)
            username: Account name (or FM_DATA_USERNAME env var)
            password: Account password (or FM_DATA_PASSWORD env var)
            timeout: Request timeout in seconds
            transport: Transport override
            clock: Time source override

        """
        self._client = APIClient(
            uri=uri,
            database=database,
            username=username,
            password=password,
            timeout=timeout,
            transport=transport,
            clock=clock,
        )

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @property
    def uri(self) -> str:
        return self._client.uri

    @property
    def database(self) -> str:
        return self._client.database

    def layout(self, layout: str) -> "LayoutOperations":
        """Get the operations for a layout."""
        return LayoutOperations(self._client, layout)

    def request(
        self,
        path: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        """Make an authenticated request relative to the database."""
        return self._client.request(path, method, headers, body)

    def request_container(self, url: str) -> ContainerResponse:
        """Download the contents of a container field."""
        return self._client.fetch_container(url)

    def clear_token(self) -> None:
        """Log out of the current session, if any."""
        self._client.session.release()

    def close(self) -> None:
        """Log out and close the client's connections."""
        self._client.close()


# =============================================================================
# Layout Operations
# =============================================================================


class LayoutOperations:
    """Record operations on a single layout."""

    def __init__(self, client: APIClient, layout: str):
        self._client = client
        self.layout = layout

    @property
    def _base(self) -> str:
        return f"layouts/{_segment(self.layout)}"

    def create(self, field_data: dict[str, Any], params: CreateParams | None = None) -> CreateResponse:
        """
        Create a record.

        Args:
            field_data: Field values of the new record
            params: Scripts to run

        Returns:
            CreateResponse with record ID and modification ID

        """
        params = params or CreateParams()
        data = {"fieldData": field_data, **params.script_dict()}
        result = self._client.post(f"{self._base}/records", data)
        return CreateResponse.from_dict(result or {})

    def update(
        self,
        record_id: int | str,
        field_data: dict[str, Any],
        params: UpdateParams | None = None,
    ) -> UpdateResponse:
        """
        Update a record.

        Args:
            record_id: The record ID
            field_data: Field values to change
            params: Scripts to run and the expected modification ID

        Returns:
            UpdateResponse with the new modification ID

        """
        params = params or UpdateParams()
        data: dict[str, Any] = {"fieldData": field_data, **params.script_dict()}
        if params.mod_id is not None:
            data["modId"] = params.mod_id
        result = self._client.patch(f"{self._base}/records/{_segment(record_id)}", data)
        return UpdateResponse.from_dict(result or {})

    def delete(self, record_id: int | str, params: DeleteParams | None = None) -> DeleteResponse:
        """Delete a record."""
        params = params or DeleteParams()
        result = self._client.delete(f"{self._base}/records/{_segment(record_id)}", params.script_dict())
        return DeleteResponse.from_dict(result or {})

    def upload(
        self,
        file: UploadFile | str | Path,
        record_id: int | str,
        field_name: str,
        field_repetition: int = 1,
    ) -> None:
        """
        Upload a file into a container field.

        Args:
            file: In-memory file, or path of a file on disk
            record_id: The record ID
            field_name: Container field name
            field_repetition: Field repetition, starting at 1

        """
        if not isinstance(file, UploadFile):
            path = Path(file)
            file = UploadFile(name=path.name, content=path.read_bytes())

        form = MultipartForm().add_file("upload", file.name, file.content)
        self._client.request(
            f"{self._base}/records/{_segment(record_id)}/containers/{_segment(field_name)}/{field_repetition}",
            "POST",
            body=form,
        )

    def get(self, record_id: int | str, params: GetParams | None = None) -> GetResponse:
        """
        Get a single record.

        Args:
            record_id: The record ID
            params: Scripts, response layout and portal ranges

        Returns:
            GetResponse holding the record

        """
        params = params or GetParams()
        query: dict[str, Any] = {**params.script_dict(), "layout.response": params.layout_response}
        query.update(_portal_params(params.portal_ranges, "_"))
        result = self._client.get(f"{self._base}/records/{_segment(record_id)}", query)
        return GetResponse.from_dict(result or {})

    def range(self, params: ListParams | None = None) -> GetResponse:
        """
        Get a range of records.

        Args:
            params: Scripts, offset, limit, sort order and portal ranges

        Returns:
            GetResponse holding the records

        """
        params = params or ListParams()
        sort = params.sort_list()
        query: dict[str, Any] = {
            **params.script_dict(),
            "layout.response": params.layout_response,
            "_offset": params.offset,
            "_limit": params.limit,
            "_sort": json_compact(sort) if sort is not None else None,
        }
        query.update(_portal_params(params.portal_ranges, "_"))
        result = self._client.get(f"{self._base}/records", query)
        return GetResponse.from_dict(result or {})

    def find(
        self,
        query: dict[str, Any] | list[dict[str, Any]],
        params: ListParams | None = None,
        ignore_empty_result: bool = False,
    ) -> GetResponse:
        """
        Find records.

        Args:
            query: Find request, or list of find requests; set ``"omit": "true"``
                on a request to omit its matches
            params: Scripts, offset, limit, sort order and portal ranges
            ignore_empty_result: Return an empty result instead of raising
                when nothing matches

        Returns:
            GetResponse holding the found records

        Raises:
            RemoteError: With code 401 when nothing matched and
                ignore_empty_result is False

        """
        params = params or ListParams()
        data: dict[str, Any] = {
            "query": query if isinstance(query, list) else [query],
            **params.script_dict(),
            "layout.response": params.layout_response,
            "offset": params.offset,
            "limit": params.limit,
            "sort": params.sort_list(),
        }
        data.update(_portal_params(params.portal_ranges, ""))
        data = {k: v for k, v in data.items() if v is not None}

        try:
            result = self._client.post(f"{self._base}/_find", data)
        except RemoteError as e:
            if ignore_empty_result and e.code == NO_RECORDS_CODE:
                return GetResponse.empty()
            raise
        return GetResponse.from_dict(result or {})

    def execute_script(self, script: str, param: str | None = None) -> ScriptResult:
        """
        Run a script in the context of this layout.

        Args:
            script: Script name
            param: Optional script parameter

        Returns:
            ScriptResult with the script's result and error code

        """
        result = self._client.get(f"{self._base}/script/{_segment(script)}", {"script.param": param})
        return ScriptResult.from_dict(result or {})
