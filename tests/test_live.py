"""
Live smoke tests against a real FileMaker Server.

Run with: python -m pytest tests/test_live.py -v -s
Requires: FM_DATA_URI, FM_DATA_DATABASE, FM_DATA_USERNAME, FM_DATA_PASSWORD
and FM_DATA_LAYOUT environment variables (or a .env file in the project root)
"""

import os

import pytest

from fmdata.core.errors import RemoteError
from fmdata.core.types import ListParams
from fmdata.sdk import Client

# =============================================================================
# Configuration
# =============================================================================

LAYOUT = os.environ.get("FM_DATA_LAYOUT")
REQUIRED = ("FM_DATA_URI", "FM_DATA_DATABASE", "FM_DATA_USERNAME", "FM_DATA_PASSWORD")


@pytest.fixture(scope="module")
def live_client():
    """Skip test if credentials not available."""
    if not LAYOUT or not all(os.environ.get(name) for name in REQUIRED):
        pytest.skip(f"{', '.join(REQUIRED)} and FM_DATA_LAYOUT required")
    with Client() as client:
        yield client


def test_range_returns_records(live_client: Client) -> None:
    response = live_client.layout(LAYOUT).range(ListParams(limit=1))
    assert len(response.data) <= 1
    assert response.data_info is not None


def test_token_survives_release(live_client: Client) -> None:
    layout = live_client.layout(LAYOUT)
    layout.range(ListParams(limit=1))
    live_client.clear_token()
    layout.range(ListParams(limit=1))


def test_unknown_layout_is_remote_error(live_client: Client) -> None:
    with pytest.raises(RemoteError):
        live_client.layout("__no_such_layout__").range(ListParams(limit=1))
