# tests/utf_all/test_freshness.py
#
# Tests for Last-Modified change detection and the marker file.
# Network calls go through httpx.MockTransport; no real requests are made.
from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from utf_all.errors import MetadataProbeError
from utf_all.sources.freshness import probe_last_modified, read_marker, should_fetch, write_marker

URL = "https://example.test/zipcode/utf_all.csv"
LAST_MODIFIED = "Mon, 29 Sep 2025 01:00:00 GMT"


# ---------------------------------------------------------------------------
# should_fetch
# ---------------------------------------------------------------------------


def test_skip_when_file_exists_and_marker_unchanged() -> None:
    assert should_fetch(LAST_MODIFIED, LAST_MODIFIED, True) is False


def test_fetch_when_marker_changed() -> None:
    assert should_fetch("Tue, 30 Sep 2025 01:00:00 GMT", LAST_MODIFIED, True) is True


def test_fetch_when_local_file_missing() -> None:
    """Even an unchanged marker cannot skip a download if data.csv is gone."""
    assert should_fetch(LAST_MODIFIED, LAST_MODIFIED, False) is True


def test_fetch_when_remote_marker_unknown() -> None:
    """A failed probe (None) never counts as 'unchanged'."""
    assert should_fetch(None, None, True) is True
    assert should_fetch(None, LAST_MODIFIED, True) is True
    assert should_fetch("", "", True) is True


def test_fetch_when_never_fetched_before() -> None:
    assert should_fetch(LAST_MODIFIED, None, True) is True


# ---------------------------------------------------------------------------
# probe_last_modified
# ---------------------------------------------------------------------------


def test_probe_returns_last_modified_header() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        return httpx.Response(200, headers={"Last-Modified": LAST_MODIFIED})

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        assert probe_last_modified(URL, client) == LAST_MODIFIED


def test_probe_returns_none_without_header() -> None:
    with httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200))) as client:
        assert probe_last_modified(URL, client) is None


def test_probe_network_error_raises_metadata_probe_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(MetadataProbeError, match="HEAD"):
            probe_last_modified(URL, client)


def test_probe_http_error_status_raises_metadata_probe_error() -> None:
    with httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503))) as client:
        with pytest.raises(MetadataProbeError):
            probe_last_modified(URL, client)


# ---------------------------------------------------------------------------
# marker file
# ---------------------------------------------------------------------------


def test_read_marker_absent_file_is_none(tmp_path: Path) -> None:
    assert read_marker(tmp_path / "last-modified") is None


def test_read_marker_empty_file_is_none(tmp_path: Path) -> None:
    marker = tmp_path / "last-modified"
    marker.write_text("", encoding="utf-8")
    assert read_marker(marker) is None


def test_write_marker_overwrites_previous_value(tmp_path: Path) -> None:
    marker = tmp_path / "nested" / "last-modified"
    write_marker(marker, "old")
    write_marker(marker, LAST_MODIFIED)

    assert read_marker(marker) == LAST_MODIFIED
    assert not (marker.parent / "last-modified.tmp").exists()


def test_write_marker_none_reads_back_as_absent(tmp_path: Path) -> None:
    marker = tmp_path / "last-modified"
    write_marker(marker, None)
    assert marker.exists()
    assert read_marker(marker) is None
