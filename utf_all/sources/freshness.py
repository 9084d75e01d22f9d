# utf_all/sources/freshness.py
#
# Change detection for the remote CSV via its Last-Modified header.
#
# Design decisions:
#   - should_fetch is a pure function so the skip rule can be tested without
#     any IO. Missing information always means "fetch": a failed probe or an
#     absent marker can cost bandwidth but never leaves stale data in place.
#   - probe_last_modified wraps every httpx failure in MetadataProbeError and
#     the caller degrades it to None. The probe never aborts the run.
#   - The marker is written to a sibling temp file and moved into place with
#     os.replace, so a crash leaves either the old or the new value, never a
#     truncated one.
from __future__ import annotations

import os
from pathlib import Path

import httpx

from utf_all.errors import MetadataProbeError


def should_fetch(
    remote_marker: str | None,
    stored_marker: str | None,
    local_file_exists: bool,
) -> bool:
    """Decide whether the remote CSV must be downloaded again.

    Returns False only when the local file exists and the remote marker is
    known and equal to the stored one.
    """
    if not local_file_exists or not remote_marker:
        return True
    return remote_marker != stored_marker


def probe_last_modified(url: str, client: httpx.Client) -> str | None:
    """Issue a HEAD request and return the Last-Modified header, if any.

    Raises:
        MetadataProbeError: on transport failure or a non-2xx status.
    """
    try:
        response = client.head(url, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise MetadataProbeError(f"HEAD {url} failed: {exc}") from exc
    return response.headers.get("Last-Modified")


def read_marker(path: Path) -> str | None:
    """Return the stored marker, or None if the file is absent or empty."""
    try:
        value = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    return value or None


def write_marker(path: Path, value: str | None) -> None:
    """Atomically replace the marker file with *value* (empty when None)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(value or "", encoding="utf-8")
    os.replace(tmp_path, path)
