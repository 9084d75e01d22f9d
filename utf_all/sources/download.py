# utf_all/sources/download.py
#
# IO-only: conditionally download utf_all.csv from Japan Post.
#
# Design decisions:
#   - The HEAD probe, the stored-marker read and the local-file existence check
#     are independent reads, so they run concurrently on a small
#     ThreadPoolExecutor and are joined before the fetch decision.
#   - The download uses httpx streaming so the ~18MB CSV is never held in
#     memory. Each chunk is written before the next is pulled from the socket.
#   - The body goes to <destination>.part first and is renamed over the
#     destination only once the stream is complete. On any failure the part
#     file is removed and the previous CSV is left untouched.
#   - The marker is written LAST. A crash mid-download leaves the old marker,
#     so the next run sees "changed" and downloads again.
#   - An httpx.Client may be injected (tests use httpx.MockTransport);
#     otherwise one is created and closed here.
#
# Invariant: marker_path never holds the Last-Modified of an incomplete file.
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

import httpx

from utf_all.errors import MetadataProbeError, TransferError
from utf_all.log import log
from utf_all.sources.freshness import probe_last_modified, read_marker, should_fetch, write_marker

_CHUNK_SIZE = 8 * 1024 * 1024


@dataclass(frozen=True)
class FetchResult:
    """Outcome of the fetch step.

    path:          local CSV path (always the destination, downloaded or not).
    downloaded:    True if a GET was issued and completed this run.
    last_modified: marker in effect after this step (None if unknown).
    """

    path: Path
    downloaded: bool
    last_modified: str | None


def _probe_or_none(url: str, client: httpx.Client) -> str | None:
    try:
        return probe_last_modified(url, client)
    except MetadataProbeError as exc:
        log(f"  WARNING: {exc}; assuming the remote file changed")
        return None


def download_csv(
    url: str,
    destination: Path,
    marker_path: Path,
    *,
    client: httpx.Client | None = None,
    timeout: int = 300,
    chunk_size: int = _CHUNK_SIZE,
) -> FetchResult:
    """Download the CSV at *url* unless the local copy is already current.

    Args:
        url:         Remote CSV endpoint.
        destination: Local CSV path. Parent directories are created.
        marker_path: File holding the last fetched Last-Modified value.
        client:      Optional httpx.Client to use for both requests.
        timeout:     HTTP timeout in seconds when no client is injected.
        chunk_size:  Bytes requested per streamed chunk.

    Returns:
        FetchResult describing whether a download happened.

    Raises:
        TransferError: if the GET fails, the body cannot be streamed, or the
            file cannot be written. The marker is not touched in that case.
            Also raised if the new marker itself cannot be written; the CSV is
            then current but the stale marker forces a download next run.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    owns_client = client is None
    http = client if client is not None else httpx.Client(timeout=timeout)

    try:
        with ThreadPoolExecutor(max_workers=3) as pool:
            remote_future = pool.submit(_probe_or_none, url, http)
            stored_future = pool.submit(read_marker, marker_path)
            exists_future = pool.submit(destination.is_file)
        remote_marker = remote_future.result()
        stored_marker = stored_future.result()
        local_exists = exists_future.result()

        if not should_fetch(remote_marker, stored_marker, local_exists):
            log(f"Last-Modified {remote_marker} unchanged since last run, skipping download")
            return FetchResult(path=destination, downloaded=False, last_modified=remote_marker)

        log(f"Downloading {url}...")
        last_modified = _stream_to_file(http, url, destination, chunk_size)
    finally:
        if owns_client:
            http.close()

    try:
        write_marker(marker_path, last_modified)
    except OSError as exc:
        raise TransferError(f"Downloaded {destination.name} but could not write {marker_path}: {exc}") from exc
    return FetchResult(path=destination, downloaded=True, last_modified=last_modified)


def _stream_to_file(client: httpx.Client, url: str, destination: Path, chunk_size: int) -> str | None:
    """Stream the GET body into destination and return its Last-Modified header."""
    part_path = destination.with_name(destination.name + ".part")
    try:
        with client.stream("GET", url, follow_redirects=True) as response:
            response.raise_for_status()
            downloaded = 0
            with part_path.open("wb") as file_handle:
                for chunk in response.iter_bytes(chunk_size=chunk_size):
                    file_handle.write(chunk)
                    downloaded += len(chunk)
            last_modified = response.headers.get("Last-Modified")
        part_path.replace(destination)
    except (httpx.HTTPError, httpx.StreamError, OSError) as exc:
        if part_path.is_file():
            part_path.unlink()
        raise TransferError(f"GET {url} failed: {exc}") from exc

    log(f"  {destination.name}: {downloaded / (1024 * 1024):.1f} MB downloaded")
    return last_modified
