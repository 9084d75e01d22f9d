# utf_all/main.py
#
# Loader orchestrator: conditional download, then full rebuild of the DuckDB
# table from the local CSV.
#
# Design decisions:
#   - run_pipeline is the single entry point. It accepts a LoaderConfig and an
#     optional httpx.Client so tests can run the whole chain offline.
#   - The order is strict:
#       1. Fetch (skipped when Last-Modified is unchanged and data.csv exists)
#       2. Parse data.csv as a row stream
#       3. Map rows to named records
#       4. Drop/recreate the table and load records in batched transactions
#   - The conversion runs on every invocation, even when the download was
#     skipped, so a deleted or damaged database is always rebuilt.
#   - No error is caught here. Every fatal error reaches the interpreter and
#     the process exits non-zero.
from __future__ import annotations

import httpx

from utf_all.config import LoaderConfig, load_config
from utf_all.log import log
from utf_all.manifest import columns
from utf_all.output.build_duckdb import LoadResult, build_duckdb, count_rows
from utf_all.sources.download import download_csv
from utf_all.sources.mapping import iter_records
from utf_all.sources.parse import iter_rows


def run_pipeline(config: LoaderConfig, *, client: httpx.Client | None = None) -> LoadResult:
    """Execute the fetch + load pipeline and return the load summary.

    Args:
        config: Loader configuration with paths, endpoint and batch size.
        client: Optional httpx.Client for the HEAD and GET requests.

    Raises:
        utf_all.errors.TransferError: download failed (before any schema change).
        utf_all.errors.ParseError:    malformed CSV or row width mismatch.
        utf_all.errors.SchemaError:   table or index creation failed.
        utf_all.errors.LoadError:     a batch transaction failed.
    """
    config.base_dir.mkdir(parents=True, exist_ok=True)

    fetched = download_csv(
        config.endpoint,
        config.data_path,
        config.marker_path,
        client=client,
        timeout=config.download_timeout,
    )
    if fetched.downloaded:
        log(f"  Saved {fetched.path} (Last-Modified: {fetched.last_modified or 'unknown'})")

    log(f"Converting {config.data_path.name} into DuckDB table {config.table_name}...")
    manifest = columns()
    records = iter_records(iter_rows(config.data_path), manifest)
    result = build_duckdb(
        records,
        config.db_path,
        config.table_name,
        manifest,
        batch_size=config.batch_size,
    )

    total = count_rows(config.db_path, config.table_name)
    log(f"Done. {result.rows:,} rows in {result.batches} batches; {config.db_path} holds {total:,} rows")
    return result


def main() -> None:
    run_pipeline(load_config())


if __name__ == "__main__":
    main()
