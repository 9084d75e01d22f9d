# utf_all/sources/parse.py
#
# Stream the raw utf_all CSV as positional rows.
#
# Design decisions:
#   - Uses a lazy Polars scan collected in batches (scan_csv + collect_batches)
#     so at most one batch of rows is held in memory at a time. The full
#     dataset is ~120k rows; a batch is 50k.
#   - infer_schema_length=0 reads every column as String. The parser does not
#     interpret values; typing is the loader's concern.
#   - has_header=False because Japan Post ships the file without a header row.
#   - Polars fixes the width from the first row and pads short rows with null.
#     A null therefore means a missing field, and the row is rejected. Japan
#     Post quotes every text field and always fills the numeric flags, so an
#     unquoted empty field is treated the same way.
#   - The parser knows nothing about the manifest. Agreement between the file
#     width and the manifest is checked at the mapping step.
#
# Invariant: rows are yielded in file order, every row has the width of the
# first row, and no field is None. Anything else aborts the stream as
# ParseError; there is no best-effort recovery.
from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import polars as pl

from utf_all.errors import ParseError


def iter_rows(
    path: Path,
    *,
    separator: str = ",",
    batch_size: int = 50_000,
    encoding: str = "utf8",
) -> Iterator[tuple[str, ...]]:
    """Yield each CSV row of *path* as a tuple of field strings.

    Args:
        path:       Local CSV file (no header row).
        separator:  Single-character field delimiter.
        batch_size: Rows Polars buffers per batch.
        encoding:   File encoding ("utf8" or "utf8-lossy").

    Raises:
        ParseError: if Polars cannot parse the file (rows longer than the
            first, invalid encoding, broken quoting) or a row is missing
            fields. The message names the file and, for missing fields, the
            1-based line number.
    """
    if path.stat().st_size == 0:
        return

    line_number = 0
    try:
        lazy = pl.scan_csv(
            path,
            has_header=False,
            separator=separator,
            quote_char='"',
            infer_schema_length=0,
            encoding=encoding,
        )
        for batch in lazy.collect_batches(chunk_size=batch_size):
            for row in batch.iter_rows():
                line_number += 1
                if None in row:
                    raise ParseError(
                        f"Failed to parse {path}: line {line_number} is missing fields "
                        f"(expected {len(row)}, got {_present_width(row)})"
                    )
                yield row
    except pl.exceptions.PolarsError as exc:
        raise ParseError(f"Failed to parse {path}: {exc}") from exc


def _present_width(row: tuple[str | None, ...]) -> int:
    """Number of fields before the first missing one."""
    return row.index(None)
