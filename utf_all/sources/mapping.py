# utf_all/sources/mapping.py
#
# Attach manifest column names to positional CSV rows.
#
# The CSV carries no header, so a column added or removed upstream would shift
# every field silently. to_record fails fast instead: a row whose width differs
# from the manifest raises SchemaMismatchError.
from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from utf_all.errors import SchemaMismatchError
from utf_all.manifest import COLUMNS, ColumnDef


def to_record(row: Sequence[str], manifest: Sequence[ColumnDef] = COLUMNS) -> dict[str, str]:
    """Map ``row[i]`` to ``manifest[i].name`` for every column.

    Raises:
        SchemaMismatchError: if ``len(row) != len(manifest)``.
    """
    if len(row) != len(manifest):
        raise SchemaMismatchError(f"row has {len(row)} fields, manifest declares {len(manifest)} columns")
    return {column.name: value for column, value in zip(manifest, row)}


def iter_records(
    rows: Iterable[Sequence[str]],
    manifest: Sequence[ColumnDef] = COLUMNS,
) -> Iterator[dict[str, str]]:
    """Lazily apply to_record to a row stream, tagging errors with the line number."""
    for line_number, row in enumerate(rows, start=1):
        try:
            yield to_record(row, manifest)
        except SchemaMismatchError as exc:
            raise SchemaMismatchError(f"line {line_number}: {exc}") from exc
