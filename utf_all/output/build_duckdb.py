# utf_all/output/build_duckdb.py
#
# Bulk load: mapped utf_all records → DuckDB table.
#
# Design decisions:
#   - The table is dropped and recreated on every run. There is no incremental
#     update and no migration: the manifest is the schema.
#   - Schema phase and load phase are separate functions so each can be tested
#     against an in-memory connection. Schema failures raise SchemaError before
#     any row is inserted.
#   - Rows are committed in fixed-size batches, one transaction per batch.
#     A failing batch is rolled back and raises LoadError; batches committed
#     earlier in the same run stay committed. The next run's DROP/CREATE is
#     the only recovery.
#   - Insertion order is the arrival order of the record stream. No dedup, no
#     upsert.
#
# ADR: INTEGER columns and DuckDB's strict typing.
#   The source CSV is all text. SQLite-style stores coerce "1" into an
#   INTEGER column by affinity; DuckDB refuses values like "" instead. Fields
#   declared INTEGER are therefore converted at bind time: "" becomes NULL,
#   anything else goes through int(). A non-numeric value raises LoadError
#   naming the column, rather than being stored as text.
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import duckdb

from utf_all.errors import LoadError, SchemaError
from utf_all.log import log
from utf_all.manifest import COLUMNS, ColumnDef

DEFAULT_BATCH_SIZE = 10_000


@dataclass(frozen=True)
class LoadResult:
    """Summary of one load: destination table, rows inserted, batches committed."""

    table: str
    rows: int
    batches: int


def index_name(column: str) -> str:
    """Deterministic secondary index name for *column*."""
    return f"idx_{column}"


def create_schema(
    conn: duckdb.DuckDBPyConnection,
    table: str,
    manifest: Sequence[ColumnDef] = COLUMNS,
) -> None:
    """Drop and recreate *table* with one column per ColumnDef, plus indexes.

    Raises:
        SchemaError: if any DDL statement fails. A half-created schema is
            acceptable; the next run drops it again.
    """
    columns_sql = ",\n    ".join(f'"{column.name}" {column.declared_type}' for column in manifest)
    try:
        # Identifiers come from LoaderConfig and the static manifest, never
        # from the downloaded data.
        conn.execute(f'DROP TABLE IF EXISTS "{table}"')
        conn.execute(f'CREATE TABLE "{table}" (\n    {columns_sql}\n)')
        for column in manifest:
            if column.indexed:
                conn.execute(f'CREATE INDEX "{index_name(column.name)}" ON "{table}" ("{column.name}")')
    except duckdb.Error as exc:
        raise SchemaError(f"Failed to create table {table}: {exc}") from exc


def _insert_sql(table: str, manifest: Sequence[ColumnDef]) -> str:
    names = ", ".join(f'"{column.name}"' for column in manifest)
    placeholders = ", ".join("?" for _ in manifest)
    return f'INSERT INTO "{table}" ({names}) VALUES ({placeholders})'  # noqa: S608


def _bind(record: Mapping[str, str], manifest: Sequence[ColumnDef]) -> tuple[str | int | None, ...]:
    """Order a record's values by manifest, converting INTEGER fields."""
    values: list[str | int | None] = []
    for column in manifest:
        raw = record.get(column.name)
        if column.declared_type != "INTEGER" or raw is None:
            values.append(raw)
        elif not raw.strip():
            values.append(None)
        else:
            try:
                values.append(int(raw))
            except ValueError as exc:
                raise LoadError(f"Column {column.name} expects INTEGER, got {raw!r}") from exc
    return tuple(values)


def _flush(
    conn: duckdb.DuckDBPyConnection,
    insert_sql: str,
    batch: list[tuple[str | int | None, ...]],
) -> None:
    """Insert *batch* inside one transaction; roll back and raise on failure."""
    if not batch:
        return
    conn.begin()
    try:
        conn.executemany(insert_sql, batch)
        conn.commit()
    except duckdb.Error as exc:
        conn.rollback()
        raise LoadError(f"Batch of {len(batch)} rows failed and was rolled back: {exc}") from exc


def load_records(
    conn: duckdb.DuckDBPyConnection,
    table: str,
    records: Iterable[Mapping[str, str]],
    manifest: Sequence[ColumnDef] = COLUMNS,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> LoadResult:
    """Append *records* to *table* in transactions of at most batch_size rows.

    The table must already exist (see create_schema). The remainder batch is
    flushed after the stream ends.

    Raises:
        LoadError: if a batch transaction fails or an INTEGER field is not
            numeric. Batches committed before the failure remain.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    insert_sql = _insert_sql(table, manifest)
    batch: list[tuple[str | int | None, ...]] = []
    rows = 0
    batches = 0

    for record in records:
        batch.append(_bind(record, manifest))
        if len(batch) >= batch_size:
            _flush(conn, insert_sql, batch)
            rows += len(batch)
            batches += 1
            batch.clear()
            if batches % 5 == 0:
                log(f"  {rows:,} rows committed...")

    if batch:
        _flush(conn, insert_sql, batch)
        rows += len(batch)
        batches += 1
        batch.clear()

    return LoadResult(table=table, rows=rows, batches=batches)


def build_duckdb(
    records: Iterable[Mapping[str, str]],
    db_path: Path,
    table: str,
    manifest: Sequence[ColumnDef] = COLUMNS,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> LoadResult:
    """Open db_path, rebuild *table* from the manifest and load *records*.

    Steps:
        1. Create parent directories and open (or create) the database file.
        2. Drop and recreate the table and its indexes.
        3. Stream records into it in batched transactions.
        4. Close the connection.

    Raises:
        SchemaError: if the table or an index cannot be created.
        LoadError:   if a batch fails.
        ParseError:  propagated unchanged from the record stream.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = duckdb.connect(str(db_path))
    try:
        create_schema(conn, table, manifest)
        return load_records(conn, table, records, manifest, batch_size)
    finally:
        conn.close()


def describe_table(conn: duckdb.DuckDBPyConnection, table: str) -> list[tuple[str, str]]:
    """Return ``(column_name, data_type)`` pairs for *table* in ordinal order."""
    return [
        (row[0], row[1])
        for row in conn.execute(
            "SELECT column_name, data_type FROM information_schema.columns "
            "WHERE table_name = ? ORDER BY ordinal_position",
            [table],
        ).fetchall()
    ]


def list_indexes(conn: duckdb.DuckDBPyConnection, table: str) -> list[str]:
    """Return the sorted names of the secondary indexes on *table*."""
    return [
        row[0]
        for row in conn.execute(
            "SELECT index_name FROM duckdb_indexes() WHERE table_name = ? ORDER BY index_name",
            [table],
        ).fetchall()
    ]


def count_rows(db_path: Path, table: str) -> int:
    """Open the finished database read-only and return the row count of *table*."""
    conn = duckdb.connect(str(db_path), read_only=True)
    try:
        row = conn.execute(f'SELECT COUNT(*) FROM "{table}"').fetchone()  # noqa: S608
        return int(row[0]) if row else 0
    finally:
        conn.close()
