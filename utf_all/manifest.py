# utf_all/manifest.py
#
# Column manifest for the Japan Post utf_all.csv dataset.
#
# Invariants:
#   - COLUMNS order matches the CSV column order exactly. The CSV has no
#     header row, so this tuple is the only place the mapping is declared.
#   - The same tuple drives CREATE TABLE, CREATE INDEX and the INSERT shape.
#   - Names are unique and are used verbatim as SQL identifiers.
#
# The flag columns (multi_zip_in_single_town .. single_zip_for_multi_town)
# hold "1" (applies) or "0" (does not apply). updated holds 0=unchanged,
# 1=changed, 2=abolished; updated_reason holds 0..6 (see Japan Post docs).
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ColumnType = Literal["TEXT", "INTEGER"]


@dataclass(frozen=True)
class ColumnDef:
    """One destination column, in CSV order."""

    name: str
    declared_type: ColumnType
    indexed: bool = False
    description: str = ""


COLUMNS: tuple[ColumnDef, ...] = (
    ColumnDef("jiscode", "TEXT", description="全国地方公共団体コード"),
    ColumnDef("zip5", "TEXT", description="（旧）郵便番号"),
    ColumnDef("zip7", "TEXT", description="郵便番号（7桁）"),
    ColumnDef("pref_kana", "TEXT", description="都道府県名カナ"),
    ColumnDef("city_kana", "TEXT", description="市区町村名カナ"),
    ColumnDef("town_kana", "TEXT", description="町域名カナ"),
    ColumnDef("pref", "TEXT", indexed=True, description="都道府県名"),
    ColumnDef("city", "TEXT", indexed=True, description="市区町村名"),
    ColumnDef("town", "TEXT", description="町域名"),
    ColumnDef("multi_zip_in_single_town", "INTEGER", description="一町域が二以上の郵便番号で表される場合の表示"),
    ColumnDef("koaza_banchi", "INTEGER", description="小字毎に番地が起番されている町域の表示"),
    ColumnDef("has_chome", "INTEGER", description="丁目を有する町域の場合の表示"),
    ColumnDef("single_zip_for_multi_town", "INTEGER", description="一つの郵便番号で二以上の町域を表す場合の表示"),
    ColumnDef("updated", "INTEGER", description="更新の表示"),
    ColumnDef("updated_reason", "INTEGER", description="変更理由"),
)


def columns() -> tuple[ColumnDef, ...]:
    """Return the utf_all manifest in CSV order."""
    return COLUMNS


def indexed_columns(manifest: tuple[ColumnDef, ...] = COLUMNS) -> list[str]:
    """Names of the columns that get a secondary index, in manifest order."""
    return [column.name for column in manifest if column.indexed]
