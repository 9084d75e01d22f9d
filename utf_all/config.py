# utf_all/config.py
#
# Loader configuration loaded from environment variables.
#
# Design decisions:
#   - Uses a frozen dataclass so a single LoaderConfig is built once in main()
#     and passed down explicitly. No component reads a module-level path.
#   - The three on-disk artifacts (marker, raw CSV, DuckDB file) are derived
#     from base_dir so tests only need to point base_dir at tmp_path.
#   - Every field can be overridden via environment variables for mirror use
#     or testing. A .env file in the working directory is honoured.
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_ENDPOINT = "https://www.post.japanpost.jp/zipcode/utf_all.csv"
DEFAULT_BASE_DIR = Path.home() / ".utf_all-duckdb"
DEFAULT_TABLE = "utf_all"
DEFAULT_BATCH_SIZE = 10_000


@dataclass(frozen=True)
class LoaderConfig:
    """Immutable loader configuration.

    Invariants:
      - base_dir is a Path; the artifacts below live directly inside it.
      - batch_size and download_timeout are positive integers.
    """

    base_dir: Path
    endpoint: str = DEFAULT_ENDPOINT
    table_name: str = DEFAULT_TABLE
    batch_size: int = DEFAULT_BATCH_SIZE
    download_timeout: int = 300

    @property
    def marker_path(self) -> Path:
        """Plain-text file holding the last fetched Last-Modified value."""
        return self.base_dir / "last-modified"

    @property
    def data_path(self) -> Path:
        """Raw downloaded CSV."""
        return self.base_dir / "data.csv"

    @property
    def db_path(self) -> Path:
        """Destination DuckDB database file."""
        return self.base_dir / "data.duckdb"


def _positive_int(name: str, raw: str) -> int:
    value = int(raw)
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {raw!r}")
    return value


def load_config() -> LoaderConfig:
    """Build LoaderConfig from environment variables.

    Raises:
        ValueError: if UTF_ALL_BATCH_SIZE or UTF_ALL_DOWNLOAD_TIMEOUT is not a
            positive integer.
    """
    base_dir = Path(os.environ.get("UTF_ALL_BASE_DIR", str(DEFAULT_BASE_DIR))).expanduser()

    return LoaderConfig(
        base_dir=base_dir,
        endpoint=os.environ.get("UTF_ALL_ENDPOINT", DEFAULT_ENDPOINT),
        table_name=os.environ.get("UTF_ALL_TABLE", DEFAULT_TABLE),
        batch_size=_positive_int(
            "UTF_ALL_BATCH_SIZE", os.environ.get("UTF_ALL_BATCH_SIZE", str(DEFAULT_BATCH_SIZE))
        ),
        download_timeout=_positive_int(
            "UTF_ALL_DOWNLOAD_TIMEOUT", os.environ.get("UTF_ALL_DOWNLOAD_TIMEOUT", "300")
        ),
    )
