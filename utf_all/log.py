# utf_all/log.py
#
# Progress lines for the fetch + load run.
#
# A run prints a handful of lines: the skip-or-download decision, probe
# warnings, download size, a "rows committed" line every few batches and the
# final row count. Each line carries the time since import so the operator
# can tell a slow download from a slow conversion. Lines go to stdout and are
# flushed at once, since the loader is usually run by cron with output piped
# to a log file.
from __future__ import annotations

import sys
import time

_start = time.monotonic()


def log(message: str) -> None:
    """Write ``[utf_all mm:ss] message`` to stdout."""
    elapsed = time.monotonic() - _start
    minutes, seconds = divmod(int(elapsed), 60)
    sys.stdout.write(f"[utf_all {minutes:02d}:{seconds:02d}] {message}\n")
    sys.stdout.flush()
