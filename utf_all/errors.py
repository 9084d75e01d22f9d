# utf_all/errors.py
#
# Error taxonomy for the fetch + load pipeline.
#
# Only MetadataProbeError is recoverable (the fetcher catches it and assumes
# the remote file changed). Every other error propagates to the top level and
# terminates the run with a non-zero exit status. Library exceptions are
# chained with `raise ... from exc` so the original cause stays visible.
from __future__ import annotations


class UtfAllError(Exception):
    """Base class for every error raised by the loader."""


class MetadataProbeError(UtfAllError):
    """The HEAD request for the Last-Modified marker failed."""


class TransferError(UtfAllError):
    """The CSV body could not be downloaded or written to disk."""


class ParseError(UtfAllError):
    """The downloaded CSV is structurally malformed."""


class SchemaMismatchError(ParseError):
    """A CSV row does not have exactly one field per manifest column."""


class SchemaError(UtfAllError):
    """The destination table or one of its indexes could not be created."""


class LoadError(UtfAllError):
    """A batch transaction failed and was rolled back."""
