"""CSV ingest for ledger records."""

from .csv_importer import (
    ImportOutcome,
    ImportResult,
    import_ledger_file,
    import_ledger_text,
    parse_ledger_csv,
    resolve_column,
)

__all__ = [
    "ImportOutcome",
    "ImportResult",
    "import_ledger_file",
    "import_ledger_text",
    "parse_ledger_csv",
    "resolve_column",
]
