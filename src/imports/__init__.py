"""CSV import/export package."""

from src.imports.csv_adapter import (
    CSV_FIELDS,
    CsvParseResult,
    CsvTransactionImporter,
    ParsedTransaction,
    csv_template,
    export_filename,
    export_transactions_csv,
    parse_and_validate,
    read_csv,
    sample_csv,
)

__all__ = [
    "CSV_FIELDS",
    "CsvParseResult",
    "CsvTransactionImporter",
    "ParsedTransaction",
    "csv_template",
    "export_filename",
    "export_transactions_csv",
    "parse_and_validate",
    "read_csv",
    "sample_csv",
]
