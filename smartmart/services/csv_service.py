# smartmart/services/csv_service.py
"""
CSV serialisation of product records.

Export mirrors what the dashboard used to build in the browser: the header
is the key set of the first record (internal identifiers removed) and every
value is written the way JSON.stringify would show it, except that embedded
double quotes use CSV doubling so the file reads back with the csv module.
Strings are always double-quoted and commas inside values are safe.

Import is all-or-nothing: every row is validated first and a single bad row
rejects the whole file with the complete list of row errors.
"""
import csv
import io
import json
import uuid
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from pydantic import ValidationError

from smartmart.schemas.base import error_list
from smartmart.schemas.product import ProductCreate

# Never exported
INTERNAL_FIELDS = frozenset({"id", "_id", "__v"})

# Present in exported files; ignored on import
READ_ONLY_COLUMNS = frozenset({"id", "_id", "__v", "createdAt", "created_at"})


class CsvImportError(Exception):
    """Raised when an uploaded CSV cannot be imported as a whole."""

    def __init__(self, message: str, rows: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.message = message
        self.rows = rows or []


def _json_default(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not CSV serialisable")


def _cell(value: Any) -> str:
    if value is None:
        value = ""
    # 2.0 is written as 2
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, (bool, int, float)):
        return json.dumps(value)
    if isinstance(value, (date, uuid.UUID)):
        value = _json_default(value)
    elif not isinstance(value, str):
        value = json.dumps(value, default=_json_default, ensure_ascii=False)
    # Strings are always quoted; embedded quotes are doubled
    return '"' + value.replace('"', '""') + '"'


def export_products_csv(records: Sequence[Mapping[str, Any]]) -> str:
    """
    Serialise product records to CSV text.

    Args:
        records: product dicts, typically
            `ProductRead.model_dump(by_alias=True, mode="json")`.

    Returns:
        Header line plus one line per record, joined with "\\n".
        An empty input produces an empty string.
    """
    if not records:
        return ""

    headers = [key for key in records[0] if key not in INTERNAL_FIELDS]
    lines = [",".join(headers)]
    for record in records:
        lines.append(",".join(_cell(record.get(key)) for key in headers))
    return "\n".join(lines)


def _known_columns() -> set[str]:
    columns: set[str] = set()
    for name, field in ProductCreate.model_fields.items():
        columns.add(name)
        if field.alias:
            columns.add(field.alias)
    return columns


def parse_products_csv(text: str) -> list[ProductCreate]:
    """
    Parse CSV text into validated product payloads.

    - Column names may be camelCase (`reorderLevel`) or snake_case.
    - Read-only columns from an export (`id`, `createdAt`) are ignored.
    - Empty cells count as "not provided", so defaults apply.
    - Rows that are entirely empty are skipped.

    Raises:
        CsvImportError: missing header, unknown columns, no data rows,
            or one or more invalid rows (all reported together).
    """
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise CsvImportError("CSV file is empty")

    reader.fieldnames = [name.strip() for name in reader.fieldnames]
    unknown = [
        name
        for name in reader.fieldnames
        if name and name not in READ_ONLY_COLUMNS and name not in _known_columns()
    ]
    if unknown:
        raise CsvImportError(f"Unknown columns: {', '.join(unknown)}")

    products: list[ProductCreate] = []
    errors: list[dict[str, Any]] = []

    # Line 1 is the header
    for line_no, row in enumerate(reader, start=2):
        if None in row:
            errors.append({"row": line_no, "errors": [{"message": "Too many values"}]})
            continue

        data = {
            key: value.strip()
            for key, value in row.items()
            if key and key not in READ_ONLY_COLUMNS and value is not None and value.strip()
        }
        if not data:
            continue

        try:
            products.append(ProductCreate.model_validate(data))
        except ValidationError as e:
            errors.append({"row": line_no, "errors": error_list(e)})

    if errors:
        raise CsvImportError(
            f"CSV rejected: {len(errors)} invalid row(s)",
            rows=errors,
        )
    if not products:
        raise CsvImportError("CSV file has no product rows")

    return products
