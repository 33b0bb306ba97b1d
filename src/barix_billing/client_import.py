"""Bulk client import from CSV/XLSX with duplicate detection.

Rows are normalized to the ``clients`` table shape, keyed by email, then
phone, then name + service address + postal code, and compared against
the contractor's stored clients and the rows earlier in the same file.
Nothing is written until ``confirm_import`` is called.
"""

from __future__ import annotations

import io
import re
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import pandas as pd
import structlog

from barix_billing.config import get_settings
from barix_billing.repositories.base import ClientRepository

logger = structlog.get_logger(__name__)

DUPLICATE_EXISTING = "Duplicate (already in your clients)"
DUPLICATE_IN_UPLOAD = "Duplicate (repeated in this upload)"

SUPPORTED_EXTENSIONS = ("csv", "xlsx")

HEADER_ALIASES = {
    "zip": "service_postal_code",
    "zipcode": "service_postal_code",
    "zip_code": "service_postal_code",
    "postal": "service_postal_code",
    "postal_code": "service_postal_code",
    "state": "service_state",
    "city": "service_city",
    "address": "service_address_line1",
    "address1": "service_address_line1",
    "address2": "service_address_line2",
    "billing_zip": "billing_postal_code",
    "billing_zipcode": "billing_postal_code",
    "billing_address": "billing_address_line1",
    "billing_address1": "billing_address_line1",
    "billing_address2": "billing_address_line2",
}


class ClientImportError(Exception):
    """Base exception for client import failures."""

    pass


class UnsupportedFileTypeError(ClientImportError):
    pass


class EmptyImportError(ClientImportError):
    pass


@dataclass
class ClientImportRow:
    """An imported client normalized to the ``clients`` columns."""

    name: str = ""
    email: str = ""
    phone: str = ""
    service_address_line1: str = ""
    service_address_line2: str = ""
    service_city: str = ""
    service_state: str = ""
    service_postal_code: str = ""
    billing_address_line1: str = ""
    billing_address_line2: str = ""
    billing_city: str = ""
    billing_state: str = ""
    billing_postal_code: str = ""

    @property
    def has_identity(self) -> bool:
        return bool(self.name or self.email or self.phone)

    def to_record(self, owner_id: str) -> dict[str, Any]:
        return {"owner_id": owner_id, **asdict(self)}


FIELDS = tuple(f.name for f in fields(ClientImportRow))


def normalize_header_key(value: Any) -> str:
    key = re.sub(r"\s+", "_", str(value or "").strip().lower())
    return re.sub(r"[^a-z0-9_]", "", key)


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_email(value: Any) -> str:
    return _clean(value).lower()


def normalize_phone(value: Any) -> str:
    """Digits only."""
    return re.sub(r"\D", "", _clean(value))


def clean_row(raw: Mapping[str, Any]) -> ClientImportRow:
    """Map raw spreadsheet columns onto a ClientImportRow.

    Unknown columns are ignored. Phone keeps its display formatting; it is
    only reduced to digits for the dedupe key.
    """
    values: dict[str, str] = {}
    for key, value in raw.items():
        normalized = normalize_header_key(key)
        mapped = HEADER_ALIASES.get(normalized, normalized)
        if mapped in FIELDS:
            values[mapped] = _clean(value)

    row = ClientImportRow(**values)
    row.email = normalize_email(row.email)
    return row


def build_dedupe_key(row: ClientImportRow | Mapping[str, Any]) -> str:
    """Identity key: email, else phone digits, else name + address + postal."""
    data = asdict(row) if isinstance(row, ClientImportRow) else row

    email = normalize_email(data.get("email"))
    if email:
        return f"email:{email}"

    phone = normalize_phone(data.get("phone"))
    if phone:
        return f"phone:{phone}"

    name = _clean(data.get("name")).lower()
    address = _clean(data.get("service_address_line1")).lower()
    postal = _clean(data.get("service_postal_code")).lower()
    return f"fallback:{name}|{address}|{postal}"


@dataclass
class ImportPreview:
    """Classified rows awaiting confirmation."""

    rows: list[ClientImportRow] = field(default_factory=list)
    duplicate_flags: list[bool] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.rows)

    @property
    def duplicates(self) -> int:
        return sum(self.duplicate_flags)

    @property
    def ready(self) -> int:
        return self.total - self.duplicates

    @property
    def importable_rows(self) -> list[ClientImportRow]:
        return [row for row, dup in zip(self.rows, self.duplicate_flags) if not dup]

    def summary(self) -> dict[str, int]:
        return {"total": self.total, "duplicates": self.duplicates, "ready": self.ready}


def deduplicate(
    rows: Iterable[ClientImportRow],
    existing_clients: Iterable[Mapping[str, Any]] = (),
) -> ImportPreview:
    """Flag rows that repeat a stored client or an earlier row in the batch.

    Rows with no name, email or phone are dropped before comparison.
    """
    existing_keys = {build_dedupe_key(client) for client in existing_clients}
    seen: set[str] = set()
    preview = ImportPreview()

    for row in rows:
        if not row.has_identity:
            continue

        key = build_dedupe_key(row)
        preview.rows.append(row)
        if key in existing_keys:
            preview.duplicate_flags.append(True)
            preview.reasons.append(DUPLICATE_EXISTING)
        elif key in seen:
            preview.duplicate_flags.append(True)
            preview.reasons.append(DUPLICATE_IN_UPLOAD)
        else:
            seen.add(key)
            preview.duplicate_flags.append(False)
            preview.reasons.append("")

    return preview


def read_import_file(filename: str, content: bytes) -> list[dict[str, Any]]:
    """Parse the first sheet of a CSV or XLSX upload into row dicts.

    Raises:
        UnsupportedFileTypeError: For any other extension.
    """
    ext = Path(filename or "").suffix.lower().lstrip(".")
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileTypeError("Unsupported file type. Please upload a .csv or .xlsx")

    buffer = io.BytesIO(content)
    try:
        if ext == "csv":
            df = pd.read_csv(buffer, dtype=str, keep_default_na=False, skip_blank_lines=True)
        else:
            df = pd.read_excel(buffer, sheet_name=0, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        return []

    return df.fillna("").to_dict(orient="records")


def preview_import(
    filename: str,
    content: bytes,
    existing_clients: Iterable[Mapping[str, Any]] = (),
) -> ImportPreview:
    """Parse, clean and classify an upload.

    Raises:
        UnsupportedFileTypeError: If the file is not CSV/XLSX.
        EmptyImportError: If no row has a name, email or phone.
    """
    raw_rows = read_import_file(filename, content)
    preview = deduplicate((clean_row(raw) for raw in raw_rows), existing_clients)
    if preview.total == 0:
        raise EmptyImportError("No usable rows found. Each row needs a name, email or phone.")

    logger.info("import_previewed", filename=filename, **preview.summary())
    return preview


async def confirm_import(
    preview: ImportPreview,
    owner_id: str,
    repository: ClientRepository,
    chunk_size: int | None = None,
) -> list[dict[str, Any]]:
    """Insert the non-duplicate rows in chunks; returns the inserted records.

    ``chunk_size`` defaults to the ``IMPORT_CHUNK_SIZE`` setting.
    """
    if not owner_id:
        raise ValueError("Missing owner id")
    chunk_size = chunk_size or get_settings().import_chunk_size

    records = [row.to_record(owner_id) for row in preview.importable_rows]
    inserted: list[dict[str, Any]] = []
    for start in range(0, len(records), chunk_size):
        inserted.extend(await repository.insert_clients(records[start : start + chunk_size]))

    logger.info("import_confirmed", owner_id=owner_id, inserted=len(inserted))
    return inserted


EXAMPLE_ROW = ClientImportRow(
    name="Jane Doe",
    email="jane.doe@example.com",
    phone="6165551234",
    service_address_line1="123 Main St",
    service_city="Grand Rapids",
    service_state="MI",
    service_postal_code="49503",
    billing_address_line1="123 Main St",
    billing_city="Grand Rapids",
    billing_state="MI",
    billing_postal_code="49503",
)


def build_import_template_csv() -> str:
    """CSV template with the expected header and one example row."""
    df = pd.DataFrame([asdict(EXAMPLE_ROW)], columns=list(FIELDS))
    return df.to_csv(index=False)
