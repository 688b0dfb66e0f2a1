"""Shared file utilities for bid imports and attachment storage.

Used by:
  - services/import_service.py: parse_tabular_file, pick
  - services/bid_service.py, services/company_service.py: store_upload, remove_stored_file
"""

import csv
import io
import logging
import uuid
from datetime import date, datetime
from pathlib import Path

from .config import settings
from .utils.file_validation import decode_text, get_extension

log = logging.getLogger(__name__)


def parse_tabular_file(content: bytes, filename: str) -> list[dict]:
    """Parse CSV/TSV/Excel file bytes into a list of row dicts.

    All header keys are stripped and lowercased.
    All values are stripped strings. Blank rows are skipped.
    """
    ext = get_extension(filename)
    if ext == ".xlsx":
        return _parse_excel(content)
    delimiter = "\t" if ext == ".tsv" else ","
    return _parse_csv(content, delimiter)


def _parse_excel(content: bytes) -> list[dict]:
    """Parse Excel bytes into list of row dicts."""
    import openpyxl

    wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    ws = wb.active
    rows = []
    headers = []
    for i, row in enumerate(ws.iter_rows(values_only=True)):
        if i == 0:
            headers = [str(c or "").strip().lower() for c in row]
            continue
        if not headers or not any(row):
            continue
        rows.append(dict(zip(headers, [_cell_text(v) for v in row])))
    wb.close()
    return rows


def _cell_text(v) -> str:
    if v is None:
        return ""
    # openpyxl hands back datetime for date cells
    if isinstance(v, datetime):
        return v.date().isoformat()
    if isinstance(v, date):
        return v.isoformat()
    return str(v).strip()


def _parse_csv(content: bytes, delimiter: str = ",") -> list[dict]:
    """Parse CSV/TSV bytes into list of row dicts."""
    text = decode_text(content)
    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    rows = []
    for row in reader:
        cleaned = {k.strip().lower(): (v or "").strip() for k, v in row.items() if k}
        if any(cleaned.values()):
            rows.append(cleaned)
    return rows


def pick(row: dict, headers: tuple[str, ...]) -> str:
    """First non-empty value among header aliases (row keys are lowercase)."""
    for h in headers:
        value = row.get(h.lower())
        if value:
            return value
    return ""


# ── Attachment storage ──────────────────────────────────────────────────


def store_upload(content: bytes, original_name: str, subdir: str) -> str:
    """Write upload bytes under settings.upload_dir/subdir and return the path.

    Stored names are random so two uploads of "quote.pdf" never collide.
    """
    target_dir = Path(settings.upload_dir) / subdir
    target_dir.mkdir(parents=True, exist_ok=True)
    stored = target_dir / f"{uuid.uuid4().hex}{get_extension(original_name)}"
    stored.write_bytes(content)
    return str(stored)


def remove_stored_file(path: str | None) -> None:
    """Delete a stored upload; a missing file is only logged."""
    if not path:
        return
    try:
        Path(path).unlink()
    except FileNotFoundError:
        log.warning(f"Attachment file already gone: {path}")
