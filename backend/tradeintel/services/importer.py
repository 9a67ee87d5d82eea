"""
Export import service - runs spreadsheet rows through normalization into the store.
"""
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Set

from sqlalchemy.orm import Session

from tradeintel.config.mapping_loader import get_categories
from tradeintel.db.database import settings
from tradeintel.services.column_resolver import RawRow, get_field_aliases, reserved_headers
from tradeintel.services.export_store import DuplicateRecordError, ExportStore
from tradeintel.services.file_parser import EXCEL_EPOCH_1900, read_rows
from tradeintel.services.normalizer import IDENTITY_DIGEST, IDENTITY_RANDOM, normalize_row

logger = logging.getLogger(__name__)

# Rows whose extracted values are logged at DEBUG, and failures logged in full
DEBUG_ROWS = 3
DETAILED_FAILURES = 5


class ImportValidationError(ValueError):
    """The import cannot start: no rows, or a missing/unknown category."""


class RecordStore(Protocol):
    def insert_one(self, fields: Dict) -> object: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass
class ImportSummary:
    total_rows: int = 0
    processed: int = 0
    inserted: int = 0
    duplicates: int = 0
    failed: int = 0
    no_id: int = 0
    upload_batch: str = ""
    category: str = ""
    columns_found: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def skipped(self) -> int:
        return self.duplicates + self.failed + self.no_id

    def as_dict(self) -> Dict:
        return {
            "total_rows": self.total_rows,
            "processed": self.processed,
            "inserted": self.inserted,
            "skipped": self.skipped,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "no_id": self.no_id,
            "upload_batch": self.upload_batch,
            "category": self.category,
            "columns_found": list(self.columns_found),
            "cancelled": self.cancelled,
        }


@dataclass
class ImportProgress:
    processed: int
    total_rows: int
    inserted: int
    skipped: int


@dataclass
class ImportOptions:
    """Per-call import settings."""
    # One commit at the end (bulk mode) instead of one per inserted row
    defer_commit: bool = True
    progress_every: int = field(default_factory=lambda: settings.import_progress_every)
    progress_callback: Optional[Callable[[ImportProgress], None]] = None
    should_cancel: Optional[Callable[[], bool]] = None
    identity_strategy: str = IDENTITY_RANDOM
    upload_batch: Optional[str] = None
    date_epoch: str = EXCEL_EPOCH_1900


def validate_category(category: Optional[str]) -> str:
    allowed = get_categories()
    if not category or not str(category).strip():
        raise ImportValidationError("Missing data type. Must be one of: " + ", ".join(allowed))
    normalized = str(category).strip().lower()
    if normalized not in allowed:
        raise ImportValidationError(
            f"Invalid data type '{category}'. Must be one of: " + ", ".join(allowed)
        )
    return normalized


def make_upload_batch(category: str) -> str:
    return f"{int(time.time() * 1000)}-{category}"


def _reserved_by_field(headers: List[str], aliases: Dict[str, List[str]]) -> Dict[str, Set[str]]:
    return {name: reserved_headers(headers, name, aliases) for name in aliases}


def import_rows(
    rows: Sequence[RawRow],
    category: Optional[str],
    store: RecordStore,
    options: Optional[ImportOptions] = None,
) -> ImportSummary:
    """
    Normalize and persist every row, one insert per row.

    Per-row problems never abort the run: duplicates, rows without any
    usable identity and rows that fail to normalize or insert are only
    counted. Raises ``ImportValidationError`` before touching the store
    when there are no rows or the category is missing/unknown.
    """
    options = options or ImportOptions()
    category = validate_category(category)
    if not rows:
        raise ImportValidationError("Excel file is empty")
    if options.identity_strategy not in (IDENTITY_RANDOM, IDENTITY_DIGEST):
        raise ImportValidationError(f"Unknown identity strategy: {options.identity_strategy}")

    columns = [str(c) for c in rows[0].keys()]
    summary = ImportSummary(
        total_rows=len(rows),
        upload_batch=options.upload_batch or make_upload_batch(category),
        category=category,
        columns_found=columns,
    )
    aliases = get_field_aliases()
    # Rows from one sheet share headers, so this normally holds a single entry
    reserved_for_headers: Dict[tuple, Dict[str, Set[str]]] = {}

    logger.info(
        "Importing %d rows (category=%s, batch=%s) columns=%s",
        summary.total_rows,
        category,
        summary.upload_batch,
        columns,
    )
    start = time.perf_counter()

    for row_number, row in enumerate(rows, start=1):
        if options.should_cancel is not None and options.should_cancel():
            summary.cancelled = True
            logger.info("Import %s cancelled before row %d", summary.upload_batch, row_number)
            break

        headers = tuple(str(h) for h in row.keys())
        if headers not in reserved_for_headers:
            reserved_for_headers[headers] = _reserved_by_field(list(headers), aliases)

        try:
            normalized = normalize_row(
                row,
                aliases,
                category,
                summary.upload_batch,
                reserved=reserved_for_headers[headers],
                identity_strategy=options.identity_strategy,
                date_epoch=options.date_epoch,
            )
        except Exception as e:
            normalized = None
            summary.failed += 1
            if summary.failed <= DETAILED_FAILURES:
                logger.warning("Normalization error for row %d: %s", row_number, e)

        if normalized is None:
            pass
        elif not normalized["declaration_id"]:
            summary.no_id += 1
        else:
            if row_number <= DEBUG_ROWS:
                logger.debug(
                    "Row %d extracted values: declaration_id=%s exporter=%s consignee=%s product=%.50s fob=%s hs=%s",
                    row_number,
                    normalized["declaration_id"],
                    normalized["exporter_name"],
                    normalized["consignee_name"],
                    normalized["product_description"],
                    normalized["fob_value"],
                    normalized["hs_code"],
                )
            try:
                store.insert_one(normalized)
                if not options.defer_commit:
                    store.commit()
                summary.inserted += 1
            except DuplicateRecordError:
                summary.duplicates += 1
            except Exception as e:
                summary.failed += 1
                if not options.defer_commit:
                    store.rollback()
                if summary.failed <= DETAILED_FAILURES:
                    logger.warning(
                        "Insert error for row %d: %s (declaration_id=%s, exporter=%s, date=%s)",
                        row_number,
                        e,
                        normalized["declaration_id"],
                        normalized["exporter_name"],
                        normalized["shipment_date"],
                    )

        summary.processed = row_number
        if options.progress_every and row_number % options.progress_every == 0:
            progress = ImportProgress(
                processed=row_number,
                total_rows=summary.total_rows,
                inserted=summary.inserted,
                skipped=summary.skipped,
            )
            logger.info(
                "Progress: %d/%d rows processed (%d inserted, %d skipped)",
                progress.processed,
                progress.total_rows,
                progress.inserted,
                progress.skipped,
            )
            if options.progress_callback is not None:
                options.progress_callback(progress)

    store.commit()
    logger.info(
        "Import complete: %d inserted, %d skipped (%d duplicates, %d failed), %d no ID in %.2fs",
        summary.inserted,
        summary.skipped,
        summary.duplicates,
        summary.failed,
        summary.no_id,
        time.perf_counter() - start,
    )
    return summary


def import_file(
    db: Session,
    content: bytes,
    filename: str,
    category: Optional[str],
    options: Optional[ImportOptions] = None,
) -> ImportSummary:
    """Parse an uploaded spreadsheet and import its first sheet."""
    options = options or ImportOptions()
    # Reject a bad category before spending time on parsing
    validate_category(category)
    parsed = read_rows(content, filename)
    options = replace(options, date_epoch=parsed.date_epoch)
    return import_rows(parsed.rows, category, ExportStore(db), options)
