"""CSV bulk import of inventory components.

Pipeline: parse_csv → validate_row (per row) → import_components_from_csv,
which persists valid rows one at a time and collects per-row errors into an
ImportTracker. Only an unreadable file aborts the run (FileDecodeError);
every other failure is attributed to its row and processing continues.
"""
import csv
import io
import logging
import time
import uuid
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Protocol

from pydantic import ValidationError
from sqlalchemy.exc import DataError, IntegrityError

from app.models.component import OwnerType
from app.schemas.component import ComponentCreate
from app.schemas.imports import ImportResult, ImportRow, ImportRowData, ImportRowError
from app.services.components import ComponentCreateError, ComponentCreator
from app.services.owner_lookup import OwnerResolver

logger = logging.getLogger(__name__)

# ─── Constants ───

EXPECTED_COLUMNS = (
    "name",
    "sku",
    "description",
    "category",
    "owner_type",
    "supplier_name",
    "location_code",
    "quantity",
    "unit",
    "unit_cost",
    "reorder_level",
)
REQUIRED_COLUMNS = ("name", "owner_type")

MAX_INT_VALUE = 2_147_483_647       # PostgreSQL INTEGER
MAX_UNIT_COST = Decimal("99999999.99")  # NUMERIC(10, 2)
CENT = Decimal("0.01")


class FileDecodeError(ValueError):
    """The upload cannot be read as CSV at all. Fatal for the whole import."""


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


# ─── Row Parser ───

def parse_csv(content: bytes) -> list[ImportRow]:
    """Split raw CSV bytes into ImportRows numbered 1..N in file order.

    Blank lines are skipped and not counted. A line whose column count differs
    from the header is still returned, flagged ``malformed``.

    Raises:
        FileDecodeError: empty input, non UTF-8 bytes, broken CSV framing,
            or a header without the required columns.
    """
    if not content or not content.strip():
        raise FileDecodeError("CSV file is empty")

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FileDecodeError(f"CSV file is not valid UTF-8: {exc.reason} at byte {exc.start}") from exc

    try:
        records = list(csv.reader(io.StringIO(text, newline="")))
    except csv.Error as exc:
        raise FileDecodeError(f"Failed to parse CSV file: {exc}") from exc

    records = [r for r in records if any(cell.strip() for cell in r)]
    if not records:
        raise FileDecodeError("CSV file is empty")

    header = [h.strip().lower() for h in records[0]]
    missing = [c for c in REQUIRED_COLUMNS if c not in header]
    if missing:
        raise FileDecodeError(f"Missing required columns: {', '.join(missing)}")

    # First occurrence wins for duplicated header names
    positions: dict[str, int] = {}
    for idx, col in enumerate(header):
        if col in EXPECTED_COLUMNS and col not in positions:
            positions[col] = idx

    rows: list[ImportRow] = []
    for row_number, record in enumerate(records[1:], start=1):
        values: dict[str, str | None] = {}
        for col, idx in positions.items():
            raw = record[idx].strip() if idx < len(record) else ""
            values[col] = raw or None

        malformed = len(record) != len(header)
        rows.append(
            ImportRow(
                row_number=row_number,
                name=values.get("name") or "",
                sku=values.get("sku"),
                description=values.get("description"),
                category=values.get("category"),
                owner_type=values.get("owner_type") or "",
                supplier_name=values.get("supplier_name"),
                location_code=values.get("location_code"),
                quantity=values.get("quantity"),
                unit=values.get("unit"),
                unit_cost=values.get("unit_cost"),
                reorder_level=values.get("reorder_level"),
                malformed=malformed,
                column_count=len(record) if malformed else None,
            )
        )

    logger.debug("Parsed %d CSV rows (%d columns in header)", len(rows), len(header))
    return rows


# ─── Row Validator ───

def _parse_decimal(value: str) -> Decimal | None:
    # Thousands commas are allowed; digit-group underscores are not
    if "_" in value:
        return None
    try:
        number = Decimal(value.replace(",", ""))
    except (InvalidOperation, AttributeError):
        return None
    return number if number.is_finite() else None


def _error(row: ImportRow, message: str, field: str | None) -> ImportRowError:
    return ImportRowError(
        row_number=row.row_number,
        row_data=ImportRowData.from_row(row),
        error_message=message,
        error_field=field,
    )


def _check_whole_number(
    row: ImportRow, raw: str, field: str, label: str
) -> int | ImportRowError:
    number = _parse_decimal(raw)
    if number is None:
        return _error(row, f"Invalid {field} '{raw}': must be a number", field)
    if number < 0:
        return _error(row, f"{label} cannot be negative", field)
    if number != number.to_integral_value():
        return _error(row, f"{label} must be a whole number", field)
    if number > MAX_INT_VALUE:
        return _error(row, f"{label} is too large", field)
    return int(number)


async def _resolve_owner(
    row: ImportRow, owner_type: OwnerType, resolver: OwnerResolver
) -> tuple[uuid.UUID | None, uuid.UUID | None] | ImportRowError:
    if owner_type == OwnerType.supplier:
        if row.location_code:
            return _error(
                row, "location_code must not be set when owner_type is supplier", "storage_location_id"
            )
        if not row.supplier_name:
            return _error(
                row, "Supplier name is missing (required when owner_type is supplier)", "supplier_id"
            )
        supplier_id = await resolver.resolve_supplier(row.supplier_name)
        if supplier_id is None:
            return _error(row, f"Supplier '{row.supplier_name}' not found", "supplier_id")
        return supplier_id, None

    if row.supplier_name:
        return _error(
            row, "supplier_name must not be set when owner_type is storage_location", "supplier_id"
        )
    if not row.location_code:
        return _error(
            row,
            "Location code is missing (required when owner_type is storage_location)",
            "storage_location_id",
        )
    location_id = await resolver.resolve_location(row.location_code)
    if location_id is None:
        return _error(row, f"Storage location '{row.location_code}' not found", "storage_location_id")
    return None, location_id


async def validate_row(row: ImportRow, resolver: OwnerResolver) -> ComponentCreate | ImportRowError:
    """Validate one row; the first failing rule wins.

    Order: column count, name, owner_type, owner reference, quantity,
    unit_cost, reorder_level. The only side effect is the read-only owner lookup.
    """
    if row.malformed:
        return _error(row, f"Row has {row.column_count} columns, which does not match the header", None)

    if not row.name:
        return _error(row, "Component name is required", "name")

    if not row.owner_type:
        return _error(row, "Owner type is required", "owner_type")
    try:
        owner_type = OwnerType(row.owner_type)
    except ValueError:
        return _error(
            row,
            f"Invalid owner_type '{row.owner_type}'. Must be 'supplier' or 'storage_location'",
            "owner_type",
        )

    owner = await _resolve_owner(row, owner_type, resolver)
    if isinstance(owner, ImportRowError):
        return owner
    supplier_id, storage_location_id = owner

    quantity = 0
    if row.quantity:
        checked = _check_whole_number(row, row.quantity, "quantity", "Quantity")
        if isinstance(checked, ImportRowError):
            return checked
        quantity = checked

    unit_cost: Decimal | None = None
    if row.unit_cost:
        cost = _parse_decimal(row.unit_cost)
        if cost is None:
            return _error(row, f"Invalid unit_cost '{row.unit_cost}': must be a number", "unit_cost")
        if cost < 0:
            return _error(row, "Unit cost cannot be negative", "unit_cost")
        if cost > MAX_UNIT_COST:
            return _error(row, "Unit cost is too large", "unit_cost")
        unit_cost = cost.quantize(CENT, rounding=ROUND_HALF_UP)
        if unit_cost > MAX_UNIT_COST:
            return _error(row, "Unit cost is too large", "unit_cost")

    reorder_level: int | None = None
    if row.reorder_level:
        checked = _check_whole_number(row, row.reorder_level, "reorder_level", "Reorder level")
        if isinstance(checked, ImportRowError):
            return checked
        reorder_level = checked

    try:
        return ComponentCreate(
            name=row.name,
            sku=row.sku,
            description=row.description,
            category=row.category,
            owner_type=owner_type,
            supplier_id=supplier_id,
            storage_location_id=storage_location_id,
            quantity=quantity,
            unit=row.unit,
            unit_cost=unit_cost,
            reorder_level=reorder_level,
        )
    except ValidationError as exc:
        # Length limits not covered by the rules above (e.g. a 300-char name)
        first = exc.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else None
        return _error(row, f"Invalid {field or 'row'}: {first['msg']}", field)


# ─── Result Reporter ───

class ImportTracker:
    """Accumulates per-row outcomes in file order and builds the ImportResult once."""

    def __init__(self) -> None:
        self._errors: list[ImportRowError] = []
        self._imported_ids: list[uuid.UUID] = []
        self._cancelled = False
        self._result: ImportResult | None = None

    @property
    def processed(self) -> int:
        return len(self._errors) + len(self._imported_ids)

    def record_success(self, component_id: uuid.UUID) -> None:
        self._imported_ids.append(component_id)

    def record_failure(self, error: ImportRowError) -> None:
        self._errors.append(error)

    def cancel(self) -> None:
        self._cancelled = True

    def finalize(self, duration_ms: int) -> ImportResult:
        if self._result is None:
            self._result = ImportResult(
                total_rows=self.processed,
                successful_imports=len(self._imported_ids),
                failed_imports=len(self._errors),
                errors=list(self._errors),
                imported_component_ids=list(self._imported_ids),
                duration_ms=duration_ms,
                cancelled=self._cancelled,
            )
        return self._result


# ─── Import Orchestrator ───

async def import_components_from_csv(
    content: bytes,
    resolver: OwnerResolver,
    create: ComponentCreator,
    cancel: CancelSignal | None = None,
) -> ImportResult:
    """Parse, validate and persist every row strictly in file order.

    ``create`` is awaited for each valid row before the next row starts. A
    ComponentCreateError, IntegrityError or DataError from it is recorded against the row
    with no error_field. When ``cancel`` is set, processing stops after the
    current row and the partial result is returned with ``cancelled=True``.

    Raises:
        FileDecodeError: the file could not be parsed; no rows were processed.
    """
    started = time.perf_counter()
    rows = parse_csv(content)
    tracker = ImportTracker()
    logger.info("CSV import started: %d rows", len(rows))

    for index, row in enumerate(rows):
        outcome = await validate_row(row, resolver)

        if isinstance(outcome, ImportRowError):
            tracker.record_failure(outcome)
            logger.debug("Row %d rejected (%s): %s", row.row_number, outcome.error_field, outcome.error_message)
        else:
            try:
                component_id = await create(outcome)
            except ComponentCreateError as exc:
                tracker.record_failure(_error(row, f"Failed to create component: {exc}", None))
                logger.warning("Row %d not persisted: %s", row.row_number, exc)
            except IntegrityError as exc:
                tracker.record_failure(
                    _error(row, "Failed to create component: a database constraint was violated", None)
                )
                logger.warning("Row %d not persisted (integrity error): %s", row.row_number, exc.orig)
            except DataError as exc:
                tracker.record_failure(
                    _error(row, "Failed to create component: the database rejected a value", None)
                )
                logger.warning("Row %d not persisted (data error): %s", row.row_number, exc.orig)
            else:
                tracker.record_success(component_id)

        if cancel is not None and cancel.is_set() and index + 1 < len(rows):
            tracker.cancel()
            logger.warning("CSV import cancelled after %d of %d rows", index + 1, len(rows))
            break

    duration_ms = int((time.perf_counter() - started) * 1000)
    result = tracker.finalize(duration_ms)
    logger.info(
        "CSV import finished: total=%d ok=%d failed=%d in %dms",
        result.total_rows, result.successful_imports, result.failed_imports, result.duration_ms,
    )
    return result
