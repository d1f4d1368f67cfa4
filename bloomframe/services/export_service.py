"""
BloomFrame Backend — Order Exporter
=====================================

What:  Exports orders and their related records to a four-sheet XLSX
       workbook (Orders, Frame Items, Paperweights, Email Logs).
How:   1. Resolve the filters: an explicit order id wins outright; otherwise
          a created-date window ANDed with optional status filters
       2. Load matching orders, newest first, capped at MAX_ORDERS_EXPORT
       3. Load customers, frame items, paperweight items and email logs in
          OR-filtered chunks of FILTER_CHUNK_SIZE ids, one chunk at a time
       4. Write one flat sheet per collection with a fixed header row
Who:   GET /api/export/orders.xlsx

Date window (UTC):
    neither bound   now - 30 days   .. now
    from only       from 00:00:00   .. (from + 30 days) 23:59:59
    to only         (to - 30 days) 23:59:59 .. to 23:59:59
    both            from 00:00:00   .. to 23:59:59

Any failed lookup aborts the whole export with a QueryError naming the
collection.
"""

import io
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.worksheet.worksheet import Worksheet
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bloomframe.exceptions import BloomFrameError, LimitExceededError, QueryError, ValidationError
from bloomframe.formatting import export_date_dmy
from bloomframe.models.customer import Customer
from bloomframe.models.email_log import EmailLog
from bloomframe.models.order import Order, OrderFrameItem, OrderPaperweightItem

logger = logging.getLogger(__name__)

MAX_ORDERS_EXPORT = 2000
FILTER_CHUNK_SIZE = 200
EXPORT_WINDOW = timedelta(days=30)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ORDER_HEADERS = [
    "orderId", "orderNo", "created", "updated", "occasionDate",
    "customerId", "customerName", "customerEmail",
    "billingAddressLine1", "billingAddressLine2", "billingTown", "billingCounty", "billingPostcode",
    "orderStatus", "payment_status",
    "replacementFlowers", "replacementFlowersQty", "replacementFlowersPrice",
    "collectionQty", "collectionPrice", "deliveryQty", "deliveryPrice",
    "returnUnusedFlowers", "returnUnusedFlowersPrice", "artistHours", "notes",
]

# Columns read from the frame item's extras blob
FRAME_EXTRAS_KEYS = [
    "framePrice", "mountPrice", "glassEngravingPrice", "glassPrice",
    "measuredWidthIn", "measuredHeightIn", "recommendedSizeWidthIn", "recommendedSizeHeightIn",
]

FRAME_HEADERS = [
    "orderId", "orderNo", "frameItemId", "sizeX", "sizeY", "frameType", "layout",
    "preservationType", "glassType", "frameMountColour", "inclusions", "glassEngraving",
    "artworkComplete", "framingComplete", "preservationDate", "price",
    *FRAME_EXTRAS_KEYS,
    "created", "updated",
]

PAPERWEIGHT_HEADERS = [
    "orderId", "orderNo", "paperweightItemId", "quantity", "price",
    "paperweightReceived", "created", "updated",
]

EMAIL_LOG_HEADERS = [
    "emailLogId", "sentAt", "channel", "status", "emailType", "eventType", "eventNote",
    "templateKey", "toName", "toEmail", "subject", "sentBy", "orderId", "customerId",
    "frameItemId", "paperweightItemId", "error", "meta",
]


@dataclass
class ExportFilters:
    order_id: str = ""
    from_date: str = ""
    to_date: str = ""
    payment_status: str = ""
    order_status: str = ""

    def __post_init__(self):
        for name in ("order_id", "from_date", "to_date", "payment_status", "order_status"):
            setattr(self, name, (getattr(self, name) or "").strip())


@dataclass
class ExportData:
    """Everything loaded for one export, joined in memory."""

    orders: List[Order] = field(default_factory=list)
    customers_by_order: Dict[str, Customer] = field(default_factory=dict)
    frames: List[OrderFrameItem] = field(default_factory=list)
    frame_order_map: Dict[str, str] = field(default_factory=dict)
    paperweights: List[OrderPaperweightItem] = field(default_factory=list)
    paperweight_order_map: Dict[str, str] = field(default_factory=dict)
    email_logs: List[EmailLog] = field(default_factory=list)

    @property
    def order_no_by_id(self) -> Dict[str, int]:
        return {order.id: order.order_no or 0 for order in self.orders}


@dataclass
class ExportResult:
    content: bytes
    filename: str
    order_count: int


# ══════════════════════════════════════════════════════════════════════════
# Filters
# ══════════════════════════════════════════════════════════════════════════

def _parse_day(value: str) -> datetime:
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"Invalid date format: {value} (expected YYYY-MM-DD)") from None
    return parsed.replace(tzinfo=timezone.utc)


def _end_of_day(day: datetime) -> datetime:
    return day.replace(hour=23, minute=59, second=59, microsecond=0)


def resolve_date_range(
    from_param: str,
    to_param: str,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """
    Resolves the export window from optional YYYY-MM-DD bounds.

    Raises:
        ValidationError: a bound is not a valid YYYY-MM-DD date.
    """
    now = now or datetime.now(timezone.utc)

    if not from_param and not to_param:
        return now - EXPORT_WINDOW, now
    if from_param and not to_param:
        start = _parse_day(from_param)
        return start, _end_of_day(start + EXPORT_WINDOW)
    if to_param and not from_param:
        end = _end_of_day(_parse_day(to_param))
        return end - EXPORT_WINDOW, end
    return _parse_day(from_param), _end_of_day(_parse_day(to_param))


def build_orders_filter(filters: ExportFilters, now: Optional[datetime] = None) -> list:
    """
    Builds the WHERE clauses for the orders query.

    An order id selects that order alone: dates and statuses are ignored.
    """
    if filters.order_id:
        return [Order.id == filters.order_id]

    start, end = resolve_date_range(filters.from_date, filters.to_date, now)
    clauses = [Order.created >= start, Order.created <= end]
    if filters.payment_status:
        clauses.append(Order.payment_status == filters.payment_status)
    if filters.order_status:
        clauses.append(Order.order_status == filters.order_status)
    return clauses


# ══════════════════════════════════════════════════════════════════════════
# Lookups
# ══════════════════════════════════════════════════════════════════════════

def _chunks(values: Sequence[str], size: int) -> Iterator[List[str]]:
    for start in range(0, len(values), size):
        yield list(values[start:start + size])


async def fetch_records_by_field(
    db: AsyncSession,
    model: Any,
    column: Any,
    ids: Sequence[str],
    label: str,
) -> list:
    """
    Loads every `model` row whose `column` equals one of `ids`.

    Blank ids are skipped. Each chunk of FILTER_CHUNK_SIZE ids becomes one
    OR-of-equalities query; chunks run one after another.

    Raises:
        QueryError: "Failed to load <label>." when any chunk fails.
    """
    wanted = [value.strip() for value in ids if value and value.strip()]
    records: list = []
    for chunk in _chunks(wanted, FILTER_CHUNK_SIZE):
        stmt = select(model).where(or_(*(column == value for value in chunk)))
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Export lookup of %s failed: %s", label, exc)
            raise QueryError(f"Failed to load {label}.", details=str(exc)) from exc
        records.extend(result.scalars().all())
    return records


async def load_orders(db: AsyncSession, filters: ExportFilters, now: Optional[datetime] = None) -> List[Order]:
    """
    Raises:
        ValidationError:    a date bound is malformed.
        QueryError:         the orders query failed.
        LimitExceededError: more than MAX_ORDERS_EXPORT orders match.
    """
    stmt = (
        select(Order)
        .where(*build_orders_filter(filters, now))
        .order_by(Order.created.desc())
        .limit(MAX_ORDERS_EXPORT + 1)
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        logger.error("Export orders query failed: %s", exc)
        raise QueryError("Failed to load orders.", details=str(exc)) from exc

    orders = list(result.scalars().all())
    if len(orders) > MAX_ORDERS_EXPORT:
        raise LimitExceededError(len(orders), MAX_ORDERS_EXPORT)
    return orders


async def load_export_data(db: AsyncSession, filters: ExportFilters, now: Optional[datetime] = None) -> ExportData:
    data = ExportData(orders=await load_orders(db, filters, now))

    order_ids: List[str] = []
    frame_ids: List[str] = []
    paperweight_ids: List[str] = []
    for order in data.orders:
        order_ids.append(order.id)
        for raw_id in order.frame_order_id or []:
            frame_id = str(raw_id).strip()
            if not frame_id:
                continue
            frame_ids.append(frame_id)
            data.frame_order_map[frame_id] = order.id
        pw_id = (order.paperweight_order_id or "").strip()
        if pw_id:
            paperweight_ids.append(pw_id)
            data.paperweight_order_map[pw_id] = order.id

    customers = await fetch_records_by_field(db, Customer, Customer.order_id, order_ids, "customers")
    for customer in customers:
        related = (customer.order_id or "").strip()
        if related:
            data.customers_by_order[related] = customer

    data.frames = await fetch_records_by_field(
        db, OrderFrameItem, OrderFrameItem.id, frame_ids, "frame items"
    )
    data.paperweights = await fetch_records_by_field(
        db, OrderPaperweightItem, OrderPaperweightItem.id, paperweight_ids, "paperweight items"
    )
    data.email_logs = await fetch_records_by_field(
        db, EmailLog, EmailLog.order_id, order_ids, "email logs"
    )
    return data


# ══════════════════════════════════════════════════════════════════════════
# Cell values
# ══════════════════════════════════════════════════════════════════════════

def stringify_json(value: Any) -> str:
    if value is None:
        return ""
    try:
        return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return ""


def read_extras_map(value: Any) -> Dict[str, Any]:
    """
    Decodes a frame item's extras blob into a dict.

    Accepts a mapping, a JSON string, or JSON bytes; any other value is
    round-tripped through JSON. Whatever does not decode to an object
    gives {}.
    """
    if value is None:
        return {}
    if isinstance(value, dict):
        return value

    if isinstance(value, (bytes, bytearray, memoryview)):
        value = bytes(value).decode("utf-8", errors="replace")
    elif not isinstance(value, str):
        try:
            value = json.dumps(value)
        except (TypeError, ValueError):
            return {}

    if not value.strip():
        return {}
    try:
        decoded = json.loads(value)
    except ValueError:
        return {}
    return decoded if isinstance(decoded, dict) else {}


def coerce_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def export_extras_value(key: str, value: Any) -> Any:
    """
    Cell value for one extras key.

    *Price keys: a number when coercible, else the raw string, else "".
    Other keys: a number when coercible, else the raw string, else JSON text.
    """
    if value is None:
        return ""

    number = coerce_float(value)
    if key.lower().endswith("price"):
        if number is not None:
            return number
        return value if isinstance(value, str) else ""

    if number is not None:
        return number
    if isinstance(value, str):
        return value
    return stringify_json(value)


def _num(value: Optional[float]) -> float:
    return value if value is not None else 0.0


def _opt(value: Any) -> Any:
    return value if value is not None else ""


def clean_cell(value: Any) -> Any:
    """Strips control characters that are not legal in worksheet XML."""
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def append_row(ws: Worksheet, values: Sequence[Any]) -> None:
    ws.append([clean_cell(value) for value in values])


# ══════════════════════════════════════════════════════════════════════════
# Sheets
# ══════════════════════════════════════════════════════════════════════════

def write_orders_sheet(ws: Worksheet, data: ExportData) -> None:
    append_row(ws, ORDER_HEADERS)
    for order in data.orders:
        customer = data.customers_by_order.get(order.id)
        append_row(ws, [
            order.id,
            order.order_no or 0,
            export_date_dmy(order.created),
            export_date_dmy(order.updated),
            export_date_dmy(order.occasion_date),
            customer.id if customer else "",
            customer.full_name if customer else "",
            customer.email if customer else "",
            order.billing_address_line1,
            order.billing_address_line2,
            order.billing_town,
            order.billing_county,
            order.billing_postcode,
            order.order_status,
            order.payment_status,
            bool(order.replacement_flowers),
            _num(order.replacement_flowers_qty),
            _num(order.replacement_flowers_price),
            _num(order.collection_qty),
            _num(order.collection_price),
            _num(order.delivery_qty),
            _num(order.delivery_price),
            bool(order.return_unused_flowers),
            _num(order.return_unused_flowers_price),
            _opt(order.artist_hours),
            order.notes,
        ])


def write_frame_items_sheet(ws: Worksheet, data: ExportData) -> None:
    order_nos = data.order_no_by_id
    append_row(ws, FRAME_HEADERS)
    for frame in data.frames:
        order_id = data.frame_order_map.get(frame.id, "")
        extras = read_extras_map(frame.extras)
        append_row(ws, [
            order_id,
            order_nos.get(order_id, 0),
            frame.id,
            _opt(frame.size_x),
            _opt(frame.size_y),
            frame.frame_type,
            frame.layout,
            frame.preservation_type,
            frame.glass_type,
            frame.frame_mount_colour,
            frame.inclusions,
            frame.glass_engraving,
            bool(frame.artwork_complete),
            bool(frame.framing_complete),
            export_date_dmy(frame.preservation_date),
            _num(frame.price),
            *(export_extras_value(key, extras.get(key)) for key in FRAME_EXTRAS_KEYS),
            export_date_dmy(frame.created),
            export_date_dmy(frame.updated),
        ])


def write_paperweights_sheet(ws: Worksheet, data: ExportData) -> None:
    order_nos = data.order_no_by_id
    append_row(ws, PAPERWEIGHT_HEADERS)
    for pw in data.paperweights:
        order_id = data.paperweight_order_map.get(pw.id, "")
        append_row(ws, [
            order_id,
            order_nos.get(order_id, 0),
            pw.id,
            int(pw.quantity or 0),
            _num(pw.price),
            bool(pw.paperweight_received),
            export_date_dmy(pw.created),
            export_date_dmy(pw.updated),
        ])


def write_email_logs_sheet(ws: Worksheet, data: ExportData) -> None:
    append_row(ws, EMAIL_LOG_HEADERS)
    for log in data.email_logs:
        append_row(ws, [
            log.id,
            export_date_dmy(log.sent_at),
            log.channel,
            log.status,
            log.email_type,
            log.event_type,
            log.event_note,
            log.template_key,
            log.to_name,
            log.to_email,
            log.subject,
            log.sent_by,
            log.order_id,
            log.customer_id,
            log.frame_item_id,
            log.paperweight_item_id,
            log.error,
            stringify_json(log.meta),
        ])


def build_workbook(data: ExportData) -> bytes:
    """
    Serializes the loaded records to XLSX bytes.

    Raises:
        BloomFrameError: "Failed to generate XLSX." when writing fails.
    """
    try:
        workbook = Workbook()
        orders_sheet = workbook.active
        orders_sheet.title = "Orders"
        write_orders_sheet(orders_sheet, data)
        write_frame_items_sheet(workbook.create_sheet("Frame Items"), data)
        write_paperweights_sheet(workbook.create_sheet("Paperweights"), data)
        write_email_logs_sheet(workbook.create_sheet("Email Logs"), data)

        for ws in workbook.worksheets:
            ws.freeze_panes = "A2"

        output = io.BytesIO()
        workbook.save(output)
        workbook.close()
    except Exception as exc:
        logger.error("XLSX generation failed: %s", exc, exc_info=True)
        raise BloomFrameError("Failed to generate XLSX.", details=str(exc)) from exc
    return output.getvalue()


def export_filename(now: Optional[datetime] = None) -> str:
    return f"orders-export-{(now or datetime.now()).strftime('%Y%m%d')}.xlsx"


async def export_orders(
    db: AsyncSession,
    filters: ExportFilters,
    now: Optional[datetime] = None,
) -> ExportResult:
    """
    Loads, joins and serializes one export.

    Raises:
        ValidationError, LimitExceededError, QueryError, BloomFrameError
    """
    data = await load_export_data(db, filters, now)
    content = build_workbook(data)
    logger.info(
        "Exported %d orders (%d frames, %d paperweights, %d email logs)",
        len(data.orders),
        len(data.frames),
        len(data.paperweights),
        len(data.email_logs),
    )
    return ExportResult(content=content, filename=export_filename(now), order_count=len(data.orders))
