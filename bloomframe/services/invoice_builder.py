"""
BloomFrame Backend — Invoice View-Model Builder
=================================================

What:  Turns a decoded InvoicePayload into the rows and formatted totals
       the invoice template renders.
How:   Pure functions, one pass over the payload. Nothing is looked up in
       the record store; totals are copied from the payload, never
       recomputed from the rows.

Row layout:
    Item 1   Picture, 30x40, Oak frame, Museum glass      £100.00
             Mount - Ivory - Buttonhole                   £20.00   (sub-item)
             Glass - Museum glass                         £15.00   (sub-item)
    Item 2   Paperweight - Quantity 2                     £60.00
    Other    Delivery - Qty 1                             £12.00

    Only frames and the paperweight take an "Item N" number. Sub-items and
    "Other" rows appear only when their price is present and above zero.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from bloomframe.formatting import (
    format_date,
    format_invoice_no,
    format_money,
    format_today,
)
from bloomframe.schemas.invoice import FramePayload, InvoicePayload, OrderExtrasPayload


@dataclass
class InvoiceRow:
    item_label: str
    description: str
    amount: str
    is_sub_item: bool = False


@dataclass
class InvoiceViewModel:
    address: str
    occasion_date: str
    invoice_date: str
    invoice_no: str
    rows: List[InvoiceRow] = field(default_factory=list)
    notes: str = ""
    sub_total: str = ""
    vat_total: str = ""
    grand_total: str = ""
    credits: str = ""
    balance_due: str = ""


def _is_positive(value: Optional[float]) -> bool:
    return value is not None and value > 0


def _qty_suffix(qty: Optional[float]) -> str:
    return f" - Qty {qty:.0f}" if qty is not None else ""


def _frame_rows(frame: FramePayload, item_index: int) -> List[InvoiceRow]:
    parts = ["Picture"]
    if frame.size:
        parts.append(frame.size)
    if frame.frame_type:
        parts.append(f"{frame.frame_type} frame")
    if frame.glass_type:
        parts.append(frame.glass_type)

    rows = [
        InvoiceRow(
            item_label=f"Item {item_index}",
            description=", ".join(parts),
            amount=format_money(frame.price if frame.price is not None else 0.0),
        )
    ]

    extras = frame.extras
    if extras is None:
        return rows

    if _is_positive(extras.mount_price):
        colour = frame.mount_colour.strip()
        label = f"Mount - {colour}" if colour else "Mount"
        if frame.inclusions == "Buttonhole":
            label += " - Buttonhole"
        rows.append(InvoiceRow("", label, format_money(extras.mount_price), is_sub_item=True))

    if _is_positive(extras.glass_price):
        rows.append(
            InvoiceRow("", f"Glass - {frame.glass_type}", format_money(extras.glass_price), is_sub_item=True)
        )

    if _is_positive(extras.glass_engraving_price):
        text = frame.glass_engraving.strip()
        desc = f'Glass engraving - "{text}"' if text else "Glass engraving"
        rows.append(InvoiceRow("", desc, format_money(extras.glass_engraving_price), is_sub_item=True))

    return rows


def _other_rows(extras: OrderExtrasPayload) -> List[InvoiceRow]:
    candidates = [
        (
            extras.replacement_flowers
            or extras.replacement_flowers_qty is not None
            or extras.replacement_flowers_price is not None,
            f"Replacement flowers{_qty_suffix(extras.replacement_flowers_qty)}",
            extras.replacement_flowers_price,
        ),
        (
            extras.collection_qty is not None or extras.collection_price is not None,
            f"Collection{_qty_suffix(extras.collection_qty)}",
            extras.collection_price,
        ),
        (
            extras.delivery_qty is not None or extras.delivery_price is not None,
            f"Delivery{_qty_suffix(extras.delivery_qty)}",
            extras.delivery_price,
        ),
        (
            extras.return_unused_flowers or extras.return_unused_flowers_price is not None,
            "Return of unframed flowers charge",
            extras.return_unused_flowers_price,
        ),
    ]
    return [
        InvoiceRow("Other", description, format_money(price))
        for selected, description, price in candidates
        if selected and _is_positive(price)
    ]


def build_invoice_rows(payload: InvoicePayload) -> List[InvoiceRow]:
    """
    Builds the invoice line items in display order.

    Frames (each followed by its mount/glass/engraving sub-items), then the
    paperweight, then the "Other" extras. Item numbers count frames and the
    paperweight only.
    """
    rows: List[InvoiceRow] = []
    item_index = 1

    for frame in payload.frames:
        rows.extend(_frame_rows(frame, item_index))
        item_index += 1

    paperweight = payload.get_paperweight()
    if paperweight is not None and paperweight.price is not None:
        qty = paperweight.quantity if _is_positive(paperweight.quantity) else 1.0
        rows.append(
            InvoiceRow(
                item_label=f"Item {item_index}",
                description=f"Paperweight - Quantity {qty:.0f}",
                amount=format_money(paperweight.price),
            )
        )
        item_index += 1

    if payload.order_extras is not None:
        rows.extend(_other_rows(payload.order_extras))

    return rows


def build_display_name(payload: InvoicePayload) -> str:
    """displayName when given, else "title firstName surname" trimmed."""
    customer = payload.customer
    if customer.display_name.strip():
        return customer.display_name.strip()
    return " ".join([customer.title, customer.first_name, customer.surname]).strip()


def build_address(payload: InvoicePayload) -> str:
    order = payload.order
    lines = [
        build_display_name(payload),
        order.billing_address_line1,
        order.billing_address_line2,
        order.billing_town,
        order.billing_county,
        order.billing_postcode,
    ]
    address = "\n".join(line for line in lines if line.strip()).strip()
    return address or "-"


def build_invoice_view_model(payload: InvoicePayload, today: Optional[date] = None) -> InvoiceViewModel:
    """
    Builds everything the invoice template needs.

    Args:
        payload: Decoded request payload.
        today:   Invoice date; defaults to the current local date.

    Credits equal the grand total and the balance due is always £0.00:
    invoices are issued for orders that are paid in full.
    """
    notes = ""
    if payload.order_extras is not None:
        notes = payload.order_extras.notes.strip()

    totals = payload.totals
    return InvoiceViewModel(
        address=build_address(payload),
        occasion_date=format_date(payload.order.occasion_date),
        invoice_date=format_today(today),
        invoice_no=format_invoice_no(payload.order.order_no),
        rows=build_invoice_rows(payload),
        notes=notes,
        sub_total=format_money(totals.sub_total),
        vat_total=format_money(totals.vat_total),
        grand_total=format_money(totals.grand_total),
        credits=format_money(totals.grand_total),
        balance_due=format_money(0),
    )
