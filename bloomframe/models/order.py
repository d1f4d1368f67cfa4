"""
BloomFrame Backend — Order SQLAlchemy Models
==============================================

What:  ORM models for the `orders`, `order_frame_items` and
       `order_paperweight_items` collections.
How:   Python attributes are snake_case; column names keep the record
       store's field names (orderNo, frameOrderId, payment_status, ...)
       so exports and existing data line up one to one.
Who:   Read by the order exporter. Orders are created and edited by the
       frontend through the record store; this service never writes them.

Enumerated values (stored as plain strings):
    orderStatus     draft, in_progress, ready, delivered, cancelled
    payment_status  wainting_first_deposit, waiting_second_deposit,
                    waiting_final_balance, first_deposit_paid,
                    second_deposit_paid, final_balance_paid
    inclusions      Yes, No, Buttonhole
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bloomframe.database import Base, new_record_id, utc_now


class Order(Base):
    """
    One customer order: billing address, status, extras and item links.

    frame_order_id holds the ids of the order's frame items (many);
    paperweight_order_id holds at most one paperweight item id.
    """

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(15), primary_key=True, default=new_record_id)
    order_no: Mapped[Optional[int]] = mapped_column("orderNo", Integer, nullable=True)

    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    # Free text as entered in the frontend, usually YYYY-MM-DD
    occasion_date: Mapped[str] = mapped_column("occasionDate", String(32), nullable=False, default="")

    # ── Billing Address ───────────────────────────────────────────────────
    billing_address_line1: Mapped[str] = mapped_column("billingAddressLine1", String(255), default="")
    billing_address_line2: Mapped[str] = mapped_column("billingAddressLine2", String(255), default="")
    billing_town: Mapped[str] = mapped_column("billingTown", String(128), default="")
    billing_county: Mapped[str] = mapped_column("billingCounty", String(128), default="")
    billing_postcode: Mapped[str] = mapped_column("billingPostcode", String(32), default="")

    # ── Status ────────────────────────────────────────────────────────────
    order_status: Mapped[str] = mapped_column("orderStatus", String(32), default="draft")
    payment_status: Mapped[str] = mapped_column("payment_status", String(64), default="")

    # ── Extras ────────────────────────────────────────────────────────────
    replacement_flowers: Mapped[bool] = mapped_column("replacementFlowers", Boolean, default=False)
    replacement_flowers_qty: Mapped[Optional[float]] = mapped_column("replacementFlowersQty", Float, nullable=True)
    replacement_flowers_price: Mapped[Optional[float]] = mapped_column("replacementFlowersPrice", Float, nullable=True)
    collection_qty: Mapped[Optional[float]] = mapped_column("collectionQty", Float, nullable=True)
    collection_price: Mapped[Optional[float]] = mapped_column("collectionPrice", Float, nullable=True)
    delivery_qty: Mapped[Optional[float]] = mapped_column("deliveryQty", Float, nullable=True)
    delivery_price: Mapped[Optional[float]] = mapped_column("deliveryPrice", Float, nullable=True)
    return_unused_flowers: Mapped[bool] = mapped_column("returnUnusedFlowers", Boolean, default=False)
    return_unused_flowers_price: Mapped[Optional[float]] = mapped_column(
        "returnUnusedFlowersPrice", Float, nullable=True
    )
    artist_hours: Mapped[Optional[float]] = mapped_column("artistHours", Float, nullable=True)
    notes: Mapped[str] = mapped_column(Text, default="")

    # ── Relations ─────────────────────────────────────────────────────────
    frame_order_id: Mapped[List[str]] = mapped_column("frameOrderId", JSON, default=list)
    paperweight_order_id: Mapped[str] = mapped_column("paperweightOrderId", String(15), default="")

    __table_args__ = (
        Index("idx_orders_created", "created"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, order_no={self.order_no}, status='{self.order_status}')>"


class OrderFrameItem(Base):
    """
    A single framed piece within an order.

    `extras` is a free-form blob written by the frontend. Known keys:
    framePrice, mountPrice, glassPrice, glassEngravingPrice,
    measuredWidthIn, measuredHeightIn, recommendedSizeWidthIn,
    recommendedSizeHeightIn.
    """

    __tablename__ = "order_frame_items"

    id: Mapped[str] = mapped_column(String(15), primary_key=True, default=new_record_id)
    size_x: Mapped[Optional[float]] = mapped_column("sizeX", Float, nullable=True)
    size_y: Mapped[Optional[float]] = mapped_column("sizeY", Float, nullable=True)
    frame_type: Mapped[str] = mapped_column("frameType", String(64), default="")
    layout: Mapped[str] = mapped_column(String(64), default="")
    preservation_type: Mapped[str] = mapped_column("preservationType", String(64), default="")
    glass_type: Mapped[str] = mapped_column("glassType", String(64), default="")
    frame_mount_colour: Mapped[str] = mapped_column("frameMountColour", String(64), default="")
    inclusions: Mapped[str] = mapped_column(String(32), default="")
    glass_engraving: Mapped[str] = mapped_column("glassEngraving", Text, default="")
    artwork_complete: Mapped[bool] = mapped_column("artworkComplete", Boolean, default=False)
    framing_complete: Mapped[bool] = mapped_column("framingComplete", Boolean, default=False)
    preservation_date: Mapped[str] = mapped_column("preservationDate", String(32), default="")
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    extras: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    def __repr__(self) -> str:
        return f"<OrderFrameItem(id={self.id}, frame_type='{self.frame_type}')>"


class OrderPaperweightItem(Base):
    __tablename__ = "order_paperweight_items"

    id: Mapped[str] = mapped_column(String(15), primary_key=True, default=new_record_id)
    quantity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    paperweight_received: Mapped[bool] = mapped_column("paperweightReceived", Boolean, default=False)

    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    def __repr__(self) -> str:
        return f"<OrderPaperweightItem(id={self.id}, quantity={self.quantity})>"
