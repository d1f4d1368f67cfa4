"""
BloomFrame Backend — Email Log SQLAlchemy Model
=================================================

What:  ORM model for the `email_logs` collection: one row per send attempt.
Who:   Written by EmailLogService; read by the order exporter.

Lifecycle:
    1. Created with status 'attempted' before anything is rendered or sent
    2. Updated to 'failed' (error set, meta.stage names the failing step)
       or to 'sent' (error cleared)
    Each update shallow-merges a patch into `meta`; status is last write wins.
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bloomframe.database import Base, new_record_id, utc_now


class EmailLog(Base):
    __tablename__ = "email_logs"

    id: Mapped[str] = mapped_column(String(15), primary_key=True, default=new_record_id)

    channel: Mapped[str] = mapped_column(String(32), default="email")
    # attempted → sent | failed
    status: Mapped[str] = mapped_column(String(32), default="attempted")
    sent_at: Mapped[datetime] = mapped_column("sentAt", DateTime(timezone=True), default=utc_now)
    error: Mapped[str] = mapped_column(Text, default="")

    to_email: Mapped[str] = mapped_column("toEmail", String(255), default="")
    to_name: Mapped[str] = mapped_column("toName", String(255), default="")
    subject: Mapped[str] = mapped_column(String(255), default="")
    template_key: Mapped[str] = mapped_column("templateKey", String(64), default="")

    email_type: Mapped[str] = mapped_column("emailType", String(64), default="generic")
    event_type: Mapped[str] = mapped_column("eventType", String(64), default="manual")
    event_note: Mapped[str] = mapped_column("eventNote", Text, default="")

    order_id: Mapped[str] = mapped_column("orderId", String(15), default="")
    customer_id: Mapped[str] = mapped_column("customerId", String(15), default="")
    frame_item_id: Mapped[str] = mapped_column("frameItemId", String(15), default="")
    paperweight_item_id: Mapped[str] = mapped_column("paperweightItemId", String(15), default="")
    sent_by: Mapped[str] = mapped_column("sentBy", String(64), default="")

    meta: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)

    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        Index("idx_email_logs_order_id", "orderId"),
    )

    def __repr__(self) -> str:
        return f"<EmailLog(id={self.id}, status='{self.status}', email_type='{self.email_type}')>"
