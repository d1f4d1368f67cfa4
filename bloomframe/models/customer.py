"""
BloomFrame Backend — Customer SQLAlchemy Model
================================================

What:  ORM model for the `customers` collection.
How:   Each customer row points at the order it belongs to through
       `orderId`; the exporter joins customers to orders on that field.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from bloomframe.database import Base, new_record_id, utc_now


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(15), primary_key=True, default=new_record_id)
    title: Mapped[str] = mapped_column(String(32), default="")
    first_name: Mapped[str] = mapped_column("firstName", String(128), default="")
    surname: Mapped[str] = mapped_column(String(128), default="")
    email: Mapped[str] = mapped_column(String(255), default="")
    phone_number: Mapped[str] = mapped_column("phoneNumber", String(64), default="")
    order_id: Mapped[str] = mapped_column("orderId", String(15), default="")

    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        Index("idx_customers_order_id", "orderId"),
    )

    @property
    def full_name(self) -> str:
        """Title, first name and surname joined by spaces."""
        parts = [self.title, self.first_name, self.surname]
        return " ".join(p or "" for p in parts).strip()

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, order_id={self.order_id})>"
