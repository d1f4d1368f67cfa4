"""
BloomFrame Backend — Invoice Payload Schemas
==============================================

What:  Pydantic models for the JSON order payload posted by the frontend
       to the invoice preview and email routes.
How:   Field names are snake_case in Python and camelCase on the wire
       (alias generator). Unknown keys are ignored and every section is
       optional, so partially filled orders still decode.

Flexible scalars:
    Number      JSON number, number-like string ("12.50", " 3 "), null or ""
                → Optional[float]. Non-numeric strings and booleans fail.
    StringDate  any JSON string, kept verbatim; null → "". Dates arrive as
                YYYY-MM-DD or DD/MM/YYYY and are only reformatted for display.
"""

import json
import math
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from bloomframe.exceptions import DecodeError

BODY_PREVIEW_LIMIT = 600


def _parse_number(value: Any) -> Optional[float]:
    if value is None:
        return None
    # bool is an int subclass; a checkbox value is not a price
    if isinstance(value, bool):
        raise ValueError("expected a number, got a boolean")
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            raise ValueError(f"number out of range {value!r}") from None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            raise ValueError(f"invalid number {value!r}") from None
    else:
        raise ValueError(f"expected a number or numeric string, got {type(value).__name__}")
    # inf, nan and out-of-range literals such as 1e400
    if not math.isfinite(number):
        raise ValueError(f"number out of range {value!r}")
    return number


def _parse_string_date(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    raise ValueError(f"expected a date string, got {type(value).__name__}")


Number = Annotated[Optional[float], BeforeValidator(_parse_number)]
StringDate = Annotated[str, BeforeValidator(_parse_string_date)]


class PayloadModel(BaseModel):
    """Common config: camelCase aliases, extra keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        allow_inf_nan=False,
    )


class CustomerPayload(PayloadModel):
    title: str = ""
    first_name: str = ""
    surname: str = ""
    display_name: str = ""
    email: str = ""

    # Carried by the frontend, only used for email logs
    id: str = ""
    phone_number: str = ""


class OrderPayload(PayloadModel):
    order_no: Number = None
    occasion_date: StringDate = ""

    billing_address_line1: str = ""
    billing_address_line2: str = ""
    billing_town: str = ""
    billing_county: str = ""
    billing_postcode: str = ""

    order_id: str = ""
    created: str = ""


class OrderExtrasPayload(PayloadModel):
    replacement_flowers: bool = False
    replacement_flowers_qty: Number = None
    replacement_flowers_price: Number = None
    collection_qty: Number = None
    collection_price: Number = None
    delivery_qty: Number = None
    delivery_price: Number = None
    return_unused_flowers: bool = False
    return_unused_flowers_price: Number = None
    artist_hours: Number = None
    notes: str = ""


class FrameExtrasPayload(PayloadModel):
    mount_price: Number = None
    glass_price: Number = None
    glass_engraving_price: Number = None


class FramePayload(PayloadModel):
    size: str = ""
    frame_type: str = ""
    glass_type: str = ""
    inclusions: str = ""
    mount_colour: str = ""
    glass_engraving: str = ""

    price: Number = None
    extras: Optional[FrameExtrasPayload] = None


class PaperweightPayload(PayloadModel):
    quantity: Number = None
    price: Number = None


class TotalsPayload(PayloadModel):
    """Totals computed by the frontend; copied to the invoice as-is."""

    sub_total: float = 0.0
    vat_rate: float = 0.0
    vat_total: float = 0.0
    grand_total: float = 0.0


class EmailContextPayload(PayloadModel):
    """
    Optional audit context for the email log.

    email_type must be one of the allowed log types (see
    email_log_service.ALLOWED_EMAIL_TYPES); anything else is logged as
    "generic". The ids are record ids and override the ones derived from
    the customer/order sections.
    """

    email_type: str = ""
    event_type: str = ""
    event_note: str = ""
    template_key: str = ""
    order_id: str = ""
    customer_id: str = ""
    frame_item_id: str = ""
    paperweight_item_id: str = ""
    source: str = ""


class InvoicePayload(PayloadModel):
    email_context: Optional[EmailContextPayload] = None
    customer: CustomerPayload = Field(default_factory=CustomerPayload)
    order: OrderPayload = Field(default_factory=OrderPayload)
    order_extras: Optional[OrderExtrasPayload] = None
    frames: List[FramePayload] = Field(default_factory=list)

    # Both keys are sent by different frontend screens
    paperweight: Optional[PaperweightPayload] = None
    paper_weight_order: Optional[PaperweightPayload] = None

    totals: TotalsPayload = Field(default_factory=TotalsPayload)

    def get_paperweight(self) -> Optional[PaperweightPayload]:
        """Returns `paperweight`, falling back to `paperWeightOrder`."""
        if self.paperweight is not None:
            return self.paperweight
        return self.paper_weight_order


def _body_preview(text: str) -> str:
    if len(text) > BODY_PREVIEW_LIMIT:
        return text[:BODY_PREVIEW_LIMIT] + "…"
    return text


def _describe(exc: Exception) -> str:
    if isinstance(exc, PydanticValidationError):
        parts = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()))
            parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
        return "; ".join(parts)
    return str(exc)


def decode_invoice_payload(raw: bytes) -> InvoicePayload:
    """
    Decodes a raw request body into an InvoicePayload.

    Raises:
        DecodeError: body is empty/whitespace ("empty body"), is not JSON,
            or does not fit the payload shape. The details end with a
            preview of the body, truncated to 600 characters.
    """
    text = raw.decode("utf-8", errors="replace")
    if not text.strip():
        raise DecodeError("empty body")

    try:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return InvoicePayload.model_validate(data)
    except (ValueError, PydanticValidationError) as exc:
        raise DecodeError(
            f"json decode failed: {_describe(exc)}; body={_body_preview(text)}",
            context={"body_length": len(raw)},
        ) from exc
