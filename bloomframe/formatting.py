"""
BloomFrame Backend — Display Formatting Helpers
=================================================

What:  Money, date and invoice-number formatting shared by the invoice
       builder, the email flows and the order exporter.

    format_money(12.5)              → "£12.50"
    format_date("2024-03-05")       → "05/03/2024"   (invoice display)
    format_invoice_no(1042.0)       → "1042"
    export_date_dmy("2024-03-05T10:00:00Z") → "05-03-2024"   (spreadsheet)
"""

import re
from datetime import date, datetime
from typing import Optional, Union

CURRENCY_SYMBOL = "£"

# strptime alone accepts unpadded fields such as 2024-3-5
ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
# %f stops at microseconds; nanosecond timestamps are cut to six digits
EXCESS_FRACTION_RE = re.compile(r"(\.\d{6})\d+")

# Tried in order; the first layout that parses wins
EXPORT_DATE_LAYOUTS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S.%fZ",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
)


def format_money(value: float) -> str:
    return f"{CURRENCY_SYMBOL}{value:.2f}"


def format_date(value: str) -> str:
    """
    Formats a payload date for the invoice.

    Blank → "-"; values already containing "/" pass through; YYYY-MM-DD
    becomes DD/MM/YYYY; anything else is returned unchanged.
    """
    if not value.strip():
        return "-"
    if not ISO_DATE_RE.fullmatch(value):
        return value
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return value
    return parsed.strftime("%d/%m/%Y")


def format_today(today: Optional[date] = None) -> str:
    return format_date((today or date.today()).isoformat())


def format_invoice_no(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return str(int(value))


def first_non_empty(value: str, fallback: str) -> str:
    return fallback if not value.strip() else value


def _parse_export_date(text: str) -> Optional[datetime]:
    if not ISO_DATE_RE.match(text):
        return None
    text = EXCESS_FRACTION_RE.sub(r"\1", text, count=1)
    for layout in EXPORT_DATE_LAYOUTS:
        try:
            return datetime.strptime(text, layout)
        except ValueError:
            continue
    return None


def export_date_dmy(value: Union[str, datetime, date, None]) -> str:
    """
    Normalizes a stored timestamp or date string to DD-MM-YYYY.

    Strings are matched against EXPORT_DATE_LAYOUTS in order, then the part
    before the first space is tried as a plain date. Unparseable input is
    returned trimmed but otherwise unchanged; blank input gives "".
    """
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.strftime("%d-%m-%Y")

    text = value.strip()
    if not text:
        return ""

    parsed = _parse_export_date(text)
    if parsed is not None:
        return parsed.strftime("%d-%m-%Y")

    prefix = text.split(" ", 1)[0]
    if " " in text and ISO_DATE_RE.fullmatch(prefix):
        try:
            return datetime.strptime(prefix, "%Y-%m-%d").strftime("%d-%m-%Y")
        except ValueError:
            pass

    return text
