"""Field-level helpers shared by the statement parsers."""

import re
from datetime import date
from decimal import Decimal, InvalidOperation

from dateutil import parser as date_parser

from extrato.models import AccountType, Institution

CREDIT_SUFFIX = "Cred"

_BR_DATE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})")
_NOT_NUMERIC = re.compile(r"[^\d.\-]")


def today_iso() -> str:
    return date.today().isoformat()


def parse_amount(raw: str) -> Decimal:
    """Parse a Brazilian or plain decimal string, e.g. "-1.234,56" -> Decimal("-1234.56").

    Raises ValueError when nothing numeric is left.
    """
    text = raw.strip()
    if "," in text and "." not in text:
        text = text.replace(",", ".")
    elif "," in text and "." in text:
        text = text.replace(".", "").replace(",", ".")
    cleaned = _NOT_NUMERIC.sub("", text)
    negative = cleaned.startswith("-")
    digits = cleaned.replace("-", "")
    try:
        value = Decimal(digits)
    except InvalidOperation:
        raise ValueError(f"Not a number: {raw!r}") from None
    return -value if negative else value


def parse_date(raw: str) -> str:
    """Convert DD/MM/YYYY (or any dateutil-readable date) to ISO 8601, defaulting to today."""
    text = raw.strip()
    match = _BR_DATE.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return today_iso()
    try:
        return date_parser.parse(text).date().isoformat()
    except (ValueError, OverflowError):
        return today_iso()


def parse_ofx_date(raw: str | None) -> str:
    """Convert an OFX YYYYMMDD[HHMMSS...] stamp to ISO 8601, defaulting to today."""
    if not raw or len(raw.strip()) < 8:
        return today_iso()
    text = raw.strip()
    try:
        return date(int(text[0:4]), int(text[4:6]), int(text[6:8])).isoformat()
    except ValueError:
        return today_iso()


def institution_label(institution: Institution | str, account_type: AccountType) -> str:
    name = institution.value if isinstance(institution, Institution) else institution
    if account_type == AccountType.CREDIT_CARD:
        return f"{name} {CREDIT_SUFFIX}"
    return name
