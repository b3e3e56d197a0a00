"""Parser for CSV-like bank exports (Nubank, Mercado Pago, Inter and generic files)."""

import csv
import io
import unicodedata
from decimal import Decimal

from extrato.log import get_logger
from extrato.models import (
    AccountType, CandidateTransaction, Institution, Parsed, RowResult, Skipped,
    Source, TransactionType,
)
from extrato.parsing import institution_label, parse_amount, parse_date

logger = get_logger(__name__)

HEADER_SCAN_LINES = 20
HEADER_TOKENS = (
    "date", "data", "dt", "release_date", "posted", "title", "description", "data lançamento",
)
DELIMITERS = (",", ";", "\t", "|")
PLACEHOLDER_DESCRIPTION = "Importado"

# Logical field -> recognized column names, highest priority first.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("data lançamento", "release_date", "date", "data", "dt"),
    "description": ("descrição", "description", "memo", "title", "transaction_type"),
    "amount": ("valor", "amount", "transaction_net_amount"),
    "label": ("histórico",),
    "reference": ("reference_id",),
}

NUBANK_TRANSFER_IN = "transferência recebida"
NUBANK_TRANSFER_OUT = "transferência enviada"


def find_header_index(lines: list[str]) -> int | None:
    for i, line in enumerate(lines[:HEADER_SCAN_LINES]):
        lowered = line.lower()
        if any(token in lowered for token in HEADER_TOKENS):
            return i
    return None


def detect_delimiter(header_line: str) -> str:
    counts = [header_line.count(d) for d in DELIMITERS]
    best = max(counts)
    return DELIMITERS[counts.index(best)] if best else ","


def normalize_row(row: dict) -> dict[str, str]:
    """Lower-case and trim column names, dropping overflow and missing cells."""
    normalized: dict[str, str] = {}
    for key, value in row.items():
        if key is None or value is None:
            continue
        name = unicodedata.normalize("NFC", key.lstrip("\ufeff").strip().lower())
        normalized[name] = value.strip()
    return normalized


def resolve_field(row: dict[str, str], field: str) -> str | None:
    for alias in FIELD_ALIASES[field]:
        value = row.get(alias)
        if value:
            return value
    return None


def _describe(row: dict[str, str], institution: Institution) -> str:
    description = resolve_field(row, "description")
    label = resolve_field(row, "label")
    if institution == Institution.INTER and label:
        return f"{label} - {description}" if description else label
    if description:
        return description
    reference = resolve_field(row, "reference")
    return f"Ref: {reference}" if reference else PLACEHOLDER_DESCRIPTION


def _derive_type(
    value: Decimal, description: str, institution: Institution, account_type: AccountType,
) -> TransactionType:
    if account_type == AccountType.CREDIT_CARD:
        # Card statements list purchases as positive; a negative line is a refund.
        txn_type = TransactionType.INCOME if value < 0 else TransactionType.EXPENSE
    else:
        txn_type = TransactionType.EXPENSE if value < 0 else TransactionType.INCOME

    if institution == Institution.NUBANK:
        lowered = description.lower()
        if NUBANK_TRANSFER_IN in lowered:
            txn_type = TransactionType.INCOME
        elif NUBANK_TRANSFER_OUT in lowered:
            txn_type = TransactionType.EXPENSE
    return txn_type


def parse_row(
    row: dict[str, str], institution: Institution, account_type: AccountType, line: int | None = None,
) -> RowResult:
    raw_date = resolve_field(row, "date")
    raw_amount = resolve_field(row, "amount")
    if raw_date is None:
        return Skipped("missing date", line)
    if raw_amount is None:
        return Skipped("missing amount", line)

    try:
        value = parse_amount(raw_amount)
    except ValueError:
        return Skipped(f"unparseable amount {raw_amount!r}", line)
    if value == 0:
        return Skipped("zero amount", line)

    description = _describe(row, institution)
    return Parsed(CandidateTransaction(
        date=parse_date(raw_date),
        description=description,
        amount=abs(value),
        type=_derive_type(value, description, institution, account_type),
        source=Source.DELIMITED,
        institution=institution_label(institution, account_type),
        notes=f"Original amount: {raw_amount}",
    ))


def parse_delimited_rows(
    content: str, institution: Institution, account_type: AccountType,
) -> list[RowResult]:
    """Parse every data row of a CSV statement into a Parsed or Skipped outcome."""
    lines = content.splitlines()
    header_index = find_header_index(lines)
    if header_index is None:
        header_index = 0
        logger.debug("No header row found in the first %d lines; using the first line", HEADER_SCAN_LINES)
    body = [line for line in lines[header_index:] if line.strip()]
    if not body:
        return []

    delimiter = detect_delimiter(body[0])
    reader = csv.DictReader(io.StringIO("\n".join(body)), delimiter=delimiter)
    results: list[RowResult] = []
    for offset, row in enumerate(reader, start=1):
        result = parse_row(normalize_row(row), institution, account_type, line=offset)
        if isinstance(result, Skipped):
            logger.debug("Skipped CSV row %s: %s", result.line, result.reason)
        results.append(result)
    return results


def parse_delimited(
    content: str, institution: Institution, account_type: AccountType,
) -> list[CandidateTransaction]:
    rows = parse_delimited_rows(content, institution, account_type)
    return [r.transaction for r in rows if isinstance(r, Parsed)]
