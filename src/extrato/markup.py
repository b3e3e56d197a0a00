"""Parser for OFX statements, both OFX 2 (XML) and OFX 1 (SGML with unclosed leaf tags)."""

import re
import xml.etree.ElementTree as ET

from extrato.log import get_logger
from extrato.models import (
    AccountType, CandidateTransaction, Institution, Parsed, RowResult, Skipped,
    Source, TransactionType,
)
from extrato.parsing import institution_label, parse_amount, parse_ofx_date

logger = get_logger(__name__)

# Root to transaction records.
TRANSACTION_PATH = ("OFX", "BANKMSGSRSV1", "STMTTRNRS", "STMTRS", "BANKTRANLIST")
TRANSACTION_TAG = "STMTTRN"

_OFX_ROOT = re.compile(r"<ofx>", re.IGNORECASE)
_UNCLOSED_LEAF = re.compile(r"^(\s*)<([A-Za-z0-9_.]+)>([^<\s][^<\r\n]*?)\s*$", re.MULTILINE)
_BARE_TAG = re.compile(r"^([ \t]*)<([A-Za-z0-9_.]+)>[ \t\r]*$", re.MULTILINE)
_CLOSING_TAG = re.compile(r"</([A-Za-z0-9_.]+)>")
_BARE_AMPERSAND = re.compile(r"&(?!\w+;|#)")


def to_xml(content: str) -> str:
    """Drop the SGML header, escape bare ampersands and close OFX 1 leaf elements.

    A tag alone on its line is an aggregate when the document closes it
    somewhere, otherwise an empty leaf that becomes self-closing.
    """
    match = _OFX_ROOT.search(content)
    body = content[match.start():] if match else content
    body = _BARE_AMPERSAND.sub("&amp;", body)
    aggregates = set(_CLOSING_TAG.findall(body))
    body = _UNCLOSED_LEAF.sub(r"\1<\2>\3</\2>", body)

    def close_empty(m: re.Match) -> str:
        if m.group(2) in aggregates:
            return m.group(0)
        return f"{m.group(1)}<{m.group(2)}/>"

    return _BARE_TAG.sub(close_empty, body)


def _child(node: ET.Element | None, tag: str) -> ET.Element | None:
    if node is None:
        return None
    found = node.find(tag)
    return found if found is not None else node.find(tag.lower())


def _children(node: ET.Element, tag: str) -> list[ET.Element]:
    return node.findall(tag) or node.findall(tag.lower())


def _text(node: ET.Element, tag: str) -> str | None:
    child = _child(node, tag)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def find_transactions(root: ET.Element) -> list[ET.Element]:
    """Walk OFX > ... > BANKTRANLIST, accepting upper or lower case at each level."""
    if root.tag not in (TRANSACTION_PATH[0], TRANSACTION_PATH[0].lower()):
        return []
    node: ET.Element | None = root
    for tag in TRANSACTION_PATH[1:]:
        node = _child(node, tag)
        if node is None:
            logger.debug("OFX document has no %s element", tag)
            return []
    return _children(node, TRANSACTION_TAG)


def parse_record(
    record: ET.Element, institution: Institution, account_type: AccountType, line: int | None = None,
) -> RowResult:
    raw_amount = _text(record, "TRNAMT")
    if raw_amount is None:
        return Skipped("missing amount", line)
    try:
        value = parse_amount(raw_amount)
    except ValueError:
        return Skipped(f"unparseable amount {raw_amount!r}", line)
    if value == 0:
        return Skipped("zero amount", line)

    description = _text(record, "MEMO") or _text(record, "NAME")
    if description is None:
        return Skipped("missing description", line)

    return Parsed(CandidateTransaction(
        date=parse_ofx_date(_text(record, "DTPOSTED")),
        description=description,
        amount=abs(value),
        type=TransactionType.INCOME if value > 0 else TransactionType.EXPENSE,
        source=Source.MARKUP,
        institution=institution_label(institution, account_type),
    ))


def parse_markup_rows(
    content: str, institution: Institution, account_type: AccountType,
) -> list[RowResult]:
    """Parse every STMTTRN record. A structurally broken document yields no rows."""
    try:
        root = ET.fromstring(to_xml(content))
        records = find_transactions(root)
    except (ET.ParseError, ValueError) as exc:
        logger.warning("OFX parse failure: %s", exc)
        return []

    results: list[RowResult] = []
    for i, record in enumerate(records, start=1):
        result = parse_record(record, institution, account_type, line=i)
        if isinstance(result, Skipped):
            logger.debug("Skipped OFX record %s: %s", result.line, result.reason)
        results.append(result)
    return results


def parse_markup(
    content: str, institution: Institution, account_type: AccountType,
) -> list[CandidateTransaction]:
    rows = parse_markup_rows(content, institution, account_type)
    return [r.transaction for r in rows if isinstance(r, Parsed)]
