import sqlite3
from pathlib import Path

from extrato.categorizer import apply_rules, categorize
from extrato.delimited import parse_delimited
from extrato.errors import EmptyResultError, FormatError
from extrato.log import get_logger
from extrato.markup import parse_markup
from extrato.models import (
    AccountType, CandidateTransaction, ImporterInfo, Institution, StoredTransaction,
)
from extrato.registry import registry
from extrato.store import bulk_create_transactions, create_transaction, get_rules

logger = get_logger(__name__)

registry.register(ImporterInfo(
    key="delimited", name="CSV statement",
    file_extensions=[".csv"],
    parse=parse_delimited,
))
registry.register(ImporterInfo(
    key="markup", name="OFX statement",
    file_extensions=[".ofx", ".xml"],
    parse=parse_markup,
))


def read_statement(file_path: Path) -> str:
    """Read the whole file into memory, tolerating a UTF-8 BOM and stray Latin-1 bytes."""
    raw = file_path.read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("%s is not UTF-8, decoding as Latin-1", file_path.name)
        return raw.decode("latin-1")


def parse_statement(
    content: str, file_name: str | Path, institution: Institution, account_type: AccountType,
) -> list[CandidateTransaction]:
    """Pick the parser for the file name and parse the content.

    Raises FormatError for unsupported extensions and EmptyResultError when no
    usable transaction comes out.
    """
    importer = registry.get_for_file(file_name)
    if importer is None:
        raise FormatError(f"Unsupported file format: {Path(file_name).name}. Use CSV or OFX.")

    txns = importer.parse(content, institution, account_type)
    logger.info("%s parsed %d transactions from %s", importer.name, len(txns), Path(file_name).name)
    if not txns:
        raise EmptyResultError(
            "No transactions found. Check that the file follows the bank's export format."
        )
    return txns


def import_file(
    conn: sqlite3.Connection,
    file_path: Path,
    institution: Institution,
    account_type: AccountType,
) -> dict:
    """Parse a statement, categorize every row and store the batch. Returns counts."""
    candidates = parse_statement(read_statement(file_path), file_path.name, institution, account_type)

    rules = get_rules(conn)
    batch = categorize(rules, candidates)
    bulk_create_transactions(conn, batch)

    pending = sum(1 for t in batch if t.is_pending)
    categorized = sum(1 for t in batch if t.category)
    return {"imported": len(batch), "categorized": categorized, "pending": pending}


def add_transaction(conn: sqlite3.Connection, txn: CandidateTransaction) -> StoredTransaction:
    """Categorize a single hand-entered transaction and store it."""
    return create_transaction(conn, apply_rules(get_rules(conn), txn))
