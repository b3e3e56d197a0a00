"""SQLite-backed transaction store, rule source and category vocabulary."""

import sqlite3
from decimal import Decimal

from extrato.models import (
    CandidateTransaction, CategoryRule, MatchType, Source, StoredTransaction, TransactionType,
)

_INSERT_TRANSACTION = (
    "INSERT INTO transactions (date, description, amount, type, category, source, institution, is_pending, notes) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)"
)


def _transaction_params(txn: CandidateTransaction) -> tuple:
    return (
        txn.date, txn.description, float(txn.amount), txn.type.value, txn.category,
        txn.source.value, txn.institution, int(txn.is_pending), txn.notes,
    )


def row_to_transaction(row: sqlite3.Row) -> StoredTransaction:
    return StoredTransaction(
        id=row["id"],
        date=row["date"],
        description=row["description"],
        amount=Decimal(str(row["amount"])),
        type=TransactionType(row["type"]),
        category=row["category"],
        source=Source(row["source"]),
        institution=row["institution"],
        is_pending=bool(row["is_pending"]),
        notes=row["notes"],
    )


def row_to_rule(row: sqlite3.Row) -> CategoryRule:
    return CategoryRule(
        id=row["id"],
        term=row["term"],
        category=row["category"],
        match_type=MatchType(row["match_type"]),
        auto_confirm=bool(row["auto_confirm"]),
        institution=row["institution"],
        type=TransactionType(row["type"]) if row["type"] else None,
    )


# --- Transactions ---


def create_transaction(conn: sqlite3.Connection, txn: CandidateTransaction) -> StoredTransaction:
    cursor = conn.execute(_INSERT_TRANSACTION, _transaction_params(txn))
    conn.commit()
    return get_transaction(conn, cursor.lastrowid)


def bulk_create_transactions(conn: sqlite3.Connection, txns: list[CandidateTransaction]) -> int:
    """Insert a batch in a single transaction: either every row lands or none does."""
    with conn:
        conn.executemany(_INSERT_TRANSACTION, [_transaction_params(t) for t in txns])
    return len(txns)


def get_transaction(conn: sqlite3.Connection, transaction_id: int) -> StoredTransaction | None:
    row = conn.execute("SELECT * FROM transactions WHERE id = ?", (transaction_id,)).fetchone()
    return row_to_transaction(row) if row else None


def get_pending_transactions(conn: sqlite3.Connection) -> list[StoredTransaction]:
    rows = conn.execute(
        "SELECT * FROM transactions WHERE is_pending = 1 ORDER BY date, id"
    ).fetchall()
    return [row_to_transaction(r) for r in rows]


def get_transactions(conn: sqlite3.Connection) -> list[StoredTransaction]:
    """Every transaction, newest first."""
    rows = conn.execute("SELECT * FROM transactions ORDER BY date DESC, id DESC").fetchall()
    return [row_to_transaction(r) for r in rows]


def delete_transaction(conn: sqlite3.Connection, transaction_id: int) -> bool:
    cursor = conn.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
    conn.commit()
    return cursor.rowcount > 0


def delete_all_transactions(conn: sqlite3.Connection) -> int:
    """Remove every transaction. Rules and categories stay. Returns the count removed."""
    cursor = conn.execute("DELETE FROM transactions")
    conn.commit()
    return cursor.rowcount


# --- Rules ---


def get_rules(conn: sqlite3.Connection) -> list[CategoryRule]:
    """All rules, oldest first. Earlier rules win ties."""
    rows = conn.execute("SELECT * FROM category_rules ORDER BY id").fetchall()
    return [row_to_rule(r) for r in rows]


def create_rule(conn: sqlite3.Connection, rule: CategoryRule) -> CategoryRule:
    cursor = conn.execute(
        "INSERT INTO category_rules (term, category, match_type, institution, type, auto_confirm) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (
            rule.term, rule.category, rule.match_type.value, rule.institution or None,
            rule.type.value if rule.type else None, int(rule.auto_confirm),
        ),
    )
    conn.commit()
    row = conn.execute("SELECT * FROM category_rules WHERE id = ?", (cursor.lastrowid,)).fetchone()
    return row_to_rule(row)


def delete_rule(conn: sqlite3.Connection, rule_id: int) -> bool:
    cursor = conn.execute("DELETE FROM category_rules WHERE id = ?", (rule_id,))
    conn.commit()
    return cursor.rowcount > 0


# --- Categories ---


def get_categories(conn: sqlite3.Connection) -> list[str]:
    rows = conn.execute("SELECT name FROM categories ORDER BY name").fetchall()
    return [r["name"] for r in rows]


def create_category(conn: sqlite3.Connection, name: str) -> None:
    """Add a category name. Existing names are left alone."""
    conn.execute("INSERT OR IGNORE INTO categories (name) VALUES (?)", (name,))
    conn.commit()
