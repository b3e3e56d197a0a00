import dataclasses
import sqlite3

from extrato.log import get_logger
from extrato.models import CandidateTransaction, CategoryRule, MatchType
from extrato.store import get_pending_transactions, get_rules
from extrato.text import contains_insensitive, equals_insensitive

logger = get_logger(__name__)


def rule_matches(rule: CategoryRule, txn: CandidateTransaction) -> bool:
    # A transaction without an institution is not excluded by an institution-scoped rule.
    if rule.institution and txn.institution:
        if not contains_insensitive(txn.institution, rule.institution):
            return False
    if rule.type is not None and rule.type != txn.type:
        return False
    if rule.match_type == MatchType.EXACT:
        return equals_insensitive(txn.description, rule.term)
    return contains_insensitive(txn.description, rule.term)


def select_rule(rules: list[CategoryRule], txn: CandidateTransaction) -> CategoryRule | None:
    """Return the first rule, in the given order, that matches the transaction."""
    for rule in rules:
        if rule_matches(rule, txn):
            return rule
    return None


def apply_rules(rules: list[CategoryRule], txn: CandidateTransaction) -> CandidateTransaction:
    """Return a copy of the transaction with category and pending state resolved."""
    rule = select_rule(rules, txn)
    if rule is None:
        return dataclasses.replace(txn, is_pending=True)
    return dataclasses.replace(txn, category=rule.category, is_pending=not rule.auto_confirm)


def categorize(rules: list[CategoryRule], txns: list[CandidateTransaction]) -> list[CandidateTransaction]:
    return [apply_rules(rules, t) for t in txns]


def categorize_pending(conn: sqlite3.Connection) -> dict:
    """Re-apply the current rules to pending transactions. Returns counts."""
    rules = get_rules(conn)
    pending = get_pending_transactions(conn)

    categorized = 0
    still_pending = 0
    for txn in pending:
        rule = select_rule(rules, txn)
        if rule is None:
            still_pending += 1
            continue
        conn.execute(
            "UPDATE transactions SET category = ?, is_pending = ? WHERE id = ?",
            (rule.category, int(not rule.auto_confirm), txn.id),
        )
        if rule.auto_confirm:
            categorized += 1
        else:
            still_pending += 1

    conn.commit()
    logger.info("Re-categorized %d pending transactions, %d still pending", categorized, still_pending)
    return {"categorized": categorized, "still_pending": still_pending}
