from decimal import Decimal

import pytest

from extrato.categorizer import apply_rules
from extrato.models import CandidateTransaction, MatchType, TransactionType
from extrato.reviewer import confirm_transaction
from extrato.store import bulk_create_transactions, get_categories, get_pending_transactions, get_rules, get_transaction


def _seed(db, description="PIX JOAO SILVA", type=TransactionType.EXPENSE):
    bulk_create_transactions(db, [CandidateTransaction(
        date="2024-03-10", description=description, amount=Decimal("100"), type=type,
    )])


def test_confirm_transaction_sets_category_and_clears_pending(db):
    _seed(db)
    rule = confirm_transaction(db, transaction_id=1, category="Transferência")
    assert rule is None

    txn = get_transaction(db, 1)
    assert txn.category == "Transferência"
    assert txn.is_pending is False
    assert get_pending_transactions(db) == []
    assert get_rules(db) == []


def test_confirm_transaction_adds_new_category(db):
    _seed(db)
    confirm_transaction(db, transaction_id=1, category="Presentes")
    assert "Presentes" in get_categories(db)


def test_confirm_with_rule_creates_exact_auto_confirming_rule_scoped_to_type(db):
    _seed(db, description="Academia Fit", type=TransactionType.EXPENSE)
    rule = confirm_transaction(db, transaction_id=1, category="Saúde", create_rule_from_it=True)

    assert rule.id is not None
    assert rule.term == "Academia Fit"
    assert rule.category == "Saúde"
    assert rule.match_type == MatchType.EXACT
    assert rule.auto_confirm is True
    assert rule.type == TransactionType.EXPENSE
    assert rule.institution is None
    assert get_rules(db) == [rule]

    # The rule resolves the next identical expense but not an income with the same text.
    same = CandidateTransaction(date="2024-04-10", description="ACADEMIA FIT", amount=Decimal("100"),
                                type=TransactionType.EXPENSE)
    assert apply_rules(get_rules(db), same).is_pending is False
    refund = CandidateTransaction(date="2024-04-11", description="Academia Fit", amount=Decimal("100"),
                                  type=TransactionType.INCOME)
    assert apply_rules(get_rules(db), refund).is_pending is True


def test_confirm_unknown_transaction_raises(db):
    with pytest.raises(ValueError):
        confirm_transaction(db, transaction_id=42, category="Outros")
