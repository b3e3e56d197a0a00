from decimal import Decimal

from extrato.categorizer import apply_rules, categorize, categorize_pending, rule_matches, select_rule
from extrato.models import CandidateTransaction, CategoryRule, MatchType, TransactionType
from extrato.store import bulk_create_transactions, create_rule, get_transaction


def _txn(description="UBER *TRIP", type=TransactionType.EXPENSE, institution=None, category=""):
    return CandidateTransaction(
        date="2024-03-15", description=description, amount=Decimal("23.50"),
        type=type, institution=institution, category=category,
    )


def test_contains_rule_matches_case_insensitively():
    rule = CategoryRule(term="uber", category="Transporte", match_type=MatchType.CONTAINS, auto_confirm=True)
    result = apply_rules([rule], _txn("UBER *TRIP"))
    assert result.category == "Transporte"
    assert result.is_pending is False


def test_contains_rule_ignores_accents():
    rule = CategoryRule(term="farmacia", category="Saúde")
    assert rule_matches(rule, _txn("FARMÁCIA SÃO JOÃO"))


def test_exact_rule_requires_full_equality():
    rule = CategoryRule(term="Padaria Pão Quente", category="Alimentação", match_type=MatchType.EXACT)
    assert rule_matches(rule, _txn("padaria pao quente"))
    assert not rule_matches(rule, _txn("Padaria Pão Quente LTDA"))


def test_institution_filter_is_substring_match():
    rule = CategoryRule(term="uber", category="Transporte", institution="nubank")
    assert rule_matches(rule, _txn(institution="Nubank Cred"))
    assert not rule_matches(rule, _txn(institution="Inter"))


def test_institution_filter_skipped_when_transaction_has_none():
    rule = CategoryRule(term="uber", category="Transporte", institution="Nubank")
    assert rule_matches(rule, _txn(institution=None))


def test_type_filter():
    rule = CategoryRule(term="pix", category="Transferência", type=TransactionType.INCOME)
    assert rule_matches(rule, _txn("Pix recebido", type=TransactionType.INCOME))
    assert not rule_matches(rule, _txn("Pix enviado", type=TransactionType.EXPENSE))
    wildcard = CategoryRule(term="pix", category="Transferência")
    assert rule_matches(wildcard, _txn("Pix enviado", type=TransactionType.EXPENSE))


def test_first_matching_rule_wins():
    broad = CategoryRule(term="uber", category="Transporte")
    exact = CategoryRule(term="UBER *TRIP", category="Viagem", match_type=MatchType.EXACT)
    txn = _txn("UBER *TRIP")
    assert select_rule([broad, exact], txn) is broad
    # An exact rule does not outrank an earlier broader one; only order matters.
    assert select_rule([exact, broad], txn) is exact


def test_select_rule_is_deterministic_and_order_never_changes_whether_anything_matches():
    rules = [
        CategoryRule(term="netflix", category="Assinaturas"),
        CategoryRule(term="trip", category="Viagem"),
        CategoryRule(term="uber", category="Transporte"),
    ]
    txn = _txn("UBER *TRIP")
    assert select_rule(rules, txn) is select_rule(rules, txn)
    assert select_rule(list(reversed(rules)), txn) is not None
    assert select_rule(rules[:1], txn) is None


def test_empty_term_contains_matches_everything():
    rule = CategoryRule(term="", category="Outros")
    assert rule_matches(rule, _txn("Qualquer coisa"))


def test_non_auto_confirm_rule_leaves_transaction_pending():
    rule = CategoryRule(term="mercado", category="Mercado", auto_confirm=False)
    result = apply_rules([rule], _txn("Mercado Livre"))
    assert result.category == "Mercado"
    assert result.is_pending is True


def test_no_match_keeps_category_and_marks_pending():
    txn = _txn("Loja desconhecida", category="Palpite")
    txn.is_pending = False
    result = apply_rules([CategoryRule(term="uber", category="Transporte")], txn)
    assert result.category == "Palpite"
    assert result.is_pending is True


def test_apply_rules_does_not_mutate_input():
    txn = _txn()
    apply_rules([CategoryRule(term="uber", category="Transporte")], txn)
    assert txn.category == ""


def test_categorize_preserves_order():
    rules = [CategoryRule(term="uber", category="Transporte")]
    txns = [_txn("Netflix"), _txn("Uber"), _txn("Padaria")]
    result = categorize(rules, txns)
    assert [t.description for t in result] == ["Netflix", "Uber", "Padaria"]
    assert [t.category for t in result] == ["", "Transporte", ""]
    assert [t.is_pending for t in result] == [True, False, True]


def test_categorize_pending_updates_stored_transactions(db):
    bulk_create_transactions(db, [_txn("UBER *TRIP"), _txn("Mercado Livre"), _txn("Mistério")])
    create_rule(db, CategoryRule(term="uber", category="Transporte"))
    create_rule(db, CategoryRule(term="mercado", category="Mercado", auto_confirm=False))

    result = categorize_pending(db)
    assert result == {"categorized": 1, "still_pending": 2}

    uber = get_transaction(db, 1)
    assert uber.category == "Transporte"
    assert uber.is_pending is False
    mercado = get_transaction(db, 2)
    assert mercado.category == "Mercado"
    assert mercado.is_pending is True
    assert get_transaction(db, 3).category == ""


def test_categorize_pending_ignores_confirmed_transactions(db):
    confirmed = _txn("UBER *TRIP", category="Viagem")
    confirmed.is_pending = False
    bulk_create_transactions(db, [confirmed])
    create_rule(db, CategoryRule(term="uber", category="Transporte"))

    result = categorize_pending(db)
    assert result == {"categorized": 0, "still_pending": 0}
    assert get_transaction(db, 1).category == "Viagem"
