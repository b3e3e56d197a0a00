import pytest

from extrato.text import contains_insensitive, equals_insensitive, normalize


def test_normalize_strips_accents_and_case():
    assert normalize("Transferência RECEBIDA") == "transferencia recebida"
    assert normalize("São João") == "sao joao"


@pytest.mark.parametrize("text", ["", "Açaí", "İstanbul", "ÉLAN", "plain", "ﬁ ligature", "Ω"])
def test_normalize_is_idempotent(text):
    once = normalize(text)
    assert normalize(once) == once


def test_contains_insensitive():
    assert contains_insensitive("UBER *TRIP", "uber")
    assert contains_insensitive("Padaria Pão Quente", "PAO")
    assert not contains_insensitive("Netflix", "uber")


def test_empty_needle_always_matches():
    assert contains_insensitive("anything", "")
    assert contains_insensitive("", "")


def test_equals_insensitive():
    assert equals_insensitive("Farmácia", "FARMACIA")
    assert not equals_insensitive("Farmácia", "Farmácia São Paulo")
