from __future__ import annotations

from core.topics import MAX_TOPIC_LENGTH, is_valid_topic, normalize_topic


def test_normalize_topic_variants_are_equivalent() -> None:
    assert normalize_topic("Governance") == "governance"
    assert normalize_topic("#governance") == "governance"
    assert normalize_topic("  #GOVERNANCE ") == "governance"


def test_normalize_topic_matches_hashtag_form() -> None:
    assert normalize_topic("Exchange Rate") == "exchangerate"
    assert normalize_topic("#ExchangeRate") == "exchangerate"
    assert normalize_topic("Node-Admin") == "nodeadmin"


def test_is_valid_topic_bounds() -> None:
    assert is_valid_topic("x" * MAX_TOPIC_LENGTH)
    assert not is_valid_topic("x" * (MAX_TOPIC_LENGTH + 1))
    assert not is_valid_topic("")


def test_hashtag_punctuation_only_is_invalid() -> None:
    assert not is_valid_topic(normalize_topic("#"))
