from __future__ import annotations

from jobfill.fields.canonical import ANSWERABLE_KEYS, CANONICAL_KEYS, UNKNOWN, coerce_key, is_canonical_key


def test_vocabulary_is_closed_and_includes_unknown() -> None:
    assert len(CANONICAL_KEYS) == 15
    assert UNKNOWN in CANONICAL_KEYS
    assert UNKNOWN not in ANSWERABLE_KEYS
    assert set(ANSWERABLE_KEYS) | {UNKNOWN} == set(CANONICAL_KEYS)


def test_membership_check() -> None:
    assert is_canonical_key("email")
    assert is_canonical_key("why_fit")
    assert not is_canonical_key("favorite_color")
    assert not is_canonical_key(None)


def test_coerce_key_normalizes_case_and_rejects_foreign_keys() -> None:
    assert coerce_key(" Email ") == "email"
    assert coerce_key("YEARS_DOTNET") == "years_dotnet"
    assert coerce_key("favorite_color") == "unknown"
    assert coerce_key(42) == "unknown"
