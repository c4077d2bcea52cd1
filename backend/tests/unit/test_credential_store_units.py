"""
Unit tests for the password helpers and field rules in credential_store.

No session is needed: these are module-level functions.
"""

from __future__ import annotations

import pytest

from backend.app.store.credential_store import (
    StoreValidationError,
    _check_field_rules,
    check_password,
    hash_password,
)


@pytest.fixture(scope="module")
def stored_hash():
    return hash_password("Secr3t!", rounds=4)


def test_check_password_matches(stored_hash):
    assert check_password("Secr3t!", stored_hash) is True
    assert check_password("wrong", stored_hash) is False


def test_check_password_over_72_bytes_is_false_not_an_error(stored_hash):
    assert check_password("x" * 100, stored_hash) is False
    assert check_password("é" * 37, stored_hash) is False


def test_check_password_empty_input(stored_hash):
    assert check_password("", stored_hash) is False
    assert check_password("Secr3t!", "") is False


def test_password_of_72_bytes_round_trips():
    password = "p" * 72
    assert check_password(password, hash_password(password, rounds=4)) is True


def test_field_rules_reject_over_long_password():
    with pytest.raises(StoreValidationError, match="72 bytes"):
        _check_field_rules({"password": "p" * 73}, creating=False)


def test_field_rules_reject_blank_username_and_bad_email():
    with pytest.raises(StoreValidationError):
        _check_field_rules({"username": "  "}, creating=False)
    with pytest.raises(StoreValidationError):
        _check_field_rules({"email": "nobody"}, creating=False)
