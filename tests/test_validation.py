"""Unit tests for auth/validation.py -- registration input rules.

Covers:
- valid input yields no errors
- each single-rule violation reports exactly that field
- several violations are reported together, not short-circuited
- email shape and password strength edge cases
- values wider than their column are field errors
"""

import pytest

from auth.validation import (
    MSG_EMAIL_INVALID,
    MSG_EMAIL_REQUIRED,
    MSG_PASSWORD_TOO_LONG,
    MSG_PASSWORD_WEAK,
    MSG_TOO_LONG,
    MAX_LENGTHS,
    is_strong_password,
    is_valid_email,
    validate_registration,
)

VALID = {
    "username": "ana",
    "email": "ana@lab.edu",
    "password": "Str0ng!pass",
    "full_name": "Ana Souza",
}


def _with(**overrides):
    data = dict(VALID)
    data.update(overrides)
    return data


def test_valid_input_has_no_errors():
    assert validate_registration(**VALID) == {}


def test_phone_number_is_unconstrained():
    assert validate_registration(**VALID, phone_number="not a phone") == {}


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"username": ""}, "username"),
        ({"username": "   "}, "username"),
        ({"username": None}, "username"),
        ({"email": ""}, "email"),
        ({"email": "ana.lab.edu"}, "email"),
        ({"password": None}, "password"),
        ({"password": "weak"}, "password"),
        ({"full_name": " \t"}, "full_name"),
    ],
)
def test_single_violation_reports_only_that_field(overrides, field):
    errors = validate_registration(**_with(**overrides))
    assert set(errors) == {field}


def test_all_violations_reported_together():
    errors = validate_registration(username="", email="bad", password="short", full_name=None)
    assert set(errors) == {"username", "email", "password", "full_name"}
    assert errors["email"] == MSG_EMAIL_INVALID
    assert errors["password"] == MSG_PASSWORD_WEAK


def test_blank_email_is_required_not_invalid():
    assert validate_registration(**_with(email="  "))["email"] == MSG_EMAIL_REQUIRED


@pytest.mark.parametrize(
    "email, ok",
    [
        ("ana@lab.edu", True),
        ("a.b+c@sub.lab.edu", True),
        ("ana@lab", False),
        ("@lab.edu", False),
        ("an a@lab.edu", False),
        ("ana@@lab.edu", False),
        ("ana@lab.edu\n", False),
    ],
)
def test_email_shape(email, ok):
    assert is_valid_email(email) is ok


@pytest.mark.parametrize(
    "password, ok",
    [
        ("Str0ng!pass", True),
        ("Sh0rt!a", False),  # 7 chars
        ("nouppercase1!", False),
        ("NOLOWERCASE1!", False),
        ("NoDigits!!", False),
        ("NoSymbol123", False),
        ("Under_score1", False),  # underscore is not a symbol
        ("Spaced Out1", True),
    ],
)
def test_password_strength(password, ok):
    assert is_strong_password(password) is ok


def test_password_over_bcrypt_limit_rejected():
    errors = validate_registration(**_with(password="Aa1!" + "x" * 80))
    assert errors == {"password": MSG_PASSWORD_TOO_LONG}


@pytest.mark.parametrize(
    "field, value",
    [
        ("username", "u" * 101),
        ("email", "a" * 250 + "@lab.edu"),
        ("full_name", "N" * 256),
        ("phone_number", "0" * 31),
    ],
)
def test_values_wider_than_their_column_are_field_errors(field, value):
    errors = validate_registration(**_with(**{field: value}))
    assert errors == {field: MSG_TOO_LONG.format(limit=MAX_LENGTHS[field])}


def test_values_at_column_width_are_accepted():
    assert validate_registration(**_with(username="u" * 100, phone_number="0" * 30)) == {}
