"""Coercion and hashing helpers."""

from __future__ import annotations

import sys

import pytest

from bizvalue.core.utils import (
    canonical_json,
    digest,
    flag_on,
    is_missing,
    is_unset,
    js_round,
    parse_num,
    same_choice,
    to_count,
    weak_etag,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (1200, 1200.0),
        (12.5, 12.5),
        ("1,200.50", 1200.5),
        ("  300 USD", 300.0),
        ("-40", -40.0),
        (".5", 0.5),
        ("", 0.0),
        ("abc", 0.0),
        (None, 0.0),
        (True, 0.0),
        (float("inf"), 0.0),
        (float("nan"), 0.0),
        ([1, 2], 0.0),
        (10**400, 0.0),
        ("1e400", 0.0),
    ],
)
def test_parse_num(raw, expected) -> None:
    assert parse_num(raw) == expected


def test_to_count() -> None:
    assert to_count("42") == 42
    assert to_count(7.9) == 7
    assert to_count(None) == 0
    assert to_count("x") == 0
    assert to_count("1e400") == 0
    assert to_count(float("inf")) == 0


@pytest.mark.parametrize(("x", "expected"), [(2.5, 3), (-2.5, -2), (0.49, 0), (66.666, 67), (-0.5, 0)])
def test_js_round_half_up(x: float, expected: int) -> None:
    assert js_round(x) == expected


def test_js_round_saturates_non_finite() -> None:
    assert js_round(float("nan")) == 0
    assert js_round(float("inf")) == int(sys.float_info.max)
    assert js_round(float("-inf")) == -int(sys.float_info.max)
    assert js_round(1e308 * 10) == js_round(float("inf"))


def test_missing_versus_unset() -> None:
    assert is_missing(None) and is_unset(None)
    assert is_missing("  ") and is_unset("  ")
    assert is_missing(0) and not is_unset(0)
    assert is_missing(False)
    assert is_missing([])
    assert not is_missing("0")
    assert not is_missing(12)


def test_flag_on_and_choices() -> None:
    assert flag_on("yes") and flag_on(True) and flag_on("Y")
    assert not flag_on("no") and not flag_on(None) and not flag_on(1)
    assert same_choice(" growing ", "Growing")
    assert not same_choice(None, "Growing")


def test_canonical_hashing_ignores_key_order() -> None:
    a = {"b": 1, "a": [1, 2]}
    b = {"a": [1, 2], "b": 1}
    assert canonical_json(a) == canonical_json(b) == '{"a":[1,2],"b":1}'
    assert digest(a) == digest(b)
    assert len(digest(a)) == 32
    assert weak_etag(b"x").startswith('W/"')
