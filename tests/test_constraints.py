"""
tests/test_constraints.py — Constraint Parsing & Matching Tests
=================================================================
"""

from __future__ import annotations

import pytest

from forge.engine.constraints import parse_constraint, satisfied_by, satisfies
from forge.errors import InvalidConstraint


def _check(constraint, inside, outside):
    for v in inside:
        assert satisfies(v, constraint), f"{v} should satisfy {constraint}"
    for v in outside:
        assert not satisfies(v, constraint), f"{v} should not satisfy {constraint}"


# ===========================================================================
# Operators
# ===========================================================================
class TestOperators:
    @pytest.mark.parametrize("text", ["", "*", "  "])
    def test_any(self, text):
        _check(text, ["0.0.0", "1.0.0-beta", "99.1.2"], [])

    def test_exact(self):
        _check("1.2.3", ["1.2.3", "v1.2.3"], ["1.2.4", "1.2.3-rc1"])
        _check("=1.2", ["1.2.0"], ["1.2.1"])

    def test_comparisons(self):
        _check(">=1.0", ["1.0.0", "2.0.0"], ["0.9.9", "1.0.0-rc1"])
        _check("<1.0.0", ["0.9.0", "1.0.0-beta"], ["1.0.0"])
        _check("!=1.0.0", ["1.0.1"], ["1.0.0"])
        _check(">1.0.0", ["1.0.1"], ["1.0.0"])
        _check("<=1.0.0", ["1.0.0", "1.0.0-rc1"], ["1.0.1"])

    def test_pre_release_bound(self):
        _check(">=1.0.0-beta", ["1.0.0-rc1", "1.0.0"], ["1.0.0-alpha"])

    def test_whitespace_after_operator(self):
        _check(">= 1.0", ["1.0.0"], ["0.9.0"])


# ===========================================================================
# Caret / tilde / wildcard / hyphen
# ===========================================================================
class TestRanges:
    def test_caret(self):
        _check("^1.2.3", ["1.2.3", "1.9.0"], ["1.2.2", "2.0.0"])
        _check("^0.3", ["0.3.0", "0.3.9"], ["0.4.0", "0.2.9"])
        _check("^0", ["0.0.0", "0.9.9"], ["1.0.0"])
        _check("^0.0.3", ["0.0.3"], ["0.0.4"])

    def test_tilde(self):
        _check("~1.2", ["1.2.0", "1.9.9"], ["2.0.0", "1.1.0"])
        _check("~1.2.3", ["1.2.3", "1.2.9"], ["1.3.0"])
        _check("~1", ["1.0.0", "1.5.0"], ["2.0.0"])
        _check("~3.9.0", ["3.9.0", "3.9.5"], ["3.10.0", "3.8.0"])

    def test_wildcards(self):
        _check("1.2.*", ["1.2.0", "1.2.9"], ["1.3.0", "1.1.9"])
        _check("1.x", ["1.0.0", "1.9.9"], ["2.0.0", "0.9.0"])
        _check("x", ["0.0.0", "5.0.0"], [])

    def test_pre_release_containing_x_is_not_a_wildcard(self):
        _check("1.0.0-xmas", ["1.0.0-xmas"], ["1.0.0", "1.0.1"])

    def test_hyphen_ranges(self):
        _check("1.0 - 2.0", ["1.0.0", "2.0.9"], ["0.9.9", "2.1.0"])
        _check("1.0.0 - 2.0.0", ["1.0.0", "2.0.0"], ["2.0.1"])

    @pytest.mark.parametrize(
        "text, newest_inside, outside",
        [
            ("^1.0", "1.99.0", ["2.0.0-alpha", "2.0.0-beta", "2.0.0-rc1"]),
            ("^0.3", "0.3.9", ["0.4.0-beta"]),
            ("~1.2", "1.9.9", ["2.0.0-rc1"]),
            ("~1.2.3", "1.2.9", ["1.3.0-beta"]),
            ("1.x", "1.9.9", ["2.0.0-alpha"]),
            ("1.2.*", "1.2.9", ["1.3.0-alpha"]),
            ("1.0 - 1.x", "1.9.9", ["2.0.0-beta"]),
            ("1.0 - 2.0", "2.0.9", ["2.1.0-beta"]),
        ],
    )
    def test_derived_upper_bound_excludes_next_pre_releases(self, text, newest_inside, outside):
        _check(text, [newest_inside], outside)

    def test_pre_release_within_range_still_matches(self):
        _check("^1.0", ["1.5.0-beta"], [])
        _check("^2.0.0-beta", ["2.0.0-beta", "2.0.0", "2.9.0"], ["2.0.0-alpha", "3.0.0-beta"])

    def test_written_upper_bound_keeps_pre_releases(self):
        _check("<2.0.0", ["2.0.0-beta"], ["2.0.0"])

    def test_derived_bound_rendering(self):
        bounds = parse_constraint("^1.2").alternatives[0]
        assert [str(b) for b in bounds] == [">=1.2.0", "<2.0.0-0"]


# ===========================================================================
# Combination
# ===========================================================================
class TestCombination:
    @pytest.mark.parametrize("text", [">=1.0 <2.0", ">=1.0,<2.0", ">=1.0, <2.0"])
    def test_and(self, text):
        _check(text, ["1.0.0", "1.9.9"], ["2.0.0", "0.9.0"])

    @pytest.mark.parametrize("text", ["^1.0 || ^3.0", "^1.0 | ^3.0", "^1.0||^3.0"])
    def test_or(self, text):
        _check(text, ["1.5.0", "3.0.0"], ["2.0.0", "4.0.0"])


# ===========================================================================
# Errors & helpers
# ===========================================================================
class TestErrors:
    @pytest.mark.parametrize("text", ["^1.0 ||", "|| ^1.0", "garbage", ">=x", "^1.0 || || ^2.0"])
    def test_invalid(self, text):
        with pytest.raises(InvalidConstraint):
            parse_constraint(text)

    def test_invalid_constraint_is_value_error(self):
        with pytest.raises(ValueError):
            satisfies("1.0.0", "not-a-constraint!")

    def test_unparseable_version_checked_as_zero(self):
        assert satisfies("garbage", "0.0.0")
        assert not satisfies("garbage", ">=0.0.1")


class TestSatisfiedBy:
    def test_keeps_input_order(self):
        versions = ["2.0.0", "1.0.0", "1.5.0", "0.9.0"]
        assert satisfied_by(versions, "^1.0") == ["1.0.0", "1.5.0"]

    def test_constraint_text_round_trips(self):
        assert str(parse_constraint("  ^1.0  ")) == "^1.0"
        assert str(parse_constraint("")) == "*"
