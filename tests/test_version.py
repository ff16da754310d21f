"""
tests/test_version.py — SemanticVersion & Comparator Unit Tests
=================================================================

Pure functions only (no database).
"""

from __future__ import annotations

import itertools

import pytest

from forge.engine.version import (
    ZERO_VERSION,
    Ordering,
    SemanticVersion,
    compare,
    latest,
    parse_version,
    parse_version_strict,
    sort_key,
    sort_versions,
)
from forge.errors import InvalidVersionNumber


def V(major, minor, patch, pre=""):
    return SemanticVersion(major, minor, patch, pre)


SAMPLE = [
    V(0, 0, 0),
    V(0, 9, 0),
    V(1, 0, 0, "alpha"),
    V(1, 0, 0, "beta"),
    V(1, 0, 0, "rc1"),
    V(1, 0, 0),
    V(1, 1, 9),
    V(1, 2, 0),
    V(1, 10, 0),
    V(2, 0, 0, "alpha"),
    V(2, 0, 0),
]


# ===========================================================================
# Comparator properties
# ===========================================================================
class TestComparatorProperties:
    @pytest.mark.parametrize("v", SAMPLE)
    def test_reflexive(self, v):
        assert compare(v, v) is Ordering.EQUAL

    @pytest.mark.parametrize("a, b", list(itertools.product(SAMPLE, repeat=2)))
    def test_antisymmetric(self, a, b):
        assert compare(a, b) == compare(b, a).reverse()

    def test_transitive(self):
        for a, b, c in itertools.product(SAMPLE, repeat=3):
            if compare(a, b) is Ordering.LESS and compare(b, c) is Ordering.LESS:
                assert compare(a, c) is Ordering.LESS

    def test_sample_is_strictly_ascending(self):
        for older, newer in zip(SAMPLE, SAMPLE[1:]):
            assert compare(older, newer) is Ordering.LESS

    @pytest.mark.parametrize("a, b", list(itertools.product(SAMPLE, repeat=2)))
    def test_sort_key_agrees_with_compare(self, a, b):
        key_order = (sort_key(a) > sort_key(b)) - (sort_key(a) < sort_key(b))
        assert key_order == int(compare(a, b))


# ===========================================================================
# Pinned precedence cases
# ===========================================================================
class TestPrecedence:
    def test_release_beats_pre_release(self):
        assert compare(V(1, 0, 0), V(1, 0, 0, "beta")) is Ordering.GREATER

    def test_numeric_triple_dominates(self):
        assert compare(V(1, 2, 0), V(1, 1, 9)) is Ordering.GREATER

    def test_triple_dominates_pre_release_status(self):
        assert compare(V(2, 0, 0, "alpha"), V(1, 9, 9)) is Ordering.GREATER

    def test_minor_compared_numerically(self):
        assert compare(V(1, 10, 0), V(1, 9, 0)) is Ordering.GREATER

    def test_pre_releases_compare_as_whole_strings(self):
        assert compare(V(1, 0, 0, "beta"), V(1, 0, 0, "rc1")) is Ordering.LESS
        # Whole-string: "beta.10" < "beta.2"
        assert compare(V(1, 0, 0, "beta.10"), V(1, 0, 0, "beta.2")) is Ordering.LESS

    def test_build_metadata_ignored(self):
        a = parse_version("1.0.0+build.1")
        b = parse_version("1.0.0+build.2")
        assert compare(a, b) is Ordering.EQUAL
        assert a == b

    def test_rich_comparisons(self):
        assert V(1, 0, 0, "beta") < V(1, 0, 0)
        assert V(1, 0, 0) >= V(1, 0, 0, "rc1")
        assert max(SAMPLE) == V(2, 0, 0)
        assert min(SAMPLE) == ZERO_VERSION


# ===========================================================================
# Sorting helpers
# ===========================================================================
class TestSorting:
    def test_descending_fixture(self):
        items = [V(1, 0, 0, "rc1"), V(1, 0, 0), V(0, 9, 0), V(1, 0, 0, "beta")]
        assert sort_versions(items, descending=True) == [
            V(1, 0, 0),
            V(1, 0, 0, "rc1"),
            V(1, 0, 0, "beta"),
            V(0, 9, 0),
        ]

    def test_ascending_fixture(self):
        items = [V(1, 0, 0, "rc1"), V(1, 0, 0), V(0, 9, 0), V(1, 0, 0, "beta")]
        assert sort_versions(items) == [
            V(0, 9, 0),
            V(1, 0, 0, "beta"),
            V(1, 0, 0, "rc1"),
            V(1, 0, 0),
        ]

    def test_key_extracts_version_from_entities(self):
        rows = [("b", V(1, 0, 0)), ("a", V(2, 0, 0)), ("c", V(1, 5, 0))]
        ordered = sort_versions(rows, key=lambda r: r[1], descending=True)
        assert [name for name, _ in ordered] == ["a", "c", "b"]

    def test_equal_versions_keep_input_order(self):
        rows = [(1, parse_version("1.0.0+a")), (2, parse_version("1.0.0+b"))]
        assert sort_versions(rows, key=lambda r: r[1], descending=True) == rows
        assert sort_versions(rows, key=lambda r: r[1]) == rows

    def test_latest(self):
        assert latest(SAMPLE) == V(2, 0, 0)
        assert latest([]) is None

    def test_latest_first_wins_on_tie(self):
        rows = [("first", V(1, 0, 0)), ("second", V(1, 0, 0))]
        assert latest(rows, key=lambda r: r[1])[0] == "first"


# ===========================================================================
# Parsing
# ===========================================================================
class TestParsing:
    def test_full_version(self):
        v = parse_version("1.2.3-beta.1+exp.sha.5114f85")
        assert (v.major, v.minor, v.patch) == (1, 2, 3)
        assert v.pre_release == "beta.1"
        assert v.build == "exp.sha.5114f85"
        assert str(v) == "1.2.3-beta.1+exp.sha.5114f85"

    @pytest.mark.parametrize("text", ["v1.2.3", "V1.2.3", " 1.2.3 "])
    def test_leading_v_and_whitespace(self, text):
        assert parse_version(text) == V(1, 2, 3)

    @pytest.mark.parametrize(
        "text",
        ["", "garbage", "1.2", "1.2.3.4", "01.2.3", "1.2.3-", None],
    )
    def test_invalid_input_becomes_zero(self, text):
        assert parse_version(text) == ZERO_VERSION

    @pytest.mark.parametrize("text", ["vv1.2.3", "vVv1.0.0", "Vv1.0.0"])
    def test_only_one_prefix_stripped(self, text):
        assert parse_version(text) == ZERO_VERSION
        with pytest.raises(InvalidVersionNumber):
            parse_version_strict(text)

    def test_strict_parse_raises(self):
        with pytest.raises(InvalidVersionNumber):
            parse_version_strict("not a version")

    def test_negative_components_rejected(self):
        with pytest.raises(ValueError):
            SemanticVersion(-1, 0, 0)

    def test_is_pre_release(self):
        assert parse_version("1.0.0-rc1").is_pre_release
        assert not parse_version("1.0.0").is_pre_release
