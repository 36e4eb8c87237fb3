"""
Tests for HeaderIndex lookup and fuzzy help.
"""

import pytest

from fitme.core.exceptions import ColumnNotFoundError
from fitme.core.headers import (
    NO_MATCH_HELP,
    HeaderIndex,
    eq_ignore_case_and_ws,
)


@pytest.fixture
def headers():
    return HeaderIndex.from_names(["y", "x", " a Space Col ", "Temp"])


# ═══════════════════════════════════════════════════════════════════════
# Construction
# ═══════════════════════════════════════════════════════════════════════


class TestConstruction:

    def test_names_are_trimmed(self, headers):
        assert headers.names == ("y", "x", "a Space Col", "Temp")

    def test_sequence_behaviour(self, headers):
        assert len(headers) == 4
        assert headers[1] == "x"
        assert list(headers) == ["y", "x", "a Space Col", "Temp"]

    def test_non_string_names(self):
        assert HeaderIndex.from_names([1, 2.5]).names == ("1", "2.5")


# ═══════════════════════════════════════════════════════════════════════
# Lookups
# ═══════════════════════════════════════════════════════════════════════


class TestLookup:

    def test_find_exact(self, headers):
        assert headers.find("Temp") == 3
        assert headers.find("temp") is None

    def test_find_ignore_case(self, headers):
        assert headers.find_ignore_case("temp") == 3
        assert headers.find_ignore_case("aSpaceCol") is None

    def test_find_ignore_case_and_ws(self, headers):
        assert headers.find_ignore_case_and_ws("aSpaceCol") == 2
        assert headers.find_ignore_case_and_ws("A SPACE   COL") == 2

    def test_find_match_predicate(self, headers):
        assert headers.find_match(lambda h: h.startswith("T")) == 3
        assert headers.find_match(lambda h: h == "missing") is None

    def test_first_match_wins(self):
        dup = HeaderIndex.from_names(["x", "X"])
        assert dup.find_ignore_case("x") == 0

    def test_resolve(self, headers):
        assert headers.resolve("a space col") == 2

    def test_resolve_missing_raises_with_help(self, headers):
        with pytest.raises(ColumnNotFoundError) as exc_info:
            headers.resolve("y_")
        err = exc_info.value
        assert err.column == "y_"
        assert err.help == "help - these headers are similar: y"
        assert "could not find column 'y_'" in str(err)

    def test_eq_ignore_case_and_ws(self):
        assert eq_ignore_case_and_ws("a Space Col", "aspacecol")
        assert not eq_ignore_case_and_ws("a Space Col", "aspace")


# ═══════════════════════════════════════════════════════════════════════
# Fuzzy help
# ═══════════════════════════════════════════════════════════════════════


class TestFuzzyMatch:

    def test_substring_match_strips_whitespace(self, headers):
        assert headers.fuzzy_match("a space ") == ["aSpaceCol"]

    def test_best_first(self):
        idx = HeaderIndex.from_names(["temperature", "temp"])
        assert idx.fuzzy_match("temp")[0] == "temp"

    def test_no_match(self, headers):
        assert headers.fuzzy_match("qqq") == []
        assert headers.match_help("qqq") == NO_MATCH_HELP

    def test_empty_query(self, headers):
        assert headers.fuzzy_match("   ") == []

    def test_match_help_lists_similar(self, headers):
        assert headers.match_help("tmp") == "help - these headers are similar: Temp"
