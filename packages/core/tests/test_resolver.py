"""Tests for exact and nearby position resolution."""

from prcourier_core.diff.resolver import resolve

INDEX = {"src/app.py": {10: 1, 11: 2, 20: 1, 44: 3}}


def test_exact_match():
    assert resolve("src/app.py", 11, INDEX) == 2


def test_exact_match_wins_over_nearby_entries():
    index = {"a.py": {5: 7, 6: 9}}
    assert resolve("a.py", 6, index) == 9


def test_nearby_entry_within_three_lines():
    # line 42 has no entry; 44 is the closest at distance 2
    assert resolve("src/app.py", 42, INDEX) == 3


def test_nearest_entry_is_preferred():
    assert resolve("src/app.py", 13, INDEX) == 2  # 11 is closer than 10


def test_distance_of_exactly_three_is_accepted():
    assert resolve("src/app.py", 23, INDEX) == 1


def test_too_far_returns_none():
    index = {"a.py": {55: 4}}
    assert resolve("a.py", 50, index) is None


def test_tie_goes_to_first_entry_in_table_order():
    index = {"a.py": {8: 100, 12: 200}}
    assert resolve("a.py", 10, index) == 100


def test_unknown_file_returns_none():
    assert resolve("other.py", 10, INDEX) is None


def test_file_without_entries_returns_none():
    assert resolve("empty.py", 1, {"empty.py": {}}) is None


def test_custom_max_distance():
    index = {"a.py": {55: 4}}
    assert resolve("a.py", 50, index, max_distance=5) == 4
    assert resolve("a.py", 50, index, max_distance=0) is None


def test_never_resolves_beyond_max_distance():
    index = {"a.py": {line: line for line in range(1, 200, 10)}}
    for line in range(1, 200):
        position = resolve("a.py", line, index)
        if position is not None:
            assert abs(position - line) <= 3
