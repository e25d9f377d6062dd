"""Tests for ambiguous name detection (core/duplicates.py).

Ambiguity is all-or-nothing: one ambiguous name fails the whole batch
and the error carries every competing match for presentation.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from csalt.core.duplicates import check_for_duplicates, find_ambiguous_names, group_by_name
from csalt.core.models import ResolvedDevice, TranslationResult
from csalt.core.query_parser import parse_device_query
from csalt.exceptions import AmbiguousDeviceError


def _dev(group: str, name: str, salt_id: int) -> ResolvedDevice:
    return ResolvedDevice(group_name=group, device_name=name, salt_id=salt_id)


# ---------------------------------------------------------------------------
# Bucketing
# ---------------------------------------------------------------------------

class TestGroupByName:
    def test_buckets_by_bare_name(self) -> None:
        buckets = group_by_name([_dev("g1", "gp", 5), _dev("g2", "gp", 9), _dev("g1", "x", 1)])
        assert set(buckets) == {"gp", "x"}
        assert len(buckets["gp"]) == 2

    def test_repeated_salt_id_counted_once(self) -> None:
        buckets = group_by_name([_dev("g1", "gp", 5), _dev("g1", "gp", 5)])
        assert buckets["gp"] == [_dev("g1", "gp", 5)]


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

class TestFindAmbiguousNames:
    def test_same_name_in_two_groups(self) -> None:
        found = find_ambiguous_names([_dev("g1", "gp", 5), _dev("g2", "gp", 9)])
        assert found == {"gp": (_dev("g1", "gp", 5), _dev("g2", "gp", 9))}

    def test_unique_names_are_fine(self) -> None:
        assert find_ambiguous_names([_dev("g1", "a", 1), _dev("g1", "b", 2)]) == {}

    def test_qualified_queries_are_never_ambiguous(self) -> None:
        query = parse_device_query("g1:gp,g2:gp")
        found = find_ambiguous_names([_dev("g1", "gp", 5), _dev("g2", "gp", 9)], query)
        assert found == {}

    def test_name_only_query_is_checked(self) -> None:
        query = parse_device_query("gp")
        found = find_ambiguous_names([_dev("g1", "gp", 5), _dev("g2", "gp", 9)], query)
        assert list(found) == ["gp"]

    def test_mixed_qualification_still_ambiguous(self) -> None:
        query = parse_device_query("g1:gp,:gp")
        found = find_ambiguous_names([_dev("g1", "gp", 5), _dev("g2", "gp", 9)], query)
        assert list(found) == ["gp"]


class TestCheckForDuplicates:
    def test_raises_with_count_and_matches(self) -> None:
        result = TranslationResult(
            name_matches=(_dev("g1", "gp", 5), _dev("g2", "gp", 9)),
        )
        with pytest.raises(AmbiguousDeviceError) as exc_info:
            check_for_duplicates(result)

        err = exc_info.value
        assert err.count == 1
        assert err.ambiguous["gp"] == (_dev("g1", "gp", 5), _dev("g2", "gp", 9))
        assert "1 Duplicate" in str(err)

    def test_counts_distinct_names(self) -> None:
        result = TranslationResult(
            name_matches=(
                _dev("g1", "a", 1), _dev("g2", "a", 2), _dev("g3", "a", 3),
                _dev("g1", "b", 4), _dev("g2", "b", 5),
            ),
        )
        with pytest.raises(AmbiguousDeviceError) as exc_info:
            check_for_duplicates(result)
        assert exc_info.value.count == 2

    def test_group_members_are_not_checked(self) -> None:
        result = TranslationResult(devices=(_dev("g1", "gp", 5), _dev("g2", "gp", 9)))
        check_for_duplicates(result)

    def test_formatter_not_reached_on_ambiguity(self) -> None:
        from csalt.core.dispatch import select_targets

        result = TranslationResult(
            name_matches=(_dev("g1", "gp", 5), _dev("g2", "gp", 9)),
        )
        with patch("csalt.core.salt_ids.format_salt_id") as mock_format:
            with pytest.raises(AmbiguousDeviceError):
                select_targets(result)
        mock_format.assert_not_called()
