"""Tests for the grouping engine."""

import random
from datetime import date

from toggl_jira_sync.sync.grouping import (
    NO_DESCRIPTION,
    NO_ISSUE,
    assign_issue,
    group_by_description,
    group_by_issue_and_date,
    group_synced_by_issue,
)


def _membership(groups) -> dict[str, tuple[set, int]]:
    """Map each group key to its entry ids and total."""
    return {group.key: ({e.id for e in group.entries}, group.total_seconds) for group in groups}


class TestGroupByIssueAndDate:
    """Test grouping by issue key and date."""

    def test_same_issue_same_day(self, make_entry) -> None:
        """Test that three AB-12 entries on one day form one 55 minute group."""
        entries = [
            make_entry(3, "AB-12 deploy", "2024-01-15T14:00:00+00:00", 1800),
            make_entry(1, "AB-12: fix bug", "2024-01-15T09:00:00+00:00", 600),
            make_entry(2, "AB-12 review", "2024-01-15T11:00:00+00:00", 900),
        ]

        groups = group_by_issue_and_date(entries)

        assert list(groups) == ["AB-12_2024-01-15"]
        group = groups["AB-12_2024-01-15"]
        assert group.issue_key == "AB-12"
        assert group.date == date(2024, 1, 15)
        assert group.total_seconds == 3300
        assert [e.id for e in group.entries] == [1, 2, 3]

    def test_split_by_day_and_issue(self, make_entry) -> None:
        """Test that different days and issues get separate groups."""
        entries = [
            make_entry(1, "AB-12 a", "2024-01-15T09:00:00+00:00"),
            make_entry(2, "AB-12 b", "2024-01-16T09:00:00+00:00"),
            make_entry(3, "CD-3 c", "2024-01-15T10:00:00+00:00"),
        ]

        groups = group_by_issue_and_date(entries)

        assert set(groups) == {"AB-12_2024-01-15", "AB-12_2024-01-16", "CD-3_2024-01-15"}

    def test_entries_without_issue_ignored(self, make_entry) -> None:
        """Test that entries without an issue key are left out."""
        entries = [
            make_entry(1, "misc", "2024-01-15T09:00:00+00:00"),
            make_entry(2, "AB-1 x", "2024-01-15T09:00:00+00:00"),
        ]

        groups = group_by_issue_and_date(entries)

        assert list(groups) == ["AB-1_2024-01-15"]

    def test_ties_keep_input_order(self, make_entry) -> None:
        """Test that entries with the same start keep their input order."""
        entries = [
            make_entry(7, "AB-1 first", "2024-01-15T09:00:00+00:00"),
            make_entry(5, "AB-1 second", "2024-01-15T09:00:00+00:00"),
        ]

        group = group_by_issue_and_date(entries)["AB-1_2024-01-15"]

        assert [e.id for e in group.entries] == [7, 5]

    def test_order_independent(self, make_entry) -> None:
        """Test that shuffling input gives identical groups."""
        entries = [
            make_entry(i, f"{key} work", f"2024-01-{day:02d}T{hour:02d}:00:00+00:00", 60 * i)
            for i, (key, day, hour) in enumerate(
                [("AB-1", 15, 9), ("AB-1", 15, 8), ("CD-2", 15, 9), ("AB-1", 16, 7), ("CD-2", 15, 7)],
                start=1,
            )
        ]
        shuffled = entries[:]
        random.Random(4).shuffle(shuffled)

        first = group_by_issue_and_date(entries)
        second = group_by_issue_and_date(shuffled)

        assert _membership(first.values()) == _membership(second.values())
        for key in first:
            assert [e.id for e in first[key].entries] == [e.id for e in second[key].entries]

    def test_totals_conserved(self, make_entry) -> None:
        """Test that group totals add up to the entry durations."""
        entries = [
            make_entry(1, "AB-1 a", "2024-01-15T09:00:00+00:00", 100),
            make_entry(2, "AB-1 b", "2024-01-15T10:00:00+00:00", 250),
            make_entry(3, "CD-2 c", "2024-01-17T10:00:00+00:00", 40),
        ]

        groups = group_by_issue_and_date(entries)

        assert sum(g.total_seconds for g in groups.values()) == sum(e.duration_seconds for e in entries)
        for group in groups.values():
            assert group.total_seconds == sum(e.duration_seconds for e in group.entries)


class TestGroupByDescription:
    """Test grouping by description."""

    def test_merges_same_description(self, make_entry) -> None:
        """Test that equal descriptions share a group in first seen order."""
        entries = [
            make_entry(1, "misc work", "2024-01-15T09:00:00+00:00", 300),
            make_entry(2, "email", "2024-01-15T10:00:00+00:00", 120),
            make_entry(3, "misc work", "2024-01-16T09:00:00+00:00", 600),
        ]

        groups = group_by_description(entries)

        assert [g.key for g in groups] == ["misc work", "email"]
        assert groups[0].total_seconds == 900
        assert [e.id for e in groups[0].entries] == [1, 3]

    def test_placeholder_for_empty_description(self, make_entry) -> None:
        """Test that missing and empty descriptions share the placeholder group."""
        entries = [
            make_entry(1, None, "2024-01-15T09:00:00+00:00", 60),
            make_entry(2, "", "2024-01-15T10:00:00+00:00", 60),
        ]

        groups = group_by_description(entries)

        assert len(groups) == 1
        assert groups[0].key == NO_DESCRIPTION
        assert groups[0].total_seconds == 120

    def test_order_independent_membership(self, make_entry) -> None:
        """Test that group membership does not depend on input order."""
        entries = [make_entry(i, ["a", "b", "c"][i % 3], f"2024-01-15T0{i}:00:00+00:00", i) for i in range(9)]
        shuffled = list(reversed(entries))

        assert _membership(group_by_description(entries)) == _membership(group_by_description(shuffled))


class TestGroupSyncedByIssue:
    """Test grouping of already synced entries."""

    def test_groups_by_issue_with_placeholder(self, make_entry) -> None:
        """Test that entries without a key fall under the placeholder."""
        entries = [
            make_entry(1, "AB-1 a", "2024-01-15T09:00:00+00:00", 100),
            make_entry(2, "AB-1 b", "2024-01-16T09:00:00+00:00", 200),
            make_entry(3, "misc", "2024-01-16T09:00:00+00:00", 50),
        ]

        groups = group_synced_by_issue(entries)

        assert groups["AB-1"].total_seconds == 300
        assert groups[NO_ISSUE].total_seconds == 50


class TestAssignIssue:
    """Test re-bucketing of assigned description groups."""

    def test_assign_by_date(self, make_entry) -> None:
        """Test that assigned entries are split per day under the new key."""
        groups = group_by_description(
            [
                make_entry(1, "misc", "2024-01-16T09:00:00+00:00", 100),
                make_entry(2, "misc", "2024-01-15T09:00:00+00:00", 200),
            ]
        )

        assigned = assign_issue(groups, "XY-9")

        assert set(assigned) == {"XY-9_2024-01-15", "XY-9_2024-01-16"}
        assert assigned["XY-9_2024-01-15"].issue_key == "XY-9"
        assert assigned["XY-9_2024-01-15"].total_seconds == 200
