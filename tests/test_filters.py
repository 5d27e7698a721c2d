"""Tests for filter normalization, options and application."""

from itertools import product

import pytest

from sprint_core.exceptions import UnknownFilterError
from sprint_core.filters import (
    ALL_VALUES,
    SprintFilters,
    apply_filters,
    filter_options,
    normalize_filters,
    reconcile_filters,
    unique_values,
    with_filter,
)

from conftest import ticket_ids


class TestNormalizeFilters:
    """Tests for normalize_filters."""

    def test_empty_input_is_unset(self):
        assert normalize_filters(None) == SprintFilters()

    def test_accepts_control_ids(self):
        filters = normalize_filters({"weekFilter": "2024-W01", "taskForceFilter": "Backend"})
        assert filters.week == "2024-W01"
        assert filters.task_force == "Backend"

    def test_none_becomes_unset(self):
        assert normalize_filters({"epic": None}).epic == ALL_VALUES

    def test_ignores_unknown_names(self):
        assert normalize_filters({"priority": "High"}) == SprintFilters()

    def test_with_filter_rejects_unknown_name(self):
        with pytest.raises(UnknownFilterError):
            with_filter(SprintFilters(), "priority", "High")

    def test_active_lists_only_set_filters(self):
        assert SprintFilters(assignee="Bob Smith").active() == {"assignee": "Bob Smith"}


class TestFilterOptions:
    """Tests for option derivation."""

    def test_first_seen_order_with_sentinel(self, sample):
        options = filter_options(sample)
        assert options["assignee"] == [ALL_VALUES, "Alice Johnson", "Bob Smith", "Charlie Brown"]
        assert options["epic"] == [ALL_VALUES, "User Dashboard", "API Optimization", "Payment System"]
        assert options["ticket_type"] == [ALL_VALUES, "Feature", "Bug"]

    def test_excludes_empty_values(self, sample):
        sample.loc[0, "epic"] = ""
        assert "" not in unique_values(sample, "epic")

    def test_empty_store_has_only_sentinel(self, sample):
        options = filter_options(sample.iloc[0:0])
        assert all(values == [ALL_VALUES] for values in options.values())

    def test_reconcile_drops_missing_values(self):
        filters = SprintFilters(assignee="Alice Johnson", week="W1")
        options = {"assignee": [ALL_VALUES, "Dana"], "week": [ALL_VALUES, "W1"]}
        assert reconcile_filters(filters, options) == SprintFilters(week="W1")


class TestApplyFilters:
    """Tests for apply_filters."""

    def test_no_filters_returns_everything(self, sample):
        assert ticket_ids(apply_filters(sample, SprintFilters())) == ticket_ids(sample)

    def test_assignee_filter(self, sample):
        out = apply_filters(sample, SprintFilters(assignee="Alice Johnson"))
        assert ticket_ids(out) == ["PROJ-123", "PROJ-125", "PROJ-127"]

    def test_filters_combine_with_and(self, sample):
        out = apply_filters(sample, SprintFilters(ticket_type="Feature", task_force="Backend"))
        assert ticket_ids(out) == ["PROJ-126", "PROJ-128"]

    def test_equality_is_case_sensitive(self, sample):
        assert apply_filters(sample, SprintFilters(assignee="alice johnson")).empty

    def test_does_not_mutate_store(self, sample):
        apply_filters(sample, SprintFilters(week="2024-W01"))
        assert len(sample) == 6

    def test_included_iff_every_set_filter_matches(self, sample):
        options = filter_options(sample)
        for week, assignee, epic in product(options["week"], options["assignee"], options["epic"]):
            filters = SprintFilters(week=week, assignee=assignee, epic=epic)
            out = set(ticket_ids(apply_filters(sample, filters)))
            expected = {
                row.ticket_id
                for row in sample.itertuples()
                if all(getattr(row, name) == value for name, value in filters.active().items())
            }
            assert out == expected

    def test_relaxing_a_filter_never_shrinks(self, sample):
        options = filter_options(sample)
        for week, ticket_type, task_force in product(options["week"], options["ticket_type"], options["task_force"]):
            filters = SprintFilters(week=week, ticket_type=ticket_type, task_force=task_force)
            out = set(ticket_ids(apply_filters(sample, filters)))
            for name in filters.active():
                relaxed = with_filter(filters, name, ALL_VALUES)
                assert out <= set(ticket_ids(apply_filters(sample, relaxed)))
