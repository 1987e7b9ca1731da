"""Tests for aggregate status derivation."""

import pytest

from duewise.engine.aggregate import derive_aggregate_status
from duewise.models.occurrence import OccurrenceState, OccurrenceStatus


def statuses(*values):
    return [OccurrenceStatus(period=f"p{i}", status=v) for i, v in enumerate(values)]


class TestDeriveAggregateStatus:
    def test_scenarios(self):
        assert derive_aggregate_status(statuses("completed", "pending")) == OccurrenceState.PENDING
        assert derive_aggregate_status(statuses("completed", "delayed")) == OccurrenceState.DELAYED
        assert derive_aggregate_status(statuses("completed", "completed")) == OccurrenceState.COMPLETED

    def test_empty_is_pending(self):
        assert derive_aggregate_status([]) == OccurrenceState.PENDING

    def test_ongoing_beats_completed_and_pending(self):
        assert derive_aggregate_status(statuses("completed", "ongoing", "pending")) == OccurrenceState.ONGOING

    def test_delayed_beats_ongoing(self):
        assert derive_aggregate_status(statuses("ongoing", "delayed")) == OccurrenceState.DELAYED

    @pytest.mark.parametrize(
        "values",
        [(), ("pending",), ("completed",), ("ongoing", "completed"), ("pending", "pending", "ongoing")],
    )
    def test_adding_a_delayed_occurrence_makes_aggregate_delayed(self, values):
        assert derive_aggregate_status(statuses(*values, "delayed")) == OccurrenceState.DELAYED

    def test_accepts_raw_values(self):
        assert derive_aggregate_status(["completed", OccurrenceState.COMPLETED]) == OccurrenceState.COMPLETED
