"""Aggregate (schedule-level) status derivation."""

from typing import Iterable, Union

from duewise.models.occurrence import OccurrenceState, OccurrenceStatus


def _state(item: Union[OccurrenceStatus, OccurrenceState, str]) -> OccurrenceState:
    if isinstance(item, OccurrenceStatus):
        return OccurrenceState(item.status)
    return OccurrenceState(item)


def derive_aggregate_status(store: Iterable[Union[OccurrenceStatus, OccurrenceState, str]]) -> OccurrenceState:
    """Fold occurrence statuses into one schedule status.

    Precedence: delayed > ongoing > completed (only when every occurrence is
    completed) > pending. An empty collection is pending.
    """
    states = [_state(item) for item in store]
    if OccurrenceState.DELAYED in states:
        return OccurrenceState.DELAYED
    if OccurrenceState.ONGOING in states:
        return OccurrenceState.ONGOING
    if states and all(s == OccurrenceState.COMPLETED for s in states):
        return OccurrenceState.COMPLETED
    return OccurrenceState.PENDING
