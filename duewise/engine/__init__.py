"""Status tracking and reconciliation for recurring schedules."""

from duewise.engine.aggregate import derive_aggregate_status
from duewise.engine.status_store import merge_statuses, seed_statuses, update_occurrence_status
from duewise.engine.sweeper import SweepFailure, SweepReport, run_reconciliation_sweep
from duewise.recurrence.generate import generate_occurrences

__all__ = [
    "generate_occurrences",
    "seed_statuses",
    "merge_statuses",
    "update_occurrence_status",
    "derive_aggregate_status",
    "run_reconciliation_sweep",
    "SweepFailure",
    "SweepReport",
]
