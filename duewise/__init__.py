"""duewise: recurring-schedule engine for CRM timelines and tasks."""

__version__ = "0.1.0"
