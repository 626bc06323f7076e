"""Deterministic aggregations over stored documents and notes."""

from drawer.queries.aggregations import (
    DEFAULT_CALENDAR_END,
    DEFAULT_CALENDAR_START,
    REMINDER_ID_OFFSET,
    AggregationEngine,
    calendar_events,
    compute_stats,
    monthly_flow,
    resolve_calendar_range,
    resolve_month,
    storage_by_category,
)

__all__ = [
    "DEFAULT_CALENDAR_END",
    "DEFAULT_CALENDAR_START",
    "REMINDER_ID_OFFSET",
    "AggregationEngine",
    "calendar_events",
    "compute_stats",
    "monthly_flow",
    "resolve_calendar_range",
    "resolve_month",
    "storage_by_category",
]
