"""Completion percentages and per-item consumption toggling."""

from __future__ import annotations

import math
from dataclasses import replace

from diet_tracker.models import ConsumedItem, ConsumptionEntry


def calculate_compliance_percentage(completed: int, total: int) -> int:
    """Return round(100 * completed / total), or 0 when total is 0.

    Rounds half up. Nothing is clamped: completed > total reports over 100.
    """
    if total == 0:
        return 0
    return math.floor(100 * completed / total + 0.5)


def toggle_item_consumption(item: ConsumedItem) -> ConsumedItem:
    """Flip the consumed flag, returning a new item.

    Marking an item consumed with no actual quantity copies the planned
    quantity string first. Unmarking leaves actual_quantity alone.
    """
    if not item.consumed:
        actual = item.actual_quantity or item.planned_quantity
        return replace(item, actual_quantity=actual, consumed=True)
    return replace(item, consumed=False)


def count_consumed(items: list[ConsumedItem]) -> int:
    return sum(1 for item in items if item.consumed)


def member_daily_compliance(
    entries: list[ConsumptionEntry],
    member_id: str,
    date: str,
) -> float:
    """Average completion across one member's entries for a day (0 if none)."""
    member_entries = [
        e for e in entries if e.family_member_id == member_id and e.date == date
    ]
    if not member_entries:
        return 0.0
    total = sum(e.completion_percentage for e in member_entries)
    return total / len(member_entries)
