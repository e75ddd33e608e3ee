"""Per-meal family progress for a day, and per-member item tracking."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path

from diet_tracker.compliance import (
    calculate_compliance_percentage,
    count_consumed,
    member_daily_compliance,
    toggle_item_consumption,
)
from diet_tracker.config import apply_cli_overrides, load_config
from diet_tracker.models import (
    ConsumedItem,
    ConsumptionEntry,
    FamilyMember,
    MealSlot,
    PortionItem,
)

logger = logging.getLogger(__name__)


@dataclass
class MemberProgress:
    member: FamilyMember
    consumed: bool
    completion_percentage: int


@dataclass
class MealProgress:
    meal: MealSlot
    consumption_entries: list[ConsumptionEntry]
    completion_percentage: int
    family_member_progress: list[MemberProgress]


@dataclass
class ItemTracking:
    planned_item: PortionItem
    consumed_item: ConsumedItem
    member_name: str
    member_id: str


@dataclass
class MemberConsumption:
    member: FamilyMember
    entry: ConsumptionEntry | None
    item_tracking: list[ItemTracking] = field(default_factory=list)
    overall_completion: int = 0


@dataclass
class MemberAverage:
    member: FamilyMember
    average_completion: float


@dataclass
class DaySummary:
    total_meals: int
    completed: int
    in_progress: int
    not_started: int
    average_completion: int
    member_averages: list[MemberAverage] = field(default_factory=list)


def find_member_entry(
    entries: list[ConsumptionEntry], member_id: str
) -> ConsumptionEntry | None:
    """First entry for a member; duplicates are logged and ignored.

    Entries come from the store newest consumed_at first, so with duplicates
    the most recently recorded one wins.
    """
    matches = [e for e in entries if e.family_member_id == member_id]
    if len(matches) > 1:
        logger.warning(
            "%d consumption entries for member %s on %s meal %s; using the first",
            len(matches),
            member_id,
            matches[0].date,
            matches[0].meal_slot_id,
        )
    return matches[0] if matches else None


def aggregate_meal_progress(
    meals: list[MealSlot],
    members: list[FamilyMember],
    entries: list[ConsumptionEntry],
) -> list[MealProgress]:
    """Join a day's meals with family members and their consumption entries.

    Meal-level completion counts members who have any entry for the meal,
    regardless of how much of the plan each one finished. The per-member
    percentage stays on MemberProgress.
    """
    member_ids = {m.id for m in members}
    orphans = {e.family_member_id for e in entries} - member_ids
    if orphans:
        logger.debug("Ignoring entries for unknown members: %s", sorted(orphans))

    progress: list[MealProgress] = []
    for meal in meals:
        meal_consumption = [e for e in entries if e.meal_slot_id == meal.id]

        family_progress = []
        for member in members:
            entry = find_member_entry(meal_consumption, member.id)
            family_progress.append(MemberProgress(
                member=member,
                consumed=entry is not None,
                completion_percentage=entry.completion_percentage if entry else 0,
            ))

        completion = calculate_compliance_percentage(
            sum(1 for fp in family_progress if fp.consumed),
            len(family_progress),
        )
        progress.append(MealProgress(
            meal=meal,
            consumption_entries=meal_consumption,
            completion_percentage=completion,
            family_member_progress=family_progress,
        ))

    return progress


def time_to_minutes(time: str | None) -> int:
    """Minutes since midnight for 'HH:MM'; missing or unreadable times are 0."""
    if not time:
        return 0
    parts = time.strip().split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    except ValueError:
        return 0
    return hour * 60 + minute


def sort_timeline(progress: list[MealProgress]) -> list[MealProgress]:
    """Order meals by time of day. Stable for meals sharing a time."""
    return sorted(progress, key=lambda mp: time_to_minutes(mp.meal.time))


def filter_member_progress(
    progress: list[MealProgress], member_id: str | None
) -> list[MealProgress]:
    """Restrict each meal's member breakdown to one member ('all' keeps everyone)."""
    if not member_id or member_id == "all":
        return progress
    return [
        replace(
            mp,
            family_member_progress=[
                fp for fp in mp.family_member_progress if fp.member.id == member_id
            ],
        )
        for mp in progress
    ]


def summarize_day(
    progress: list[MealProgress],
    complete_threshold: int = 80,
    date: str | None = None,
) -> DaySummary:
    """Meal counts by state, plus each member's average entry completion for date."""
    total = len(progress)
    completed = sum(1 for mp in progress if mp.completion_percentage >= complete_threshold)
    not_started = sum(1 for mp in progress if mp.completion_percentage == 0)
    in_progress = total - completed - not_started
    if total:
        average = round(sum(mp.completion_percentage for mp in progress) / total)
    else:
        average = 0
    return DaySummary(
        total_meals=total,
        completed=completed,
        in_progress=in_progress,
        not_started=not_started,
        average_completion=average,
        member_averages=member_averages(progress, date) if date else [],
    )


def member_averages(progress: list[MealProgress], date: str) -> list[MemberAverage]:
    if not progress:
        return []
    entries = [e for mp in progress for e in mp.consumption_entries]
    return [
        MemberAverage(
            member=fp.member,
            average_completion=member_daily_compliance(entries, fp.member.id, date),
        )
        for fp in progress[0].family_member_progress
    ]


def default_consumed_item(planned: PortionItem) -> ConsumedItem:
    return ConsumedItem(
        name=planned.name,
        planned_quantity=planned.display_quantity(),
        actual_quantity="",
        consumed=False,
        notes="",
    )


def build_member_consumption(
    meal: MealSlot,
    member: FamilyMember,
    entry: ConsumptionEntry | None,
) -> MemberConsumption:
    """Line up a member's planned items with what they recorded.

    Items are joined by name, so renaming a planned item drops its earlier
    tracking.
    """
    portion = meal.portion_for(member.id)
    planned_items = portion.items if portion else []
    recorded = entry.consumed_items if entry else []

    tracking = []
    for planned in planned_items:
        consumed = next((ci for ci in recorded if ci.name == planned.name), None)
        tracking.append(ItemTracking(
            planned_item=planned,
            consumed_item=consumed or default_consumed_item(planned),
            member_name=member.name,
            member_id=member.id,
        ))

    return MemberConsumption(
        member=member,
        entry=entry,
        item_tracking=tracking,
        overall_completion=_tracking_completion(tracking),
    )


def build_meal_consumption(
    meal: MealSlot,
    members: list[FamilyMember],
    entries: list[ConsumptionEntry],
) -> list[MemberConsumption]:
    meal_entries = [e for e in entries if e.meal_slot_id == meal.id]
    return [
        build_member_consumption(meal, member, find_member_entry(meal_entries, member.id))
        for member in members
    ]


def _tracking_completion(tracking: list[ItemTracking]) -> int:
    return calculate_compliance_percentage(
        count_consumed([it.consumed_item for it in tracking]), len(tracking)
    )


def update_tracked_item(
    consumption: MemberConsumption, item_name: str, **changes: object
) -> MemberConsumption:
    """Set fields on one tracked item and recompute the member's completion."""
    tracking = [
        replace(it, consumed_item=replace(it.consumed_item, **changes))
        if it.planned_item.name == item_name
        else it
        for it in consumption.item_tracking
    ]
    return replace(
        consumption,
        item_tracking=tracking,
        overall_completion=_tracking_completion(tracking),
    )


def toggle_tracked_item(consumption: MemberConsumption, item_name: str) -> MemberConsumption:
    tracking = [
        replace(it, consumed_item=toggle_item_consumption(it.consumed_item))
        if it.planned_item.name == item_name
        else it
        for it in consumption.item_tracking
    ]
    return replace(
        consumption,
        item_tracking=tracking,
        overall_completion=_tracking_completion(tracking),
    )


def build_consumption_entry(
    date: str,
    meal_id: str,
    consumption: MemberConsumption,
    consumed_at: datetime | None = None,
) -> ConsumptionEntry:
    """Snapshot a member's tracking into an entry ready to save."""
    consumed_at = consumed_at or datetime.now()
    return ConsumptionEntry(
        id=consumption.entry.id if consumption.entry else None,
        date=date,
        meal_slot_id=meal_id,
        family_member_id=consumption.member.id,
        planned_items=[it.planned_item for it in consumption.item_tracking],
        consumed_items=[it.consumed_item for it in consumption.item_tracking],
        completion_percentage=consumption.overall_completion,
        consumed_at=consumed_at.isoformat(timespec="seconds"),
    )


def meal_time_display(meal: MealSlot) -> str:
    return meal.time_display or meal.time or "Time not specified"


def format_daily_markdown(
    date: str,
    title: str | None,
    progress: list[MealProgress],
    summary: DaySummary,
) -> str:
    """Format the day's timeline as markdown."""
    heading = f"# Daily Meal Plan: {date}"
    if title:
        heading += f" ({title})"
    lines = [heading, ""]
    lines.append(
        f"**Meals:** {summary.total_meals} | **Completed:** {summary.completed} "
        f"| **In progress:** {summary.in_progress} "
        f"| **Not started:** {summary.not_started} "
        f"| **Average:** {summary.average_completion}%"
    )
    lines.append("")

    for mp in sort_timeline(progress):
        lines.append(
            f"## {meal_time_display(mp.meal)} {mp.meal.title} ({mp.completion_percentage}%)"
        )
        lines.append("")
        if not mp.family_member_progress:
            lines.append("_No family members._")
            lines.append("")
            continue
        lines.append("| Member | Status | Completion |")
        lines.append("|--------|--------|------------|")
        for fp in mp.family_member_progress:
            status = "consumed" if fp.consumed else "pending"
            lines.append(
                f"| {fp.member.name} | {status} | {fp.completion_percentage}% |"
            )
        lines.append("")

    if summary.member_averages:
        lines.append("## Member Day Averages")
        lines.append("")
        lines.append("| Member | Average |")
        lines.append("|--------|---------|")
        for ma in summary.member_averages:
            lines.append(f"| {ma.member.name} | {ma.average_completion:.0f}% |")
        lines.append("")

    return "\n".join(lines)


def format_daily_json(
    date: str,
    progress: list[MealProgress],
    summary: DaySummary,
) -> str:
    data = {
        "date": date,
        "summary": {
            "total_meals": summary.total_meals,
            "completed": summary.completed,
            "in_progress": summary.in_progress,
            "not_started": summary.not_started,
            "average_completion": summary.average_completion,
            "member_averages": [
                {
                    "member_id": ma.member.id,
                    "name": ma.member.name,
                    "average_completion": ma.average_completion,
                }
                for ma in summary.member_averages
            ],
        },
        "meals": [
            {
                "meal_id": mp.meal.id,
                "title": mp.meal.title,
                "time": mp.meal.time,
                "completion_percentage": mp.completion_percentage,
                "members": [
                    {
                        "member_id": fp.member.id,
                        "name": fp.member.name,
                        "consumed": fp.consumed,
                        "completion_percentage": fp.completion_percentage,
                    }
                    for fp in mp.family_member_progress
                ],
            }
            for mp in sort_timeline(progress)
        ],
    }
    return json.dumps(data, indent=2)


def format_member_consumption_markdown(meal: MealSlot, consumption: MemberConsumption) -> str:
    lines = [
        f"# {meal.title}: {consumption.member.name} ({consumption.overall_completion}%)",
        "",
    ]
    if not consumption.item_tracking:
        lines.append("_No planned items for this member._")
        return "\n".join(lines)
    for it in consumption.item_tracking:
        ci = it.consumed_item
        box = "x" if ci.consumed else " "
        actual = f" (ate {ci.actual_quantity})" if ci.actual_quantity else ""
        waste = f" [waste: {ci.waste_reason}]" if ci.waste_reason else ""
        lines.append(f"- [{box}] {ci.planned_quantity} {ci.name}{actual}{waste}")
    return "\n".join(lines)


def run_daily_view(
    data_dir: Path,
    date: str,
    member_id: str | None = None,
    output_format: str = "markdown",
    threshold: int | None = None,
) -> None:
    """CLI entry point for daily-view command."""
    from diet_tracker.tracking import PlanNotFoundError, load_daily_view
    from diet_tracker.store import DocumentStore

    config = apply_cli_overrides(load_config(data_dir), threshold=threshold)
    store = DocumentStore(data_dir)

    try:
        plan, progress = load_daily_view(store, date)
    except PlanNotFoundError:
        print(f"No diet plan found for {date}", file=sys.stderr)
        sys.exit(1)

    summary = summarize_day(
        progress, config["daily_view"]["complete_threshold"], date=date
    )
    progress = filter_member_progress(progress, member_id)

    if output_format == "json":
        print(format_daily_json(date, progress, summary))
    else:
        print(format_daily_markdown(date, plan.title, progress, summary))


def _parse_assignments(pairs: list[str] | None, flag: str) -> dict[str, str]:
    result = {}
    for raw in pairs or []:
        name, sep, value = raw.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Invalid {flag} value '{raw}'. Expected 'Item Name=value'")
        result[name.strip()] = value.strip()
    return result


def run_track(
    data_dir: Path,
    date: str,
    meal_id: str,
    member_id: str,
    consumed: list[str] | None = None,
    skipped: list[str] | None = None,
    actual: list[str] | None = None,
    waste: list[str] | None = None,
) -> None:
    """CLI entry point for track command."""
    from diet_tracker.tracking import (
        MealNotFoundError,
        PlanNotFoundError,
        load_meal_consumption,
        save_member_consumption,
    )
    from diet_tracker.store import DocumentStore

    store = DocumentStore(data_dir)
    try:
        meal, family = load_meal_consumption(store, date, meal_id)
    except (PlanNotFoundError, MealNotFoundError) as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    consumption = next((fc for fc in family if fc.member.id == member_id), None)
    if consumption is None:
        print(f"Family member not found: {member_id}", file=sys.stderr)
        sys.exit(1)

    planned_names = {it.planned_item.name for it in consumption.item_tracking}
    actual_map = _parse_assignments(actual, "--actual")
    waste_map = _parse_assignments(waste, "--waste")
    for name in [*(consumed or []), *(skipped or []), *actual_map, *waste_map]:
        if name not in planned_names:
            logger.warning("'%s' is not planned for %s in %s", name, consumption.member.name, meal.title)

    for name, qty in actual_map.items():
        consumption = update_tracked_item(consumption, name, actual_quantity=qty)
    for name, reason in waste_map.items():
        consumption = update_tracked_item(consumption, name, waste_reason=reason)
    for name in consumed or []:
        current = _tracked(consumption, name)
        if current is not None and not current.consumed:
            consumption = toggle_tracked_item(consumption, name)
    for name in skipped or []:
        current = _tracked(consumption, name)
        if current is not None and current.consumed:
            consumption = toggle_tracked_item(consumption, name)

    entry = save_member_consumption(store, date, meal_id, consumption)
    logger.info(
        "Saved consumption for %s (%d%%)", consumption.member.name, entry.completion_percentage
    )
    print(format_member_consumption_markdown(meal, consumption))


def _tracked(consumption: MemberConsumption, name: str) -> ConsumedItem | None:
    for it in consumption.item_tracking:
        if it.planned_item.name == name:
            return it.consumed_item
    return None


def run_quick_mark(data_dir: Path, date: str, meal_id: str, member_id: str) -> None:
    """CLI entry point for quick-mark command."""
    from diet_tracker.tracking import (
        MealNotFoundError,
        MemberNotFoundError,
        PlanNotFoundError,
        quick_mark,
    )
    from diet_tracker.store import DocumentStore

    try:
        entry = quick_mark(DocumentStore(data_dir), date, meal_id, member_id)
    except (PlanNotFoundError, MealNotFoundError, MemberNotFoundError) as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    print(f"Marked {member_id} as done for meal {meal_id} on {date} ({entry.id})")
