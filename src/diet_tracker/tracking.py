"""Store-facing operations: load inputs, run the aggregations, write results."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from diet_tracker.compliance import (
    calculate_compliance_percentage,
    count_consumed,
    toggle_item_consumption,
)
from diet_tracker.feedback import summarize_feedback
from diet_tracker.grocery import build_grocery_plan, total_estimated_cost
from diet_tracker.models import (
    ConsumptionEntry,
    DailyDietPlan,
    DailyFeedback,
    GroceryItem,
    GroceryPlan,
    MealSlot,
    MemberFeedback,
    PlanStatus,
)
from diet_tracker.progress import (
    MealProgress,
    MemberConsumption,
    aggregate_meal_progress,
    build_consumption_entry,
    build_meal_consumption,
    find_member_entry,
)
from diet_tracker.store import DocumentStore, StoreError

logger = logging.getLogger(__name__)


class PlanNotFoundError(LookupError):
    def __init__(self, date: str):
        super().__init__(f"No diet plan found for {date}")
        self.date = date


class MealNotFoundError(LookupError):
    def __init__(self, date: str, meal_id: str):
        super().__init__(f"Meal '{meal_id}' not found in the plan for {date}")
        self.date = date
        self.meal_id = meal_id


class MemberNotFoundError(LookupError):
    def __init__(self, member_id: str):
        super().__init__(f"Family member not found: {member_id}")
        self.member_id = member_id


def require_plan(store: DocumentStore, date: str) -> DailyDietPlan:
    plan = store.get_daily_plan(date)
    if plan is None:
        raise PlanNotFoundError(date)
    return plan


def load_daily_view(
    store: DocumentStore, date: str
) -> tuple[DailyDietPlan, list[MealProgress]]:
    """Read the day's plan, the family and the day's entries, then aggregate."""
    plan = require_plan(store, date)
    members = store.get_family_members()
    entries = store.get_consumption_entries(date)
    logger.debug(
        "Daily view %s: %d meals, %d members, %d entries",
        date, len(plan.meals), len(members), len(entries),
    )
    return plan, aggregate_meal_progress(plan.meals, members, entries)


def load_meal_consumption(
    store: DocumentStore, date: str, meal_id: str
) -> tuple[MealSlot, list[MemberConsumption]]:
    plan = require_plan(store, date)
    meal = plan.find_meal(meal_id)
    if meal is None:
        raise MealNotFoundError(date, meal_id)
    members = store.get_family_members()
    entries = store.get_consumption_entries(date)
    return meal, build_meal_consumption(meal, members, entries)


def save_member_consumption(
    store: DocumentStore,
    date: str,
    meal_id: str,
    consumption: MemberConsumption,
) -> ConsumptionEntry:
    """Update the member's entry if the last read found one, else create it."""
    entry = build_consumption_entry(date, meal_id, consumption)
    if consumption.entry is not None and consumption.entry.id:
        return store.update_consumption_entry(consumption.entry.id, entry)
    return store.create_consumption_entry(entry)


def quick_mark(
    store: DocumentStore, date: str, meal_id: str, member_id: str
) -> ConsumptionEntry:
    """Mark a member as done with a meal without item detail.

    An existing entry has every remaining item marked consumed, so its
    percentage still agrees with its items.
    """
    plan = require_plan(store, date)
    if plan.find_meal(meal_id) is None:
        raise MealNotFoundError(date, meal_id)
    if not any(m.id == member_id for m in store.get_family_members()):
        raise MemberNotFoundError(member_id)

    entries = [e for e in store.get_consumption_entries(date) if e.meal_slot_id == meal_id]
    existing = find_member_entry(entries, member_id)
    now = datetime.now().isoformat(timespec="seconds")
    if existing is not None and existing.id:
        items = [
            ci if ci.consumed else toggle_item_consumption(ci)
            for ci in existing.consumed_items
        ]
        existing.consumed_items = items
        existing.completion_percentage = (
            calculate_compliance_percentage(count_consumed(items), len(items)) if items else 100
        )
        existing.consumed_at = now
        return store.update_consumption_entry(existing.id, existing)
    entry = ConsumptionEntry(
        date=date,
        meal_slot_id=meal_id,
        family_member_id=member_id,
        completion_percentage=100,
        consumed_at=now,
    )
    return store.create_consumption_entry(entry)


def generate_grocery_plan(store: DocumentStore, start_date: str, end_date: str) -> GroceryPlan:
    """Consolidate every daily plan in range into a new grocery plan.

    Each call creates a fresh plan, even for a range already covered.
    """
    plans = store.get_daily_plans_in_range(start_date, end_date)
    if not plans:
        raise PlanNotFoundError(f"{start_date} to {end_date}")
    logger.info("Consolidating groceries from %d daily plans", len(plans))
    return store.create_grocery_plan(build_grocery_plan(plans, start_date, end_date))


def current_grocery_plan(store: DocumentStore, plan_id: str | None = None) -> GroceryPlan:
    """The requested plan, or the most recently generated active one."""
    if plan_id:
        plan = store.get_grocery_plan(plan_id)
        if plan is None:
            raise StoreError("NOT_FOUND", f"Grocery plan not found: {plan_id}")
        return plan
    active = store.get_active_grocery_plans()
    if not active:
        raise StoreError("NOT_FOUND", "No active grocery plan. Run 'grocery generate' first.")
    return active[0]


def edit_grocery_plan(
    store: DocumentStore,
    edit: Callable[[list[GroceryItem]], list[GroceryItem]],
    plan_id: str | None = None,
) -> GroceryPlan:
    """Apply a checklist edit and persist it back to the stored plan."""
    plan = current_grocery_plan(store, plan_id)
    plan.grocery_items = edit(plan.grocery_items)
    plan.total_estimated_cost = total_estimated_cost(plan.grocery_items)
    return store.update_grocery_plan(plan)


def archive_grocery_plan(store: DocumentStore, plan_id: str | None = None) -> GroceryPlan:
    plan = current_grocery_plan(store, plan_id)
    plan.status = PlanStatus.ARCHIVED
    return store.update_grocery_plan(plan)


def record_feedback(
    store: DocumentStore,
    date: str,
    family_feedback: list[MemberFeedback],
    top_cravings: int = 3,
    top_meals: int = 3,
    max_suggestions: int = 5,
) -> DailyFeedback:
    """Summarize the family's feedback and save it as the day's record."""
    summary = summarize_feedback(
        family_feedback,
        top_cravings=top_cravings,
        top_meals=top_meals,
        max_suggestions=max_suggestions,
    )
    feedback = DailyFeedback(date=date, family_feedback=family_feedback, summary=summary)
    return store.save_feedback(feedback)
