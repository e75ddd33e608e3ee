"""Grocery consolidation across daily plans, and shopping checklist views."""

from __future__ import annotations

import copy
import json
import logging
import sys
from collections import defaultdict
from dataclasses import replace
from datetime import date, timedelta
from pathlib import Path
from typing import Iterable

from diet_tracker.compliance import calculate_compliance_percentage
from diet_tracker.config import apply_cli_overrides, load_config
from diet_tracker.models import (
    DailyDietPlan,
    GroceryCategory,
    GroceryItem,
    GroceryPlan,
    GrocerySource,
    GroceryStatus,
    PlanStatus,
    Priority,
)

logger = logging.getLogger(__name__)

SORT_KEYS = ("name", "category", "priority")
CATEGORY_CHOICES = ["all"] + [c.value for c in GroceryCategory]


def consolidation_key(item: GroceryItem) -> str:
    return f"{item.name.lower()}_{item.category.value}"


def need_to_purchase(required: float, available: float) -> float:
    return max(0, required - available)


def stock_status(need: float) -> GroceryStatus:
    return GroceryStatus.OUT_OF_STOCK if need > 0 else GroceryStatus.SUFFICIENT


def _seed_item(item: GroceryItem, key: str) -> GroceryItem:
    need = need_to_purchase(item.required_quantity or 0, item.available_at_home or 0)
    return replace(
        item,
        id=key,
        required_quantity=item.required_quantity or 0,
        need_to_purchase=need,
        status=stock_status(need),
        priority=Priority.HIGH if item.perishable else Priority.MEDIUM,
        source=GrocerySource.MEAL_PLAN,
        usage_schedule=copy.deepcopy(item.usage_schedule),
    )


def consolidate_grocery_items(items: Iterable[GroceryItem]) -> list[GroceryItem]:
    """Merge grocery items sharing a name (case-insensitive) and category.

    Required quantities are summed and usage schedules concatenated as-is,
    so the same date and meal can appear twice. Output keeps first-seen order.
    """
    agg: dict[str, GroceryItem] = {}

    for item in items:
        key = consolidation_key(item)
        if key not in agg:
            agg[key] = _seed_item(item, key)
            continue

        entry = agg[key]
        entry.required_quantity += item.required_quantity or 0
        entry.need_to_purchase = need_to_purchase(
            entry.required_quantity, entry.available_at_home
        )
        entry.usage_schedule.extend(copy.deepcopy(item.usage_schedule))

    return list(agg.values())


def consolidate_plans(plans: list[DailyDietPlan]) -> list[GroceryItem]:
    return consolidate_grocery_items(
        item for plan in plans for item in plan.grocery_list
    )


def merge_consolidated(left: list[GroceryItem], right: list[GroceryItem]) -> list[GroceryItem]:
    """Combine two consolidated lists as if their plans were consolidated together."""
    return consolidate_grocery_items([*left, *right])


def total_estimated_cost(items: list[GroceryItem]) -> float:
    return sum(item.estimated_cost or 0 for item in items)


def build_grocery_plan(
    plans: list[DailyDietPlan], start_date: str, end_date: str
) -> GroceryPlan:
    items = consolidate_plans(plans)
    return GroceryPlan(
        title=f"Grocery Plan ({start_date} to {end_date})",
        start_date=start_date,
        end_date=end_date,
        grocery_items=items,
        total_estimated_cost=total_estimated_cost(items),
        status=PlanStatus.ACTIVE,
    )


def sort_grocery_items(items: list[GroceryItem], sort_by: str = "category") -> list[GroceryItem]:
    """Priority sorts high to low; name and category sort A-Z. All stable."""
    if sort_by == "priority":
        return sorted(items, key=lambda i: i.priority.rank, reverse=True)
    if sort_by == "name":
        return sorted(items, key=lambda i: i.name.lower())
    if sort_by == "category":
        return sorted(items, key=lambda i: i.category.value)
    raise ValueError(f"Unknown sort '{sort_by}'. Valid: {', '.join(SORT_KEYS)}")


def filter_grocery_items(
    items: list[GroceryItem],
    category: str | None = None,
    show_completed: bool = False,
    sort_by: str = "category",
) -> list[GroceryItem]:
    """Apply the checklist's category filter, completed toggle, and sort."""
    result = list(items)
    if category and category != "all":
        result = [i for i in result if i.category.value == category]
    if not show_completed:
        result = [i for i in result if not i.checked]
    return sort_grocery_items(result, sort_by)


def group_by_category(items: list[GroceryItem]) -> dict[str, list[GroceryItem]]:
    grouped: dict[str, list[GroceryItem]] = defaultdict(list)
    for item in items:
        grouped[item.category.value].append(item)
    return dict(grouped)


def completion_stats(items: list[GroceryItem]) -> tuple[int, int, int]:
    """(total, checked, percent checked)."""
    total = len(items)
    completed = sum(1 for i in items if i.checked)
    return total, completed, calculate_compliance_percentage(completed, total)


def _edit_item(items: list[GroceryItem], item_id: str, **changes: object) -> list[GroceryItem]:
    if not any(i.id == item_id for i in items):
        raise ValueError(f"No grocery item with id '{item_id}'")
    return [replace(i, **changes) if i.id == item_id else i for i in items]


def toggle_item_checked(items: list[GroceryItem], item_id: str) -> list[GroceryItem]:
    """Check an item off as purchased, or put an unchecked one back in the cart."""
    item = next((i for i in items if i.id == item_id), None)
    if item is None:
        raise ValueError(f"No grocery item with id '{item_id}'")
    status = GroceryStatus.IN_CART if item.checked else GroceryStatus.PURCHASED
    return _edit_item(items, item_id, status=status)


def update_item_quantity(
    items: list[GroceryItem], item_id: str, quantity: float
) -> list[GroceryItem]:
    if quantity < 0:
        raise ValueError("Required quantity cannot be negative")
    item = next((i for i in items if i.id == item_id), None)
    if item is None:
        raise ValueError(f"No grocery item with id '{item_id}'")
    need = need_to_purchase(quantity, item.available_at_home)
    status = item.status
    # Items already in the cart or bought keep their shopping state
    if status not in (GroceryStatus.IN_CART, GroceryStatus.PURCHASED):
        status = stock_status(need)
    return _edit_item(
        items,
        item_id,
        required_quantity=quantity,
        need_to_purchase=need,
        status=status,
    )


def update_item_priority(
    items: list[GroceryItem], item_id: str, priority: Priority
) -> list[GroceryItem]:
    return _edit_item(items, item_id, priority=priority)


def clear_completed_items(items: list[GroceryItem]) -> list[GroceryItem]:
    return [i for i in items if not i.checked]


def generate_shopping_list(plan: GroceryPlan) -> list[str]:
    """Lines for items still to buy: high priority first, then by category."""
    to_buy = [i for i in plan.grocery_items if i.need_to_purchase > 0]
    to_buy.sort(key=lambda i: (-i.priority.rank, i.category.value))
    return [f"{i.name}: {format_qty(i.need_to_purchase)} {i.unit}".rstrip() for i in to_buy]


def format_qty(qty: float) -> str:
    if float(qty).is_integer():
        return str(int(qty))
    return f"{qty:.2f}".rstrip("0")


def format_grocery_markdown(plan: GroceryPlan, items: list[GroceryItem]) -> str:
    """Format the checklist as markdown grouped by category."""
    total, completed, percentage = completion_stats(plan.grocery_items)
    lines = [f"# {plan.title}", ""]
    lines.append(
        f"**Items:** {total} | **Purchased:** {completed} ({percentage}%) "
        f"| **Estimated cost:** {plan.total_estimated_cost:.0f}"
    )
    lines.append("")

    for category, group in group_by_category(items).items():
        lines.append(f"## {category.title()}")
        lines.append("")
        for item in group:
            box = "x" if item.checked else " "
            unit = f" {item.unit}" if item.unit else ""
            lines.append(
                f"- [{box}] {format_qty(item.need_to_purchase)}{unit} {item.name} "
                f"({item.priority.value}; id: {item.id})"
            )
        lines.append("")

    if not items:
        lines.append("_Nothing to show._")

    return "\n".join(lines)


def format_grocery_json(plan: GroceryPlan, items: list[GroceryItem]) -> str:
    data = plan.to_dict()
    data["grocery_items"] = [i.to_dict() for i in items]
    return json.dumps(data, indent=2)


def default_range(days: int, start: str | None = None) -> tuple[str, str]:
    start_date = date.fromisoformat(start) if start else date.today()
    return start_date.isoformat(), (start_date + timedelta(days=days)).isoformat()


def _print_plan(plan: GroceryPlan, items: list[GroceryItem], output_format: str) -> None:
    if output_format == "json":
        print(format_grocery_json(plan, items))
    elif output_format == "list":
        print("\n".join(generate_shopping_list(replace(plan, grocery_items=items))))
    else:
        print(format_grocery_markdown(plan, items))


def run_grocery_generate(
    data_dir: Path,
    start_date: str | None = None,
    end_date: str | None = None,
    days: int | None = None,
    output_format: str = "markdown",
) -> None:
    """CLI entry point for grocery generate."""
    from diet_tracker.store import DocumentStore
    from diet_tracker.tracking import PlanNotFoundError, generate_grocery_plan

    config = apply_cli_overrides(load_config(data_dir), days=days)
    start, end = default_range(config["grocery"]["range_days"], start_date)
    end = end_date or end

    try:
        plan = generate_grocery_plan(DocumentStore(data_dir), start, end)
    except PlanNotFoundError:
        print(f"No diet plans found between {start} and {end}", file=sys.stderr)
        sys.exit(1)

    logger.info("Created grocery plan %s with %d items", plan.id, len(plan.grocery_items))
    _print_plan(plan, plan.grocery_items, output_format)


def run_grocery_show(
    data_dir: Path,
    plan_id: str | None = None,
    category: str | None = None,
    sort_by: str | None = None,
    show_completed: bool = False,
    output_format: str = "markdown",
) -> None:
    """CLI entry point for grocery show."""
    from diet_tracker.store import DocumentStore
    from diet_tracker.tracking import current_grocery_plan

    config = apply_cli_overrides(
        load_config(data_dir), sort_by=sort_by, show_completed=show_completed
    )
    plan = current_grocery_plan(DocumentStore(data_dir), plan_id)
    items = filter_grocery_items(
        plan.grocery_items,
        category=category,
        show_completed=config["grocery"]["show_completed"],
        sort_by=config["grocery"]["sort_by"],
    )
    _print_plan(plan, items, output_format)


def run_grocery_edit(
    data_dir: Path,
    action: str,
    plan_id: str | None = None,
    item_id: str | None = None,
    quantity: float | None = None,
    priority: str | None = None,
) -> None:
    """CLI entry point for the grocery checklist edits."""
    from diet_tracker.store import DocumentStore
    from diet_tracker.tracking import archive_grocery_plan, edit_grocery_plan

    store = DocumentStore(data_dir)

    if action == "archive":
        plan = archive_grocery_plan(store, plan_id)
        print(f"Archived {plan.title}")
        return

    if action == "check":
        plan = edit_grocery_plan(store, lambda items: toggle_item_checked(items, item_id), plan_id)
    elif action == "set-quantity":
        plan = edit_grocery_plan(
            store, lambda items: update_item_quantity(items, item_id, quantity), plan_id
        )
    elif action == "set-priority":
        plan = edit_grocery_plan(
            store, lambda items: update_item_priority(items, item_id, Priority(priority)), plan_id
        )
    elif action == "clear-completed":
        plan = edit_grocery_plan(store, clear_completed_items, plan_id)
    else:
        raise ValueError(f"Unknown grocery action '{action}'")

    total, completed, percentage = completion_stats(plan.grocery_items)
    print(f"{plan.title}: {completed}/{total} purchased ({percentage}%)")

