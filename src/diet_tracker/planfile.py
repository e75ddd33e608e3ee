"""Import daily diet plans from markdown notes and family members from YAML."""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path

import frontmatter
import yaml

from diet_tracker.models import (
    DailyDietPlan,
    FamilyMember,
    GroceryItem,
    MealSlot,
    MemberRole,
)

logger = logging.getLogger(__name__)

PLAN_TYPE = "diet-plan"


def normalize_meal_time(raw: object) -> str | None:
    """Coerce a frontmatter time into 'HH:MM'.

    YAML 1.1 reads unquoted 13:30 as the base-60 integer 810, so ints are
    converted back to clock time.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, int):
        return f"{raw // 60:02d}:{raw % 60:02d}"
    s = str(raw).strip()
    m = re.match(r"^(\d{1,2}):(\d{2})$", s)
    if not m:
        logger.warning("Unreadable meal time '%s'", s)
        return None
    return f"{int(m.group(1)):02d}:{m.group(2)}"


def format_time_display(time: str) -> str:
    """'06:30' -> '6:30 AM', '13:05' -> '1:05 PM'."""
    hours, minutes = time.split(":")
    hour = int(hours)
    ampm = "PM" if hour >= 12 else "AM"
    display_hour = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{display_hour}:{minutes} {ampm}"


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _parse_meal(data: dict) -> MealSlot:
    data = dict(data)
    time = normalize_meal_time(data.get("time"))
    data["time"] = time
    if not data.get("id"):
        data["id"] = slugify(data.get("title") or "")
    if time and not data.get("time_display"):
        data["time_display"] = format_time_display(time)
    return MealSlot.from_dict(data)


def parse_plan_file(file_path: Path) -> DailyDietPlan | None:
    """Parse a markdown diet plan note into a DailyDietPlan."""
    try:
        post = frontmatter.load(file_path)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not read %s: %s", file_path.name, e)
        return None

    meta = post.metadata
    if meta.get("type") != PLAN_TYPE:
        return None
    if not meta.get("date"):
        logger.warning("%s has no date; skipping", file_path.name)
        return None

    meals = [_parse_meal(m) for m in meta.get("meals") or [] if isinstance(m, dict)]
    ids = [m.id for m in meals]
    duplicates = {i for i in ids if ids.count(i) > 1}
    if duplicates:
        raise ValueError(f"{file_path.name}: duplicate meal ids {sorted(duplicates)}")

    grocery_list = []
    for g in meta.get("grocery_list") or []:
        try:
            grocery_list.append(GroceryItem.from_dict(g))
        except (KeyError, ValueError) as e:
            logger.warning("%s: skipping grocery item %r (%s)", file_path.name, g, e)

    return DailyDietPlan(
        date=str(meta["date"]),
        title=meta.get("title") or None,
        meals=meals,
        grocery_list=grocery_list,
    )


def load_members_file(path: Path) -> list[FamilyMember]:
    """Read a YAML list of family members, filling in defaults.

    Entries without an id use their role as id.
    """
    with open(path) as f:
        raw = yaml.safe_load(f) or []
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of family members")

    members = []
    for data in raw:
        if not data.get("name") or not data.get("role"):
            logger.warning("Skipping member without name or role: %r", data)
            continue
        try:
            role = MemberRole(data["role"])
        except ValueError:
            valid = ", ".join(r.value for r in MemberRole)
            raise ValueError(f"Unknown role '{data['role']}'. Valid: {valid}")
        members.append(FamilyMember.from_dict({**data, "id": data.get("id") or role.value}))
    return members


def discover_plan_files(paths: list[str]) -> list[Path]:
    """Expand directories into their .md notes; files pass through."""
    files: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(sorted(path.glob("*.md")))
        else:
            files.append(path)
    return files


def run_import_plan(data_dir: Path, plan_files: list[str]) -> None:
    """CLI entry point for import-plan command."""
    from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

    from diet_tracker.log import stderr_console
    from diet_tracker.store import DocumentStore

    store = DocumentStore(data_dir)
    files = discover_plan_files(plan_files)
    imported = 0

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=stderr_console,
        transient=True,
    ) as progress:
        task = progress.add_task("Importing plans", total=len(files))
        for path in files:
            plan = parse_plan_file(path)
            progress.advance(task)
            if plan is None:
                logger.debug("Not a diet plan: %s", path.name)
                continue
            store.save_daily_plan(plan)
            imported += 1
            logger.info(
                "Imported %s: %d meals, %d grocery items",
                plan.date, len(plan.meals), len(plan.grocery_list),
            )

    if not imported:
        print("No diet plans imported", file=sys.stderr)
        sys.exit(1)
    print(f"Imported {imported} plan(s)")


def run_import_members(data_dir: Path, members_file: str) -> None:
    """CLI entry point for import-members command."""
    from diet_tracker.store import DocumentStore

    store = DocumentStore(data_dir)
    members = load_members_file(Path(members_file))
    for member in members:
        store.save_family_member(member)
        logger.debug("Saved member %s (%s)", member.name, member.id)
    print(f"Imported {len(members)} family member(s)")
