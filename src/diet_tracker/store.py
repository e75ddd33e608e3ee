"""JSON file document store: one file per collection under the data directory."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path

from diet_tracker.models import (
    ConsumptionEntry,
    DailyDietPlan,
    DailyFeedback,
    FamilyMember,
    GroceryPlan,
    PlanStatus,
)

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "family_members": "family-members.json",
    "daily_diet_plans": "daily-diet-plans.json",
    "consumption_entries": "consumption-entries.json",
    "daily_feedback": "daily-feedback.json",
    "grocery_plans": "grocery-plans.json",
}


class StoreError(Exception):
    """A recoverable store failure. `code` is one of FETCH_FAILED,
    WRITE_FAILED, NOT_FOUND or CONFLICT."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


def new_id() -> str:
    return uuid.uuid4().hex[:20]


class DocumentStore:
    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def _path(self, collection: str) -> Path:
        return self.data_dir / COLLECTIONS[collection]

    def _load(self, collection: str) -> list[dict]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            with open(path) as f:
                docs = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError("FETCH_FAILED", f"Failed to read {path.name}: {e}") from e
        if not isinstance(docs, list):
            raise StoreError("FETCH_FAILED", f"{path.name} is not a list of documents")
        return docs

    def _save(self, collection: str, docs: list[dict]) -> None:
        path = self._path(collection)
        tmp = path.with_suffix(".tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w") as f:
                json.dump(docs, f, indent=2)
            tmp.replace(path)
        except OSError as e:
            raise StoreError("WRITE_FAILED", f"Failed to write {path.name}: {e}") from e
        logger.debug("Wrote %d documents to %s", len(docs), path)

    # Family members

    def get_family_members(self) -> list[FamilyMember]:
        members = [FamilyMember.from_dict(d) for d in self._load("family_members")]
        return sorted(members, key=lambda m: m.name)

    def save_family_member(self, member: FamilyMember) -> FamilyMember:
        """Insert or replace a member by id."""
        docs = self._load("family_members")
        if member.id is None:
            member.id = new_id()
        docs = [d for d in docs if d.get("id") != member.id]
        docs.append(member.to_dict())
        self._save("family_members", docs)
        return member

    # Daily diet plans

    def get_daily_plan(self, date: str) -> DailyDietPlan | None:
        for doc in self._load("daily_diet_plans"):
            if doc.get("date") == date:
                return DailyDietPlan.from_dict(doc)
        return None

    def get_daily_plans_in_range(self, start_date: str, end_date: str) -> list[DailyDietPlan]:
        """Plans with start_date <= date <= end_date, newest first."""
        plans = [
            DailyDietPlan.from_dict(d)
            for d in self._load("daily_diet_plans")
            if start_date <= str(d.get("date", "")) <= end_date
        ]
        return sorted(plans, key=lambda p: p.date, reverse=True)

    def save_daily_plan(self, plan: DailyDietPlan) -> DailyDietPlan:
        """Insert or replace the plan for plan.date."""
        docs = self._load("daily_diet_plans")
        existing = next((d for d in docs if d.get("date") == plan.date), None)
        if existing is not None:
            plan.id = existing.get("id")
            docs.remove(existing)
        elif plan.id is None:
            plan.id = new_id()
        docs.append(plan.to_dict())
        self._save("daily_diet_plans", docs)
        return plan

    # Consumption entries

    def get_consumption_entries(self, date: str) -> list[ConsumptionEntry]:
        """Entries for a day, most recently consumed first."""
        entries = [
            ConsumptionEntry.from_dict(d)
            for d in self._load("consumption_entries")
            if d.get("date") == date
        ]
        return sorted(entries, key=lambda e: e.consumed_at or "", reverse=True)

    def create_consumption_entry(self, entry: ConsumptionEntry) -> ConsumptionEntry:
        """Create an entry. Fails with CONFLICT if the (date, meal, member) key exists."""
        docs = self._load("consumption_entries")
        for doc in docs:
            if (doc.get("date"), doc.get("meal_slot_id"), doc.get("family_member_id")) == entry.key:
                raise StoreError(
                    "CONFLICT",
                    f"Consumption entry already exists for {entry.family_member_id} "
                    f"on {entry.date} meal {entry.meal_slot_id}",
                )
        entry.id = new_id()
        if entry.consumed_at is None:
            entry.consumed_at = datetime.now().isoformat(timespec="seconds")
        docs.append(entry.to_dict())
        self._save("consumption_entries", docs)
        return entry

    def update_consumption_entry(self, entry_id: str, entry: ConsumptionEntry) -> ConsumptionEntry:
        docs = self._load("consumption_entries")
        for i, doc in enumerate(docs):
            if doc.get("id") == entry_id:
                entry.id = entry_id
                if entry.consumed_at is None:
                    entry.consumed_at = datetime.now().isoformat(timespec="seconds")
                docs[i] = entry.to_dict()
                self._save("consumption_entries", docs)
                return entry
        raise StoreError("NOT_FOUND", f"Consumption entry not found: {entry_id}")

    # Grocery plans

    def create_grocery_plan(self, plan: GroceryPlan) -> GroceryPlan:
        docs = self._load("grocery_plans")
        plan.id = new_id()
        if plan.generated_at is None:
            plan.generated_at = datetime.now().isoformat()
        docs.append(plan.to_dict())
        self._save("grocery_plans", docs)
        return plan

    def get_grocery_plan(self, plan_id: str) -> GroceryPlan | None:
        for doc in self._load("grocery_plans"):
            if doc.get("id") == plan_id:
                return GroceryPlan.from_dict(doc)
        return None

    def get_active_grocery_plans(self) -> list[GroceryPlan]:
        """Active plans, most recently generated first."""
        plans = [
            GroceryPlan.from_dict(d)
            for d in self._load("grocery_plans")
            if d.get("status") == PlanStatus.ACTIVE.value
        ]
        return sorted(plans, key=lambda p: p.generated_at or "", reverse=True)

    def update_grocery_plan(self, plan: GroceryPlan) -> GroceryPlan:
        docs = self._load("grocery_plans")
        for i, doc in enumerate(docs):
            if doc.get("id") == plan.id:
                docs[i] = plan.to_dict()
                self._save("grocery_plans", docs)
                return plan
        raise StoreError("NOT_FOUND", f"Grocery plan not found: {plan.id}")

    # Daily feedback

    def get_feedback(self, date: str) -> DailyFeedback | None:
        for doc in self._load("daily_feedback"):
            if doc.get("date") == date:
                return DailyFeedback.from_dict(doc)
        return None

    def save_feedback(self, feedback: DailyFeedback) -> DailyFeedback:
        """Insert or replace the feedback for feedback.date."""
        docs = self._load("daily_feedback")
        existing = next((d for d in docs if d.get("date") == feedback.date), None)
        now = datetime.now().isoformat(timespec="seconds")
        if existing is not None:
            docs.remove(existing)
            feedback.id = existing.get("id")
            feedback.created_at = existing.get("created_at")
        else:
            feedback.id = new_id()
            feedback.created_at = now
        feedback.updated_at = now
        docs.append(feedback.to_dict())
        self._save("daily_feedback", docs)
        return feedback
