import pytest
from diet_tracker.grocery import toggle_item_checked, update_item_quantity
from diet_tracker.models import (
    DailyDietPlan, GroceryCategory, GroceryItem, MealFeedback, MemberFeedback,
    PlanStatus,
)
from diet_tracker.progress import toggle_tracked_item
from diet_tracker.store import StoreError
from diet_tracker.tracking import (
    MealNotFoundError, MemberNotFoundError, PlanNotFoundError,
    archive_grocery_plan, current_grocery_plan, edit_grocery_plan,
    generate_grocery_plan, load_daily_view, load_meal_consumption, quick_mark,
    record_feedback, save_member_consumption,
)

DATE = "2025-09-21"


class TestDailyView:
    def test_loads_progress(self, seeded_store):
        quick_mark(seeded_store, DATE, "breakfast", "ravi")
        plan, progress = load_daily_view(seeded_store, DATE)
        assert plan.title == "Sunday Plan"
        breakfast = next(mp for mp in progress if mp.meal.id == "breakfast")
        assert breakfast.completion_percentage == 33

    def test_missing_plan(self, seeded_store):
        with pytest.raises(PlanNotFoundError, match="2025-01-01"):
            load_daily_view(seeded_store, "2025-01-01")

    def test_missing_meal(self, seeded_store):
        with pytest.raises(MealNotFoundError):
            load_meal_consumption(seeded_store, DATE, "brunch")


class TestSaveConsumption:
    def test_create_then_update(self, seeded_store):
        _, family = load_meal_consumption(seeded_store, DATE, "lunch")
        ravi = toggle_tracked_item(family[2], "Rice")
        assert ravi.member.id == "ravi"
        created = save_member_consumption(seeded_store, DATE, "lunch", ravi)
        assert created.completion_percentage == 33

        _, family = load_meal_consumption(seeded_store, DATE, "lunch")
        ravi = family[2]
        assert ravi.entry.id == created.id
        assert ravi.item_tracking[0].consumed_item.consumed is True
        ravi = toggle_tracked_item(ravi, "Dal")
        updated = save_member_consumption(seeded_store, DATE, "lunch", ravi)
        assert updated.id == created.id
        assert updated.completion_percentage == 67
        assert len(seeded_store.get_consumption_entries(DATE)) == 1

    def test_stale_create_conflicts(self, seeded_store):
        _, family = load_meal_consumption(seeded_store, DATE, "lunch")
        save_member_consumption(seeded_store, DATE, "lunch", family[0])
        with pytest.raises(StoreError) as exc:
            save_member_consumption(seeded_store, DATE, "lunch", family[0])
        assert exc.value.code == "CONFLICT"


class TestQuickMark:
    def test_creates_full_entry(self, seeded_store):
        entry = quick_mark(seeded_store, DATE, "dinner", "ravi")
        assert entry.completion_percentage == 100
        assert entry.consumed_items == []

    def test_existing_entry_raised_to_full(self, seeded_store):
        _, family = load_meal_consumption(seeded_store, DATE, "lunch")
        partial = save_member_consumption(seeded_store, DATE, "lunch", family[2])
        assert partial.completion_percentage == 0
        marked = quick_mark(seeded_store, DATE, "lunch", "ravi")
        assert marked.id == partial.id
        entries = seeded_store.get_consumption_entries(DATE)
        assert len(entries) == 1
        assert entries[0].completion_percentage == 100
        assert all(ci.consumed for ci in entries[0].consumed_items)

    def test_partial_entry_items_marked_consumed(self, seeded_store):
        _, family = load_meal_consumption(seeded_store, DATE, "lunch")
        partial = save_member_consumption(
            seeded_store, DATE, "lunch", toggle_tracked_item(family[2], "Rice")
        )
        assert partial.completion_percentage == 33
        quick_mark(seeded_store, DATE, "lunch", "ravi")

        _, family = load_meal_consumption(seeded_store, DATE, "lunch")
        ravi = family[2]
        assert ravi.entry.completion_percentage == 100
        assert ravi.overall_completion == 100
        dal = ravi.item_tracking[1].consumed_item
        assert dal.actual_quantity == "1 bowl"

    def test_missing_meal(self, seeded_store):
        with pytest.raises(MealNotFoundError):
            quick_mark(seeded_store, DATE, "brnuch", "ravi")
        assert seeded_store.get_consumption_entries(DATE) == []

    def test_missing_plan(self, seeded_store):
        with pytest.raises(PlanNotFoundError):
            quick_mark(seeded_store, "1999-01-01", "lunch", "ravi")
        assert seeded_store.get_consumption_entries("1999-01-01") == []

    def test_unknown_member(self, seeded_store):
        with pytest.raises(MemberNotFoundError, match="nobody"):
            quick_mark(seeded_store, DATE, "lunch", "nobody")
        assert seeded_store.get_consumption_entries(DATE) == []


@pytest.fixture
def grocery_store(store):
    store.save_daily_plan(DailyDietPlan(date="2025-09-21", grocery_list=[
        GroceryItem("Okra", GroceryCategory.VEGETABLES, required_quantity=0.5, estimated_cost=40),
    ]))
    store.save_daily_plan(DailyDietPlan(date="2025-09-23", grocery_list=[
        GroceryItem("okra", GroceryCategory.VEGETABLES, required_quantity=0.5, estimated_cost=40),
        GroceryItem("Curd", GroceryCategory.DAIRY, required_quantity=1, perishable=True),
    ]))
    return store


class TestGroceryPlans:
    def test_generate(self, grocery_store):
        plan = generate_grocery_plan(grocery_store, "2025-09-21", "2025-09-28")
        assert plan.id
        assert {i.id for i in plan.grocery_items} == {"okra_vegetables", "curd_dairy"}
        okra = next(i for i in plan.grocery_items if i.id == "okra_vegetables")
        assert okra.required_quantity == 1.0
        assert current_grocery_plan(grocery_store).id == plan.id

    def test_generate_without_plans(self, store):
        with pytest.raises(PlanNotFoundError):
            generate_grocery_plan(store, "2025-09-21", "2025-09-28")

    def test_no_active_plan(self, store):
        with pytest.raises(StoreError) as exc:
            current_grocery_plan(store)
        assert exc.value.code == "NOT_FOUND"

    def test_edits_persist(self, grocery_store):
        plan = generate_grocery_plan(grocery_store, "2025-09-21", "2025-09-28")
        edit_grocery_plan(grocery_store, lambda items: toggle_item_checked(items, "curd_dairy"))
        edit_grocery_plan(
            grocery_store, lambda items: update_item_quantity(items, "okra_vegetables", 2), plan.id
        )
        stored = grocery_store.get_grocery_plan(plan.id)
        items = {i.id: i for i in stored.grocery_items}
        assert items["curd_dairy"].checked
        assert items["okra_vegetables"].required_quantity == 2

    def test_archive(self, grocery_store):
        plan = generate_grocery_plan(grocery_store, "2025-09-21", "2025-09-28")
        archive_grocery_plan(grocery_store)
        assert grocery_store.get_grocery_plan(plan.id).status == PlanStatus.ARCHIVED
        with pytest.raises(StoreError):
            current_grocery_plan(grocery_store)


class TestRecordFeedback:
    def test_summary_saved(self, store):
        feedback = [
            MemberFeedback("ravi", "Ravi", overall_day_rating=4, cravings=["chai"],
                           meal_feedback=[MealFeedback("lunch", "Dal Rice", overall_rating=5)]),
            MemberFeedback("father", "Father", overall_day_rating=3, cravings=["chai", "sweets"]),
        ]
        saved = record_feedback(store, DATE, feedback)
        assert saved.summary.average_rating == 3.5
        assert store.get_feedback(DATE).summary.common_cravings == ["chai", "sweets"]
