import pytest
from diet_tracker.models import (
    DailyDietPlan, FamilyMember, FamilyPortion, GroceryCategory, GroceryItem,
    MealSlot, MemberRole, PortionItem, UsageEntry,
)
from diet_tracker.store import DocumentStore


@pytest.fixture
def members() -> list[FamilyMember]:
    return [
        FamilyMember(id="ravi", name="Ravi", role=MemberRole.RAVI),
        FamilyMember(id="father", name="Father", role=MemberRole.FATHER, age=62,
                     medical_conditions=["diabetes"]),
        FamilyMember(id="mother", name="Mother", role=MemberRole.MOTHER, age=58),
    ]


def make_meal(meal_id: str, title: str, time: str | None, portions: dict[str, list[PortionItem]]) -> MealSlot:
    return MealSlot(
        id=meal_id,
        title=title,
        time=time,
        family_portions=[
            FamilyPortion(member_id=mid, member_name=mid.title(), items=items)
            for mid, items in portions.items()
        ],
    )


@pytest.fixture
def plan() -> DailyDietPlan:
    breakfast = make_meal("breakfast", "Poha Breakfast", "08:00", {
        "ravi": [PortionItem("Poha", 1.0, "bowl"), PortionItem("Boiled Egg", 2, "pieces")],
        "father": [PortionItem("Poha", 0.5, "bowl")],
        "mother": [PortionItem("Poha", 1, "bowl")],
    })
    lunch = make_meal("lunch", "Dal Rice", "13:30", {
        "ravi": [PortionItem("Rice", 1, "cup"), PortionItem("Dal", 1, "bowl"),
                 PortionItem("Salad", 1, "plate")],
        "father": [PortionItem("Dal", 1, "bowl")],
    })
    dinner = make_meal("dinner", "Roti Sabzi", "19:00", {
        "ravi": [PortionItem("Roti", 3, "pieces")],
    })
    return DailyDietPlan(
        date="2025-09-21",
        title="Sunday Plan",
        meals=[dinner, breakfast, lunch],
        grocery_list=[
            GroceryItem(name="Rice", category=GroceryCategory.GRAINS, required_quantity=2,
                        available_at_home=1, unit="kg", estimated_cost=120,
                        usage_schedule=[UsageEntry("2025-09-21", 0.2, ["lunch"])]),
            GroceryItem(name="Spinach", category=GroceryCategory.VEGETABLES,
                        required_quantity=1, unit="bunch", perishable=True, estimated_cost=30),
        ],
    )


@pytest.fixture
def store(tmp_path) -> DocumentStore:
    return DocumentStore(tmp_path / "data")


@pytest.fixture
def seeded_store(store, members, plan) -> DocumentStore:
    for member in members:
        store.save_family_member(member)
    store.save_daily_plan(plan)
    return store
