"""Shared data models for the diet tracker."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum


class MemberRole(Enum):
    RAVI = "ravi"
    FATHER = "father"
    MOTHER = "mother"
    BROTHER = "brother"
    WIFE_BF = "wife_bf"
    PREGNANT_SIL = "pregnant_sil"


class GroceryCategory(Enum):
    GRAINS = "grains"
    VEGETABLES = "vegetables"
    PROTEINS = "proteins"
    DAIRY = "dairy"
    SPICES = "spices"
    FRUITS = "fruits"
    NUTS = "nuts"
    CONDIMENTS = "condiments"


class Priority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class GroceryStatus(Enum):
    SUFFICIENT = "sufficient"
    OUT_OF_STOCK = "out_of_stock"
    IN_CART = "in_cart"
    PURCHASED = "purchased"


class GrocerySource(Enum):
    MEAL_PLAN = "meal_plan"
    MANUAL = "manual"


class PlanStatus(Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


def _enum_dict_factory(items: list[tuple[str, object]]) -> dict:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in items}


def to_document(obj: object) -> dict:
    """Convert a model dataclass into a JSON-ready dict."""
    return asdict(obj, dict_factory=_enum_dict_factory)


@dataclass
class MemberPreferences:
    favorite_fruits: list[str] = field(default_factory=list)
    disliked_foods: list[str] = field(default_factory=list)
    allergies: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict | None) -> MemberPreferences:
        data = data or {}
        return cls(
            favorite_fruits=list(data.get("favorite_fruits") or []),
            disliked_foods=list(data.get("disliked_foods") or []),
            allergies=list(data.get("allergies") or []),
        )


@dataclass
class FamilyMember:
    id: str
    name: str
    role: MemberRole
    age: int = 25
    medical_conditions: list[str] = field(default_factory=list)
    dietary_restrictions: list[str] = field(default_factory=list)
    portion_multiplier: float = 1.0
    water_intake_target: float = 3.0  # liters
    oil_limit: float = 4  # teaspoons
    preferences: MemberPreferences = field(default_factory=MemberPreferences)

    @classmethod
    def from_dict(cls, data: dict) -> FamilyMember:
        return cls(
            id=str(data["id"]),
            name=data["name"],
            role=MemberRole(data["role"]),
            age=data.get("age") or 25,
            medical_conditions=list(data.get("medical_conditions") or []),
            dietary_restrictions=list(data.get("dietary_restrictions") or []),
            portion_multiplier=data.get("portion_multiplier") or 1.0,
            water_intake_target=data.get("water_intake_target") or 3.0,
            oil_limit=data.get("oil_limit") or 4,
            preferences=MemberPreferences.from_dict(data.get("preferences")),
        )

    def to_dict(self) -> dict:
        return to_document(self)


@dataclass
class PortionItem:
    name: str
    quantity: float | str
    unit: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> PortionItem:
        return cls(
            name=data["name"],
            quantity=data.get("quantity", ""),
            unit=data.get("unit") or "",
        )

    def display_quantity(self) -> str:
        """Planned quantity as shown to the family, e.g. '2 pieces'."""
        qty = self.quantity
        if isinstance(qty, float) and qty.is_integer():
            qty = int(qty)
        return f"{qty} {self.unit}"


@dataclass
class FamilyPortion:
    member_id: str
    member_name: str
    items: list[PortionItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> FamilyPortion:
        return cls(
            member_id=str(data["member_id"]),
            member_name=data.get("member_name") or "",
            items=[PortionItem.from_dict(i) for i in data.get("items") or []],
        )


@dataclass
class MealSlot:
    id: str
    title: str
    time: str | None = None  # "HH:MM"
    time_display: str | None = None
    family_portions: list[FamilyPortion] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> MealSlot:
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            time=data.get("time") or None,
            time_display=data.get("time_display") or None,
            family_portions=[
                FamilyPortion.from_dict(p) for p in data.get("family_portions") or []
            ],
        )

    def portion_for(self, member_id: str) -> FamilyPortion | None:
        for portion in self.family_portions:
            if portion.member_id == member_id:
                return portion
        return None


@dataclass
class UsageEntry:
    date: str
    quantity: float = 0.0
    meals: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> UsageEntry:
        return cls(
            date=str(data["date"]),
            quantity=data.get("quantity") or 0.0,
            meals=list(data.get("meals") or []),
        )


@dataclass
class GroceryItem:
    name: str
    category: GroceryCategory
    required_quantity: float = 0.0
    available_at_home: float = 0.0
    need_to_purchase: float = 0.0
    unit: str = ""
    perishable: bool = False
    priority: Priority = Priority.MEDIUM
    status: GroceryStatus = GroceryStatus.OUT_OF_STOCK
    usage_schedule: list[UsageEntry] = field(default_factory=list)
    estimated_cost: float | None = None
    source: GrocerySource = GrocerySource.MEAL_PLAN
    id: str | None = None

    @property
    def checked(self) -> bool:
        return self.status == GroceryStatus.PURCHASED

    @classmethod
    def from_dict(cls, data: dict) -> GroceryItem:
        return cls(
            id=data.get("id"),
            name=data["name"],
            category=GroceryCategory(data["category"]),
            required_quantity=data.get("required_quantity") or 0.0,
            available_at_home=data.get("available_at_home") or 0.0,
            need_to_purchase=data.get("need_to_purchase") or 0.0,
            unit=data.get("unit") or "",
            perishable=bool(data.get("perishable", False)),
            priority=Priority(data.get("priority") or "medium"),
            status=GroceryStatus(data.get("status") or "out_of_stock"),
            usage_schedule=[
                UsageEntry.from_dict(u) for u in data.get("usage_schedule") or []
            ],
            estimated_cost=data.get("estimated_cost"),
            source=GrocerySource(data.get("source") or "meal_plan"),
        )

    def to_dict(self) -> dict:
        return to_document(self)


@dataclass
class DailyDietPlan:
    date: str  # "YYYY-MM-DD", unique
    title: str | None = None
    meals: list[MealSlot] = field(default_factory=list)
    grocery_list: list[GroceryItem] = field(default_factory=list)
    id: str | None = None

    def find_meal(self, meal_id: str) -> MealSlot | None:
        for meal in self.meals:
            if meal.id == meal_id:
                return meal
        return None

    @classmethod
    def from_dict(cls, data: dict) -> DailyDietPlan:
        extracted = data.get("extracted_data") or {}
        return cls(
            id=data.get("id"),
            date=str(data["date"]),
            title=data.get("title"),
            meals=[MealSlot.from_dict(m) for m in extracted.get("meals") or []],
            grocery_list=[
                GroceryItem.from_dict(g) for g in extracted.get("grocery_list") or []
            ],
        )

    def to_dict(self) -> dict:
        doc = to_document(self)
        return {
            "id": doc["id"],
            "date": doc["date"],
            "title": doc["title"],
            "extracted_data": {
                "meals": doc["meals"],
                "grocery_list": doc["grocery_list"],
            },
        }


@dataclass
class ConsumedItem:
    name: str
    planned_quantity: str
    actual_quantity: str = ""
    consumed: bool = False
    notes: str | None = None
    waste_reason: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ConsumedItem:
        return cls(
            name=data["name"],
            planned_quantity=data.get("planned_quantity") or "",
            actual_quantity=data.get("actual_quantity") or "",
            consumed=bool(data.get("consumed", False)),
            notes=data.get("notes"),
            waste_reason=data.get("waste_reason"),
        )


@dataclass
class ConsumptionEntry:
    date: str
    meal_slot_id: str
    family_member_id: str
    planned_items: list[PortionItem] = field(default_factory=list)
    consumed_items: list[ConsumedItem] = field(default_factory=list)
    completion_percentage: int = 0
    consumed_at: str | None = None  # ISO timestamp
    id: str | None = None

    @property
    def key(self) -> tuple[str, str, str]:
        """Logical upsert key: at most one entry per (date, meal, member)."""
        return (self.date, self.meal_slot_id, self.family_member_id)

    @classmethod
    def from_dict(cls, data: dict) -> ConsumptionEntry:
        return cls(
            id=data.get("id"),
            date=data["date"],
            meal_slot_id=str(data["meal_slot_id"]),
            family_member_id=str(data["family_member_id"]),
            planned_items=[PortionItem.from_dict(i) for i in data.get("planned_items") or []],
            consumed_items=[
                ConsumedItem.from_dict(i) for i in data.get("consumed_items") or []
            ],
            completion_percentage=data.get("completion_percentage") or 0,
            consumed_at=data.get("consumed_at"),
        )

    def to_dict(self) -> dict:
        return to_document(self)


@dataclass
class GroceryPlan:
    title: str
    start_date: str
    end_date: str
    grocery_items: list[GroceryItem] = field(default_factory=list)
    total_estimated_cost: float = 0.0
    status: PlanStatus = PlanStatus.ACTIVE
    generated_at: str | None = None
    id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> GroceryPlan:
        return cls(
            id=data.get("id"),
            title=data.get("title") or "",
            start_date=data["start_date"],
            end_date=data["end_date"],
            grocery_items=[GroceryItem.from_dict(g) for g in data.get("grocery_items") or []],
            total_estimated_cost=data.get("total_estimated_cost") or 0.0,
            status=PlanStatus(data.get("status") or "active"),
            generated_at=data.get("generated_at"),
        )

    def to_dict(self) -> dict:
        return to_document(self)


@dataclass
class MealFeedback:
    meal_id: str
    meal_title: str
    overall_rating: int = 0  # 1-5, 0 = unrated
    taste_rating: int = 0
    satisfaction_rating: int = 0
    portion_rating: int = 0
    notes: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> MealFeedback:
        return cls(
            meal_id=str(data["meal_id"]),
            meal_title=data.get("meal_title") or "",
            overall_rating=data.get("overall_rating") or 0,
            taste_rating=data.get("taste_rating") or 0,
            satisfaction_rating=data.get("satisfaction_rating") or 0,
            portion_rating=data.get("portion_rating") or 0,
            notes=data.get("notes") or "",
        )


@dataclass
class MemberFeedback:
    member_id: str
    member_name: str
    overall_day_rating: int = 0
    energy_level: int = 0
    cravings: list[str] = field(default_factory=list)
    suggestions: str = ""
    would_repeat_day: bool = False
    meal_feedback: list[MealFeedback] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> MemberFeedback:
        return cls(
            member_id=str(data["member_id"]),
            member_name=data.get("member_name") or "",
            overall_day_rating=data.get("overall_day_rating") or 0,
            energy_level=data.get("energy_level") or 0,
            cravings=list(data.get("cravings") or []),
            suggestions=data.get("suggestions") or "",
            would_repeat_day=bool(data.get("would_repeat_day", False)),
            meal_feedback=[MealFeedback.from_dict(m) for m in data.get("meal_feedback") or []],
        )


@dataclass
class RatedMeal:
    meal_title: str
    average_rating: float


@dataclass
class FeedbackSummary:
    average_rating: float = 0.0
    common_cravings: list[str] = field(default_factory=list)
    top_rated_meals: list[RatedMeal] = field(default_factory=list)
    improvement_areas: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict | None) -> FeedbackSummary:
        data = data or {}
        return cls(
            average_rating=data.get("average_rating") or 0.0,
            common_cravings=list(data.get("common_cravings") or []),
            top_rated_meals=[
                RatedMeal(meal_title=m["meal_title"], average_rating=m["average_rating"])
                for m in data.get("top_rated_meals") or []
            ],
            improvement_areas=list(data.get("improvement_areas") or []),
        )


@dataclass
class DailyFeedback:
    date: str  # unique
    family_feedback: list[MemberFeedback] = field(default_factory=list)
    summary: FeedbackSummary = field(default_factory=FeedbackSummary)
    created_at: str | None = None
    updated_at: str | None = None
    id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> DailyFeedback:
        return cls(
            id=data.get("id"),
            date=str(data["date"]),
            family_feedback=[
                MemberFeedback.from_dict(f) for f in data.get("family_feedback") or []
            ],
            summary=FeedbackSummary.from_dict(data.get("summary")),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    def to_dict(self) -> dict:
        return to_document(self)
