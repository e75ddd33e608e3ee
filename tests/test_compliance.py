import pytest
from diet_tracker.compliance import (
    calculate_compliance_percentage, count_consumed, member_daily_compliance,
    toggle_item_consumption,
)
from diet_tracker.models import ConsumedItem, ConsumptionEntry


class TestCompliancePercentage:
    def test_zero_total_is_zero(self):
        assert calculate_compliance_percentage(0, 0) == 0

    @pytest.mark.parametrize("completed,total,expected", [
        (3, 4, 75),
        (1, 3, 33),
        (2, 3, 67),
        (0, 5, 0),
        (5, 5, 100),
    ])
    def test_rounded_percentage(self, completed, total, expected):
        assert calculate_compliance_percentage(completed, total) == expected

    def test_half_rounds_up(self):
        # 1/8 = 12.5%
        assert calculate_compliance_percentage(1, 8) == 13

    def test_over_complete_not_clamped(self):
        assert calculate_compliance_percentage(3, 2) == 150


class TestToggleItem:
    def test_marking_copies_planned_quantity(self):
        item = ConsumedItem(name="Poha", planned_quantity="1 bowl")
        toggled = toggle_item_consumption(item)
        assert toggled.consumed is True
        assert toggled.actual_quantity == "1 bowl"
        assert item.consumed is False

    def test_marking_keeps_existing_actual(self):
        item = ConsumedItem(name="Poha", planned_quantity="1 bowl", actual_quantity="half bowl")
        assert toggle_item_consumption(item).actual_quantity == "half bowl"

    def test_unmarking_keeps_actual(self):
        item = ConsumedItem(name="Poha", planned_quantity="1 bowl",
                            actual_quantity="1 bowl", consumed=True)
        toggled = toggle_item_consumption(item)
        assert toggled.consumed is False
        assert toggled.actual_quantity == "1 bowl"

    def test_toggle_pair_is_stable(self):
        item = ConsumedItem(name="Poha", planned_quantity="1 bowl")
        first = toggle_item_consumption(item)
        again = toggle_item_consumption(toggle_item_consumption(first))
        assert again.consumed is True
        assert again.actual_quantity == first.actual_quantity

    def test_count_consumed(self):
        items = [
            ConsumedItem(name="a", planned_quantity="1", consumed=True),
            ConsumedItem(name="b", planned_quantity="1"),
            ConsumedItem(name="c", planned_quantity="1", consumed=True),
        ]
        assert count_consumed(items) == 2


class TestMemberDailyCompliance:
    def test_average_of_member_entries(self):
        entries = [
            ConsumptionEntry("2025-09-21", "breakfast", "ravi", completion_percentage=100),
            ConsumptionEntry("2025-09-21", "lunch", "ravi", completion_percentage=50),
            ConsumptionEntry("2025-09-21", "lunch", "father", completion_percentage=10),
            ConsumptionEntry("2025-09-20", "lunch", "ravi", completion_percentage=0),
        ]
        assert member_daily_compliance(entries, "ravi", "2025-09-21") == 75.0

    def test_no_entries(self):
        assert member_daily_compliance([], "ravi", "2025-09-21") == 0.0
