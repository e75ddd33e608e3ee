import textwrap

import pytest
from diet_tracker.models import GroceryCategory, MemberRole
from diet_tracker.planfile import (
    discover_plan_files, format_time_display, load_members_file, normalize_meal_time,
    parse_plan_file, run_import_members, run_import_plan,
)
from diet_tracker.store import DocumentStore

PLAN_NOTE = """\
---
type: diet-plan
date: 2025-09-21
title: Sunday Plan
meals:
  - id: breakfast
    title: Poha Breakfast
    time: "08:00"
    family_portions:
      - member_id: ravi
        member_name: Ravi
        items:
          - {name: Poha, quantity: 1, unit: bowl}
  - title: Dal Rice
    time: 13:30
grocery_list:
  - name: Rice
    category: grains
    required_quantity: 2
    unit: kg
    usage_schedule:
      - {date: 2025-09-21, quantity: 0.5, meals: [lunch]}
  - name: Mystery
    category: gadgets
---

Notes from the dietitian.
"""


@pytest.fixture
def plan_file(tmp_path):
    path = tmp_path / "2025-09-21.md"
    path.write_text(PLAN_NOTE)
    return path


class TestMealTimes:
    def test_sexagesimal_int(self):
        # YAML 1.1 reads 13:30 as 810
        assert normalize_meal_time(810) == "13:30"

    def test_string(self):
        assert normalize_meal_time("8:05") == "08:05"
        assert normalize_meal_time(None) is None
        assert normalize_meal_time("noonish") is None

    def test_display(self):
        assert format_time_display("06:30") == "6:30 AM"
        assert format_time_display("13:05") == "1:05 PM"
        assert format_time_display("00:15") == "12:15 AM"
        assert format_time_display("12:00") == "12:00 PM"


class TestParsePlanFile:
    def test_parses_frontmatter(self, plan_file):
        plan = parse_plan_file(plan_file)
        assert plan.date == "2025-09-21"
        assert plan.title == "Sunday Plan"
        assert [m.id for m in plan.meals] == ["breakfast", "dal-rice"]
        assert plan.meals[1].time == "13:30"
        assert plan.meals[1].time_display == "1:30 PM"
        assert plan.meals[0].family_portions[0].items[0].display_quantity() == "1 bowl"

    def test_bad_grocery_item_skipped(self, plan_file):
        plan = parse_plan_file(plan_file)
        assert [g.name for g in plan.grocery_list] == ["Rice"]
        assert plan.grocery_list[0].category == GroceryCategory.GRAINS
        assert plan.grocery_list[0].usage_schedule[0].date == "2025-09-21"

    def test_other_notes_ignored(self, tmp_path):
        path = tmp_path / "recipe.md"
        path.write_text("---\ntype: recipe\n---\nNot a plan\n")
        assert parse_plan_file(path) is None

    def test_duplicate_meal_ids(self, tmp_path):
        path = tmp_path / "dup.md"
        path.write_text(textwrap.dedent("""\
            ---
            type: diet-plan
            date: 2025-09-21
            meals:
              - {id: lunch, title: A}
              - {id: lunch, title: B}
            ---
        """))
        with pytest.raises(ValueError, match="duplicate meal ids"):
            parse_plan_file(path)

    def test_import_into_store(self, tmp_path, plan_file, capsys):
        data_dir = tmp_path / "data"
        run_import_plan(data_dir, [str(plan_file)])
        assert "Imported 1 plan(s)" in capsys.readouterr().out
        stored = DocumentStore(data_dir).get_daily_plan("2025-09-21")
        assert stored.grocery_list[0].usage_schedule[0].meals == ["lunch"]


class TestMembersFile:
    def test_defaults_filled(self, tmp_path):
        path = tmp_path / "members.yaml"
        path.write_text(textwrap.dedent("""\
            - name: Ravi
              role: ravi
              age: 32
            - id: dad
              name: Father
              role: father
              medical_conditions: [diabetes]
            - name: Nobody
        """))
        members = load_members_file(path)
        assert [m.id for m in members] == ["ravi", "dad"]
        assert members[0].age == 32
        assert members[1].role == MemberRole.FATHER
        assert members[1].age == 25
        assert members[1].oil_limit == 4
        assert members[1].water_intake_target == 3.0

    def test_unknown_role(self, tmp_path):
        path = tmp_path / "members.yaml"
        path.write_text("- {name: Cousin, role: cousin}\n")
        with pytest.raises(ValueError, match="Unknown role"):
            load_members_file(path)

    def test_import_into_store(self, tmp_path):
        path = tmp_path / "members.yaml"
        path.write_text("- {name: Mother, role: mother}\n")
        run_import_members(tmp_path / "data", str(path))
        assert [m.id for m in DocumentStore(tmp_path / "data").get_family_members()] == ["mother"]


class TestDiscover:
    def test_directories_expanded(self, tmp_path, plan_file):
        (tmp_path / "b.md").write_text("---\ntype: recipe\n---\n")
        (tmp_path / "notes.txt").write_text("ignored")
        extra = tmp_path / "elsewhere.md"
        files = discover_plan_files([str(tmp_path), str(extra)])
        assert [f.name for f in files] == ["2025-09-21.md", "b.md", "elsewhere.md"]
