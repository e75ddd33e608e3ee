"""Daily family feedback: blank forms and the day's summary."""

from __future__ import annotations

import json
import logging
import sys
from collections import Counter
from pathlib import Path

import yaml

from diet_tracker.config import load_config
from diet_tracker.models import (
    DailyFeedback,
    FamilyMember,
    FeedbackSummary,
    MealFeedback,
    MealSlot,
    MemberFeedback,
    RatedMeal,
)

logger = logging.getLogger(__name__)


def blank_feedback(members: list[FamilyMember], meals: list[MealSlot]) -> list[MemberFeedback]:
    """One unrated feedback form per member, covering every meal of the day."""
    return [
        MemberFeedback(
            member_id=member.id,
            member_name=member.name,
            meal_feedback=[MealFeedback(meal_id=m.id, meal_title=m.title) for m in meals],
        )
        for member in members
    ]


def common_cravings(family_feedback: list[MemberFeedback], limit: int = 3) -> list[str]:
    # Counter.most_common keeps first-seen order among equal counts
    counts = Counter(c for ff in family_feedback for c in ff.cravings)
    return [craving for craving, _ in counts.most_common(limit)]


def top_rated_meals(family_feedback: list[MemberFeedback], limit: int = 3) -> list[RatedMeal]:
    ratings: dict[str, list[int]] = {}
    for ff in family_feedback:
        for mf in ff.meal_feedback:
            ratings.setdefault(mf.meal_title, []).append(mf.overall_rating)

    rated = [
        RatedMeal(meal_title=title, average_rating=sum(r) / len(r))
        for title, r in ratings.items()
    ]
    rated.sort(key=lambda m: m.average_rating, reverse=True)
    return rated[:limit]


def improvement_areas(family_feedback: list[MemberFeedback], limit: int = 5) -> list[str]:
    suggestions = [ff.suggestions for ff in family_feedback if ff.suggestions.strip()]
    return suggestions[:limit]


def summarize_feedback(
    family_feedback: list[MemberFeedback],
    top_cravings: int = 3,
    top_meals: int = 3,
    max_suggestions: int = 5,
) -> FeedbackSummary:
    if family_feedback:
        average = sum(ff.overall_day_rating for ff in family_feedback) / len(family_feedback)
    else:
        average = 0.0
    return FeedbackSummary(
        average_rating=average,
        common_cravings=common_cravings(family_feedback, top_cravings),
        top_rated_meals=top_rated_meals(family_feedback, top_meals),
        improvement_areas=improvement_areas(family_feedback, max_suggestions),
    )


def format_feedback_markdown(feedback: DailyFeedback) -> str:
    s = feedback.summary
    lines = [f"# Family Feedback: {feedback.date}", ""]
    lines.append(f"**Average day rating:** {s.average_rating:.1f}/5")
    lines.append("")

    if s.top_rated_meals:
        lines.append("## Top Rated Meals")
        lines.append("")
        for m in s.top_rated_meals:
            lines.append(f"- {m.meal_title}: {m.average_rating:.1f}")
        lines.append("")

    if s.common_cravings:
        lines.append("## Common Cravings")
        lines.append("")
        lines.extend(f"- {c}" for c in s.common_cravings)
        lines.append("")

    if s.improvement_areas:
        lines.append("## Suggestions")
        lines.append("")
        lines.extend(f"- {a}" for a in s.improvement_areas)
        lines.append("")

    lines.append("## Members")
    lines.append("")
    lines.append("| Member | Day | Energy | Repeat? |")
    lines.append("|--------|-----|--------|---------|")
    for ff in feedback.family_feedback:
        repeat = "yes" if ff.would_repeat_day else "no"
        lines.append(
            f"| {ff.member_name} | {ff.overall_day_rating} | {ff.energy_level} | {repeat} |"
        )

    return "\n".join(lines)


def load_feedback_file(path: Path, members: list[FamilyMember], meals: list[MealSlot]) -> list[MemberFeedback]:
    """Read per-member feedback from YAML, filling gaps from blank forms.

    The file is a list of mappings keyed by member_id. Members not in the
    file keep an unrated form.
    """
    with open(path) as f:
        raw = yaml.safe_load(f) or []
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of member feedback entries")

    by_member = {str(r["member_id"]): r for r in raw}
    unknown = set(by_member) - {m.id for m in members}
    if unknown:
        logger.warning("Ignoring feedback for unknown members: %s", sorted(unknown))

    result = []
    for blank in blank_feedback(members, meals):
        data = by_member.get(blank.member_id)
        if data is None:
            result.append(blank)
            continue
        filled = MemberFeedback.from_dict({"member_name": blank.member_name, **data})
        rated = {mf.meal_id: mf for mf in filled.meal_feedback}
        filled.meal_feedback = [rated.get(mf.meal_id, mf) for mf in blank.meal_feedback]
        result.append(filled)
    return result


def run_feedback_import(data_dir: Path, date: str, feedback_file: Path) -> None:
    """CLI entry point for feedback import."""
    from diet_tracker.store import DocumentStore
    from diet_tracker.tracking import PlanNotFoundError, record_feedback, require_plan

    config = load_config(data_dir)["feedback"]
    store = DocumentStore(data_dir)
    try:
        plan = require_plan(store, date)
    except PlanNotFoundError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    family_feedback = load_feedback_file(feedback_file, store.get_family_members(), plan.meals)
    saved = record_feedback(
        store,
        date,
        family_feedback,
        top_cravings=config["top_cravings"],
        top_meals=config["top_meals"],
        max_suggestions=config["max_suggestions"],
    )
    print(format_feedback_markdown(saved))


def run_feedback_show(data_dir: Path, date: str, output_format: str = "markdown") -> None:
    """CLI entry point for feedback show."""
    from diet_tracker.store import DocumentStore

    feedback = DocumentStore(data_dir).get_feedback(date)
    if feedback is None:
        print(f"No feedback recorded for {date}", file=sys.stderr)
        sys.exit(1)

    if output_format == "json":
        print(json.dumps(feedback.to_dict(), indent=2))
    else:
        print(format_feedback_markdown(feedback))
