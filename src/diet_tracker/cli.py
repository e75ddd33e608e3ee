"""CLI entry point for the diet tracker."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from diet_tracker.config import DEFAULT_DATA_DIR


def get_data_dir(args: argparse.Namespace) -> Path:
    return Path(args.data_dir).expanduser() if args.data_dir else DEFAULT_DATA_DIR


def cmd_import_plan(args: argparse.Namespace) -> None:
    from diet_tracker.planfile import run_import_plan

    run_import_plan(data_dir=get_data_dir(args), plan_files=args.files)


def cmd_import_members(args: argparse.Namespace) -> None:
    from diet_tracker.planfile import run_import_members

    run_import_members(data_dir=get_data_dir(args), members_file=args.file)


def cmd_daily_view(args: argparse.Namespace) -> None:
    from diet_tracker.progress import run_daily_view

    run_daily_view(
        data_dir=get_data_dir(args),
        date=args.date,
        member_id=args.member,
        output_format=args.format,
        threshold=args.threshold,
    )


def cmd_track(args: argparse.Namespace) -> None:
    from diet_tracker.progress import run_track

    run_track(
        data_dir=get_data_dir(args),
        date=args.date,
        meal_id=args.meal_id,
        member_id=args.member,
        consumed=args.consumed,
        skipped=args.skip,
        actual=args.actual,
        waste=args.waste,
    )


def cmd_quick_mark(args: argparse.Namespace) -> None:
    from diet_tracker.progress import run_quick_mark

    run_quick_mark(
        data_dir=get_data_dir(args),
        date=args.date,
        meal_id=args.meal_id,
        member_id=args.member_id,
    )


def cmd_grocery_generate(args: argparse.Namespace) -> None:
    from diet_tracker.grocery import run_grocery_generate

    run_grocery_generate(
        data_dir=get_data_dir(args),
        start_date=args.start,
        end_date=args.end,
        days=args.days,
        output_format=args.format,
    )


def cmd_grocery_show(args: argparse.Namespace) -> None:
    from diet_tracker.grocery import run_grocery_show

    run_grocery_show(
        data_dir=get_data_dir(args),
        plan_id=args.plan_id,
        category=args.category,
        sort_by=args.sort,
        show_completed=args.show_completed,
        output_format=args.format,
    )


def cmd_grocery_edit(args: argparse.Namespace) -> None:
    from diet_tracker.grocery import run_grocery_edit

    run_grocery_edit(
        data_dir=get_data_dir(args),
        action=args.action,
        plan_id=args.plan_id,
        item_id=getattr(args, "item_id", None),
        quantity=getattr(args, "quantity", None),
        priority=getattr(args, "priority", None),
    )


def cmd_feedback_import(args: argparse.Namespace) -> None:
    from diet_tracker.feedback import run_feedback_import

    run_feedback_import(
        data_dir=get_data_dir(args),
        date=args.date,
        feedback_file=Path(args.file),
    )


def cmd_feedback_show(args: argparse.Namespace) -> None:
    from diet_tracker.feedback import run_feedback_show

    run_feedback_show(
        data_dir=get_data_dir(args),
        date=args.date,
        output_format=args.format,
    )


def _add_grocery_parsers(sub: argparse._SubParsersAction) -> None:
    from diet_tracker.grocery import CATEGORY_CHOICES, SORT_KEYS
    from diet_tracker.models import Priority

    p_grocery = sub.add_parser("grocery", help="Consolidated grocery plans")
    gsub = p_grocery.add_subparsers(dest="grocery_command", required=True)

    p_gen = gsub.add_parser("generate", help="Consolidate daily plans into a grocery plan")
    p_gen.add_argument("--start", type=str, help="YYYY-MM-DD (default: today)")
    p_gen.add_argument("--end", type=str, help="YYYY-MM-DD (default: start + range days)")
    p_gen.add_argument("--days", type=int, help="Range length when --end is not given")
    p_gen.add_argument(
        "--format", type=str, choices=["json", "markdown", "list"], default="markdown"
    )
    p_gen.set_defaults(func=cmd_grocery_generate)

    p_show = gsub.add_parser("show", help="Show the grocery checklist")
    p_show.add_argument("--plan-id", type=str, default=None)
    p_show.add_argument("--category", type=str, choices=CATEGORY_CHOICES, default="all")
    p_show.add_argument("--sort", type=str, choices=SORT_KEYS, default=None)
    p_show.add_argument(
        "--show-completed", action="store_true", help="Include purchased items"
    )
    p_show.add_argument(
        "--format", type=str, choices=["json", "markdown", "list"], default="markdown"
    )
    p_show.set_defaults(func=cmd_grocery_show)

    p_check = gsub.add_parser("check", help="Toggle an item's purchased state")
    p_check.add_argument("item_id", type=str)

    p_qty = gsub.add_parser("set-quantity", help="Change an item's required quantity")
    p_qty.add_argument("item_id", type=str)
    p_qty.add_argument("quantity", type=float)

    p_prio = gsub.add_parser("set-priority", help="Change an item's priority")
    p_prio.add_argument("item_id", type=str)
    p_prio.add_argument("priority", type=str, choices=[p.value for p in Priority])

    p_clear = gsub.add_parser("clear-completed", help="Remove purchased items")
    p_archive = gsub.add_parser("archive", help="Archive the grocery plan")

    for action, p in [
        ("check", p_check),
        ("set-quantity", p_qty),
        ("set-priority", p_prio),
        ("clear-completed", p_clear),
        ("archive", p_archive),
    ]:
        p.add_argument(
            "--plan-id", type=str, default=None,
            help="Grocery plan id (default: newest active plan)",
        )
        p.set_defaults(func=cmd_grocery_edit, action=action)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diet-tracker",
        description="Family diet plan tracking, grocery consolidation and feedback",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help=f"Directory holding tracker data (default: {DEFAULT_DATA_DIR})",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging verbosity (default: info)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # import-plan
    p_plan = sub.add_parser("import-plan", help="Import diet plan markdown notes")
    p_plan.add_argument(
        "files", nargs="+", help="Plan notes (or directories of them) with diet-plan frontmatter"
    )
    p_plan.set_defaults(func=cmd_import_plan)

    # import-members
    p_members = sub.add_parser("import-members", help="Import family members from YAML")
    p_members.add_argument("file", type=str)
    p_members.set_defaults(func=cmd_import_members)

    # daily-view
    p_daily = sub.add_parser("daily-view", help="Show the day's meals and family progress")
    p_daily.add_argument("date", type=str, help="YYYY-MM-DD")
    p_daily.add_argument("--member", type=str, default=None, help="Member id, or 'all'")
    p_daily.add_argument(
        "--threshold", type=int, default=None,
        help="Completion %% at which a meal counts as done",
    )
    p_daily.add_argument(
        "--format", type=str, choices=["json", "markdown"], default="markdown"
    )
    p_daily.set_defaults(func=cmd_daily_view)

    # track
    p_track = sub.add_parser("track", help="Record what a member ate at a meal")
    p_track.add_argument("date", type=str, help="YYYY-MM-DD")
    p_track.add_argument("meal_id", type=str)
    p_track.add_argument("--member", type=str, required=True)
    p_track.add_argument(
        "--consumed", action="append", default=[], help="Item eaten. Repeatable."
    )
    p_track.add_argument(
        "--skip", action="append", default=[], help="Item not eaten. Repeatable."
    )
    p_track.add_argument(
        "--actual",
        action="append",
        default=[],
        help='Actual amount eaten, "Item Name=quantity". Repeatable.',
    )
    p_track.add_argument(
        "--waste",
        action="append",
        default=[],
        help='Why food was left, "Item Name=reason". Repeatable.',
    )
    p_track.set_defaults(func=cmd_track)

    # quick-mark
    p_quick = sub.add_parser("quick-mark", help="Mark a member done with a meal")
    p_quick.add_argument("date", type=str, help="YYYY-MM-DD")
    p_quick.add_argument("meal_id", type=str)
    p_quick.add_argument("member_id", type=str)
    p_quick.set_defaults(func=cmd_quick_mark)

    # grocery
    _add_grocery_parsers(sub)

    # feedback
    p_feedback = sub.add_parser("feedback", help="Daily family feedback")
    fsub = p_feedback.add_subparsers(dest="feedback_command", required=True)

    p_fimport = fsub.add_parser("import", help="Record feedback from a YAML file")
    p_fimport.add_argument("date", type=str, help="YYYY-MM-DD")
    p_fimport.add_argument("file", type=str)
    p_fimport.set_defaults(func=cmd_feedback_import)

    p_fshow = fsub.add_parser("show", help="Show the day's feedback summary")
    p_fshow.add_argument("date", type=str, help="YYYY-MM-DD")
    p_fshow.add_argument(
        "--format", type=str, choices=["json", "markdown"], default="markdown"
    )
    p_fshow.set_defaults(func=cmd_feedback_show)

    return parser


def main() -> None:
    from diet_tracker.log import setup_logging
    from diet_tracker.store import StoreError

    parser = build_parser()
    args = parser.parse_args()

    log_file = Path(args.log_file) if args.log_file else None
    setup_logging(level=args.log_level, log_file=log_file)

    try:
        args.func(args)
    except (StoreError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
