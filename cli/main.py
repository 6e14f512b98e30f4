#!/usr/bin/env python3
"""
Practice OS CLI - recurring work and demand forecasting from the terminal.

    python -m cli.main init
    python -m cli.main next --type Monthly --interval 1 --day-of-month 15 --from 2025-01-20
    python -m cli.main demand --start 2025-01-01 --end 2025-06-30 --matrix
    python -m cli.main generate --from 2025-01-01 --to 2025-01-31
    python -m cli.main copy --target client-b --recurring rt_1 rt_2 --ad-hoc ti_9
"""

import argparse
import json
import sqlite3
import sys
from datetime import date
from pathlib import Path

from practice import paths
from practice.config import load_settings
from practice.database import Database
from practice.demand import DemandAggregator, SkillMappingCache
from practice.errors import PracticeError
from practice.observability import configure_logging
from practice.recurrence import Err, RecurrenceCalculator, RecurrencePolicy
from practice.tasks import SkillRepository, TaskCopyService, TaskInstanceGenerator, TaskService


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def _date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value!r}") from e


def _open_db(args) -> Database:
    db = Database(args.db)
    db.init_schema()
    return db


# ==== Commands ====


def cmd_init(args) -> int:
    """Create directories and the database schema."""
    print_header("Practice OS - Setup")
    print(f"  ✓ data dir  {paths.data_dir()}")

    db = _open_db(args)
    db.close()
    print(f"  ✓ database  {db.db_path}")

    cfg = args.config or paths.config_path()
    if cfg.exists():
        print(f"  ✓ config    {cfg}")
        print(f"    lead time {args.settings.lead_time_days} days, day overflow {args.settings.day_overflow}")
    else:
        print(f"  ✗ config    {cfg} missing (defaults in use)")
    return 0


def cmd_next(args) -> int:
    """Print the next occurrences of a pattern."""
    pattern = {
        "type": args.type,
        "interval": args.interval,
        "weekdays": args.weekdays,
        "day_of_month": args.day_of_month,
        "month_of_year": args.month_of_year,
        "custom_offset_days": args.offset_days,
        "end_date": args.end_date,
    }
    calculator = RecurrenceCalculator(RecurrencePolicy.from_settings(args.settings))

    cursor = args.from_date
    found = []
    for _ in range(args.count):
        result = calculator.next_occurrence(pattern, cursor)
        if isinstance(result, Err):
            if not found:
                print(f"No next occurrence: {result.reason}", file=sys.stderr)
                return 1
            break
        found.append(result.value)
        cursor = result.value

    for d in found:
        print(d.isoformat())
    return 0


def cmd_demand(args) -> int:
    """Skill demand for active recurring tasks."""
    db = _open_db(args)
    try:
        tasks = TaskService(db).get_recurring_tasks(active_only=True)
        aggregator = DemandAggregator(
            calculator=RecurrenceCalculator(RecurrencePolicy.from_settings(args.settings)),
            skill_cache=SkillMappingCache(
                loader=SkillRepository(db).name_mapping,
                ttl_seconds=args.settings.skill_cache_ttl_seconds,
            ),
        )
        if args.matrix:
            matrix = aggregator.calculate_demand_matrix(
                tasks, args.start, args.end, skills=args.skills, client_ids=args.clients
            )
            if args.json:
                print(json.dumps(matrix.to_dict(), indent=2))
                return 0
            print_header(f"DEMAND MATRIX {args.start} .. {args.end}")
            rows = [
                [skill] + [f"{matrix.hours(skill, m):.1f}" for m in matrix.months] for skill in matrix.skills
            ]
            print_table(["Skill"] + matrix.months, rows)
            for skipped in matrix.skipped_tasks:
                print(f"  skipped {skipped.task_id}: {skipped.reason}")
            return 0

        demand = aggregator.calculate_monthly_demand_by_skill(tasks, args.start, args.end)
        if args.json:
            print(json.dumps([d.to_dict() for d in demand], indent=2))
            return 0
        print_header(f"SKILL DEMAND {args.start} .. {args.end}")
        if not demand:
            print("No demand in range.")
            return 0
        print_table(["Skill", "Hours"], [[d.skill, f"{d.hours:.2f}"] for d in demand])
        return 0
    finally:
        db.close()


def cmd_generate(args) -> int:
    """Generate task instances for recurring tasks due in the window."""
    lead_days = args.lead_days if args.lead_days is not None else args.settings.lead_time_days
    calculator = RecurrenceCalculator(RecurrencePolicy.from_settings(args.settings))
    db = _open_db(args)
    try:
        result = TaskInstanceGenerator(db, calculator).generate_task_instances(
            args.from_date, args.to_date, lead_days
        )
    finally:
        db.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_header(f"GENERATED {result.created_count} INSTANCES ({result.run_id})")
        rows = [[i.id, i.client_id, i.name[:30], i.due_date.isoformat()] for i in result.instances]
        if rows:
            print_table(["Instance", "Client", "Name", "Due"], rows)
        for err in result.errors:
            print(f"  ✗ {err.item_id}: {err.message}")
    return 0 if result.success else 2


def cmd_copy(args) -> int:
    """Copy tasks to another client."""
    db = _open_db(args)
    try:
        result = TaskCopyService(db).copy_client_tasks(args.recurring, args.ad_hoc, args.target)
    finally:
        db.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(f"Copied {len(result.recurring)} recurring and {len(result.ad_hoc)} ad-hoc tasks to {args.target}")
        for err in result.errors:
            print(f"  ✗ {err.item_id}: {err.message}")
    return 0 if result.success else 2


# ==== Parser ====


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="practice", description="Practice OS")
    p.add_argument("--db", default=None, help="SQLite path (default: PRACTICE_OS_DB or ~/.practice_os)")
    p.add_argument("--log-level", default=None, help="Overrides logging.level from the config file")
    p.add_argument(
        "--config", type=Path, default=None, help="Settings YAML (default: PRACTICE_OS_CONFIG or config/practice.yaml)"
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init", help="Create data dir and database schema")

    n = sub.add_parser("next", help="Next occurrences of a recurrence pattern")
    n.add_argument("--type", required=True, help="Daily, Weekly, Monthly, Quarterly, Annually, Custom")
    n.add_argument("--interval", type=int)
    n.add_argument("--weekdays", type=int, nargs="+", help="0=Sunday .. 6=Saturday")
    n.add_argument("--day-of-month", type=int)
    n.add_argument("--month-of-year", type=int)
    n.add_argument("--offset-days", type=int, help="Custom: days after month end")
    n.add_argument("--end-date", type=_date)
    n.add_argument("--from", dest="from_date", type=_date, default=date.today())
    n.add_argument("--count", type=int, default=1)

    d = sub.add_parser("demand", help="Skill demand for active recurring tasks")
    d.add_argument("--start", type=_date, required=True)
    d.add_argument("--end", type=_date, required=True)
    d.add_argument("--matrix", action="store_true", help="Skill x month table")
    d.add_argument("--skills", nargs="+")
    d.add_argument("--clients", nargs="+")
    d.add_argument("--json", action="store_true")

    g = sub.add_parser("generate", help="Generate task instances")
    g.add_argument("--from", dest="from_date", type=_date, required=True)
    g.add_argument("--to", dest="to_date", type=_date, required=True)
    g.add_argument("--lead-days", type=int, default=None)
    g.add_argument("--json", action="store_true")

    c = sub.add_parser("copy", help="Copy tasks to another client")
    c.add_argument("--target", required=True, help="Target client id")
    c.add_argument("--recurring", nargs="*", default=[])
    c.add_argument("--ad-hoc", nargs="*", default=[])
    c.add_argument("--json", action="store_true")

    return p


COMMANDS = {
    "init": cmd_init,
    "next": cmd_next,
    "demand": cmd_demand,
    "generate": cmd_generate,
    "copy": cmd_copy,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    args.settings = load_settings(args.config)
    configure_logging(args.log_level or args.settings.log_level)
    try:
        return COMMANDS[args.cmd](args)
    except PracticeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except sqlite3.Error as e:
        print(f"Error: database: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
