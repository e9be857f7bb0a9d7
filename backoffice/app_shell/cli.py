import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from uuid import UUID

from backoffice.adapters.clock import SystemClock
from backoffice.adapters.sqlite import (
    SQLiteAuditRepo,
    SQLiteClientLookup,
    SQLiteMigrator,
    SQLiteTaskLookup,
    SQLiteTimeEntryRepo,
    SQLiteUserLookup,
)
from backoffice.api.deps import Settings
from backoffice.components.audit import AuditConfig, AuditFilters, AuditService
from backoffice.components.report_export import ExportConfig, ReportFormat
from backoffice.components.time_entries import (
    TimeEntryConfig,
    TimeEntryFilters,
    TimeEntryService,
)
from backoffice.core.errors import BackofficeError
from backoffice.rules.loader import load_rules_or_default
from backoffice.rules.models import Rules

logger = logging.getLogger("cli")


@dataclass
class CliContext:
    settings: Settings
    rules: Rules
    audit_service: AuditService
    time_service: TimeEntryService


def get_context() -> CliContext:
    settings = Settings()
    rules = load_rules_or_default(settings.rules_path)
    clock = SystemClock()

    audit_service = AuditService(
        repo=SQLiteAuditRepo(settings.db_path),
        time_port=clock,
        config=AuditConfig.from_rules(rules.audit),
    )
    time_service = TimeEntryService(
        repo=SQLiteTimeEntryRepo(settings.db_path),
        users=SQLiteUserLookup(settings.db_path),
        clients=SQLiteClientLookup(settings.db_path),
        tasks=SQLiteTaskLookup(settings.db_path),
        audit=audit_service,
        time_port=clock,
        config=TimeEntryConfig.from_rules(rules.time),
    )
    return CliContext(settings, rules, audit_service, time_service)


def _filters(args: argparse.Namespace) -> TimeEntryFilters:
    return TimeEntryFilters(
        user_id=args.user,
        client_id=args.client,
        start_date=args.start,
        end_date=args.end,
    )


def handle_migrate(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(settings.db_path).run_migrations()
    if applied:
        print(f"Applied {len(applied)} migration(s): {', '.join(applied)}")
    else:
        print("Database is up to date.")


def handle_report(ctx: CliContext, args: argparse.Namespace) -> None:
    report = ctx.time_service.report(args.license, _filters(args))

    print("By employee:")
    for emp in report.by_employee.values():
        print(f"  {emp.user.name}: {emp.total_hours} ({len(emp.entries)} entries)")
    print("By client:")
    for group in report.by_client.values():
        print(f"  {group.client.name}: {group.total_hours} ({len(group.entries)} entries)")
    print(f"Total: {report.total_hours} hours in {report.total_entries} entries")


def handle_export(ctx: CliContext, args: argparse.Namespace) -> None:
    fmt = ReportFormat.parse(args.format)
    content = ctx.time_service.export(
        args.license,
        _filters(args),
        fmt,
        ExportConfig.from_rules(ctx.rules.export),
    )
    if args.out:
        Path(args.out).write_bytes(content)
        print(f"Wrote {len(content)} bytes to {args.out}")
    else:
        sys.stdout.write(content.decode("utf-8"))
        sys.stdout.write("\n")


def handle_audit(ctx: CliContext, args: argparse.Namespace) -> None:
    filters = AuditFilters(
        actor_user_id=args.actor,
        action=args.action,
        target_type=args.target_type,
        start_date=args.since,
        limit=args.limit,
    )
    for entry in ctx.audit_service.query(args.license, filters):
        print(
            f"{entry.created_at.isoformat()}  {entry.action:<20} "
            f"{entry.target_type}:{entry.target_id}  by {entry.actor_user_id}"
        )


def _add_time_filters(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--license", type=UUID, required=True, help="License (tenant) ID")
    parser.add_argument("--user", type=UUID, help="Only this employee")
    parser.add_argument("--client", type=UUID, help="Only this client")
    parser.add_argument("--start", type=date.fromisoformat, help="First work date (inclusive)")
    parser.add_argument("--end", type=date.fromisoformat, help="Last work date (inclusive)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Back office CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    # report
    report_parser = subparsers.add_parser("report", help="Print hour totals")
    _add_time_filters(report_parser)

    # export
    export_parser = subparsers.add_parser("export", help="Export a time report")
    _add_time_filters(export_parser)
    export_parser.add_argument(
        "--format", default="tabular", help="tabular (csv/excel) or narrative (text/pdf)"
    )
    export_parser.add_argument("--out", help="Write to this file instead of stdout")

    # audit
    audit_parser = subparsers.add_parser("audit", help="Show recent audit entries")
    audit_parser.add_argument("--license", type=UUID, help="License ID (omit for all)")
    audit_parser.add_argument("--actor", type=UUID, help="Only this actor")
    audit_parser.add_argument("--action", help="Exact action, e.g. time.create")
    audit_parser.add_argument("--target-type", dest="target_type", help="e.g. TimeEntry")
    audit_parser.add_argument("--since", type=datetime.fromisoformat, help="Earliest timestamp")
    audit_parser.add_argument("--limit", type=int, help="Maximum entries to show")

    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    if args.command == "migrate":
        handle_migrate(Settings())
        return

    ctx = get_context()
    try:
        if args.command == "report":
            handle_report(ctx, args)
        elif args.command == "export":
            handle_export(ctx, args)
        elif args.command == "audit":
            handle_audit(ctx, args)
    except BackofficeError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
