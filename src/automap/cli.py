import argparse
import asyncio
import json
import os
from dataclasses import replace
from typing import Any, List, Optional

from automap.adapters.platform_client import PlatformClient
from automap.execution.batch_runner import BatchReport, BatchRunner
from automap.execution.config_executor import ConfigExecutor, RunSettings, apply_cli_overrides
from automap.governance.policy import EventState
from automap.router import remap_event_type
from automap.standards.rule_config import RuleConfig
from automap.utils.exceptions import AutomapError


class C:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    MAGENTA = "\033[35m"


def cprint(text: str, color: str = C.RESET, bold: bool = False):
    prefix = (C.BOLD if bold else "") + color
    print(f"{prefix}{text}{C.RESET}")


def _ask_yes_no(prompt: str) -> bool:
    while True:
        cprint(f"{prompt} (yes/no): ", C.YELLOW, bold=True)
        ans = input().strip().lower()
        if ans in {"yes", "y"}:
            return True
        if ans in {"no", "n"}:
            return False
        cprint("Please enter yes or no.", C.RED)


def _write_json(path: str, payload: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


# Default lifecycle state selected by each command
DEFAULT_STATES = {
    "remap": [EventState.UNMAPPED],
    "scrub-traits": [EventState.MAPPED],
    "delete": [EventState.MAPPED],
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="event-automap",
        description="Rule-based auto-mapping of platform event types to warehouse tables",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_remote_options(p: argparse.ArgumentParser):
        p.add_argument("--config", help="Path to YAML config file")
        p.add_argument("--concurrency", type=int, help="Event types processed at once")
        p.add_argument("--dry-run", action="store_true", default=None, help="Skip all write calls")
        p.add_argument("--state", action="append", help="Event type state to select (repeatable)")
        p.add_argument("--include", action="append", help="Name substring to include (repeatable)")
        p.add_argument("--exclude", action="append", help="Name substring to exclude (repeatable)")
        p.add_argument(
            "--target-schema",
            help="Fixed destination schema; '-' derives it from <schema>.<table> event names",
        )

    remap = sub.add_parser("remap", help="Auto-map, create tables and commit mappings")
    add_remote_options(remap)
    remap.add_argument("--no-create-table", action="store_true", help="Only commit mappings")

    scrub = sub.add_parser("scrub-traits", help="Discard blacklisted trait columns of mapped event types")
    add_remote_options(scrub)

    delete = sub.add_parser("delete", help="Delete selected event types")
    add_remote_options(delete)
    delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    preview = sub.add_parser("preview", help="Run the rule engine over a local event type JSON file")
    preview.add_argument("--file", required=True, help="Auto-mapped event type JSON file")
    preview.add_argument("--config", help="Path to YAML config file")
    preview.add_argument("--output-dir", help="Write columns.json and fields.json here")

    return parser


def _settings_from_args(
    args: argparse.Namespace,
    settings: RunSettings,
    states_configured: bool,
) -> RunSettings:
    states = args.state
    if not states and not states_configured:
        states = DEFAULT_STATES[args.command]

    settings = apply_cli_overrides(
        settings,
        concurrency=args.concurrency,
        dry_run=args.dry_run,
        create_table=False if getattr(args, "no_create_table", False) else None,
        states=states,
        include_patterns=args.include,
        exclude_patterns=args.exclude,
    )

    # "-" clears the fixed schema: tables follow <schema>.<table> event names
    if args.target_schema:
        settings = replace(
            settings,
            target_schema=None if args.target_schema == "-" else args.target_schema,
        )
    return settings


async def _run_remote(command: str, rules: RuleConfig, settings: RunSettings) -> BatchReport:
    async with PlatformClient(
        settings.base_url,
        email=settings.email,
        password=settings.password,
        timeout=settings.timeout,
    ) as client:
        runner = BatchRunner(client, rules, settings)
        if command == "remap":
            return await runner.remap_all()
        if command == "scrub-traits":
            return await runner.scrub_traits_all()
        return await runner.delete_all()


def _print_report(report: BatchReport) -> None:
    cprint(f"\n[SUMMARY] {report.action}", C.MAGENTA, bold=True)
    for result in report.results:
        color = C.RED if result.failed else C.GREEN
        line = f"  {result.status:<10} {result.name}"
        if result.failed:
            line += f"  ({result.step}: {result.error})"
        cprint(line, color)
    cprint(f"[COUNTS] {json.dumps(report.counts)}", C.DIM)


def _preview(args: argparse.Namespace, rules: RuleConfig) -> int:
    with open(args.file, "r", encoding="utf-8") as f:
        payload = json.load(f)

    outcome = remap_event_type(payload, rules)

    cprint(f"\n[PREVIEW] {outcome.event_type.name}", C.MAGENTA, bold=True)
    print(json.dumps(outcome.summary, indent=2))
    for column in outcome.columns:
        ct = column.get("columnType") or {}
        cprint(
            f"  {column['columnName']:<48} {ct.get('type', '')}"
            f"{'(' + str(ct['length']) + ')' if 'length' in ct else ''}"
            f"{'  sortkey=' + str(column['sortKeyIndex']) if column.get('sortKeyIndex', -1) >= 0 else ''}"
            f"{'  distkey' if column.get('distKey') else ''}"
            f"{'  primarykey' if column.get('primaryKey') else ''}",
            C.CYAN,
        )
    for name, reasons in outcome.discard_reasons.items():
        cprint(f"  discarded {name}: {', '.join(reasons)}", C.DIM)

    if args.output_dir:
        os.makedirs(args.output_dir, exist_ok=True)
        _write_json(os.path.join(args.output_dir, "columns.json"), outcome.columns)
        _write_json(os.path.join(args.output_dir, "fields.json"), outcome.event_type.fields_to_dict())
        cprint(f"\n[DONE] Artifacts written to: {args.output_dir}", C.GREEN, bold=True)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        executor = ConfigExecutor(args.config)
        rules = executor.build_rules()

        if args.command == "preview":
            return _preview(args, rules)

        settings = _settings_from_args(
            args,
            executor.build_settings(),
            states_configured=executor.has_run_setting("states"),
        )

        if args.command == "delete" and not settings.dry_run and not args.yes:
            if not _ask_yes_no(f"Delete event types in states {list(settings.event_filter.states)}"):
                cprint("[STOP] Nothing deleted.", C.YELLOW, bold=True)
                return 0

        cprint(f"\n[START] {args.command} started", C.BLUE, bold=True)
        report = asyncio.run(_run_remote(args.command, rules, settings))
        _print_report(report)

    except (AutomapError, OSError, ValueError) as e:
        cprint(f"\n[FAILED] {args.command} failed.", C.RED, bold=True)
        cprint(str(e), C.RED)
        return 1

    if report.has_failures:
        cprint("[INCOMPLETE] Some event types failed", C.YELLOW, bold=True)
        return 2

    cprint("[COMPLETE] All selected event types processed", C.GREEN, bold=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
