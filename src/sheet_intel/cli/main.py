"""Main CLI entry point."""

import argparse
import json
import logging
import sys
from pathlib import Path

from sheet_intel.errors import SheetIntelError


def main() -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(
        prog="sheet-intel",
        description="Analyze spreadsheet rows with an LLM and synthesize reports",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings YAML (provider, models, timeouts, prompts)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to SQLite database (default: sheet_intel.db)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="-v for info logging, -vv for debug",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # connect
    connect_parser = subparsers.add_parser("connect", help="Connect a Google Sheet tab")
    connect_parser.add_argument(
        "--sheet-id",
        required=True,
        help="Spreadsheet id from docs.google.com/spreadsheets/d/<ID>/edit",
    )
    connect_parser.add_argument(
        "--sheet-name",
        default="Sheet1",
        help="Sheet/tab name (default: Sheet1)",
    )

    # sync
    subparsers.add_parser("sync", help="Fetch rows, analyze each one, refresh meta-analysis")

    # prompt
    prompt_parser = subparsers.add_parser("prompt", help="Show or edit the analysis prompt")
    prompt_parser.add_argument("action", choices=["show", "set", "clear"])
    prompt_parser.add_argument("text", nargs="?", default=None, help="Prompt text (for set)")

    # meta, dossiers: the view cache lives in one process, so each run calls the model
    subparsers.add_parser(
        "meta",
        help="Meta-analysis of stored reports (one model call per invocation)",
    )
    subparsers.add_parser(
        "dossiers",
        help="Strategic dossiers of stored reports (one model call per invocation)",
    )

    # columns
    columns_parser = subparsers.add_parser("columns", help="Summarize selected sheet columns")
    columns_parser.add_argument(
        "--column",
        action="append",
        required=True,
        dest="columns",
        help="Column label to include (repeatable)",
    )

    # reports
    reports_parser = subparsers.add_parser("reports", help="Query stored analysis results")
    reports_parser.add_argument("action", choices=["list", "count", "stats"])

    # runs
    runs_parser = subparsers.add_parser("runs", help="Show sync run history")
    runs_parser.add_argument("--limit", type=int, default=20)

    args = parser.parse_args()
    _configure_logging(args.verbose)

    try:
        if args.command == "connect":
            _run_connect(args)
        elif args.command == "sync":
            _run_sync(args)
        elif args.command == "prompt":
            _run_prompt(args)
        elif args.command == "meta":
            _run_meta(args)
        elif args.command == "dossiers":
            _run_dossiers(args)
        elif args.command == "columns":
            _run_columns(args)
        elif args.command == "reports":
            _run_reports(args)
        elif args.command == "runs":
            _run_runs(args)
        else:
            parser.print_help()
    except SheetIntelError as e:
        print(f"Error: {e.user_message()}", file=sys.stderr)
        raise SystemExit(1)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _load_settings(args: argparse.Namespace):
    from sheet_intel.settings import Settings

    settings = Settings.from_yaml(args.config) if args.config else Settings.from_env()
    if args.db is not None:
        settings = settings.model_copy(update={"db_path": args.db})
    return settings


def _open_store(args: argparse.Namespace):
    from sheet_intel.store import SessionStore

    return SessionStore(_load_settings(args).db_path)


def _build_controller(args: argparse.Namespace):
    from sheet_intel.sync import SyncController

    return SyncController.from_settings(_load_settings(args))


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def _run_connect(args: argparse.Namespace) -> None:
    """Run connect command."""
    config = _open_store(args).connect(args.sheet_id, args.sheet_name)
    print(f"Connected spreadsheet {config.source_id} (tab: {config.sheet_name})")


def _run_sync(args: argparse.Namespace) -> None:
    """Run sync command. Exit 1 on hard failure; soft failures still exit 0."""
    from sheet_intel.sync import SyncStatus

    controller = _build_controller(args)
    outcome = controller.sync()
    for failure in outcome.failures:
        print(
            f"  row {failure.row_index} ({failure.label}): {failure.error_type}: {failure.message}",
            file=sys.stderr,
        )
    for err in outcome.synthesis_errors:
        print(f"  {err}", file=sys.stderr)
    if outcome.status == SyncStatus.FAILED:
        print(outcome.message, file=sys.stderr)
        raise SystemExit(1)
    print(outcome.message)
    if outcome.meta is not None:
        _print_json(outcome.meta.model_dump(mode="json", by_alias=True))


def _run_prompt(args: argparse.Namespace) -> None:
    """Run prompt command. set/clear re-synthesize the meta-analysis."""
    if args.action == "show":
        print(_open_store(args).get_config().analysis_prompt or "")
        return
    if args.action == "set" and not args.text:
        raise SystemExit("prompt set requires the prompt text")
    controller = _build_controller(args)
    meta = controller.set_analysis_prompt(args.text if args.action == "set" else None)
    print("Analysis prompt updated.")
    if meta is not None:
        _print_json(meta.model_dump(mode="json", by_alias=True))


def _run_meta(args: argparse.Namespace) -> None:
    """Run meta command."""
    meta = _build_controller(args).meta_analysis()
    _print_json(meta.model_dump(mode="json", by_alias=True))


def _run_dossiers(args: argparse.Namespace) -> None:
    """Run dossiers command."""
    dossiers = _build_controller(args).strategic_dossiers()
    _print_json(dossiers.model_dump(mode="json", by_alias=True))


def _run_columns(args: argparse.Namespace) -> None:
    """Run columns command. Fetches the sheet to get current rows."""
    try:
        summary = _build_controller(args).column_summary(args.columns)
    except ValueError as e:
        raise SystemExit(str(e))
    _print_json(summary.model_dump(mode="json", by_alias=True))


def _run_reports(args: argparse.Namespace) -> None:
    """Run reports command."""
    reports = _open_store(args).get_reports()
    if args.action == "count":
        print(len(reports))
        return
    if args.action == "stats":
        from sheet_intel.aggregation import collection_stats

        _print_json(collection_stats(reports).model_dump(mode="json", by_alias=True))
        return
    _print_json([r.model_dump(mode="json", by_alias=True) for r in reports])


def _run_runs(args: argparse.Namespace) -> None:
    """Run runs command."""
    from dataclasses import asdict

    runs = _open_store(args).list_runs(limit=args.limit)
    _print_json([asdict(r) for r in runs])


if __name__ == "__main__":
    main()
