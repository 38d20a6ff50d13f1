"""Entry point: ``python -m applytrack``."""

from __future__ import annotations

import argparse
import logging
import sys

from applytrack.dashboard.server import serve
from applytrack.exceptions import ApplyTrackError
from applytrack.orchestrator import ApplyTrackService
from applytrack.reporting.console import (
    print_banner,
    print_flow,
    print_ranking,
    print_reminders,
    print_stats,
)
from applytrack.reporting.data_export import FORMATS, REPORTS, export_ranking, export_report
from applytrack.settings import AppSettings


def _configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="applytrack", description="Job application tracker")
    parser.add_argument("--settings", help="path to settings.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("flow", help="show the application funnel")
    sub.add_parser("stats", help="show application statistics")

    compare = sub.add_parser("compare", help="rank 2-4 offers by total value")
    source = compare.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", help="YAML/JSON file with an 'offers' list")
    source.add_argument("--jobs", nargs="+", type=int, help="stored application IDs")
    compare.add_argument("--export", choices=FORMATS, help="also write the ranking to a file")
    compare.add_argument("--output-dir", default="exports")

    export = sub.add_parser("export", help="write a report file")
    export.add_argument("--report", choices=REPORTS, default="applications")
    export.add_argument("--format", choices=FORMATS, default="json")
    export.add_argument("--output-dir", default="exports")
    export.add_argument("--since", default="", help="ISO date lower bound (applications only)")

    reminders = sub.add_parser("reminders", help="list reminders due soon")
    reminders.add_argument("--hours", type=int, help="look-ahead window")

    dashboard = sub.add_parser("dashboard", help="serve the JSON dashboard API")
    dashboard.add_argument("--port", type=int)
    return parser


def run(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = AppSettings.from_yaml(args.settings)
    _configure_logging(settings.log_level)

    service = ApplyTrackService(settings)
    try:
        if args.command == "flow":
            print_flow(service.flow())
        elif args.command == "stats":
            stats = service.stats()
            print_banner()
            print_stats(stats)
            print_flow(stats.flow)
        elif args.command == "compare":
            if args.file:
                ranked = service.compare_file(args.file)
            else:
                ranked = service.compare_applications(args.jobs)
            print_ranking(ranked)
            if args.export:
                print(export_ranking(ranked, args.output_dir, args.export))
        elif args.command == "export":
            dest = export_report(service, args.report, args.output_dir, args.format, args.since)
            print(dest)
        elif args.command == "reminders":
            print_reminders(service.upcoming_reminders(args.hours))
        elif args.command == "dashboard":
            serve(service, args.port or settings.dashboard_port)
    except ApplyTrackError as exc:
        logging.error("%s", exc)
        return 1
    finally:
        service.close()
    return 0


def main() -> None:
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        logging.info("Interrupted by user.")
        sys.exit(130)


if __name__ == "__main__":
    main()
