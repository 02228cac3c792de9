import argparse
import sys

from lunaplan import __version__
from lunaplan.cli.commands import run_doctor, run_plan, run_suggest


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to config TOML (default ~/.config/lunaplan/config.toml)")
    parser.add_argument("--json", action="store_true", help="Output result as JSON")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["debug", "info", "warn", "error"],
        help="Enable logging at this level",
    )


def _add_plan_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--start", help="First night as YYYY-MM-DD (default today)")
    parser.add_argument("--days", type=int, help="Number of nights (default 7)")
    parser.add_argument(
        "--target",
        dest="targets",
        action="append",
        metavar="NAME,RA,DEC",
        help="Target with RA/Dec in decimal degrees; repeatable",
    )
    parser.add_argument("--lat", dest="latitude_deg", type=float, help="Site latitude in degrees")
    parser.add_argument("--lon", dest="longitude_deg", type=float, help="Site longitude in degrees, east positive")
    parser.add_argument("--elevation", dest="elevation_m", type=float, help="Site elevation in metres")
    parser.add_argument("--tz", dest="timezone", help="IANA timezone of the site, e.g. America/New_York")
    _add_common_args(parser)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lunaplan")
    parser.add_argument("--version", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command")

    doctor_parser = subparsers.add_parser("doctor", help="Run system diagnostics")
    _add_common_args(doctor_parser)

    plan_parser = subparsers.add_parser("plan", help="Rate imaging conditions for targets over a date range")
    _add_plan_args(plan_parser)

    suggest_parser = subparsers.add_parser("suggest", help="Suggest targets that fill gaps in a schedule")
    _add_plan_args(suggest_parser)
    suggest_parser.add_argument(
        "--candidate",
        dest="candidates",
        action="append",
        metavar="NAME,RA,DEC",
        help="Candidate target to consider; repeatable",
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"Lunaplan {__version__}")
        return 0

    if args.command == "doctor":
        return run_doctor(args)

    if args.command == "plan":
        return run_plan(args)

    if args.command == "suggest":
        return run_suggest(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
