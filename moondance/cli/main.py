import argparse
import sys

from moondance import __version__
from moondance.cli.commands import run_doctor, run_plan, run_scan, run_suggest, run_targets


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to config.toml")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["debug", "info", "warn", "error"],
        help="Enable logging at this level",
    )
    parser.add_argument("--json", action="store_true", help="Output result as JSON")


def _add_site(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--lat", dest="latitude_deg", type=float, help="Site latitude (deg, north positive)")
    parser.add_argument("--lon", dest="longitude_deg", type=float, help="Site longitude (deg, east positive)")
    parser.add_argument("--elev", dest="elevation_m", type=float, help="Site elevation (m)")
    parser.add_argument("--tz", dest="timezone", help="IANA timezone, e.g. America/New_York")
    parser.add_argument("--start", help="First night (YYYY-MM-DD, default today)")


def _add_night(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--days", type=int, default=1, help="Number of nights")
    parser.add_argument("--hour", type=int, help="Local observation hour (0-23)")
    parser.add_argument("--buffer", type=float, help="Dusk/dawn buffer in hours")
    parser.add_argument("--min-alt", dest="min_alt", type=float, help="Uniform horizon altitude (deg)")
    parser.add_argument("--ra", dest="ra_deg", type=float, help="Ad-hoc target RA (deg)")
    parser.add_argument("--dec", dest="dec_deg", type=float, help="Ad-hoc target Dec (deg)")
    parser.add_argument("--name", help="Name for the ad-hoc target")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="moondance")
    parser.add_argument("--version", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command")

    doctor_parser = subparsers.add_parser("doctor", help="Check config, site and catalogs")
    _add_common(doctor_parser)

    plan_parser = subparsers.add_parser("plan", help="Per-night visibility and moon rating")
    _add_common(plan_parser)
    _add_site(plan_parser)
    _add_night(plan_parser)
    plan_parser.add_argument("--target", action="append", help="Catalog target id or name (repeatable)")
    plan_parser.add_argument("--csv", action="store_true", help="Output CSV export")
    plan_parser.add_argument("--verbose", action="store_true", help="Show altitude, separation and reasons")

    suggest_parser = subparsers.add_parser("suggest", help="Targets that fill uncovered darkness")
    _add_common(suggest_parser)
    _add_site(suggest_parser)
    _add_night(suggest_parser)
    suggest_parser.add_argument("--selected", action="append", help="Already selected target (repeatable)")

    scan_parser = subparsers.add_parser("scan", help="Estimate when catalog targets become visible")
    _add_common(scan_parser)
    _add_site(scan_parser)
    scan_parser.add_argument("--min-alt", dest="min_alt", type=float, help="Altitude threshold (deg)")
    scan_parser.add_argument("--limit", type=int, help="Show at most this many targets")

    targets_parser = subparsers.add_parser("targets", help="List catalog targets")
    _add_common(targets_parser)
    targets_parser.add_argument("--type", help="Only targets of this type")
    targets_parser.add_argument("--csv", action="store_true", help="Export as Name,RA,Dec,Magnitude,Size")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"Moondance {__version__}")
        return 0

    if args.command == "doctor":
        return run_doctor(args)

    if args.command == "plan":
        return run_plan(args)

    if args.command == "suggest":
        return run_suggest(args)

    if args.command == "scan":
        return run_scan(args)

    if args.command == "targets":
        return run_targets(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
