from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any

from duostereo import __version__
from duostereo.config import StereoPairConfig, resolve_config
from duostereo.constants import DEFAULT_LOG_LEVEL, ENV_PREFIX, EXIT_OK
from duostereo.domain.models import RunReport
from duostereo.errors import StereoPairError
from duostereo.orchestrator import StereoPairOrchestrator


def configure_logging(log_level: str) -> None:
    level = getattr(logging, log_level.upper(), logging.WARNING)
    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    root.addHandler(stream)


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, sort_keys=True))


def _print_report(report: RunReport) -> None:
    failed = report.failed_links
    if not failed:
        print("Done")
        return
    print(f"Done with {len(failed)} failed link(s):")
    for link in failed:
        print(f"  {link.request}: {link.error}")


def _report_error(exc: StereoPairError, as_json: bool) -> int:
    cause = (exc.details or {}).get("error")
    if cause:
        print(f"Error: {exc} ({cause})", file=sys.stderr)
    else:
        print(f"Error: {exc}", file=sys.stderr)
    if as_json:
        _print_json({"error": {"code": exc.code, "message": exc.message, "details": exc.details or {}}})
    return exc.exit_code


def _build_orchestrator(args: argparse.Namespace, config: StereoPairConfig) -> StereoPairOrchestrator:
    # Progress goes to stderr in JSON mode so stdout stays parseable.
    if args.json:
        return StereoPairOrchestrator(config, progress=lambda line: print(line, file=sys.stderr))
    return StereoPairOrchestrator(config)


def cmd_up(args: argparse.Namespace, config: StereoPairConfig) -> int:
    orchestrator = _build_orchestrator(args, config)
    try:
        report = orchestrator.run()
    except StereoPairError as exc:
        return _report_error(exc, args.json)
    if args.json:
        _print_json(report.as_dict())
    else:
        _print_report(report)
    return EXIT_OK


def cmd_check(args: argparse.Namespace, config: StereoPairConfig) -> int:
    orchestrator = _build_orchestrator(args, config)
    try:
        report = orchestrator.check()
    except StereoPairError as exc:
        return _report_error(exc, args.json)
    if args.json:
        _print_json(report.as_dict())
    else:
        print("Ready")
    return EXIT_OK


def cmd_down(args: argparse.Namespace, config: StereoPairConfig) -> int:
    orchestrator = _build_orchestrator(args, config)
    try:
        report = orchestrator.teardown()
    except StereoPairError as exc:
        return _report_error(exc, args.json)
    if args.json:
        _print_json(report.as_dict())
    elif not report.removed_modules:
        print(f"No module named {orchestrator.virtual.name} loaded")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="duostereo",
        description="Pair two Bluetooth speakers as one stereo device on PipeWire",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--virtual-name", help="Virtual device sink name")
    parser.add_argument("--description", help="Virtual device name shown in GUIs")
    parser.add_argument("--left", help="Bluetooth name of the left speaker")
    parser.add_argument("--right", help="Bluetooth name of the right speaker")
    parser.add_argument("--settle-delay", type=float, help="Seconds to wait after creating the virtual device")
    parser.add_argument("--settle-timeout", type=float, help="Seconds to wait for the virtual device ports")
    parser.add_argument(
        "--log-level",
        default=os.getenv(ENV_PREFIX + "LOG_LEVEL", DEFAULT_LOG_LEVEL),
        help="Python log level",
    )
    parser.add_argument("--json", action="store_true", help="Print the run report as JSON")

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("up", help="Create the virtual device and wire both speakers (default)")
    sub.add_parser("check", help="Only check tools and speakers")
    sub.add_parser("down", help="Remove the virtual device")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level)

    try:
        config = resolve_config(
            virtual_name=args.virtual_name,
            description=args.description,
            left=args.left,
            right=args.right,
            settle_delay=args.settle_delay,
            settle_timeout=args.settle_timeout,
        )
    except ValueError as exc:
        parser.error(str(exc))

    if args.command in (None, "up"):
        return cmd_up(args, config)
    if args.command == "check":
        return cmd_check(args, config)
    if args.command == "down":
        return cmd_down(args, config)

    parser.error("unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
