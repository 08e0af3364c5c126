import argparse
import json
import logging
import sys

from core.config import settings
from core.models import ScanConfig, ScanOutcome
from core.ports import PortSpecError
from core.state import ReportStore
from pipeline.orchestrator import Orchestrator

EXIT_BAD_INPUT = 2
EXIT_INTERRUPTED = 130


def _print(obj):
    print(json.dumps(obj, indent=2, default=str))


def _print_open(outcome: ScanOutcome):
    print(f"[OPEN] {outcome.host}:{outcome.port} banner={outcome.banner}", flush=True)


def cmd_scan(args) -> int:
    try:
        config = ScanConfig(
            host=args.host,
            port_spec=args.ports,
            concurrency=args.concurrency,
            dial_timeout_ms=args.timeout,
            banner_read_bytes=args.banner_bytes,
        )
    except ValueError as exc:
        print(f"invalid configuration: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT

    orch = Orchestrator(store=ReportStore(args.output))
    try:
        report = orch.scan(config, on_open=_print_open, save=not args.no_save)
    except PortSpecError as exc:
        print(f"invalid ports: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT

    print(f"Found {report.open_count} open ports out of {len(report.outcomes)} scanned in {report.duration_ms} ms")
    if not args.no_save and not report.degraded:
        print(f"Scan complete. Results saved to {orch.store.path}")
    if report.cancelled:
        return EXIT_INTERRUPTED
    return 0


def cmd_report(args) -> int:
    orch = Orchestrator()
    _print(orch.report(args.host))
    return 0


def cmd_verify(args) -> int:
    orch = Orchestrator()
    _print(orch.verify())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Concurrent TCP connect scanner (single host)")
    sub = parser.add_subparsers()

    p_scan = sub.add_parser("scan", help="Scan ports on a host")
    p_scan.add_argument("host", help="Target host (IP or hostname)")
    p_scan.add_argument("--ports", default=settings.default_ports, help="Ports, e.g. 22,80,443 or 1-65535 or 22,80,8000-8100")
    p_scan.add_argument("-c", "--concurrency", type=int, default=settings.concurrency, help="Worker count")
    p_scan.add_argument("-t", "--timeout", type=int, default=settings.dial_timeout_ms, help="Dial timeout in ms")
    p_scan.add_argument("-b", "--banner-bytes", type=int, default=settings.banner_read_bytes, help="Banner read bytes (0 to skip)")
    p_scan.add_argument("-o", "--output", default=None, help="Output JSON file (array)")
    p_scan.add_argument("--no-save", action="store_true", default=False, help="Do not write the report file")
    p_scan.set_defaults(func=cmd_scan)

    p_report = sub.add_parser("report", help="Print outcomes of the last saved scan")
    p_report.add_argument("--host", default=None)
    p_report.set_defaults(func=cmd_report)

    p_verify = sub.add_parser("verify", help="Report file + ES connectivity check")
    p_verify.set_defaults(func=cmd_verify)
    return parser


def main(argv=None) -> int:
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    if hasattr(args, "func"):
        return args.func(args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
