"""
Command-line interface for the logmetrics load generator.

Provides commands for:
- Sending remote-write metrics to a collector
- Sending plain-text log lines to a collector
- Previewing and validating generated batches without sending them
"""

import argparse
import logging
import sys

from . import __version__
from .config import Settings, load_settings
from .errors import LogmetricsError
from .exporters.remote_write import decode
from .generators.log_generator import PlainTextGenerator
from .generators.metric_generator import MetricGenerator
from .sender import Sender, SenderStats
from .statistics.random_source import RandomSource
from .validators.series_validator import SeriesValidator, describe

# Sent to the collector when neither config nor flags name any container.
_FALLBACK_CONTAINERS = ["container-1"]


def _add_common_options(parser: argparse.ArgumentParser, suppress: bool) -> None:
    # Subcommands accept the same options after the command name; SUPPRESS keeps
    # them from overwriting values given before it.
    default = argparse.SUPPRESS if suppress else None
    parser.add_argument("--config", type=str, default=default, help="Path to config YAML")
    parser.add_argument(
        "--endpoint",
        type=str,
        default=default,
        help="Collector base URL (default: from config, else http://localhost:8080)",
    )
    parser.add_argument(
        "--containers",
        type=str,
        default=default,
        metavar="NAME[,NAME...]",
        help="Comma-separated container names to fabricate metrics for",
    )
    parser.add_argument(
        "--org-id",
        type=str,
        default=default,
        help="Tenant id, sent as the orgid label and X-Scope-OrgID header",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=default,
        help="Seed for the random source (default: time-derived)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=argparse.SUPPRESS if suppress else "INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )


def _add_send_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--count",
        type=int,
        default=None,
        help="Number of payloads to send per worker (default: until interrupted)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Interval between payloads in ms (default: from config, else 1000)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Concurrent send loops sharing one generator (default: 1)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds (default: 15)",
    )
    parser.add_argument(
        "--max-failures",
        type=int,
        default=None,
        help="Stop after this many consecutive send failures",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="logmetrics",
        description="Synthetic metrics and log load generator for observability backends",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Send remote-write metrics for two containers every 500ms
  logmetrics metrics --containers api,worker --interval 500

  # Send 100 plain-text batches of 50 lines
  logmetrics plaintext --lines-per-cycle 50 --count 100

  # Print and validate three cycles without sending anything
  logmetrics preview --cycles 3 --validate
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_common_options(parser, suppress=False)

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    metrics_parser = subparsers.add_parser("metrics", help="Send remote-write metrics")
    _add_common_options(metrics_parser, suppress=True)
    _add_send_options(metrics_parser)

    plaintext_parser = subparsers.add_parser("plaintext", help="Send plain-text log lines")
    _add_common_options(plaintext_parser, suppress=True)
    _add_send_options(plaintext_parser)
    plaintext_parser.add_argument(
        "--lines-per-cycle",
        type=int,
        default=None,
        help="Lines per payload (default: from config)",
    )

    preview_parser = subparsers.add_parser("preview", help="Print generated batches without sending")
    _add_common_options(preview_parser, suppress=True)
    preview_parser.add_argument(
        "--cycles",
        type=int,
        default=1,
        help="Number of generation cycles to run (default: 1)",
    )
    preview_parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate each batch and print the result",
    )
    preview_parser.add_argument(
        "--plaintext",
        action="store_true",
        help="Preview a plain-text batch instead of metrics",
    )

    return parser


def _resolve_settings(args: argparse.Namespace) -> Settings:
    """Config file and environment first, then CLI flags."""
    settings = load_settings(getattr(args, "config", None))
    containers = getattr(args, "containers", None)
    settings = settings.with_overrides(
        endpoint=getattr(args, "endpoint", None),
        containers=[c.strip() for c in containers.split(",") if c.strip()] if containers else None,
        org_id=getattr(args, "org_id", None),
        lines_per_cycle=getattr(args, "lines_per_cycle", None),
        interval_ms=getattr(args, "interval", None),
        workers=getattr(args, "workers", None),
        timeout_seconds=getattr(args, "timeout", None),
    )
    if not settings.containers:
        settings.containers = list(_FALLBACK_CONTAINERS)
    return settings


def _random_source(args: argparse.Namespace) -> RandomSource:
    return RandomSource(getattr(args, "seed", None))


def _build_metric_generator(settings: Settings, rng: RandomSource) -> MetricGenerator:
    return MetricGenerator(
        settings.containers,
        org_id=settings.org_id,
        bucket_bounds=settings.bucket_bounds,
        rng=rng,
    )


def _run_sender(sender: Sender, settings: Settings, count: int | None) -> SenderStats:
    def progress_callback(current: int, stats: SenderStats):
        if count is None or current % 10 == 0 or current == count:
            print(
                f"   Sent: {stats.requests_sent} ok, {stats.requests_failed} failed, "
                f"{stats.records_sent} records, {stats.bytes_sent} bytes"
            )

    if settings.workers <= 1:
        return sender.run(count=count, interval_ms=settings.interval_ms, progress_callback=progress_callback)
    sender.start(
        workers=settings.workers,
        count=count,
        interval_ms=settings.interval_ms,
        progress_callback=progress_callback,
    )
    sender.join()
    return sender.stats


def _send(args: argparse.Namespace, settings: Settings, generator) -> None:
    print(f"   Endpoint: {settings.endpoint}{generator.path}")
    print(f"   Interval: {settings.interval_ms}ms, workers: {settings.workers}")
    if args.count is not None:
        print(f"   Count: {args.count}")
    print()

    sender = Sender(
        generator,
        settings.endpoint,
        headers=settings.headers,
        timeout=settings.timeout_seconds,
        max_consecutive_failures=args.max_failures,
    )
    try:
        stats = _run_sender(sender, settings, args.count)
    except KeyboardInterrupt:
        print("\nGeneration interrupted")
        stats = sender.stats
    finally:
        sender.close()

    print()
    print(f"Sent {stats.requests_sent} payloads ({stats.records_sent} records, {stats.bytes_sent} bytes)")
    if stats.requests_failed:
        print(f"   Failed: {stats.requests_failed}")


def cmd_metrics(args: argparse.Namespace):
    """Send remote-write metrics."""
    settings = _resolve_settings(args)
    rng = _random_source(args)
    generator = _build_metric_generator(settings, rng)
    print("Starting remote-write metric generation...")
    print(f"   Containers: {', '.join(generator.containers)}")
    print(f"   Org id: {settings.org_id or '(none)'}")
    print(f"   Series per payload: {generator.series_per_cycle}")
    print(f"   Seed: {rng.seed}")
    _send(args, settings, generator)


def cmd_plaintext(args: argparse.Namespace):
    """Send plain-text log lines."""
    settings = _resolve_settings(args)
    rng = _random_source(args)
    generator = PlainTextGenerator(settings.lines, settings.lines_per_cycle, rng=rng)
    print("Starting plain-text log generation...")
    print(f"   Lines per payload: {settings.lines_per_cycle} (pool of {len(settings.lines)})")
    print(f"   Seed: {rng.seed}")
    _send(args, settings, generator)


def cmd_preview(args: argparse.Namespace):
    """Print generated batches, optionally validating them."""
    settings = _resolve_settings(args)
    rng = _random_source(args)

    if args.plaintext:
        generator = PlainTextGenerator(settings.lines, settings.lines_per_cycle, rng=rng)
        for cycle in range(1, args.cycles + 1):
            request = generator.generate()
            print(f"# cycle {cycle}: {request.size()} lines")
            sys.stdout.write(request.serialize().decode("utf-8"))
        return

    generator = _build_metric_generator(settings, rng)
    validator = SeriesValidator()
    failed = False
    for cycle in range(1, args.cycles + 1):
        request = generator.generate()
        payload = request.serialize()
        series = decode(payload)
        print(f"# cycle {cycle}: {len(series)} series, {len(payload)} bytes (snappy)")
        for ts in series:
            smp = ts.samples[0]
            print(f"{describe(ts)} {smp.value:g} {smp.timestamp_ms}")
        if args.validate:
            result = validator.validate(series)
            print(result)
            failed = failed or not result.valid
        print()
    if failed:
        sys.exit(1)


def main(argv: list[str] | None = None):
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "metrics": cmd_metrics,
        "plaintext": cmd_plaintext,
        "preview": cmd_preview,
    }
    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nGeneration interrupted")
        sys.exit(0)
    except LogmetricsError as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
