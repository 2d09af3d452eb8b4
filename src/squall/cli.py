#!/usr/bin/env python3
# cli.py: command line entry point for squall

import argparse
import asyncio
import logging
import os
import sys

from squall.errors import ConfigurationError, RunFailedError
from squall.logging_config import setup_logging
from squall.models import DEFAULT_URL, DEFAULT_VARIATE_SCALE_NS, RunConfig
from squall.orchestrator import Orchestrator
from squall.persistence import ReportWriter
from squall.rendering import render_summary, render_timeline
from squall.utils import GracefulKiller

EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_BAD_CONFIG = 2


def _env(name: str, default, cast=str):
    """Flag default taken from SQUALL_<NAME> when set."""
    raw = os.getenv(f"SQUALL_{name}")
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"invalid value for SQUALL_{name}: {raw!r}") from None


def _env_flag(name: str) -> bool:
    return os.getenv(f"SQUALL_{name}", "").lower() in ("1", "true", "yes", "on")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="squall",
        description="Squall: bursty HTTP load from superposed Markov ON/OFF workers",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        epilog="Every option can also be set through SQUALL_<OPTION> environment variables.",
    )

    # Target & Traffic Shape
    parser.add_argument(
        "--url",
        default=_env("URL", DEFAULT_URL),
        help="Target URL for requests",
    )
    parser.add_argument(
        "--workers",
        "--threads",
        dest="workers",
        type=int,
        default=_env("WORKERS", _env("THREADS", 1, int), int),
        help="Number of concurrent ON/OFF workers",
    )
    parser.add_argument(
        "--on",
        type=float,
        default=_env("ON", 0.3, float),
        help="Rate of the exponential ON-phase duration",
    )
    parser.add_argument(
        "--off",
        type=float,
        default=_env("OFF", 0.8, float),
        help="Rate of the exponential OFF-phase duration",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=_env("DURATION", 30.0, float),
        help="Run time in seconds",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=_env("TIMEOUT", 120.0, float),
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "--scale-ns",
        type=int,
        default=_env("SCALE_NS", DEFAULT_VARIATE_SCALE_NS, int),
        help="Nanoseconds per unit of a raw exponential sample",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=_env("SEED", None, int),
        help="Base seed for the per-worker generators (random if unset)",
    )
    parser.add_argument(
        "--max-connections",
        type=int,
        default=_env("MAX_CONNECTIONS", 100, int),
        help="Keep-alive connection pool size per worker",
    )

    # Output
    parser.add_argument(
        "--timeline",
        action="store_true",
        default=_env_flag("TIMELINE"),
        help="Print an ASCII ON/OFF timeline per worker",
    )
    parser.add_argument(
        "--report",
        default=_env("REPORT", None),
        help="Write a JSON run report to this file",
    )
    parser.add_argument(
        "--linger",
        action="store_true",
        default=_env_flag("LINGER"),
        help="Stay alive after the summary until SIGINT/SIGTERM",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        default=_env_flag("NO_PROGRESS"),
        help="Disable the progress bar",
    )

    # Logging & Debugging
    parser.add_argument(
        "--debug",
        action="store_true",
        default=_env_flag("DEBUG"),
        help="Enable debug-level logging",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=_env("LOG_FILE", None),
        help="Optional file to write logs to (e.g., squall.log)",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> RunConfig:
    return RunConfig.create(
        url=args.url,
        workers=args.workers,
        rate_on=args.on,
        rate_off=args.off,
        duration_s=args.duration,
        request_timeout_s=args.timeout,
        variate_scale_ns=args.scale_ns,
        seed=args.seed,
        max_connections=args.max_connections,
    )


async def run(args: argparse.Namespace) -> int:
    config = build_config(args)
    print("Running at rate per thread of", config.duty_cycle)

    orchestrator = Orchestrator(
        config,
        use_progress_bar=not args.no_progress,
        record_timeline=args.timeline,
    )

    loop = asyncio.get_running_loop()
    interrupted = asyncio.Event()

    def _on_signal() -> None:
        loop.call_soon_threadsafe(orchestrator.request_stop, "interrupted")
        loop.call_soon_threadsafe(interrupted.set)

    killer = GracefulKiller(on_signal=_on_signal)
    try:
        try:
            stats = await orchestrator.run()
        except RunFailedError as e:
            logging.error(f"Run failed: {e}")
            print("Error in parallel workers:", e)
            return EXIT_RUN_FAILED

        print()
        print(render_summary(stats))
        if args.timeline:
            print()
            print(render_timeline(orchestrator.records))

        if args.report:
            ReportWriter(args.report).save(config, stats, orchestrator.records)

        if args.linger and not interrupted.is_set():
            logging.info("Run complete. Lingering until SIGINT/SIGTERM...")
            await interrupted.wait()
        return EXIT_OK
    finally:
        killer.restore()


def main(argv: list[str] | None = None) -> None:
    try:
        args = parse_args(argv)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(EXIT_BAD_CONFIG)

    setup_logging(
        level="DEBUG" if args.debug else "INFO",
        log_file=args.log_file,
        rich_console=not args.no_progress,
    )

    try:
        code = asyncio.run(run(args))
    except ConfigurationError as e:
        logging.error(f"Configuration error: {e}")
        code = EXIT_BAD_CONFIG
    sys.exit(code)


if __name__ == "__main__":
    main()
