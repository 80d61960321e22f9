from argparse import ArgumentParser, ArgumentTypeError, BooleanOptionalAction
from dataclasses import replace
from logging import getLogger
from typing import Optional, Sequence

from docker.errors import DockerException
from requests.exceptions import RequestException

from .config import VERSION, Settings, load_settings
from .engine import process, report_summary
from .gate import await_groups
from .notifier import notify_gate_failure, notify_summary
from .runtime import DockerRuntime
from .utils import configure_logging

LOG = getLogger(__name__)
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class CliParser(ArgumentParser):
    def error(self, message: str) -> None:
        # unrecognized input is fatal with the same exit code as a gate failure
        self.print_usage()
        self.exit(1, f"{self.prog}: error: {message}\n")


def _seconds(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as error:
        raise ArgumentTypeError(f"invalid duration: {value!r}") from error
    if parsed < 0:
        raise ArgumentTypeError(f"duration must not be negative: {value!r}")
    return parsed


def _size(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as error:
        raise ArgumentTypeError(f"invalid size: {value!r}") from error
    if parsed <= 0:
        raise ArgumentTypeError(f"size must be positive: {value!r}")
    return parsed


def build_parser(defaults: Settings) -> CliParser:
    parser = CliParser(
        prog="dockstart",
        description="Start Docker containers whose restart policy should have kept them running.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument(
        "--retry",
        action=BooleanOptionalAction,
        default=defaults.retry,
        help="wait for Docker to become available instead of failing immediately",
    )
    parser.add_argument(
        "--retry-interval",
        type=_seconds,
        default=defaults.retry_interval,
        metavar="SECONDS",
        help="pause between availability checks (default: %(default)s)",
    )
    parser.add_argument(
        "--max-wait",
        type=_seconds,
        default=defaults.max_wait,
        metavar="SECONDS",
        help="give up waiting after this long (default: %(default)s)",
    )
    parser.add_argument(
        "--force",
        action=BooleanOptionalAction,
        default=defaults.force,
        help="also start 'unless-stopped' containers that exited cleanly",
    )
    parser.add_argument(
        "--pause",
        dest="pause_seconds",
        type=_seconds,
        default=defaults.pause_seconds,
        metavar="SECONDS",
        help="pause after each container (default: %(default)s)",
    )
    parser.add_argument("--docker-host", default=defaults.docker_host, metavar="URL")
    parser.add_argument("--log-file", default=defaults.log_file, metavar="PATH")
    parser.add_argument(
        "--log-max-size",
        dest="log_max_bytes",
        type=_size,
        default=defaults.log_max_bytes,
        metavar="BYTES",
        help="truncate the log file at startup when larger than this (default: %(default)s)",
    )
    parser.add_argument(
        "--no-log",
        dest="log_enabled",
        action="store_false",
        default=defaults.log_enabled,
        help="do not write a log file",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level if defaults.log_level in LOG_LEVELS else "INFO",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]], defaults: Settings) -> Settings:
    args = build_parser(defaults).parse_args(argv)
    return replace(
        defaults,
        retry=args.retry,
        retry_interval=args.retry_interval,
        max_wait=args.max_wait,
        force=args.force,
        pause_seconds=args.pause_seconds,
        docker_host=args.docker_host,
        log_file=args.log_file,
        log_max_bytes=args.log_max_bytes,
        log_enabled=args.log_enabled,
        log_level=args.log_level,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = parse_args(argv, load_settings())
    log_path = configure_logging(
        settings.log_level,
        settings.log_file if settings.log_enabled else None,
        settings.fallback_log_file,
        settings.log_max_bytes,
    )
    LOG.info(
        "Starting dockstart %s (retry=%s, force=%s, log=%s)",
        VERSION,
        settings.retry,
        settings.force,
        log_path or "disabled",
    )
    runtime = DockerRuntime(settings)
    result = await_groups(
        runtime.readiness_groups(),
        settings.retry,
        settings.retry_interval,
        settings.max_wait,
    )
    if not result.ready:
        notify_gate_failure(settings, result)
        return 1

    try:
        containers = runtime.list_containers()
    except (DockerException, RequestException) as error:
        LOG.error("Failed to list containers: %s", error)
        return 1
    if not containers:
        LOG.info("No containers found")

    summary = process(containers, runtime.start, settings.force, settings.pause_seconds)
    report_summary(summary)
    notify_summary(settings, summary)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
