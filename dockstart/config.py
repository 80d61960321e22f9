from dataclasses import dataclass
from os import getenv
from typing import Optional

VERSION = "1.1.0"

DEFAULT_DOCKER_HOST = "unix://var/run/docker.sock"
DEFAULT_RETRY_INTERVAL = 5.0
DEFAULT_MAX_WAIT = 300.0
DEFAULT_PAUSE_SECONDS = 0.1
DEFAULT_LOG_FILE = "/var/log/dockstart.log"
DEFAULT_FALLBACK_LOG_FILE = "/tmp/dockstart.log"
DEFAULT_LOG_MAX_BYTES = 1024 * 1024
DEFAULT_PUSHOOVER_API = "https://api.pushover.net/1/messages.json"
DEFAULT_LOG_LEVEL = "INFO"
ALL_NOTIFICATION_EVENTS = ("started", "failed", "gate")


@dataclass(frozen=True)
class Settings:
    docker_host: str
    retry: bool
    retry_interval: float
    max_wait: float
    force: bool
    pause_seconds: float
    log_enabled: bool
    log_file: str
    fallback_log_file: str
    log_max_bytes: int
    log_level: str
    notifications: frozenset
    pushover_token: Optional[str]
    pushover_user: Optional[str]
    pushover_api: str
    webhook_url: Optional[str]


def load_settings() -> Settings:
    return Settings(
        docker_host=getenv("DOCKER_HOST", DEFAULT_DOCKER_HOST),
        retry=_env_bool("DOCKSTART_RETRY", False),
        retry_interval=_env_float("DOCKSTART_RETRY_INTERVAL", DEFAULT_RETRY_INTERVAL),
        max_wait=_env_float("DOCKSTART_MAX_WAIT", DEFAULT_MAX_WAIT),
        force=_env_bool("DOCKSTART_FORCE", False),
        pause_seconds=_env_float("DOCKSTART_PAUSE", DEFAULT_PAUSE_SECONDS),
        log_enabled=_env_bool("DOCKSTART_LOG", True),
        log_file=getenv("DOCKSTART_LOG_FILE", DEFAULT_LOG_FILE),
        fallback_log_file=getenv("DOCKSTART_FALLBACK_LOG_FILE", DEFAULT_FALLBACK_LOG_FILE),
        log_max_bytes=_env_int("DOCKSTART_LOG_MAX_SIZE", DEFAULT_LOG_MAX_BYTES),
        log_level=getenv("DOCKSTART_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        notifications=frozenset(_env_csv_set("DOCKSTART_NOTIFICATIONS", "all")),
        pushover_token=getenv("DOCKSTART_PUSHOVER_TOKEN"),
        pushover_user=getenv("DOCKSTART_PUSHOVER_USER"),
        pushover_api=getenv("DOCKSTART_PUSHOVER_API", DEFAULT_PUSHOOVER_API),
        webhook_url=getenv("DOCKSTART_WEBHOOK_URL"),
    )


def _env_bool(name: str, default: bool) -> bool:
    value = getenv(name)
    if value is None:
        return default
    lowered = value.strip().lower()
    return lowered in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _env_float(name: str, default: float) -> float:
    value = getenv(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _env_csv_set(name: str, default: str) -> set[str]:
    raw = getenv(name, default)
    items = {item.strip().lower() for item in raw.replace(" ", ",").split(",") if item.strip()}
    if "all" in items:
        return set(ALL_NOTIFICATION_EVENTS)
    return items & set(ALL_NOTIFICATION_EVENTS)
