import sys
from logging import FileHandler, Formatter, basicConfig, getLogger
from os import makedirs
from os.path import dirname, exists, getsize
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LOG = getLogger(__name__)


class LogFileHandler(FileHandler):
    """Append-only file handler that goes quiet instead of failing the run."""

    broken = False

    def emit(self, record) -> None:
        if self.broken:
            return
        super().emit(record)

    def handleError(self, record) -> None:
        self.broken = True
        sys.stderr.write(f"Log file {self.baseFilename} is no longer writable; file logging disabled\n")


def configure_logging(
    level: str,
    log_file: Optional[str] = None,
    fallback_log_file: Optional[str] = None,
    max_bytes: int = 0,
) -> Optional[str]:
    basicConfig(format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, level=level)
    if log_file is None:
        return None
    handler = open_log_handler(log_file, fallback_log_file, max_bytes)
    if handler is None:
        LOG.warning("File logging disabled for this run")
        return None
    handler.setFormatter(Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    getLogger().addHandler(handler)
    return handler.baseFilename


def open_log_handler(
    log_file: str,
    fallback_log_file: Optional[str],
    max_bytes: int,
) -> Optional[LogFileHandler]:
    for path in (log_file, fallback_log_file):
        if not path:
            continue
        try:
            prepare_log_file(path, max_bytes)
            return LogFileHandler(path, mode="a", encoding="utf-8")
        except OSError as error:
            LOG.warning("Cannot write log file %s: %s", path, error)
    return None


def prepare_log_file(path: str, max_bytes: int) -> None:
    directory = dirname(path)
    if directory:
        makedirs(directory, exist_ok=True)
    if max_bytes > 0 and exists(path) and getsize(path) > max_bytes:
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(f"Log truncated after exceeding {max_bytes} bytes\n")


def safe_get(mapping: Optional[dict], key: str, default=None):
    if mapping is None:
        return default
    value = mapping.get(key)
    return value if value is not None else default
