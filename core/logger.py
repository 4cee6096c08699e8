# core/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

_configured = False

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Chatty third-party loggers kept at WARNING unless LOG_LEVELS says otherwise.
QUIET_LOGGERS = ("urllib3", "requests")


def _level(name: str, default: int = logging.INFO) -> int:
    return getattr(logging, name.strip().upper(), default)


def parse_level_overrides(raw: str) -> dict[str, int]:
    """
    Parse "core.store=DEBUG,backends.http=WARNING" into a logger->level map.
    Malformed entries are ignored.
    """
    out: dict[str, int] = {}
    for part in raw.split(","):
        name, sep, level = part.partition("=")
        if not sep or not name.strip():
            continue
        value = getattr(logging, level.strip().upper(), None)
        if isinstance(value, int):
            out[name.strip()] = value
    return out


def _file_handler(path: str, level: int, formatter: logging.Formatter) -> logging.Handler:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fh = RotatingFileHandler(
        path,
        maxBytes=int(os.getenv("LOG_MAX_BYTES", str(2 * 1024 * 1024))),
        backupCount=int(os.getenv("LOG_BACKUPS", "3")),
    )
    fh.setLevel(level)
    fh.setFormatter(formatter)
    return fh


def setup_logging():
    global _configured
    if _configured:
        return

    level = _level(os.getenv("LOG_LEVEL", "INFO"))
    log_to_stdout = os.getenv("LOG_TO_STDOUT", "true").lower() == "true"
    log_to_file = os.getenv("LOG_TO_FILE", "false").lower() == "true"
    log_file = os.getenv("LOG_FILE", "/data/catalog_importer.log")
    formatter = logging.Formatter(os.getenv("LOG_FORMAT", DEFAULT_FORMAT))

    root = logging.getLogger()
    root.setLevel(level)

    # Leave handlers installed by the host application (or pytest) alone
    if not root.handlers:
        if log_to_stdout:
            ch = logging.StreamHandler(sys.stdout)
            ch.setLevel(level)
            ch.setFormatter(formatter)
            root.addHandler(ch)

        if log_to_file:
            try:
                root.addHandler(_file_handler(log_file, level, formatter))
            except OSError as e:
                root.warning("Failed to initialize file logging at %s: %s", log_file, e)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name, lvl in parse_level_overrides(os.getenv("LOG_LEVELS", "")).items():
        logging.getLogger(name).setLevel(lvl)

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
