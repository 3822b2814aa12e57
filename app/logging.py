import logging
import os
import structlog
import sys
from pathlib import Path
from dotenv import load_dotenv

# RPC, HTTP and scheduler libraries log every request/job at INFO.
_LIBRARY_LOGGERS = ("web3", "urllib3", "httpx", "apscheduler")
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

def _attach_handlers(level: int, error_log_path: str):
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)
    formatter = logging.Formatter("%(message)s")

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setLevel(level)
    stdout.setFormatter(formatter)
    root.addHandler(stdout)

    if error_log_path:
        Path(error_log_path).parent.mkdir(parents=True, exist_ok=True)
        errors = logging.FileHandler(error_log_path)
        errors.setLevel(logging.ERROR)
        errors.setFormatter(formatter)
        root.addHandler(errors)

def setup_logging():
    load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    _attach_handlers(level, os.getenv("LOG_ERROR_FILE", "").strip())

    if os.getenv("LOG_FORMAT", "json").strip().lower() == "console":
        tail = [structlog.dev.ConsoleRenderer()]
    else:
        tail = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            *tail,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    )

    library_level = level if level <= logging.DEBUG else logging.WARNING
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
    for name in _SERVER_LOGGERS:
        logging.getLogger(name).setLevel(level)
