"""Logging setup for the gateway's ``kb_gateway`` logger tree.

Modules log through ``logging.getLogger(__name__)``. Fan-out failures pass
``extra={"provider": ..., "store_id": ...}`` so the JSON output can be
filtered per backend.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

ROOT_LOGGER_NAME = "kb_gateway"

# Record attributes copied into JSON entries when a call site sets them.
CONTEXT_FIELDS = ("provider", "store_id")

# HTTP transports used by the supabase, pinecone and openai SDKs log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "hpack")

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class JSONExceptionFormatter(logging.Formatter):
    """One JSON object per line, with provider context and exception details."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.filename}:{record.lineno} in {record.funcName}",
        }

        context = {
            name: getattr(record, name) for name in CONTEXT_FIELDS if hasattr(record, name)
        }
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_format: bool = False,
) -> logging.Logger:
    """Attach handlers to the ``kb_gateway`` logger, replacing earlier ones.

    Safe to call more than once (the API module and the CLI both call it).

    Args:
        level: Level name for the gateway loggers; unknown names mean INFO.
        log_file: Also write to this file, creating parent directories.
        json_format: Emit JSON lines instead of the pipe-separated text format.

    Returns:
        The configured ``kb_gateway`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    formatter: logging.Formatter = (
        JSONExceptionFormatter() if json_format else logging.Formatter(TEXT_FORMAT)
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
