"""Logging setup for the ``mocknet`` logger tree, driven by ``Settings``."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional


class JSONFormatter(logging.Formatter):
    """One JSON object per line; life-cycle records carry their request id at top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data = getattr(record, "extra_data", None)
        if data is not None:
            if isinstance(data, dict) and "request_id" in data:
                log_entry["request_id"] = data["request_id"]
            log_entry["data"] = data
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False, default=str)


def configure_logging(*, json_output: Optional[bool] = None, level: Optional[str] = None) -> None:
    """Install a stdout handler on the ``mocknet`` logger.

    Args:
        json_output: Use :class:`JSONFormatter`. Defaults to ``Settings.log_json``.
        level: Level for ``mocknet.*`` loggers. Defaults to ``Settings.log_level``.
    """
    if json_output is None or level is None:
        from mocknet.config import get_settings

        settings = get_settings()
        json_output = settings.log_json if json_output is None else json_output
        level = settings.log_level if level is None else level

    package_logger = logging.getLogger("mocknet")
    package_logger.setLevel(level)

    # Repeated calls replace the handler instead of stacking them
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)-5s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    package_logger.addHandler(handler)

    # Passthrough traffic goes through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
