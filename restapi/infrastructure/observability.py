"""Structured Logging — one JSON object per line for every request-path log record.

Invariants:
    - Each record carries timestamp, level, logger and message
    - Request context passed through `extra=` is surfaced as top-level keys:
      path / status_code / error_code (response shaper, error handlers),
      rpc_service / rpc_method (remote caller, RequestScope), cid / peer (pin
      and peer routes)
    - rpc_service + rpc_method are also joined into a single "rpc" key
      ("Cluster.Status") so a call can be grepped as one token
    - setup_logging is idempotent: a second call replaces its own handler

Design Decisions:
    - stdlib logging + a small Formatter, configured from Settings.log_format
      ("json" in deployments, "text" for local runs and tests)
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "path", "status_code", "error_code", "rpc_service", "rpc_method", "cid", "peer",
)

_HANDLER_NAME = "restapi"


class JSONFormatter(logging.Formatter):
    """Render a record and its request context as a JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if "rpc_service" in log and "rpc_method" in log:
            log["rpc"] = f"{log['rpc_service']}.{log['rpc_method']}"
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the service's root handler, replacing a previous one."""
    for existing in list(logging.root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logging.root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s — %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
