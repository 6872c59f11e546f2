"""Structured logging — JSON line shape and handler installation."""

import json
import logging

from restapi.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "restapi.api.response", logging.WARNING, __file__, 1,
        "sending error response: %s", (404,), None,
    )
    record.__dict__.update(extra)
    return record


def test_json_line_carries_request_context():
    line = json.loads(JSONFormatter().format(_record(
        path="/pins/x", status_code=404, rpc_service="Cluster", rpc_method="Unpin",
    )))
    assert line["message"] == "sending error response: 404"
    assert line["level"] == "WARNING"
    assert line["path"] == "/pins/x"
    assert line["status_code"] == 404
    assert line["rpc"] == "Cluster.Unpin"


def test_absent_context_is_omitted():
    line = json.loads(JSONFormatter().format(_record(cid=None)))
    assert "cid" not in line
    assert "rpc" not in line


def test_setup_logging_replaces_its_own_handler():
    try:
        setup_logging("debug", "text")
        handler = setup_logging("info", "json")
        ours = [h for h in logging.root.handlers if h.get_name() == "restapi"]
        assert ours == [handler]
        assert isinstance(handler.formatter, JSONFormatter)
        assert logging.root.level == logging.INFO
    finally:
        for h in list(logging.root.handlers):
            if h.get_name() == "restapi":
                logging.root.removeHandler(h)
