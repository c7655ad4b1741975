import json
import logging
from datetime import datetime

from leaveflow.core.logging import CustomJsonFormatter, request_id_var

LOG_FORMAT = "%(timestamp) %(level) %(name) %(message)"


def _emit(message="Leave request 1 created"):
    formatter = CustomJsonFormatter(LOG_FORMAT, service="leaveflow")
    record = logging.LogRecord("leaveflow.services.leave", logging.INFO, __file__, 1, message, None, None)
    return json.loads(formatter.format(record)), record


def test_log_line_is_stamped_with_timestamp_and_service():
    line, record = _emit()
    assert line["timestamp"]
    assert abs(datetime.fromisoformat(line["timestamp"]).timestamp() - record.created) < 0.001
    assert line["level"] == "INFO"
    assert line["service"] == "leaveflow"
    assert line["message"] == "Leave request 1 created"
    assert "request_id" not in line


def test_log_line_carries_current_request_id():
    token = request_id_var.set("req-42")
    try:
        line, _ = _emit()
    finally:
        request_id_var.reset(token)
    assert line["request_id"] == "req-42"
