import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from pythonjsonlogger import jsonlogger

from leaveflow.core.config import settings

# Set per request by CorrelationIdMiddleware
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "passlib": logging.ERROR,
}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per line, stamped with the service name and the current request id."""

    def __init__(self, *args, service: str = "leaveflow", **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service

        req_id = request_id_var.get()
        if req_id:
            log_record["request_id"] = req_id


def setup_logging(level: Optional[Union[int, str]] = None, service: Optional[str] = None):
    root = logging.getLogger()
    # The app module may be imported more than once (tests, reloaders)
    if any(isinstance(h.formatter, CustomJsonFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(CustomJsonFormatter(
        "%(timestamp) %(level) %(name) %(message)",
        service=service or settings.app_name.lower(),
    ))
    root.addHandler(handler)
    root.setLevel(level or settings.log_level)

    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)
