from __future__ import annotations

import json
import logging
from pathlib import Path

from platformdirs import user_log_dir

from ..config import ClientConfig
from .events import TelemetryEvent

logger = logging.getLogger(__name__)

APP_NAME = "cmpss_admin"


class TelemetryLogger:
    """JSON-lines event journal. Disabled journals accept events and drop them."""

    def __init__(self, *, app_name: str = APP_NAME, enabled: bool = False, log_file: str | Path | None = None) -> None:
        self.app_name = app_name
        self.enabled = enabled
        self.log_file = Path(log_file) if log_file else Path(user_log_dir("cmpss-admin", "CMPSS")) / "telemetry.jsonl"

    @classmethod
    def disabled(cls) -> "TelemetryLogger":
        return cls(enabled=False)

    @classmethod
    def from_config(cls, config: ClientConfig) -> "TelemetryLogger":
        return cls(enabled=config.telemetry_enabled)

    def emit(self, event: TelemetryEvent) -> bool:
        if not self.enabled:
            return False
        record = event.as_record(self.app_name)
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a", encoding="utf-8") as fp:
            fp.write(json.dumps(record, sort_keys=True) + "\n")
        logger.debug("telemetry_event", extra={"category": record["category"], "event_name": event.name})
        return True
