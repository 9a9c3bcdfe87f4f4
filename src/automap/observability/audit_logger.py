import json
import os
import sys
import uuid
from datetime import datetime, timezone
from typing import Dict

from automap.observability.logger import logger


class _C:
    RESET = "\033[0m"
    CYAN = "\033[36m"


def _use_color() -> bool:
    return os.getenv("LOG_COLOR", "0") == "1" and sys.stdout.isatty()


class AuditLogger:
    """
    Builds and emits one audit record per processed event type.
    """
    def __init__(self, user_id: str = "anonymous"):
        self.user_id = user_id

    def build_record(
        self,
        request_id: str,
        action: str,
        event_type: str,
        status: str,
        summary: Dict | None = None,
        error: str | None = None,
    ) -> Dict:
        summary = summary or {}
        record = {
            "audit_id": str(uuid.uuid4()),
            "request_id": request_id,
            "user_id": self.user_id,
            "action": action,
            "event_type": event_type,
            "status": status,
            "columns": summary.get("columns", 0),
            "discarded": summary.get("discarded", 0),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if error:
            record["error"] = error
        return record

    def persist(self, record: Dict):
        """
        Structured log output; the platform keeps no audit store of its own.
        """
        text = json.dumps({"AUDIT_EVENT": record})
        if _use_color():
            text = f"{_C.CYAN}{text}{_C.RESET}"
        logger.info(text)
