import json
import logging
import os
import sys
import time
import uuid

LOGGER_NAME = "event_automap"


class _C:
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    MAGENTA = "\033[35m"


# Event name suffix -> colour; BATCH_* and EVENT_TYPE_* share the outcome suffixes
_OUTCOME_COLORS = {
    "FAILED": _C.RED,
    "SKIPPED": _C.YELLOW,
    "STARTED": _C.GREEN,
    "COMPLETED": _C.GREEN,
    "PREVIEWED": _C.CYAN,
}


def _use_color() -> bool:
    return os.getenv("LOG_COLOR", "0") == "1" and sys.stdout.isatty()


def _event_color(event_type: str) -> str:
    outcome = (event_type or "").upper().rsplit("_", 1)[-1]
    return _OUTCOME_COLORS.get(outcome, _C.MAGENTA)


def _level_from_env() -> int:
    # AUTOMAP_LOG_LEVEL=DEBUG also prints skipped event types
    level = logging.getLevelName(os.getenv("AUTOMAP_LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(_level_from_env())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


logger = get_logger()


def generate_request_id() -> str:
    return str(uuid.uuid4())


def log_event(event_type: str, payload: dict, level: int = logging.INFO):
    """
    One JSON object per line: {"event_type": ..., **payload}. Values that are
    not JSON-native (exceptions, datetimes) are written with str().
    """
    text = json.dumps({"event_type": event_type, **payload}, default=str)
    if _use_color():
        text = f"{_event_color(event_type)}{text}{_C.RESET}"
    logger.log(level, text)


class RequestTimer:
    """
    Wall-clock duration of one batch or one event type, in seconds.
    """
    def __init__(self):
        self.start_time = time.time()

    def duration(self) -> float:
        return round(time.time() - self.start_time, 4)
