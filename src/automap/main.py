from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException

from automap.observability.logger import RequestTimer, generate_request_id, log_event
from automap.router import remap_event_type
from automap.standards.rule_config import DEFAULT_RULES
from automap.utils.exceptions import ConfigError, MalformedEventTypeError

app = FastAPI(
    title="Event Type Auto-Mapper",
    version="1.0.0"
)


@app.post("/remap")
def remap(payload: Dict[str, Any]):
    """
    Run the rule engine over one auto-mapped event type.

    Body: {"event_type": {...}, "rules": {optional RuleConfig overrides}}
    """
    request_id = generate_request_id()
    timer = RequestTimer()

    event_type = payload.get("event_type")
    overrides: Optional[Dict[str, Any]] = payload.get("rules")

    try:
        rules = DEFAULT_RULES.with_overrides(overrides) if overrides else DEFAULT_RULES
    except ConfigError as e:
        raise HTTPException(status_code=400, detail={"status": "ERROR", "message": str(e)})

    try:
        outcome = remap_event_type(event_type, rules)
    except MalformedEventTypeError as e:
        raise HTTPException(status_code=422, detail={"status": "ERROR", "message": str(e)})

    log_event("EVENT_TYPE_PREVIEWED", {
        "request_id": request_id,
        "event_type": outcome.event_type.name,
        "summary": outcome.summary,
        "duration_seconds": timer.duration(),
    })

    return {
        "status": "SUCCESS",
        "name": outcome.event_type.name,
        "summary": outcome.summary,
        "columns": outcome.columns,
        "fields": outcome.event_type.fields_to_dict(),
        "discard_reasons": outcome.discard_reasons,
    }
