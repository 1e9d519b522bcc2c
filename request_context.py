from __future__ import annotations

import time
import uuid
from contextvars import ContextVar

_request_id: ContextVar[str] = ContextVar("_request_id", default="-")

def new_request_id() -> str:
    rid = uuid.uuid4().hex[:12]
    _request_id.set(rid)
    return rid

def get_request_id() -> str:
    return _request_id.get()

def new_itinerary_id() -> int:
    """Milliseconds since the epoch; unique enough per generation, not globally."""
    return int(time.time() * 1000)
