"""Web-facing observer for store changes.

Subscribes to the GLOBAL_EVENT_BUS for store.changed and sync.error and keeps
an in-memory ring buffer of recent events. Browser clients poll it through the
HTTP API and re-fetch the resources named in the events, which gives them the
same "notify on every change, from any session" behavior as a direct gateway
subscription.

Design:
  * Each event gets an auto-increment integer id (cursor) so clients can ask
    only for newer events (since=<last_id_seen>).
  * A Lock guards the buffer; uvicorn may serve requests from a thread pool.
  * CHANGE_EVENTS_MAX caps memory use.
"""
from __future__ import annotations
from typing import List, Dict, Any
from threading import Lock
from datetime import datetime, timezone

from mealplan.utilities.config import CHANGE_EVENTS_MAX
from .Event_Bus import GLOBAL_EVENT_BUS, STORE_CHANGED, SYNC_ERROR

_lock = Lock()
_events: List[Dict[str, Any]] = []
_next_id = 1
_started = False


def _record(event_name: str, payload: Any):  # signature expected by EventBus
    global _next_id
    with _lock:
        evt = {
            'id': _next_id,
            'type': event_name,
            'ts': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
        }
        if isinstance(payload, dict):
            for k in ('key', 'version', 'kind', 'error'):
                if k in payload:
                    evt[k] = payload[k]
        _events.append(evt)
        _next_id += 1
        if len(_events) > CHANGE_EVENTS_MAX:
            del _events[: len(_events) - CHANGE_EVENTS_MAX]


def start():
    """Idempotent start: subscribe observers once."""
    global _started
    if _started:
        return
    GLOBAL_EVENT_BUS.subscribe(STORE_CHANGED, _record)
    GLOBAL_EVENT_BUS.subscribe(SYNC_ERROR, _record)
    _started = True


def get_events(since: int | None = None) -> Dict[str, Any]:
    """Return events newer than 'since' (exclusive).

    If since is None, returns the whole buffer. next_cursor is the largest id
    seen so the client can poll with since=next_cursor.
    """
    with _lock:
        if since is None:
            data = list(_events)
        else:
            data = [e for e in _events if e['id'] > since]
        next_cursor = _events[-1]['id'] if _events else since or 0
    return {'events': data, 'next_cursor': next_cursor}


__all__ = ['start', 'get_events']
