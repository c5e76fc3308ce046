"""Helpers that build and publish planner events on a bus.

Quick import:
    from mealplan.events.event_helpers import (
        publish_store_changed, publish_sync_error, STORE_CHANGED, SYNC_ERROR
    )
"""
from __future__ import annotations
from typing import Optional
from .Event_Bus import (
    EventBus, crea,
    STORE_CHANGED, SESSION_IDENTITY, SYNC_ERROR
)

__all__ = [
    'publish_store_changed', 'publish_sync_error',
    'STORE_CHANGED', 'SESSION_IDENTITY', 'SYNC_ERROR'
]


def publish_store_changed(key: str, version: int, kind: str, bus: Optional[EventBus] = None):
    """Publish a store.changed event after a gateway write."""
    publish = bus.publish if bus is not None else crea
    publish(STORE_CHANGED, {
        'key': key,
        'version': version,
        'kind': kind
    })


def publish_sync_error(key: str, error: Exception, bus: Optional[EventBus] = None):
    """Publish a sync.error event when a subscription stream fails."""
    publish = bus.publish if bus is not None else crea
    publish(SYNC_ERROR, {
        'key': key,
        'error': str(error)
    })
