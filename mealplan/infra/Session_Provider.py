"""Session Provider: who is signed in, delivered as a stream of identity changes."""
import logging
from typing import Any, Callable, Optional

from mealplan.events.Event_Bus import EventBus, SESSION_IDENTITY

logger = logging.getLogger(__name__)


class Identity:
    def __init__(self, uid: str, display_name: str = "", email: Optional[str] = None):
        self.uid = uid
        self.display_name = display_name
        self.email = email

    def __eq__(self, other) -> bool:
        if not isinstance(other, Identity):
            return NotImplemented
        return self.uid == other.uid

    def __hash__(self) -> int:
        return hash(self.uid)

    def __str__(self) -> str:
        return f"{self.display_name or self.uid} <{self.uid}>"

    __repr__ = __str__

    def to_dict(self):
        return {"uid": self.uid, "display_name": self.display_name, "email": self.email}


class LocalSessionProvider:
    """In-process identity source.

    sign_in/sign_out return nothing; listeners registered with
    on_identity_change learn the outcome. Each provider has its own bus so
    separate sessions never see each other's identities.
    """

    def __init__(self, event_bus: Optional[EventBus] = None):
        self._event_bus = event_bus or EventBus()
        self.current: Optional[Identity] = None

    def on_identity_change(self, callback: Callable[[Optional[Identity]], Any]) -> Callable[[], None]:
        def listener(_event_name, identity):
            callback(identity)

        self._event_bus.subscribe(SESSION_IDENTITY, listener)
        callback(self.current)
        return lambda: self._event_bus.unsubscribe(SESSION_IDENTITY, listener)

    def sign_in(self, identity: Identity) -> None:
        if identity == self.current:
            return
        logger.info("Signed in as %s", identity)
        self.current = identity
        self._event_bus.publish(SESSION_IDENTITY, identity)

    def sign_out(self) -> None:
        if self.current is None:
            return
        logger.info("Signed out %s", self.current)
        self.current = None
        self._event_bus.publish(SESSION_IDENTITY, None)
