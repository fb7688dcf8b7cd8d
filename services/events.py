"""Events emitted by the guest services, dispatched through blinker signals."""

from __future__ import annotations

import logging
from typing import Any

from blinker import Namespace

logger = logging.getLogger(__name__)

guest_signals = Namespace()

USER_LOGIN = "user.login"
USER_LOGOUT = "user.logout"
USER_REGISTERED = "user.registered"
USER_CONFIRMED = "user.confirmed"

user_login = guest_signals.signal(USER_LOGIN)
user_logout = guest_signals.signal(USER_LOGOUT)
user_registered = guest_signals.signal(USER_REGISTERED)
user_confirmed = guest_signals.signal(USER_CONFIRMED)


class EventSink:
    """Emit named events to the receivers connected to the matching signal."""

    def __init__(self, namespace: Namespace | None = None):
        self.namespace = namespace or guest_signals

    def emit(self, event_name: str, payload: Any) -> None:
        logger.debug("Emitting %s", event_name)
        self.namespace.signal(event_name).send(payload)
