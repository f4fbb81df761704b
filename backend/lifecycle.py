# backend/lifecycle.py
"""Per-connection state machine: connected -> active -> disconnected.

Every method returns the deliveries it produced. When the manager is given a
``dispatch`` callable it also sends them before releasing its lock, so every
connection sees transitions in the order they happened. Events that do not
fit the connection's current state are dropped and produce an empty list.
"""
import enum
import logging
import threading

import broadcast

logger = logging.getLogger(__name__)


class ConnectionState(enum.Enum):
    CONNECTED = "connected"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"


class LifecycleManager:
    def __init__(self, registry, spawn, dispatch=None):
        """``spawn`` is the ``(x, y, animation)`` given to every new actor."""
        self.registry = registry
        self.spawn = spawn
        self.dispatch = dispatch
        self._states = {}  # sid -> ConnectionState, disconnected sids are dropped
        # held across the registry change and the send; emits only enqueue
        self._lock = threading.Lock()

    def state_of(self, sid):
        return self._states.get(sid, ConnectionState.DISCONNECTED)

    def active_ids(self):
        with self._lock:
            return {sid for sid, s in self._states.items() if s is ConnectionState.ACTIVE}

    def connect(self, sid):
        with self._lock:
            if sid in self._states:
                return []
            self._states[sid] = ConnectionState.CONNECTED
        logger.info("connected %s", sid)
        return []

    def ready(self, sid):
        x, y, animation = self.spawn
        with self._lock:
            state = self.state_of(sid)
            if state is not ConnectionState.CONNECTED:
                logger.debug("dropping clientReady from %s (%s)", sid, state.value)
                return []
            self._states[sid] = ConnectionState.ACTIVE
            actor, others = self.registry.admit(sid, x, y, animation)
            logger.info("active %s at (%s, %s), %d other(s)", sid, x, y, len(others))
            return self._send([
                broadcast.roster_snapshot(sid, others),
                broadcast.actor_joined(actor),
            ])

    def movement(self, sid, intent):
        with self._lock:
            actor = self._apply(sid, intent)
            return self._send([broadcast.actor_moved(actor)] if actor else [])

    def stopped(self, sid, intent):
        with self._lock:
            actor = self._apply(sid, intent)
            return self._send([broadcast.actor_stopped(actor)] if actor else [])

    def _apply(self, sid, intent):
        if self.state_of(sid) is not ConnectionState.ACTIVE:
            logger.debug("dropping %s from inactive %s", intent.event, sid)
            return None
        actor = self.registry.update(sid, intent.x, intent.y, intent.animation)
        if actor is None:
            logger.debug("dropping %s for unknown actor %s", intent.event, sid)
        return actor

    def _send(self, deliveries):
        if deliveries and self.dispatch:
            self.dispatch(deliveries)
        return deliveries

    def disconnect(self, sid):
        with self._lock:
            state = self._states.pop(sid, None)
            if state is None:
                return []
            logger.info("disconnected %s (was %s)", sid, state.value)
            if state is not ConnectionState.ACTIVE or self.registry.remove(sid) is None:
                return []
            return self._send([broadcast.actor_left(sid)])
