# backend/peer.py
import logging

import socketio

import protocol
from reconciler import Reconciler
from sampler import IntentSampler

logger = logging.getLogger(__name__)


class Peer:
    """Socket.IO client side of the relay.

    Incoming updates are validated and fed to ``reconciler``; local state goes
    out through :meth:`sample`, which rate-limits via an IntentSampler.
    """

    def __init__(self, url, reconciler=None, interval=0.05, sio=None):
        self.url = url
        self.reconciler = reconciler or Reconciler()
        self.sio = sio or socketio.Client(reconnection=True)
        self.sampler = IntentSampler(self._send, interval=interval)

        self.sio.on("connect", self._on_connect)
        self.sio.on("disconnect", self._on_disconnect)
        for event in (
            protocol.CURRENT_PLAYERS,
            protocol.NEW_PLAYER,
            protocol.PLAYER_MOVED,
            protocol.PLAYER_STOPPED,
            protocol.PLAYER_DISCONNECTED,
        ):
            self.sio.on(event, self._handler(event))

    @property
    def connected(self):
        return self.sio.connected

    def connect(self, **kwargs):
        self.sio.connect(self.url, **kwargs)

    def disconnect(self):
        self.sio.disconnect()

    def sample(self, x, y, animation, moving):
        if not self.sio.connected:
            return None
        return self.sampler.sample(x, y, animation, moving)

    def _send(self, event, payload):
        self.sio.emit(event, payload)

    def _on_connect(self):
        self.reconciler.local_id = self.sio.get_sid()
        self.sampler.reset()
        self.sio.emit(protocol.CLIENT_READY)

    def _on_disconnect(self, reason=None):
        # whatever we shadowed is stale; a reconnect brings a fresh roster
        self.reconciler.clear()

    def _handler(self, event):
        def handle(data=None):
            try:
                message = protocol.parse_update(event, data)
            except protocol.MalformedMessage as e:
                logger.warning("dropping update: %s", e)
                return
            self.reconciler.apply(message)
        return handle
