# backend/broadcast.py
"""Fan-out of registry changes.

The builders are pure: they take the source connection and the actor data
and return :class:`Delivery` records saying who gets what. Only
:class:`Broadcaster` touches the transport.
"""
import enum
import logging
from dataclasses import dataclass

import protocol

logger = logging.getLogger(__name__)


class Recipients(enum.Enum):
    SENDER = "sender"
    OTHERS = "others"  # every active connection except the source
    ALL = "all"  # every active connection


@dataclass(frozen=True)
class Delivery:
    event: str
    payload: object
    recipients: Recipients
    source: str


def _info(actor):
    return protocol.PlayerInfo(id=actor.id, x=actor.x, y=actor.y, animation=actor.animation)


def roster_snapshot(source, actors):
    """``currentPlayers`` for a newly active connection, sender only."""
    msg = protocol.CurrentPlayers(
        players={aid: _info(a) for aid, a in actors.items() if aid != source}
    )
    return Delivery(msg.event, msg.to_payload(), Recipients.SENDER, source)


def actor_joined(actor):
    msg = _info(actor)
    return Delivery(msg.event, msg.to_payload(), Recipients.OTHERS, actor.id)


def actor_left(actor_id):
    # the source has already left the room, so ALL means the remaining ones
    msg = protocol.PlayerDisconnected(id=actor_id)
    return Delivery(msg.event, msg.to_payload(), Recipients.ALL, actor_id)


def actor_moved(actor):
    msg = protocol.PlayerMoved(
        player_id=actor.id, x=actor.x, y=actor.y, animation=actor.animation
    )
    return Delivery(msg.event, msg.to_payload(), Recipients.OTHERS, actor.id)


def actor_stopped(actor):
    msg = protocol.PlayerStoppedNotice(
        player_id=actor.id, x=actor.x, y=actor.y, animation=actor.animation
    )
    return Delivery(msg.event, msg.to_payload(), Recipients.OTHERS, actor.id)


class Broadcaster:
    """Pushes deliveries onto a Flask-SocketIO server.

    Every active connection is a member of ``room``. python-socketio keeps a
    separate outbound queue per client, so one stalled peer does not hold up
    the rest.
    """

    def __init__(self, socketio, room: str):
        self.socketio = socketio
        self.room = room

    def dispatch(self, deliveries):
        for d in deliveries:
            if d.recipients is Recipients.SENDER:
                self.socketio.emit(d.event, d.payload, to=d.source)
            elif d.recipients is Recipients.OTHERS:
                self.socketio.emit(d.event, d.payload, to=self.room, skip_sid=d.source)
            else:
                self.socketio.emit(d.event, d.payload, to=self.room)
            logger.debug("sent %s from %s to %s", d.event, d.source, d.recipients.value)
