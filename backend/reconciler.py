# backend/reconciler.py
"""Client-side shadow of every remote actor.

Only plain records live here. Rendering reads them through actors() and
creates or destroys sprites from the on_spawn / on_despawn callbacks.
"""
import math
from dataclasses import dataclass, replace
from types import MappingProxyType

import protocol


@dataclass
class RemoteActor:
    id: str
    x: float
    y: float
    target_x: float
    target_y: float
    animation: str
    moving: bool = False

    @property
    def at_target(self):
        return self.x == self.target_x and self.y == self.target_y


class Reconciler:
    """Applies server updates to the shadow table.

    ``speed`` is the interpolation rate in world units per second; ``None``
    snaps to the latest target on the next tick. The local actor
    (``local_id``) is never shadowed.
    """

    def __init__(self, local_id=None, speed=240.0, on_spawn=None, on_despawn=None):
        self.local_id = local_id
        self.speed = speed
        self.on_spawn = on_spawn  # called with a copy of each new actor
        self.on_despawn = on_despawn  # called with the id of each leaver
        self._actors = {}  # id -> RemoteActor

    def actors(self):
        return MappingProxyType({aid: replace(a) for aid, a in self._actors.items()})

    def get(self, actor_id):
        a = self._actors.get(actor_id)
        return replace(a) if a else None

    def apply(self, message):
        if isinstance(message, protocol.CurrentPlayers):
            self.on_current_players(message)
        elif isinstance(message, protocol.PlayerInfo):
            self.on_new_player(message)
        elif isinstance(message, protocol.PlayerMoved):
            self.on_player_moved(message)
        elif isinstance(message, protocol.PlayerStoppedNotice):
            self.on_player_stopped(message)
        elif isinstance(message, protocol.PlayerDisconnected):
            self.on_player_disconnected(message)

    def on_current_players(self, message):
        for info in message.players.values():
            self.on_new_player(info)

    def on_new_player(self, info):
        if info.id == self.local_id:
            return
        existing = self._actors.get(info.id)
        if existing:
            # seen both in the roster and as a join event
            existing.x = existing.target_x = info.x
            existing.y = existing.target_y = info.y
            existing.animation = info.animation
            existing.moving = False
            return
        actor = RemoteActor(
            id=info.id, x=info.x, y=info.y,
            target_x=info.x, target_y=info.y, animation=info.animation,
        )
        self._actors[info.id] = actor
        if self.on_spawn:
            self.on_spawn(replace(actor))

    def on_player_moved(self, message):
        actor = self._shadow(message)
        if actor is None:
            return
        actor.target_x, actor.target_y = message.x, message.y
        actor.animation = message.animation
        actor.moving = True

    def on_player_stopped(self, message):
        actor = self._shadow(message)
        if actor is None:
            return
        actor.x = actor.target_x = message.x
        actor.y = actor.target_y = message.y
        actor.animation = message.animation
        actor.moving = False

    def on_player_disconnected(self, message):
        if self._actors.pop(message.id, None) is None:
            return
        if self.on_despawn:
            self.on_despawn(message.id)

    def tick(self, dt):
        """Advance every displayed position toward its target."""
        for actor in self._actors.values():
            if actor.at_target:
                continue
            if self.speed is None:
                actor.x, actor.y = actor.target_x, actor.target_y
                continue
            dx = actor.target_x - actor.x
            dy = actor.target_y - actor.y
            dist = math.hypot(dx, dy)
            step = self.speed * dt
            if step >= dist:
                actor.x, actor.y = actor.target_x, actor.target_y
            else:
                actor.x += dx / dist * step
                actor.y += dy / dist * step

    def clear(self):
        for actor_id in list(self._actors):
            self.on_player_disconnected(protocol.PlayerDisconnected(id=actor_id))

    def _shadow(self, message):
        if message.player_id == self.local_id:
            return None
        actor = self._actors.get(message.player_id)
        if actor is None:
            # moved before we saw it join; start it at the reported spot
            self.on_new_player(
                protocol.PlayerInfo(
                    id=message.player_id, x=message.x, y=message.y,
                    animation=message.animation,
                )
            )
            actor = self._actors[message.player_id]
        return actor
