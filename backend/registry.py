# backend/registry.py
import threading
import time
from dataclasses import dataclass, replace


@dataclass
class Actor:
    id: str
    x: float
    y: float
    animation: str
    updated_at: float

    def to_dict(self):
        return {"id": self.id, "x": self.x, "y": self.y, "animation": self.animation}


class SessionRegistry:
    """In-memory map of connection id -> Actor.

    Only the owning connection ever writes its own entry, so field updates
    need no lock. The lock only guards the key set (insert/remove) and the
    copies handed out by snapshot_all().
    """

    def __init__(self, clock=time.monotonic):
        self._actors = {}  # id -> Actor
        self._lock = threading.Lock()
        self._clock = clock

    def __contains__(self, actor_id):
        return actor_id in self._actors

    def __len__(self):
        return len(self._actors)

    def ids(self):
        with self._lock:
            return set(self._actors)

    def get(self, actor_id):
        return self._actors.get(actor_id)

    def upsert(self, actor_id: str, x: float, y: float, animation: str):
        actor = Actor(id=actor_id, x=x, y=y, animation=animation,
                      updated_at=self._clock())
        with self._lock:
            self._actors[actor_id] = actor
        return actor

    def admit(self, actor_id: str, x: float, y: float, animation: str):
        """Upsert ``actor_id`` and return it with a snapshot of everyone else.

        Both happen under one lock so two connections joining at the same
        time each see the other exactly once (snapshot or join event).
        """
        actor = Actor(id=actor_id, x=x, y=y, animation=animation,
                      updated_at=self._clock())
        with self._lock:
            others = {aid: replace(a) for aid, a in self._actors.items()
                      if aid != actor_id}
            self._actors[actor_id] = actor
        return actor, others

    def update(self, actor_id: str, x: float, y: float, animation: str):
        a = self._actors.get(actor_id)
        if not a:
            return None
        a.x, a.y = x, y
        a.animation = animation
        a.updated_at = self._clock()
        return a

    def remove(self, actor_id: str):
        with self._lock:
            return self._actors.pop(actor_id, None)

    def snapshot_all(self):
        with self._lock:
            return {aid: replace(a) for aid, a in self._actors.items()}
