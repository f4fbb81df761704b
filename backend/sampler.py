# backend/sampler.py
import time

import protocol


class IntentSampler:
    """Turns per-tick local state into rate-limited intent messages.

    ``send(event, payload)`` is called with at most one ``playerMovement`` per
    ``interval`` seconds while moving, and exactly one ``playerStopped`` when
    the actor goes from moving to still.
    """

    def __init__(self, send, interval: float = 0.05, clock=time.monotonic):
        self.send = send
        self.interval = interval
        self.clock = clock
        self.moving = False
        self.last_sent = None

    def sample(self, x: float, y: float, animation: str, moving: bool):
        """Returns the message sent this tick, if any."""
        if moving:
            now = self.clock()
            self.moving = True
            if self.last_sent is not None and now - self.last_sent < self.interval:
                return None
            self.last_sent = now
            msg = protocol.PlayerMovement(x=x, y=y, animation=animation)
        elif self.moving:
            self.moving = False
            msg = protocol.PlayerStopped(x=x, y=y, animation=animation)
        else:
            return None
        self.send(msg.event, msg.to_payload())
        return msg

    def reset(self):
        self.moving = False
        self.last_sent = None
