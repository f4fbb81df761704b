# backend/protocol.py
"""Socket.IO message catalogue shared by the server and peers.

Client -> server: clientReady, playerMovement, playerStopped.
Server -> client: currentPlayers, newPlayer, playerDisconnected, playerMoved,
playerStopped. Anything off the wire that does not validate raises
MalformedMessage and is dropped by the caller.
"""
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, ValidationError

CLIENT_READY = "clientReady"
CURRENT_PLAYERS = "currentPlayers"
NEW_PLAYER = "newPlayer"
PLAYER_DISCONNECTED = "playerDisconnected"
PLAYER_MOVEMENT = "playerMovement"
PLAYER_MOVED = "playerMoved"
PLAYER_STOPPED = "playerStopped"

Animation = Literal["down", "up", "left", "right"]
DEFAULT_ANIMATION = "down"


class MalformedMessage(ValueError):
    def __init__(self, event, detail):
        super().__init__(f"malformed {event!r}: {detail}")
        self.event = event
        self.detail = detail


class _Message(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True,
                              populate_by_name=True)

    event: ClassVar[str]

    def to_payload(self):
        return self.model_dump(by_alias=True)


# client -> server

class ClientReady(_Message):
    event: ClassVar[str] = CLIENT_READY


class PlayerMovement(_Message):
    event: ClassVar[str] = PLAYER_MOVEMENT

    x: FiniteFloat
    y: FiniteFloat
    animation: Animation


class PlayerStopped(_Message):
    event: ClassVar[str] = PLAYER_STOPPED

    x: FiniteFloat
    y: FiniteFloat
    animation: Animation


# server -> client

class PlayerInfo(_Message):
    """One actor as it appears in currentPlayers and newPlayer."""

    event: ClassVar[str] = NEW_PLAYER

    id: str = Field(min_length=1)
    x: FiniteFloat
    y: FiniteFloat
    animation: Animation


class CurrentPlayers(_Message):
    event: ClassVar[str] = CURRENT_PLAYERS

    players: dict[str, PlayerInfo]

    def to_payload(self):
        return {pid: p.to_payload() for pid, p in self.players.items()}


class PlayerDisconnected(_Message):
    event: ClassVar[str] = PLAYER_DISCONNECTED

    id: str = Field(min_length=1)

    def to_payload(self):
        return self.id


class PlayerMoved(_Message):
    event: ClassVar[str] = PLAYER_MOVED

    player_id: str = Field(alias="playerId", min_length=1)
    x: FiniteFloat
    y: FiniteFloat
    animation: Animation


class PlayerStoppedNotice(_Message):
    """Server relay of a peer's playerStopped."""

    event: ClassVar[str] = PLAYER_STOPPED

    player_id: str = Field(alias="playerId", min_length=1)
    x: FiniteFloat
    y: FiniteFloat
    animation: Animation


_INTENTS = {
    CLIENT_READY: ClientReady,
    PLAYER_MOVEMENT: PlayerMovement,
    PLAYER_STOPPED: PlayerStopped,
}

_UPDATES = {
    NEW_PLAYER: PlayerInfo,
    PLAYER_MOVED: PlayerMoved,
    PLAYER_STOPPED: PlayerStoppedNotice,
}


def _validate(event, model, data: Any):
    if not isinstance(data, dict):
        raise MalformedMessage(event, f"expected an object, got {type(data).__name__}")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedMessage(event, f"{e.error_count()} invalid field(s)") from e


def parse_intent(event, data=None):
    """Validate a client -> server message."""
    model = _INTENTS.get(event)
    if model is None:
        raise MalformedMessage(event, "unknown event")
    if model is ClientReady:
        return ClientReady()
    return _validate(event, model, data)


def parse_update(event, data):
    """Validate a server -> client message."""
    if event == CURRENT_PLAYERS:
        if not isinstance(data, dict):
            raise MalformedMessage(event, "expected an object")
        return CurrentPlayers(
            players={str(pid): _validate(event, PlayerInfo, p) for pid, p in data.items()}
        )
    if event == PLAYER_DISCONNECTED:
        if not isinstance(data, str) or not data:
            raise MalformedMessage(event, "expected a player id")
        return PlayerDisconnected(id=data)
    model = _UPDATES.get(event)
    if model is None:
        raise MalformedMessage(event, "unknown event")
    return _validate(event, model, data)
