# backend/app.py
import logging

from flask import Flask, request
from flask_socketio import SocketIO, join_room, leave_room

import protocol
from broadcast import Broadcaster
from lifecycle import LifecycleManager
from map_data import spawn_state
from registry import SessionRegistry
from settings import Config

logger = logging.getLogger(__name__)


def create_app(config=None):
    """Build the Flask app and its Socket.IO server.

    Returns ``(app, socketio)``. The registry and lifecycle manager are
    owned by the app and reachable through ``app.extensions["plazasync"]``.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    socketio = SocketIO(
        app,
        cors_allowed_origins=app.config["CORS_ORIGINS"],
        async_mode=app.config["ASYNC_MODE"],
        # one connection's events run in arrival order
        async_handlers=False,
    )

    registry = SessionRegistry()
    broadcaster = Broadcaster(socketio, app.config["ROOM"])
    manager = LifecycleManager(
        registry, spawn_state(app.config["MAP_PATH"]), dispatch=broadcaster.dispatch
    )
    app.extensions["plazasync"] = manager

    register_routes(app, registry)
    register_handlers(socketio, manager, broadcaster.room)
    return app, socketio


def register_routes(app, registry):
    @app.get("/health")
    def health():
        return {"ok": True, "players": len(registry)}


def register_handlers(socketio, manager, room):
    def parse(event, data):
        try:
            return protocol.parse_intent(event, data)
        except protocol.MalformedMessage as e:
            logger.warning("dropping message from %s: %s", request.sid, e)
            return None

    @socketio.on("connect")
    def on_connect(auth=None):
        manager.connect(request.sid)

    @socketio.on(protocol.CLIENT_READY)
    def on_ready(data=None):
        # join before admitting so no newPlayer after our snapshot is missed
        join_room(room)
        manager.ready(request.sid)

    @socketio.on(protocol.PLAYER_MOVEMENT)
    def on_movement(data=None):
        intent = parse(protocol.PLAYER_MOVEMENT, data)
        if intent is None:
            return
        manager.movement(request.sid, intent)

    @socketio.on(protocol.PLAYER_STOPPED)
    def on_stopped(data=None):
        intent = parse(protocol.PLAYER_STOPPED, data)
        if intent is None:
            return
        manager.stopped(request.sid, intent)

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        leave_room(room)
        manager.disconnect(request.sid)


def main():
    app, socketio = create_app()
    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("listening on %s:%s", app.config["HOST"], app.config["PORT"])
    socketio.run(app, host=app.config["HOST"], port=app.config["PORT"])


if __name__ == "__main__":
    main()
