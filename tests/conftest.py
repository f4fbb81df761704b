import pytest

from app import create_app


@pytest.fixture
def server():
    """(app, socketio) running in threading mode for the test client."""
    return create_app({"ASYNC_MODE": "threading", "TESTING": True})


@pytest.fixture
def connect(server):
    app, socketio = server
    clients = []

    def _connect(ready=True):
        c = socketio.test_client(app)
        if ready:
            c.emit("clientReady")
        clients.append(c)
        return c

    yield _connect
    for c in clients:
        if c.is_connected():
            c.disconnect()


@pytest.fixture
def manager(server):
    app, _ = server
    return app.extensions["plazasync"]


def received(client, name=None):
    """Drain a test client and return payloads, optionally of one event."""
    msgs = client.get_received()
    return [m["args"][0] for m in msgs if name is None or m["name"] == name]
