import random
import threading

import pytest

import protocol
from broadcast import Recipients
from lifecycle import ConnectionState, LifecycleManager
from registry import SessionRegistry

SPAWN = (516.0, 230.0, "down")


@pytest.fixture
def lm():
    return LifecycleManager(SessionRegistry(), SPAWN)


def move(x, y, animation="left"):
    return protocol.PlayerMovement(x=x, y=y, animation=animation)


def stop(x, y, animation="left"):
    return protocol.PlayerStopped(x=x, y=y, animation=animation)


def test_connect_creates_no_actor(lm):
    assert lm.connect("a") == []
    assert lm.state_of("a") is ConnectionState.CONNECTED
    assert "a" not in lm.registry


def test_ready_spawns_and_announces(lm):
    lm.connect("a")
    roster, joined = lm.ready("a")
    assert lm.state_of("a") is ConnectionState.ACTIVE
    assert roster.event == "currentPlayers" and roster.payload == {}
    assert roster.recipients is Recipients.SENDER
    assert joined.payload == {"id": "a", "x": 516.0, "y": 230.0, "animation": "down"}
    assert joined.recipients is Recipients.OTHERS


def test_second_ready_is_dropped(lm):
    lm.connect("a")
    lm.ready("a")
    lm.movement("a", move(1, 1))
    assert lm.ready("a") == []
    assert lm.registry.get("a").x == 1


def test_ready_without_connect_is_dropped(lm):
    assert lm.ready("ghost") == []
    assert len(lm.registry) == 0


def test_late_joiner_sees_latest_state(lm):
    for sid in ("a", "b"):
        lm.connect(sid)
        lm.ready(sid)
    lm.movement("a", move(100, 50))
    lm.disconnect("b")
    lm.connect("c")
    roster, _ = lm.ready("c")
    assert roster.payload == {"a": {"id": "a", "x": 100, "y": 50, "animation": "left"}}


def test_intent_before_ready_is_dropped(lm):
    lm.connect("a")
    assert lm.movement("a", move(1, 1)) == []
    assert lm.stopped("a", stop(1, 1)) == []
    assert "a" not in lm.registry


def test_movement_and_stop(lm):
    lm.connect("a")
    lm.ready("a")
    [moved] = lm.movement("a", move(100, 50))
    assert moved.event == "playerMoved"
    assert moved.payload == {"playerId": "a", "x": 100, "y": 50, "animation": "left"}
    assert moved.recipients is Recipients.OTHERS
    [stopped] = lm.stopped("a", stop(101, 50))
    assert stopped.event == "playerStopped"
    assert (lm.registry.get("a").x, lm.registry.get("a").y) == (101, 50)


def test_disconnect_active(lm):
    lm.connect("a")
    lm.ready("a")
    [left] = lm.disconnect("a")
    assert (left.event, left.payload, left.recipients) == ("playerDisconnected", "a", Recipients.ALL)
    assert "a" not in lm.registry
    assert lm.state_of("a") is ConnectionState.DISCONNECTED


def test_disconnect_is_idempotent(lm):
    lm.connect("a")
    lm.ready("a")
    lm.disconnect("a")
    assert lm.disconnect("a") == []


def test_disconnect_before_ready_is_silent(lm):
    lm.connect("a")
    assert lm.disconnect("a") == []


def test_late_intent_after_disconnect_is_dropped(lm):
    lm.connect("a")
    lm.ready("a")
    lm.disconnect("a")
    assert lm.movement("a", move(5, 5)) == []
    assert lm.stopped("a", stop(5, 5)) == []
    assert "a" not in lm.registry


def test_reconnect_with_same_id_is_a_new_actor(lm):
    lm.connect("a")
    lm.ready("a")
    lm.movement("a", move(5, 5))
    lm.disconnect("a")
    lm.connect("a")
    lm.ready("a")
    assert lm.registry.get("a").x == 516.0


@pytest.mark.parametrize("seed", range(10))
def test_registry_matches_active_connections(seed):
    rng = random.Random(seed)
    lm = LifecycleManager(SessionRegistry(), SPAWN)
    sids = [f"s{i}" for i in range(6)]
    for _ in range(200):
        sid = rng.choice(sids)
        op = rng.choice(["connect", "ready", "move", "disconnect"])
        if op == "move":
            lm.movement(sid, move(rng.random(), rng.random()))
        else:
            getattr(lm, op)(sid)
        assert lm.registry.ids() == lm.active_ids()


def test_no_broadcast_references_departed_actor(lm):
    for sid in ("a", "b"):
        lm.connect(sid)
        lm.ready(sid)
    sent = lm.disconnect("a")
    sent += lm.movement("a", move(1, 1))
    sent += lm.stopped("a", stop(1, 1))
    sent += lm.movement("b", move(2, 2))
    after_left = sent[1:]
    assert sent[0].event == "playerDisconnected"
    assert all(d.source != "a" for d in after_left)


def test_dispatch_runs_for_each_transition():
    sent = []
    lm = LifecycleManager(SessionRegistry(), SPAWN, dispatch=sent.extend)
    lm.connect("a")
    lm.ready("a")
    lm.movement("a", move(1, 1))
    lm.movement("ghost", move(1, 1))
    lm.disconnect("a")
    assert [d.event for d in sent] == [
        "currentPlayers", "newPlayer", "playerMoved", "playerDisconnected",
    ]


def test_leave_waits_for_a_roster_being_sent():
    # b's roster names a, so a's departure must not overtake it
    in_dispatch = threading.Event()
    release = threading.Event()
    sent = []

    def dispatch(deliveries):
        if deliveries[0].event == "currentPlayers" and deliveries[0].source == "b":
            in_dispatch.set()
            release.wait(5)
        sent.extend(deliveries)

    lm = LifecycleManager(SessionRegistry(), SPAWN)
    lm.connect("a")
    lm.ready("a")
    lm.dispatch = dispatch
    lm.connect("b")

    joiner = threading.Thread(target=lm.ready, args=("b",))
    joiner.start()
    assert in_dispatch.wait(5)
    leaver = threading.Thread(target=lm.disconnect, args=("a",))
    leaver.start()
    leaver.join(0.1)
    assert leaver.is_alive()
    release.set()
    joiner.join(5)
    leaver.join(5)

    events = [(d.event, d.source) for d in sent]
    assert events == [
        ("currentPlayers", "b"), ("newPlayer", "b"), ("playerDisconnected", "a"),
    ]
    assert "a" in sent[0].payload
