import pytest

from skirmish.engine.models import MONSTER
from skirmish.server import create_app


@pytest.fixture
def server():
    app, socketio = create_app({"TESTING": True}, start_loop=False)
    return app, socketio


def received(client, name):
    return [msg["args"][0] for msg in client.get_received() if msg["name"] == name]


def join(socketio, app, username, character_class=None, room_id="den"):
    client = socketio.test_client(app)
    client.emit("joinRoom", {"roomId": room_id, "username": username, "characterClass": character_class})
    return client


def test_owner_starts_combat_and_room_receives_snapshot(server):
    app, socketio = server
    owner = join(socketio, app, "Alice", "fighter")
    guest = join(socketio, app, "Bob", "wizard")
    owner.get_received()
    guest.get_received()

    owner.emit("startCombat")

    snapshots = received(guest, "combatInitiated")
    assert len(snapshots) == 1
    combat = snapshots[0]
    assert combat["roomId"] == "den" and combat["active"] is True
    players = [e for e in combat["entities"] if e["kind"] != MONSTER]
    assert {p["characterClass"] for p in players} == {"FIGHTER", "WIZARD"}
    assert len([e for e in combat["entities"] if e["kind"] == MONSTER]) == 3


def test_only_the_owner_can_start(server):
    app, socketio = server
    owner = join(socketio, app, "Alice")
    guest = join(socketio, app, "Bob")
    guest.get_received()

    guest.emit("startCombat")

    assert received(guest, "combatSystem") == ["Only the room owner can start combat."]
    assert app.extensions["skirmish"].get_combat("den") is None


def test_perform_action_broadcasts_update(server):
    app, socketio = server
    owner = join(socketio, app, "Alice", "fighter")
    owner.emit("startCombat")
    combat = received(owner, "combatInitiated")[0]
    monster = next(e for e in combat["entities"] if e["kind"] == MONSTER)

    owner.emit("performAction", {"kind": "attack", "targetId": monster["id"]})

    updates = received(owner, "combatUpdated")
    assert len(updates) == 1
    me = next(e for e in updates[0]["entities"] if e["kind"] != MONSTER)
    assert me["actionPoints"] == pytest.approx(2.0, abs=0.01)
    assert updates[0]["log"][-1]["action"] == "attack"


def test_soft_failure_is_reported_to_the_caster_only(server):
    app, socketio = server
    owner = join(socketio, app, "Alice", "wizard")
    owner.emit("startCombat")
    combat = received(owner, "combatInitiated")[0]
    monster = next(e for e in combat["entities"] if e["kind"] == MONSTER)
    me = next(e for e in combat["entities"] if e["kind"] != MONSTER)
    app.extensions["skirmish"].get_combat("den").entity(me["id"]).energy = 0

    owner.emit("performAction", {"kind": "cast", "spellId": "fireball", "targetId": monster["id"]})

    received_now = owner.get_received()
    assert [m["name"] for m in received_now] == ["combatSystem"]
    assert "energy" in received_now[0]["args"][0]


def test_list_spells_follows_class(server):
    app, socketio = server
    owner = join(socketio, app, "Alice", "rogue")
    owner.emit("listSpells")
    assert received(owner, "spellList") == [[]]

    owner.emit("startCombat")
    owner.get_received()
    owner.emit("listSpells")
    spell_ids = {spell["id"] for spell in received(owner, "spellList")[0]}
    assert "cunning_action" in spell_ids
    assert "second_wind" not in spell_ids


def test_http_snapshot_and_rules(server):
    app, socketio = server
    http = app.test_client()
    assert http.get("/skirmish/combat/den").status_code == 404

    owner = join(socketio, app, "Alice")
    owner.emit("startCombat")
    response = http.get("/skirmish/combat/den")
    assert response.status_code == 200
    assert response.get_json()["roomId"] == "den"

    rules = http.get("/skirmish/rules").get_json()
    assert rules["classes"]["FIGHTER"]["baseHealth"] == 70
    assert rules["classes"]["WIZARD"]["hitDie"] == "d6"
    assert "second_wind" in rules["classes"]["FIGHTER"]["spells"]
    assert "second_wind" not in rules["classes"]["ROGUE"]["spells"]
    assert "cunning_action" in rules["classes"]["ROGUE"]["spells"]
    assert rules["spells"]["fireball"]["energyCost"] == 20
    assert rules["monsters"]["troll"]["health"] == 70


def test_disconnect_hands_over_ownership(server):
    app, socketio = server
    owner = join(socketio, app, "Alice")
    guest = join(socketio, app, "Bob")
    guest.get_received()

    owner.disconnect()

    info = received(guest, "roomUpdated")[-1]
    assert [p["username"] for p in info["players"]] == ["Bob"]
    assert info["owner"] == info["players"][0]["id"]
