# skirmish/sockets.py
import logging

from flask import request
from flask_socketio import emit, join_room, leave_room

from .engine.resolver import available_spells

logger = logging.getLogger(__name__)


class SocketBroadcaster:
    """Pushes combat events to every socket in the room."""

    def __init__(self, socketio):
        self.socketio = socketio

    def combat_initiated(self, room_id, snapshot):
        self.socketio.emit("combatInitiated", snapshot, to=room_id)

    def combat_updated(self, room_id, snapshot):
        self.socketio.emit("combatUpdated", snapshot, to=room_id)

    def combat_ended(self, room_id, payload):
        self.socketio.emit("combatEnded", payload, to=room_id)


def run_game_loop(socketio, manager):
    interval = manager.config.pump_interval_ms / 1000.0
    while True:
        manager.pump()
        socketio.sleep(interval)


def register_skirmish_socket_handlers(socketio, manager, rooms):
    @socketio.on("joinRoom")
    def skirmish_join(payload):
        sid = request.sid
        if not isinstance(payload, dict) or not payload.get("roomId"):
            emit("combatSystem", "Join needs a roomId.")
            return
        previous = rooms.get_room_for_connection(sid)
        room_id = str(payload["roomId"])
        if previous and previous != room_id:
            leave_room(previous)
            socketio.emit("roomUpdated", rooms.room_info(previous), to=previous)
        rooms.join(sid, str(payload.get("username") or ""), room_id, payload.get("characterClass"))
        join_room(room_id)
        emit("roomJoined", rooms.room_info(room_id))
        socketio.emit("roomUpdated", rooms.room_info(room_id), to=room_id)

        snapshot = manager.snapshot(room_id)
        if snapshot and snapshot.get("active"):
            emit("combatUpdated", snapshot)

    @socketio.on("leaveRoom")
    def skirmish_leave():
        sid = request.sid
        room_id = rooms.leave(sid)
        if not room_id:
            return
        leave_room(room_id)
        socketio.emit("roomUpdated", rooms.room_info(room_id), to=room_id)

    @socketio.on("startCombat")
    def skirmish_start():
        sid = request.sid
        room_id = rooms.get_room_for_connection(sid)
        if not room_id:
            emit("combatSystem", "Not in a room.")
            return
        if rooms.owner_of(room_id) != sid:
            emit("combatSystem", "Only the room owner can start combat.")
            return
        manager.start_combat(room_id)

    @socketio.on("performAction")
    def skirmish_action(payload):
        sid = request.sid
        if not isinstance(payload, dict):
            emit("combatSystem", "Action must be an object.")
            return
        result = manager.handle_action(sid, payload)
        if result is not None and not result.success:
            emit("combatSystem", result.message)

    @socketio.on("listSpells")
    def skirmish_spells():
        room_id = rooms.get_room_for_connection(request.sid)
        combat = manager.get_combat(room_id) if room_id else None
        actor = combat.entity(request.sid) if combat else None
        if not actor:
            emit("spellList", [])
            return
        spells = manager.config.spells
        emit("spellList", [
            {"id": spell_id, "name": spells[spell_id]["name"], "description": spells[spell_id]["description"]}
            for spell_id in available_spells(actor, manager.config)
        ])

    @socketio.on("disconnect")
    def skirmish_disconnect(*args):
        sid = request.sid
        room_id = rooms.leave(sid)
        if not room_id:
            return
        logger.info("connection %s left room %s", sid, room_id)
        socketio.emit("roomUpdated", rooms.room_info(room_id), to=room_id)
