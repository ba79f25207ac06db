# skirmish/state.py
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


@dataclass
class Member:
    sid: str
    username: str
    character_class: Optional[str] = None


@dataclass
class Room:
    room_id: str
    owner: Optional[str] = None
    members: Dict[str, Member] = field(default_factory=dict)   # sid -> Member, join order
    in_combat: bool = False


class RoomDirectory:
    """
    Room membership for connected sockets. This is the room collaborator the
    combat manager talks to; it knows nothing about combat beyond a flag.
    """

    def __init__(self, classes: Optional[Mapping[str, Any]] = None):
        self.rooms: Dict[str, Room] = {}
        self.sid_to_room: Dict[str, str] = {}
        self.classes = classes or {}
        self._lock = threading.RLock()

    def join(self, sid: str, username: str, room_id: str, character_class: Optional[str] = None) -> Room:
        with self._lock:
            if self.sid_to_room.get(sid) and self.sid_to_room[sid] != room_id:
                self.leave(sid)
            room = self.rooms.setdefault(room_id, Room(room_id=room_id))
            class_id = str(character_class).upper() if character_class else None
            if class_id and class_id not in self.classes:
                logger.debug("unknown class %r for %s; joining without a class", character_class, sid)
                class_id = None
            room.members[sid] = Member(sid=sid, username=username or sid[:5], character_class=class_id)
            if room.owner is None:
                room.owner = sid
            self.sid_to_room[sid] = room_id
            return room

    def leave(self, sid: str) -> Optional[str]:
        with self._lock:
            room_id = self.sid_to_room.pop(sid, None)
            if not room_id:
                return None
            room = self.rooms.get(room_id)
            if not room:
                return room_id
            room.members.pop(sid, None)
            if room.owner == sid:
                room.owner = next(iter(room.members), None)
            if not room.members and not room.in_combat:
                del self.rooms[room_id]
            return room_id

    def owner_of(self, room_id: str) -> Optional[str]:
        room = self.rooms.get(room_id)
        return room.owner if room else None

    def room_info(self, room_id: str) -> Dict[str, Any]:
        room = self.rooms.get(room_id)
        if not room:
            return {"roomId": room_id, "owner": None, "players": [], "inCombat": False}
        return {
            "roomId": room.room_id,
            "owner": room.owner,
            "players": self.get_players_in_room(room_id),
            "inCombat": room.in_combat,
        }

    # -- collaborator interface used by CombatManager --------------------

    def is_room_in_combat(self, room_id: str) -> bool:
        room = self.rooms.get(room_id)
        return bool(room and room.in_combat)

    def get_players_in_room(self, room_id: str) -> List[Dict[str, Any]]:
        room = self.rooms.get(room_id)
        if not room:
            return []
        players = []
        for member in room.members.values():
            entry = {"id": member.sid, "username": member.username}
            if member.character_class:
                entry["characterClass"] = member.character_class
            players.append(entry)
        return players

    def set_room_combat_status(self, room_id: str, in_combat: bool) -> None:
        with self._lock:
            room = self.rooms.get(room_id)
            if not room:
                return
            room.in_combat = bool(in_combat)
            if not room.in_combat and not room.members:
                del self.rooms[room_id]

    def get_room_for_connection(self, sid: str) -> Optional[str]:
        return self.sid_to_room.get(sid)
