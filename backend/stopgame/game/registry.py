from __future__ import annotations

import logging
import random
import uuid
from collections.abc import Callable
from threading import RLock

from .errors import InvalidPayload, PlayerNotFound, RoomNotFound
from .models import GameSettings, Player
from .session import Notify, RoomSession, Spawn

logger = logging.getLogger(__name__)

NotifierFactory = Callable[[str], Notify]


def _discard(event: str, payload: dict) -> None:
    return None


class RoomRegistry:
    """All live rooms of one process, keyed by room code.

    Also keeps the player-id -> room-code index used to route events from a
    connection to its room. Lock order is always registry, then session.
    """

    def __init__(
        self,
        settings: GameSettings | None = None,
        notifier_factory: NotifierFactory | None = None,
        spawn: Spawn | None = None,
        sleep: Callable[[float], None] | None = None,
        rng: random.Random | None = None,
    ):
        self.settings = settings or GameSettings()
        self._notifier_factory = notifier_factory or (lambda code: _discard)
        self._spawn = spawn
        self._sleep = sleep
        self._rng = rng
        self._lock = RLock()
        self._rooms: dict[str, RoomSession] = {}
        self._player_rooms: dict[str, str] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code: str) -> bool:
        with self._lock:
            return normalize_code(code) in self._rooms

    def _new_code(self) -> str:
        length = self.settings.room_code_length
        code = uuid.uuid4().hex[:length].upper()
        while code in self._rooms:
            code = uuid.uuid4().hex[:length].upper()
        return code

    def create_room(self) -> RoomSession:
        with self._lock:
            code = self._new_code()
            session = RoomSession(
                code,
                self.settings,
                notify=self._notifier_factory(code),
                spawn=self._spawn,
                sleep=self._sleep,
                rng=self._rng,
            )
            self._rooms[code] = session
            logger.info("[room-create] room=%s rooms=%d", code, len(self._rooms))
            return session

    def open_room(self, player_id: str, player_name: str) -> RoomSession:
        """Create a room with ``player_id`` as its first player and host."""
        with self._lock:
            session = self.create_room()
            try:
                self.join_room(session.code, player_id, player_name)
            except Exception:
                self._discard_room(session)
                raise
            return session

    def get_room(self, code: str) -> RoomSession:
        with self._lock:
            session = self._rooms.get(normalize_code(code))
            if session is None:
                raise RoomNotFound()
            return session

    def list_rooms(self) -> list[RoomSession]:
        with self._lock:
            return list(self._rooms.values())

    def seated_in(self, player_id: str) -> str | None:
        with self._lock:
            return self._player_rooms.get(player_id)

    def room_for_player(self, player_id: str) -> RoomSession:
        with self._lock:
            code = self._player_rooms.get(player_id)
            session = self._rooms.get(code) if code else None
            if session is None:
                raise PlayerNotFound("You are not in a room")
            return session

    def join_room(self, code: str, player_id: str, player_name: str) -> RoomSession:
        with self._lock:
            session = self.get_room(code)
            if player_id in self._player_rooms:
                raise InvalidPayload("Leave your current room first")
            session.add_player(player_id, player_name)
            self._player_rooms[player_id] = session.code
            return session

    def remove_player(self, player_id: str) -> tuple[RoomSession | None, Player | None]:
        """Take a player out of their room, destroying the room if it empties.

        Returns ``(session, player)``; both are None when the connection was
        not seated anywhere.
        """
        with self._lock:
            code = self._player_rooms.pop(player_id, None)
            session = self._rooms.get(code) if code else None
        if session is None:
            return None, None

        # Round end and scoring broadcasts run under the session lock only.
        player = session.remove_player(player_id)
        if session.closed:
            with self._lock:
                self._discard_room(session)
        return session, player

    def _discard_room(self, session: RoomSession) -> None:
        session.close()
        if self._rooms.get(session.code) is not session:
            return
        del self._rooms[session.code]
        logger.info("[room-delete] room=%s rooms=%d", session.code, len(self._rooms))

    def stats(self) -> dict:
        with self._lock:
            return {
                "totalRooms": len(self._rooms),
                "totalPlayers": sum(s.player_count for s in self._rooms.values()),
            }


def normalize_code(code: str) -> str:
    return str(code or "").strip().upper()
