from __future__ import annotations

import functools
import logging

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..game.errors import GameError, InvalidPayload
from ..game.registry import RoomRegistry
from ..game.session import RoomSession
from .events import now_iso, system_message

logger = logging.getLogger(__name__)

MAX_CHAT_LENGTH = 500


def _validate_name(name: str) -> bool:
    n = (name or "").strip()
    if not n:
        return False
    if len(n) > 16:
        return False
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        return False
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            return False
    return True


def _player_name(payload: dict) -> str:
    name = str(payload.get("playerName", "")).strip()
    if not _validate_name(name):
        raise InvalidPayload("Player name must be 1-16 characters without < or >")
    return name


def register_socketio_handlers(socketio: SocketIO, registry: RoomRegistry) -> None:
    def _guarded(event: str):
        """Report GameError to the requester only; everyone else is unaffected."""

        def decorator(fn):
            @functools.wraps(fn)
            def wrapper(data=None):
                try:
                    if data is None:
                        data = {}
                    if not isinstance(data, dict):
                        raise InvalidPayload("Event payload must be an object")
                    return fn(data)
                except GameError as exc:
                    logger.info("[rejected] event=%s sid=%s error=%s", event, request.sid, exc.code)
                    emit("error", exc.to_payload(), to=request.sid)
                    return {"ok": False, "error": exc.code}

            socketio.on_event(event, wrapper)
            return wrapper

        return decorator

    def _broadcast_room_update(session: RoomSession) -> None:
        socketio.emit("roomUpdated", session.room_update_payload(), to=session.code)

    def _leave_current_room(sid: str) -> None:
        session, player = registry.remove_player(sid)
        if session is None or player is None:
            return
        leave_room(session.code, sid=sid)
        if session.player_count:
            socketio.emit(
                "playerLeft",
                {"playerId": player.id, "playerName": player.name, "remainingPlayers": session.players_payload()},
                to=session.code,
            )
            _broadcast_room_update(session)

    @socketio.on("connect")
    def on_connect(auth=None):
        emit("chatMessage", system_message("Connected to the STOP server! 🎮"))

    @_guarded("createRoom")
    def create_room(payload):
        name = _player_name(payload)
        _leave_current_room(request.sid)

        session = registry.open_room(request.sid, name)
        join_room(session.code)
        emit("roomCreated", {"roomId": session.code, "room": session.snapshot()})
        _broadcast_room_update(session)
        return {"ok": True, "roomId": session.code}

    @_guarded("joinRoom")
    def join_room_event(payload):
        room_code = str(payload.get("roomId", "")).strip()
        if not room_code:
            raise InvalidPayload("Room code is required")
        name = _player_name(payload)

        # Validate the target before leaving the current room.
        target = registry.get_room(room_code)
        if registry.seated_in(request.sid) == target.code:
            raise InvalidPayload("You are already in this room")
        _leave_current_room(request.sid)

        session = registry.join_room(target.code, request.sid, name)
        join_room(session.code)
        _broadcast_room_update(session)
        emit("joinedRoom", {"roomId": session.code, "playerId": request.sid, "room": session.snapshot()})
        return {"ok": True, "roomId": session.code}

    @_guarded("startRound")
    def start_round(payload):
        session = registry.room_for_player(request.sid)
        session.start_round(request.sid)
        _broadcast_room_update(session)
        return {"ok": True}

    @_guarded("submitAnswers")
    def submit_answers(payload):
        answers = payload.get("answers")
        if not isinstance(answers, dict):
            raise InvalidPayload("Answers must map category ids to text")
        session = registry.room_for_player(request.sid)
        all_ready = session.submit_answers(request.sid, answers)
        return {"ok": True, "allReady": all_ready}

    @_guarded("stopPressed")
    def stop_pressed(payload):
        session = registry.room_for_player(request.sid)
        session.stop_pressed(request.sid)
        return {"ok": True}

    @_guarded("voteWord")
    def vote_word(payload):
        category = str(payload.get("category", "")).strip()
        target_id = str(payload.get("playerId", "")).strip()
        vote = str(payload.get("vote", "")).strip()
        if not category or not target_id:
            raise InvalidPayload("Category and playerId are required")

        session = registry.room_for_player(request.sid)
        entry = session.cast_vote(request.sid, category, target_id, vote)
        return {"ok": True, "result": entry.verdict}

    @_guarded("updateCategories")
    def update_categories(payload):
        session = registry.room_for_player(request.sid)
        categories = session.update_categories(request.sid, payload.get("categories"))
        _broadcast_room_update(session)
        return {"ok": True, "categories": categories}

    @_guarded("chatMessage")
    def chat_message(payload):
        text = str(payload.get("message", "")).strip()
        if not text:
            raise InvalidPayload("Message is empty")

        session = registry.room_for_player(request.sid)
        player = session.find_player(request.sid)
        socketio.emit(
            "chatMessage",
            {
                "message": text[:MAX_CHAT_LENGTH],
                "playerId": request.sid,
                "playerName": player.name if player else "",
                "timestamp": now_iso(),
            },
            to=session.code,
        )
        return {"ok": True}

    @socketio.on("disconnect")
    def on_disconnect(*args):
        logger.info("[disconnect] sid=%s", request.sid)
        _leave_current_room(request.sid)
