from __future__ import annotations

from datetime import datetime, timezone

from flask_socketio import SocketIO

from ..game.session import Notify


def room_notifier(socketio: SocketIO):
    """Notifier factory for the registry: room events go to the Socket.IO room named by the code."""

    def factory(room_code: str) -> Notify:
        def notify(event: str, payload: dict) -> None:
            socketio.emit(event, payload, to=room_code)

        return notify

    return factory


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def system_message(text: str) -> dict:
    return {"message": text, "playerId": "server", "playerName": "System", "timestamp": now_iso()}
