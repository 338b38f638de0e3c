from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game.errors import RoomNotFound
from ..game.registry import RoomRegistry

bp = Blueprint("rooms", __name__)


def _registry() -> RoomRegistry:
    return current_app.extensions["stopgame"]


@bp.get("/rooms")
def room_stats():
    return jsonify(_registry().stats())


@bp.get("/rooms/<code>")
def get_room(code: str):
    try:
        session = _registry().get_room(code)
    except RoomNotFound as exc:
        return jsonify(exc.to_payload()), 404
    return jsonify(session.snapshot())
