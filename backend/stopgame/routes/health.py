from __future__ import annotations

from flask import Blueprint, jsonify

from ..realtime.events import now_iso

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    return jsonify({"status": "ok", "timestamp": now_iso()})
