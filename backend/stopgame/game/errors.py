"""Request-scoped game failures.

Every error carries a stable ``code`` (sent to clients next to the message)
and never leaves the room in a half-mutated state: operations validate
before they mutate.
"""
from __future__ import annotations


class GameError(Exception):
    code = "game_error"
    message = "Game error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)

    @property
    def detail(self) -> str:
        return str(self)

    def to_payload(self) -> dict:
        return {"error": self.code, "message": self.detail}


class RoomNotFound(GameError):
    code = "room_not_found"
    message = "Room not found"


class RoomFull(GameError):
    code = "room_full"
    message = "Room is full"


class DuplicateName(GameError):
    code = "duplicate_name"
    message = "A player with that name is already in the room"


class PlayerNotFound(GameError):
    code = "player_not_found"
    message = "Player not found"


class NotHost(GameError):
    code = "only_host"
    message = "Only the host can do that"


class InvalidTarget(GameError):
    code = "invalid_target"
    message = "No answer to vote on"


class VotingNotStarted(GameError):
    code = "voting_not_started"
    message = "Voting has not started"


class RoundInProgress(GameError):
    code = "round_in_progress"
    message = "A round is already in progress"


class RoundNotActive(GameError):
    code = "round_not_active"
    message = "No round is being played"


class InvalidPayload(GameError):
    code = "invalid_payload"
    message = "Invalid payload"
