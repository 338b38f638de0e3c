"""Room state machine.

A :class:`RoomSession` owns one room: its players, its round timer and its
voting ledger. Every public method runs under the session lock, mutates
state, and publishes room-wide events through the ``notify`` callback
handed in by the registry. Lifecycle::

    waiting -> playing -> voting -> results -> (waiting ->) playing ...
"""
from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable, Mapping

from .errors import (
    DuplicateName,
    NotHost,
    PlayerNotFound,
    RoomFull,
    RoomNotFound,
    RoundInProgress,
    RoundNotActive,
    VotingNotStarted,
)
from .letters import pick_letter
from .models import GameSettings, Player, Room, parse_categories
from .scoring import ScoreReport, calculate_scores, game_stats
from .timer import RoundTimer
from .voting import LedgerEntry, VotingLedger

logger = logging.getLogger(__name__)

Notify = Callable[[str, dict], None]
Spawn = Callable[[Callable[[], None]], object]


def clean_answers(raw: Mapping) -> dict[str, str]:
    answers: dict[str, str] = {}
    for key, value in (raw or {}).items():
        if isinstance(value, str):
            answers[str(key)] = value
    return answers


class RoomSession:
    def __init__(
        self,
        code: str,
        settings: GameSettings,
        notify: Notify,
        spawn: Spawn | None = None,
        sleep: Callable[[float], None] | None = None,
        rng: random.Random | None = None,
    ):
        self.room = Room(code=code)
        self.settings = settings
        self._notify = notify
        self._spawn = spawn
        self._sleep = sleep
        self._rng = rng
        self._lock = threading.RLock()
        self._timer: RoundTimer | None = None
        self.closed = False

    @property
    def code(self) -> str:
        return self.room.code

    @property
    def state(self) -> str:
        return self.room.state

    @property
    def timer(self) -> RoundTimer | None:
        return self._timer

    @property
    def player_count(self) -> int:
        return len(self.room.players)

    def is_host(self, player_id: str) -> bool:
        return self.room.host_id is not None and self.room.host_id == player_id

    # -------------------- Membership -------------------- #

    def add_player(self, player_id: str, name: str) -> Player:
        with self._lock:
            room = self.room
            if self.closed:
                raise RoomNotFound()
            if len(room.players) >= self.settings.max_players:
                raise RoomFull(f"Room is full ({self.settings.max_players} players)")
            if room.has_name(name):
                raise DuplicateName()

            player = Player(id=player_id, name=name)
            if not room.players:
                room.host_id = player_id
            room.players.append(player)
            logger.info("[join] room=%s player=%s name=%s players=%d", room.code, player_id, name, len(room.players))
            return player

    def remove_player(self, player_id: str) -> Player | None:
        with self._lock:
            room = self.room
            player = room.find_player(player_id)
            if player is None:
                return None
            room.players.remove(player)
            logger.info("[leave] room=%s player=%s players=%d", room.code, player_id, len(room.players))

            if not room.players:
                self.close()
                return player

            if room.host_id == player_id and self.settings.reassign_host_on_leave:
                room.host_id = room.players[0].id

            if room.state == "playing" and all(p.is_ready for p in room.players):
                self._end_round()
            elif room.state == "voting" and room.ledger is not None:
                room.ledger.apply_quorum(self._quorum())
                if room.ledger.is_complete():
                    self._compute_scores_and_advance()
            return player

    def find_player(self, player_id: str) -> Player | None:
        with self._lock:
            return self.room.find_player(player_id)

    def close(self) -> None:
        with self._lock:
            self._cancel_timer()
            self.closed = True

    # -------------------- Round flow -------------------- #

    def start_round(self, requester_id: str) -> dict:
        with self._lock:
            room = self.room
            if not self.is_host(requester_id):
                raise NotHost("Only the host can start a round")
            if room.state in ("playing", "voting"):
                raise RoundInProgress()

            room.letter = pick_letter(self._rng)
            room.ledger = None
            for p in room.players:
                p.answers = {}
                p.is_ready = False
            room.time_left = self.settings.round_duration_sec
            room.state = "playing"

            payload = {"letter": room.letter, "timeLeft": room.time_left, "round": room.round}
            self._notify("roundStarted", payload)
            self._start_timer()
            logger.info("[round-start] room=%s round=%d letter=%s", room.code, room.round, room.letter)
            return payload

    def submit_answers(self, player_id: str, answers: Mapping) -> bool:
        with self._lock:
            room = self.room
            player = room.find_player(player_id)
            if player is None:
                raise PlayerNotFound()
            if room.state != "playing":
                raise RoundNotActive()

            player.answers = clean_answers(answers)
            player.is_ready = True
            all_ready = all(p.is_ready for p in room.players)
            self._notify(
                "playerFinished",
                {"playerId": player.id, "playerName": player.name, "allReady": all_ready},
            )
            if all_ready:
                self._end_round()
            return all_ready

    def stop_pressed(self, player_id: str) -> None:
        with self._lock:
            room = self.room
            player = room.find_player(player_id)
            if player is None:
                raise PlayerNotFound()
            if room.state != "playing":
                raise RoundNotActive()

            self._cancel_timer()
            logger.info("[stop] room=%s by=%s remaining=%d", room.code, player_id, room.time_left)
            self._notify("gameForceEnded", {"playerId": player.id, "playerName": player.name})
            self._end_round()

    def cast_vote(self, voter_id: str, category: str, target_player_id: str, vote: str) -> LedgerEntry:
        with self._lock:
            room = self.room
            if room.state != "voting" or room.ledger is None:
                raise VotingNotStarted()
            if room.find_player(voter_id) is None:
                raise PlayerNotFound()

            entry = room.ledger.record_vote(category, target_player_id, voter_id, vote, self._quorum())
            self._notify(
                "voteUpdated",
                {
                    "category": category,
                    "playerId": target_player_id,
                    "votes": dict(entry.votes),
                    "result": entry.verdict,
                },
            )
            if room.ledger.is_complete():
                self._compute_scores_and_advance()
            return entry

    def update_categories(self, requester_id: str, categories) -> list[dict]:
        with self._lock:
            room = self.room
            if not self.is_host(requester_id):
                raise NotHost("Only the host can manage categories")
            if room.state in ("playing", "voting"):
                raise RoundInProgress("Categories can only be changed between rounds")

            room.categories = parse_categories(categories)
            payload = [c.to_dict() for c in room.categories]
            self._notify("categoriesUpdated", {"categories": payload})
            return payload

    # -------------------- Internal transitions -------------------- #

    def _quorum(self) -> int:
        return max(0, len(self.room.players) - 1)

    def _start_timer(self) -> None:
        self._cancel_timer()
        self._timer = RoundTimer(
            self.settings.round_duration_sec,
            self._lock,
            on_tick=self._on_tick,
            on_expire=self._on_expire,
            interval=self.settings.tick_interval_sec,
            spawn=self._spawn,
            sleep=self._sleep,
        )
        self._timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_tick(self, remaining: int) -> None:
        self.room.time_left = remaining
        self._notify("timeUpdate", {"timeLeft": remaining})

    def _on_expire(self) -> None:
        logger.info("[round-timeout] room=%s round=%d", self.room.code, self.room.round)
        self._end_round()

    def _end_round(self) -> None:
        room = self.room
        self._cancel_timer()
        room.state = "voting"
        room.ledger = VotingLedger.from_round(room.players, room.categories)
        logger.info("[round-end] room=%s round=%d entries=%d", room.code, room.round, len(room.ledger))
        self._notify("roundEnded", {"votingData": room.ledger.to_dict(), "players": self.players_payload()})
        if room.ledger.is_complete():
            self._compute_scores_and_advance()

    def _compute_scores_and_advance(self) -> list[ScoreReport]:
        room = self.room
        reports = calculate_scores(room.players, room.ledger or VotingLedger(), room.letter, room.categories)
        by_id = {r.player_id: r for r in reports}
        for p in room.players:
            p.score += by_id[p.id].round_score

        completed = room.round
        room.state = "results"
        room.round += 1
        room.ledger = None
        logger.info("[scores] room=%s round=%d %s", room.code, completed, {r.player_name: r.round_score for r in reports})
        self._notify(
            "scoresCalculated",
            {
                "scores": [r.to_dict() for r in reports],
                "players": self.players_payload(),
                "round": completed,
                "stats": game_stats(room.players),
            },
        )
        return reports

    # -------------------- Views -------------------- #

    def players_payload(self) -> list[dict]:
        with self._lock:
            hide = self.room.state == "playing"
            return [p.to_dict(include_answers=not hide) for p in self.room.players]

    def room_update_payload(self) -> dict:
        with self._lock:
            room = self.room
            return {
                "players": self.players_payload(),
                "gameState": room.state,
                "currentRound": room.round,
                "hostId": room.host_id,
                "categories": [c.to_dict() for c in room.categories],
            }

    def snapshot(self) -> dict:
        with self._lock:
            room = self.room
            payload = {
                "roomId": room.code,
                "hostId": room.host_id,
                "gameState": room.state,
                "currentRound": room.round,
                "currentLetter": room.letter,
                "timeLeft": room.time_left,
                "maxPlayers": self.settings.max_players,
                "categories": [c.to_dict() for c in room.categories],
                "players": self.players_payload(),
            }
            if room.ledger is not None:
                payload["votingData"] = room.ledger.to_dict()
            return payload
