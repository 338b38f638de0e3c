from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .models import Category, Player
from .voting import VotingLedger

UNIQUE_POINTS = 10
SHARED_POINTS = 5


@dataclass
class ScoreReport:
    player_id: str
    player_name: str
    category_scores: dict[str, int] = field(default_factory=dict)
    round_score: int = 0

    def to_dict(self) -> dict:
        return {
            "playerId": self.player_id,
            "playerName": self.player_name,
            "categoryScores": dict(self.category_scores),
            "roundScore": self.round_score,
        }


def normalize_answer(text: str) -> str:
    return (text or "").strip().lower()


def starts_with_letter(answer: str, letter: str) -> bool:
    a = normalize_answer(answer)
    return bool(a) and bool(letter) and a.startswith(letter.lower())


def _score_cell(player: Player, players: Sequence[Player], ledger: VotingLedger, letter: str, category_id: str) -> int:
    answer = player.answer_for(category_id)
    if not answer:
        return 0
    if not starts_with_letter(answer, letter):
        return 0

    entry = ledger.get(category_id, player.id)
    if entry is not None:
        if entry.verdict != "accepted":
            return 0
        mine = normalize_answer(answer)
        seated = {p.id for p in players}
        duplicated = any(
            other.player_id != player.id
            and other.player_id in seated
            and other.verdict == "accepted"
            and normalize_answer(other.answer) == mine
            for other in ledger.in_category(category_id)
        )
        return SHARED_POINTS if duplicated else UNIQUE_POINTS

    # Nobody voted on it: accepted, unique unless someone else answered too.
    others_answered = any(p.id != player.id and p.answer_for(category_id) for p in players)
    return SHARED_POINTS if others_answered else UNIQUE_POINTS


def calculate_scores(
    players: Iterable[Player],
    ledger: VotingLedger,
    letter: str,
    categories: Iterable[Category],
) -> list[ScoreReport]:
    """Score one round. Reads its inputs only; cumulative scores are untouched."""
    players = list(players)
    categories = list(categories)
    reports: list[ScoreReport] = []
    for player in players:
        report = ScoreReport(player_id=player.id, player_name=player.name)
        for category in categories:
            points = _score_cell(player, players, ledger, letter, category.id)
            report.category_scores[category.id] = points
            report.round_score += points
        reports.append(report)
    return reports


def game_stats(players: Sequence[Player]) -> dict:
    if not players:
        return {"totalPlayers": 0, "averageScore": 0, "highestScore": 0, "completedAnswers": 0}
    return {
        "totalPlayers": len(players),
        "averageScore": sum(p.score for p in players) / len(players),
        "highestScore": max(p.score for p in players),
        "completedAnswers": sum(1 for p in players for a in p.answers.values() if (a or "").strip()),
    }
