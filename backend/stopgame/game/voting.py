"""Per-round answer voting.

The ledger holds one entry per (category, answering player) for every
non-empty answer that shares its category with at least one other non-empty
answer. An answer nobody else competed with has no entry and is scored by
the implicit-acceptance rule in :mod:`.scoring`.

Eligible voters are every room player except the answering one. The quorum
is passed in by the caller at each vote (current player count minus one),
so a disconnect mid-vote lowers it for every later vote.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .errors import InvalidPayload, InvalidTarget
from .models import Category, Player, Verdict, Vote

VOTE_VALUES: tuple[str, ...] = ("accept", "reject")


@dataclass
class LedgerEntry:
    category: str
    player_id: str
    player_name: str
    answer: str
    votes: dict[str, Vote] = field(default_factory=dict)
    verdict: Verdict | None = None

    def tally(self) -> tuple[int, int]:
        accepts = sum(1 for v in self.votes.values() if v == "accept")
        return accepts, len(self.votes) - accepts

    def settle(self, quorum: int) -> Verdict | None:
        """Derive the verdict if ``quorum`` votes are in; ties reject.

        With no eligible voters left the answer stands unchallenged and is
        accepted, like an answer that never needed a vote.
        """
        if len(self.votes) < quorum:
            return self.verdict
        if not self.votes:
            self.verdict = "accepted"
            return self.verdict
        accepts, rejects = self.tally()
        self.verdict = "accepted" if accepts > rejects else "rejected"
        return self.verdict

    def to_dict(self) -> dict:
        return {
            "playerName": self.player_name,
            "answer": self.answer,
            "votes": dict(self.votes),
            "needsVoting": True,
            "result": self.verdict,
        }


class VotingLedger:
    def __init__(self) -> None:
        self._entries: dict[str, dict[str, LedgerEntry]] = {}

    @classmethod
    def from_round(cls, players: Iterable[Player], categories: Iterable[Category]) -> VotingLedger:
        ledger = cls()
        players = list(players)
        for category in categories:
            answered = [(p, p.answer_for(category.id)) for p in players]
            answered = [(p, a) for p, a in answered if a]
            if len(answered) < 2:
                continue
            ledger._entries[category.id] = {
                p.id: LedgerEntry(category=category.id, player_id=p.id, player_name=p.name, answer=a)
                for p, a in answered
            }
        return ledger

    def __len__(self) -> int:
        return sum(len(by_player) for by_player in self._entries.values())

    def __iter__(self) -> Iterator[LedgerEntry]:
        for by_player in self._entries.values():
            yield from by_player.values()

    def get(self, category: str, player_id: str) -> LedgerEntry | None:
        return self._entries.get(category, {}).get(player_id)

    def in_category(self, category: str) -> list[LedgerEntry]:
        return list(self._entries.get(category, {}).values())

    def record_vote(self, category: str, target_id: str, voter_id: str, vote: str, quorum: int) -> LedgerEntry:
        if vote not in VOTE_VALUES:
            raise InvalidPayload(f"Vote must be one of {', '.join(VOTE_VALUES)}")

        entry = self.get(category, target_id)
        if entry is None:
            raise InvalidTarget()
        if voter_id == target_id:
            raise InvalidTarget("You cannot vote on your own answer")

        entry.votes[voter_id] = vote  # type: ignore[assignment]
        entry.settle(quorum)
        return entry

    def apply_quorum(self, quorum: int) -> None:
        for entry in self:
            entry.settle(quorum)

    def is_complete(self) -> bool:
        return all(entry.verdict is not None for entry in self)

    def to_dict(self) -> dict:
        return {
            category: {pid: entry.to_dict() for pid, entry in by_player.items()}
            for category, by_player in self._entries.items()
        }
