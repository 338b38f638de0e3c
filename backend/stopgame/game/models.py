from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from .errors import InvalidPayload

if TYPE_CHECKING:
    from .voting import VotingLedger


RoomState = Literal["waiting", "playing", "voting", "results"]
Vote = Literal["accept", "reject"]
Verdict = Literal["accepted", "rejected"]

DEFAULT_ICON = "📝"


@dataclass
class Category:
    id: str
    label: str
    icon: str = DEFAULT_ICON

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "icon": self.icon}


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category("nome", "Nome", "👤"),
    Category("animal", "Animal", "🐾"),
    Category("cor", "Cor", "🎨"),
    Category("objeto", "Objeto", "📦"),
    Category("filme", "Filme", "🎬"),
    Category("cep", "CEP", "📍"),
    Category("comida", "Comida", "🍕"),
    Category("profissao", "Profissão", "💼"),
)


def default_categories() -> list[Category]:
    return [Category(c.id, c.label, c.icon) for c in DEFAULT_CATEGORIES]


@dataclass
class Player:
    id: str
    name: str
    score: int = 0
    answers: dict[str, str] = field(default_factory=dict)
    is_ready: bool = False

    def answer_for(self, category_id: str) -> str:
        return (self.answers.get(category_id) or "").strip()

    def to_dict(self, include_answers: bool = True) -> dict:
        d = {
            "id": self.id,
            "name": self.name,
            "score": self.score,
            "isReady": self.is_ready,
        }
        if include_answers:
            d["answers"] = dict(self.answers)
        return d


@dataclass
class Room:
    code: str
    host_id: str | None = None
    state: RoomState = "waiting"
    round: int = 1
    letter: str = ""
    time_left: int = 0
    players: list[Player] = field(default_factory=list)
    categories: list[Category] = field(default_factory=default_categories)
    ledger: VotingLedger | None = None

    def find_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def has_name(self, name: str) -> bool:
        return any(p.name == name for p in self.players)


@dataclass(frozen=True)
class GameSettings:
    round_duration_sec: int = 60
    tick_interval_sec: float = 1.0
    max_players: int = 8
    room_code_length: int = 6
    reassign_host_on_leave: bool = False

    @classmethod
    def from_mapping(cls, config) -> GameSettings:
        return cls(
            round_duration_sec=int(config.get("ROUND_DURATION_SEC", 60)),
            tick_interval_sec=float(config.get("TICK_INTERVAL_SEC", 1.0)),
            max_players=int(config.get("MAX_PLAYERS", 8)),
            room_code_length=int(config.get("ROOM_CODE_LENGTH", 6)),
            reassign_host_on_leave=bool(config.get("REASSIGN_HOST_ON_LEAVE", False)),
        )


MAX_CATEGORIES = 20


def parse_categories(raw) -> list[Category]:
    """Build a category set from a client payload, or raise InvalidPayload."""
    if not isinstance(raw, list) or not raw:
        raise InvalidPayload("At least one category is required")
    if len(raw) > MAX_CATEGORIES:
        raise InvalidPayload(f"At most {MAX_CATEGORIES} categories are allowed")

    parsed: list[Category] = []
    seen: set[str] = set()
    for item in raw:
        if not isinstance(item, dict):
            raise InvalidPayload("Malformed category")
        cid = str(item.get("id") or "").strip()
        label = str(item.get("label") or "").strip()
        icon = str(item.get("icon") or "").strip() or DEFAULT_ICON
        if not cid or not label:
            raise InvalidPayload("Categories need an id and a label")
        if cid in seen:
            raise InvalidPayload(f"Duplicate category id: {cid}")
        seen.add(cid)
        parsed.append(Category(cid, label, icon))
    return parsed
