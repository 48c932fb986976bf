from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class RewardEventType(str, Enum):
    COIN_GRANTED = "COIN_GRANTED"
    THRESHOLD_REACHED = "THRESHOLD_REACHED"
    COMPLETENESS_INCREASED = "COMPLETENESS_INCREASED"


@dataclass(slots=True, frozen=True)
class ProfileSnapshot:
    birth_date: date | None = None
    mbti: str | None = None
    profession: str | None = None
    current_status: str | None = None
    wishes: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class FieldScore:
    filled: bool
    score: int
    max_score: int


@dataclass(slots=True, frozen=True)
class CompletenessResult:
    completeness: int
    breakdown: dict[str, FieldScore]
    next_reward_threshold: int | None

    def filled_fields(self) -> frozenset[str]:
        return frozenset(name for name, item in self.breakdown.items() if item.filled)


@dataclass(slots=True, frozen=True)
class RewardEvent:
    type: RewardEventType
    coins: int | None = None
    reason: str | None = None
    field: str | None = None
    threshold: int | None = None


@dataclass(slots=True)
class DestinyCard:
    birth_date: date | None
    birth_time: str | None
    birth_location: str | None
    mbti: str | None
    profession: str | None
    current_status: str | None
    identity: str | None
    energy_level: str | None
    wishes: list[str]
    completeness: int
    last_updated: datetime | None
    events: list[RewardEvent] = field(default_factory=list)
