from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class CoinReason(str, Enum):
    COMPLETENESS_FIELD_REWARD = "COMPLETENESS_FIELD_REWARD"
    COMPLETENESS_THRESHOLD_REWARD = "COMPLETENESS_THRESHOLD_REWARD"
    TIME_ASSET_UNLOCK = "TIME_ASSET_UNLOCK"
    ADMIN_ADJUSTMENT = "ADMIN_ADJUSTMENT"


@dataclass(slots=True)
class CoinMutationResult:
    user_id: str
    direction: str
    amount: int
    reason: str
    balance_after: int
    idempotent_replay: bool = False


@dataclass(slots=True)
class CoinTransaction:
    id: int
    direction: str
    amount: int
    balance_after: int
    reason: str
    metadata: dict[str, object]
    created_at: datetime
