from __future__ import annotations

from dataclasses import dataclass

from tianji.economy.completeness.types import (
    CompletenessResult,
    FieldScore,
    ProfileSnapshot,
    RewardEvent,
    RewardEventType,
)

FIELD_BIRTH_DATA = "birthData"
FIELD_MBTI = "mbti"
FIELD_PROFESSION = "profession"
FIELD_CURRENT_STATUS = "currentStatus"
FIELD_WISHES = "wishes"

FIELD_MAX_SCORES: dict[str, int] = {
    FIELD_BIRTH_DATA: 40,
    FIELD_MBTI: 10,
    FIELD_PROFESSION: 10,
    FIELD_CURRENT_STATUS: 20,
    FIELD_WISHES: 20,
}


@dataclass(frozen=True, slots=True)
class FieldReward:
    field: str
    coins: int
    reason: str


@dataclass(frozen=True, slots=True)
class ThresholdReward:
    threshold: int
    coins: int
    reason: str


FIELD_REWARDS: dict[str, FieldReward] = {
    FIELD_MBTI: FieldReward(FIELD_MBTI, 5, "Filled in MBTI"),
    FIELD_PROFESSION: FieldReward(FIELD_PROFESSION, 5, "Filled in profession"),
    FIELD_CURRENT_STATUS: FieldReward(FIELD_CURRENT_STATUS, 5, "Described current status"),
    FIELD_WISHES: FieldReward(FIELD_WISHES, 5, "Added wishes"),
}

THRESHOLD_REWARDS: tuple[ThresholdReward, ...] = (
    ThresholdReward(30, 10, "Profile completeness reached 30%"),
    ThresholdReward(50, 20, "Profile completeness reached 50%"),
    ThresholdReward(70, 30, "Profile completeness reached 70%"),
    ThresholdReward(100, 50, "Profile completeness reached 100%"),
)


def _has_text(value: str | None) -> bool:
    return bool(value and value.strip())


def _field_filled(snapshot: ProfileSnapshot) -> dict[str, bool]:
    return {
        FIELD_BIRTH_DATA: snapshot.birth_date is not None,
        FIELD_MBTI: _has_text(snapshot.mbti),
        FIELD_PROFESSION: _has_text(snapshot.profession),
        FIELD_CURRENT_STATUS: _has_text(snapshot.current_status),
        FIELD_WISHES: any(_has_text(wish) for wish in snapshot.wishes),
    }


def next_reward_threshold(completeness: int) -> int | None:
    for reward in sorted(THRESHOLD_REWARDS, key=lambda item: item.threshold):
        if completeness < reward.threshold:
            return reward.threshold
    return None


def score(snapshot: ProfileSnapshot) -> CompletenessResult:
    filled = _field_filled(snapshot)
    breakdown = {
        name: FieldScore(
            filled=filled[name],
            score=max_score if filled[name] else 0,
            max_score=max_score,
        )
        for name, max_score in FIELD_MAX_SCORES.items()
    }
    total = sum(item.score for item in breakdown.values())
    completeness = max(0, min(100, total))
    return CompletenessResult(
        completeness=completeness,
        breakdown=breakdown,
        next_reward_threshold=next_reward_threshold(completeness),
    )


def plan_reward_events(before: CompletenessResult, after: CompletenessResult) -> list[RewardEvent]:
    """Diffs two scores into ordered reward events; the caller applies the coin grants."""
    events: list[RewardEvent] = []

    newly_filled = after.filled_fields() - before.filled_fields()
    for field_name in FIELD_MAX_SCORES:
        reward = FIELD_REWARDS.get(field_name)
        if reward is None or field_name not in newly_filled:
            continue
        events.append(
            RewardEvent(
                type=RewardEventType.COIN_GRANTED,
                coins=reward.coins,
                reason=reward.reason,
                field=field_name,
            )
        )

    for reward in sorted(THRESHOLD_REWARDS, key=lambda item: item.threshold):
        if not (before.completeness < reward.threshold <= after.completeness):
            continue
        events.append(
            RewardEvent(
                type=RewardEventType.THRESHOLD_REACHED,
                coins=reward.coins,
                reason=reward.reason,
                threshold=reward.threshold,
            )
        )
        events.append(
            RewardEvent(
                type=RewardEventType.COIN_GRANTED,
                coins=reward.coins,
                reason=reward.reason,
                threshold=reward.threshold,
            )
        )

    if after.completeness > before.completeness:
        events.append(
            RewardEvent(
                type=RewardEventType.COMPLETENESS_INCREASED,
                reason=f"Profile completeness rose from {before.completeness}% to {after.completeness}%",
            )
        )
    return events
