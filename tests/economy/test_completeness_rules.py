from __future__ import annotations

from datetime import date

from tianji.economy.completeness.rules import next_reward_threshold, plan_reward_events, score
from tianji.economy.completeness.types import ProfileSnapshot, RewardEventType


def test_empty_profile_scores_zero() -> None:
    result = score(ProfileSnapshot())

    assert result.completeness == 0
    assert result.next_reward_threshold == 30
    assert all(not item.filled for item in result.breakdown.values())


def test_full_profile_scores_hundred() -> None:
    result = score(
        ProfileSnapshot(
            birth_date=date(1990, 5, 17),
            mbti="INTJ",
            profession="engineer",
            current_status="changing jobs",
            wishes=("travel",),
        )
    )

    assert result.completeness == 100
    assert result.next_reward_threshold is None


def test_blank_strings_do_not_count_as_filled() -> None:
    result = score(ProfileSnapshot(mbti="   ", profession="", wishes=("  ",)))

    assert result.completeness == 0


def test_next_reward_threshold_skips_reached_levels() -> None:
    assert next_reward_threshold(29) == 30
    assert next_reward_threshold(30) == 50
    assert next_reward_threshold(70) == 100


def test_plan_reward_events_orders_field_then_threshold_then_increase() -> None:
    before = score(ProfileSnapshot())
    after = score(ProfileSnapshot(birth_date=date(1990, 5, 17), mbti="INTJ"))

    events = plan_reward_events(before, after)

    assert [event.type for event in events] == [
        RewardEventType.COIN_GRANTED,
        RewardEventType.THRESHOLD_REACHED,
        RewardEventType.COIN_GRANTED,
        RewardEventType.THRESHOLD_REACHED,
        RewardEventType.COIN_GRANTED,
        RewardEventType.COMPLETENESS_INCREASED,
    ]
    assert events[0].field == "mbti"
    assert events[0].coins == 5
    assert [event.threshold for event in events[1:5]] == [30, 30, 50, 50]
    assert [event.coins for event in events[1:5]] == [10, 10, 20, 20]


def test_plan_reward_events_birth_data_has_no_field_reward() -> None:
    before = score(ProfileSnapshot())
    after = score(ProfileSnapshot(birth_date=date(1990, 5, 17)))

    events = plan_reward_events(before, after)

    assert all(event.field is None for event in events)
    assert [event.threshold for event in events if event.type == RewardEventType.THRESHOLD_REACHED] == [30]


def test_plan_reward_events_is_empty_when_nothing_changes() -> None:
    snapshot = ProfileSnapshot(mbti="INTJ")

    assert plan_reward_events(score(snapshot), score(snapshot)) == []
