from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.core.dates import parse_iso_date
from tianji.core.errors import ValidationError
from tianji.db.models.user_profiles import UserProfile
from tianji.db.repo.profiles_repo import ProfilesRepo
from tianji.economy.coins.service import CoinLedgerService
from tianji.economy.coins.types import CoinReason
from tianji.economy.completeness.rules import plan_reward_events, score
from tianji.economy.completeness.types import (
    CompletenessResult,
    DestinyCard,
    ProfileSnapshot,
    RewardEvent,
    RewardEventType,
)

logger = structlog.get_logger(__name__)

ENERGY_LEVELS = frozenset({"strong", "weak", "balanced"})
MAX_WISHES = 20
_TEXT_FIELD_LIMITS = {
    "birth_time": 8,
    "birth_location": 128,
    "mbti": 8,
    "profession": 128,
    "current_status": 2000,
    "identity": 64,
}


def snapshot_of(profile: UserProfile | None) -> ProfileSnapshot:
    if profile is None:
        return ProfileSnapshot()
    return ProfileSnapshot(
        birth_date=profile.birth_date,
        mbti=profile.mbti,
        profession=profile.profession,
        current_status=profile.current_status,
        wishes=tuple(profile.wishes or ()),
    )


def _normalize_changes(changes: dict[str, object]) -> dict[str, object]:
    normalized: dict[str, object] = {}
    for name, value in changes.items():
        if name == "birth_date":
            normalized[name] = None if value is None else parse_iso_date(value, field="birthDate")
        elif name == "wishes":
            if value is None:
                normalized[name] = []
                continue
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise ValidationError("wishes must be a list of strings")
            if len(value) > MAX_WISHES:
                raise ValidationError(f"wishes may contain at most {MAX_WISHES} items")
            normalized[name] = [item.strip() for item in value if item.strip()]
        elif name == "energy_level":
            if value is not None and value not in ENERGY_LEVELS:
                raise ValidationError("energyLevel must be one of strong, weak, balanced")
            normalized[name] = value
        elif name in _TEXT_FIELD_LIMITS:
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{name} must be a string")
            if isinstance(value, str) and len(value) > _TEXT_FIELD_LIMITS[name]:
                raise ValidationError(f"{name} is too long")
            normalized[name] = value.strip() if isinstance(value, str) else None
        else:
            raise ValidationError(f"unknown profile field: {name}")
    return normalized


def _as_destiny_card(
    profile: UserProfile | None,
    result: CompletenessResult,
    *,
    events: list[RewardEvent] | None = None,
) -> DestinyCard:
    return DestinyCard(
        birth_date=profile.birth_date if profile else None,
        birth_time=profile.birth_time if profile else None,
        birth_location=profile.birth_location if profile else None,
        mbti=profile.mbti if profile else None,
        profession=profile.profession if profile else None,
        current_status=profile.current_status if profile else None,
        identity=profile.identity if profile else None,
        energy_level=profile.energy_level if profile else None,
        wishes=list(profile.wishes or []) if profile else [],
        completeness=result.completeness,
        last_updated=profile.updated_at if profile else None,
        events=events or [],
    )


async def _grant_planned_rewards(
    session: AsyncSession,
    *,
    user_id: str,
    planned: list[RewardEvent],
    now_utc: datetime,
) -> list[RewardEvent]:
    granted: list[RewardEvent] = []
    skipped_thresholds: set[int] = set()

    for event in planned:
        if event.type == RewardEventType.COMPLETENESS_INCREASED:
            granted.append(event)
            continue

        if event.threshold is not None and event.threshold in skipped_thresholds:
            continue

        if event.type == RewardEventType.THRESHOLD_REACHED:
            recorded = await ProfilesRepo.try_record_reward(
                session,
                user_id=user_id,
                reward_type="THRESHOLD",
                reward_key=str(event.threshold),
                coins=int(event.coins or 0),
                now_utc=now_utc,
            )
            if not recorded:
                skipped_thresholds.add(int(event.threshold or 0))
                continue
            granted.append(event)
            continue

        if event.field is not None:
            recorded = await ProfilesRepo.try_record_reward(
                session,
                user_id=user_id,
                reward_type="FIELD",
                reward_key=event.field,
                coins=int(event.coins or 0),
                now_utc=now_utc,
            )
            if not recorded:
                continue
            reason = CoinReason.COMPLETENESS_FIELD_REWARD
            idempotency_key = f"completeness:field:{event.field}:{user_id}"
        else:
            reason = CoinReason.COMPLETENESS_THRESHOLD_REWARD
            idempotency_key = f"completeness:threshold:{event.threshold}:{user_id}"

        await CoinLedgerService.credit(
            session,
            user_id=user_id,
            amount=int(event.coins or 0),
            reason=reason,
            now_utc=now_utc,
            idempotency_key=idempotency_key,
            metadata={"field": event.field, "threshold": event.threshold},
        )
        granted.append(event)

    return granted


class CompletenessService:
    @staticmethod
    async def get_destiny_card(session: AsyncSession, *, user_id: str) -> DestinyCard:
        profile = await ProfilesRepo.get_by_user_id(session, user_id)
        return _as_destiny_card(profile, score(snapshot_of(profile)))

    @staticmethod
    async def get_completeness(session: AsyncSession, *, user_id: str) -> CompletenessResult:
        profile = await ProfilesRepo.get_by_user_id(session, user_id)
        return score(snapshot_of(profile))

    @staticmethod
    async def update_profile(
        session: AsyncSession,
        *,
        user_id: str,
        changes: dict[str, object],
        now_utc: datetime,
    ) -> DestinyCard:
        normalized = _normalize_changes(changes)

        profile = await ProfilesRepo.get_by_user_id_for_update(session, user_id)
        if profile is None:
            profile = await ProfilesRepo.create_empty(session, user_id=user_id, now_utc=now_utc)

        before = score(snapshot_of(profile))
        for name, value in normalized.items():
            setattr(profile, name, value)
        profile.updated_at = now_utc
        await session.flush()
        after = score(snapshot_of(profile))

        events = await _grant_planned_rewards(
            session,
            user_id=user_id,
            planned=plan_reward_events(before, after),
            now_utc=now_utc,
        )
        logger.info(
            "destiny_card_updated",
            user_id=user_id,
            completeness_before=before.completeness,
            completeness_after=after.completeness,
            events=[event.type.value for event in events],
        )
        return _as_destiny_card(profile, after, events=events)
