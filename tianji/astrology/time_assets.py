from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.astrology.rules import (
    parse_period,
    validate_page,
    validate_period_type,
    validate_unlock_dimension,
)
from tianji.astrology.types import TimeAsset, UnlockResult
from tianji.core.dates import ensure_utc, parse_iso_instant
from tianji.core.errors import AlreadyUnlockedError, ValidationError
from tianji.db.models.time_asset_unlocks import TimeAssetUnlock
from tianji.db.repo.time_assets_repo import TimeAssetsRepo
from tianji.economy.coins.service import CoinLedgerService
from tianji.economy.coins.types import CoinReason

logger = structlog.get_logger(__name__)

DEFAULT_UNLOCK_COST_COINS = 10


def _as_asset(unlock: TimeAssetUnlock) -> TimeAsset:
    return TimeAsset(
        id=unlock.id,
        dimension=unlock.dimension,
        period_start=unlock.period_start,
        period_end=unlock.period_end,
        period_type=unlock.period_type,
        expires_at=ensure_utc(unlock.expires_at) if unlock.expires_at else None,
        cost_coins=unlock.cost_coins,
        created_at=ensure_utc(unlock.created_at),
    )


class TimeAssetService:
    @staticmethod
    async def unlock(
        session: AsyncSession,
        *,
        user_id: str,
        dimension: object,
        period_start: object,
        period_end: object,
        period_type: object,
        expires_at: object,
        now_utc: datetime,
        cost_coins: int = DEFAULT_UNLOCK_COST_COINS,
    ) -> UnlockResult:
        dimension_value = validate_unlock_dimension(dimension)
        start, end = parse_period(period_start, period_end)
        period_type_value = validate_period_type(period_type)
        expires = parse_iso_instant(expires_at, field="expires_at")
        if isinstance(cost_coins, bool) or not isinstance(cost_coins, int) or cost_coins <= 0:
            raise ValidationError("cost_coins must be a positive integer")

        already_unlocked = await TimeAssetsRepo.exists_for_period(
            session,
            user_id=user_id,
            dimension=dimension_value,
            period_start=start,
            period_end=end,
        )
        if already_unlocked:
            raise AlreadyUnlockedError("This period is already unlocked")

        debit = await CoinLedgerService.debit(
            session,
            user_id=user_id,
            amount=cost_coins,
            reason=CoinReason.TIME_ASSET_UNLOCK,
            now_utc=now_utc,
            metadata={
                "dimension": dimension_value,
                "period_start": start.isoformat(),
                "period_end": end.isoformat(),
            },
        )

        unlock = TimeAssetUnlock(
            user_id=user_id,
            dimension=dimension_value,
            period_start=start,
            period_end=end,
            period_type=period_type_value,
            expires_at=expires,
            cost_coins=cost_coins,
            created_at=now_utc,
        )
        try:
            async with session.begin_nested():
                await TimeAssetsRepo.create(session, unlock=unlock)
        except IntegrityError as exc:
            # The outer transaction still holds the debit; raising rolls it back.
            raise AlreadyUnlockedError("This period is already unlocked") from exc

        logger.info(
            "time_asset_unlocked",
            user_id=user_id,
            dimension=dimension_value,
            period_start=start.isoformat(),
            period_end=end.isoformat(),
            cost_coins=cost_coins,
            remaining_balance=debit.balance_after,
        )
        return UnlockResult(asset=_as_asset(unlock), remaining_balance=debit.balance_after)

    @staticmethod
    async def list_unlocked(
        session: AsyncSession,
        *,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
        dimension: str | None = None,
    ) -> list[TimeAsset]:
        validate_page(limit, offset)
        if dimension is not None:
            validate_unlock_dimension(dimension)
        unlocks = await TimeAssetsRepo.list_for_user(
            session,
            user_id=user_id,
            limit=limit,
            offset=offset,
            dimension=dimension,
        )
        return [_as_asset(unlock) for unlock in unlocks]

    @staticmethod
    async def is_unlocked(
        session: AsyncSession,
        *,
        user_id: str,
        dimension: object,
        period_start: object,
        period_end: object,
    ) -> bool:
        dimension_value = validate_unlock_dimension(dimension)
        start, end = parse_period(period_start, period_end)
        return await TimeAssetsRepo.exists_for_period(
            session,
            user_id=user_id,
            dimension=dimension_value,
            period_start=start,
            period_end=end,
        )
