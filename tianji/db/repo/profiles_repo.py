from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.db.models.completeness_rewards import CompletenessReward
from tianji.db.models.user_profiles import UserProfile


class ProfilesRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: str) -> UserProfile | None:
        return await session.get(UserProfile, user_id)

    @staticmethod
    async def get_by_user_id_for_update(session: AsyncSession, user_id: str) -> UserProfile | None:
        stmt = (
            select(UserProfile)
            .where(UserProfile.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_empty(session: AsyncSession, *, user_id: str, now_utc: datetime) -> UserProfile:
        profile = UserProfile(
            user_id=user_id,
            wishes=[],
            created_at=now_utc,
            updated_at=now_utc,
        )
        session.add(profile)
        await session.flush()
        return profile

    @staticmethod
    async def try_record_reward(
        session: AsyncSession,
        *,
        user_id: str,
        reward_type: str,
        reward_key: str,
        coins: int,
        now_utc: datetime,
    ) -> bool:
        """Returns False when this reward was already granted to the user."""
        try:
            async with session.begin_nested():
                session.add(
                    CompletenessReward(
                        user_id=user_id,
                        reward_type=reward_type,
                        reward_key=reward_key,
                        coins=coins,
                        created_at=now_utc,
                    )
                )
                await session.flush()
        except IntegrityError:
            return False
        return True

    @staticmethod
    async def list_reward_keys(session: AsyncSession, *, user_id: str) -> set[tuple[str, str]]:
        stmt = select(CompletenessReward.reward_type, CompletenessReward.reward_key).where(
            CompletenessReward.user_id == user_id
        )
        result = await session.execute(stmt)
        return {(reward_type, reward_key) for reward_type, reward_key in result.all()}
