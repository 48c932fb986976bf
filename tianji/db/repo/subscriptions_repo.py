from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.db.models.subscriptions import Subscription

OPEN_STATUSES = ("pending", "active")


class SubscriptionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, subscription: Subscription) -> Subscription:
        session.add(subscription)
        await session.flush()
        return subscription

    @staticmethod
    async def get_open_for_user(session: AsyncSession, user_id: str) -> Subscription | None:
        stmt = (
            select(Subscription)
            .where(
                Subscription.user_id == user_id,
                Subscription.status.in_(OPEN_STATUSES),
            )
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_order_id(session: AsyncSession, order_id: str) -> Subscription | None:
        stmt = (
            select(Subscription)
            .where(Subscription.order_id == order_id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_order_id_for_update(session: AsyncSession, order_id: str) -> Subscription | None:
        stmt = (
            select(Subscription)
            .where(Subscription.order_id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def activate_pending(
        session: AsyncSession,
        *,
        order_id: str,
        started_at: datetime,
        expires_at: datetime,
    ) -> int | None:
        stmt = (
            update(Subscription)
            .where(
                Subscription.order_id == order_id,
                Subscription.status == "pending",
            )
            .values(
                status="active",
                started_at=started_at,
                expires_at=expires_at,
                updated_at=started_at,
            )
            .returning(Subscription.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def cancel_open_for_user(
        session: AsyncSession,
        *,
        user_id: str,
        now_utc: datetime,
    ) -> int | None:
        stmt = (
            update(Subscription)
            .where(
                Subscription.user_id == user_id,
                Subscription.status.in_(OPEN_STATUSES),
            )
            .values(
                status="cancelled",
                auto_renew=False,
                cancelled_at=now_utc,
                updated_at=now_utc,
            )
            .returning(Subscription.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def expire_due(
        session: AsyncSession,
        *,
        now_utc: datetime,
        user_id: str | None = None,
    ) -> list[int]:
        stmt = (
            update(Subscription)
            .where(
                Subscription.status == "active",
                Subscription.expires_at.is_not(None),
                Subscription.expires_at <= now_utc,
            )
            .values(status="expired", auto_renew=False, updated_at=now_utc)
            .returning(Subscription.id)
            .execution_options(synchronize_session=False)
        )
        if user_id is not None:
            stmt = stmt.where(Subscription.user_id == user_id)
        result = await session.execute(stmt)
        return [int(subscription_id) for subscription_id in result.scalars().all()]
