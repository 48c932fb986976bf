from __future__ import annotations

import re
from datetime import datetime
from uuid import uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.core.config import get_settings
from tianji.core.dates import ensure_utc, usage_local_date
from tianji.core.errors import (
    NotFoundError,
    QuotaExceededError,
    SubscriptionConflictError,
    ValidationError,
)
from tianji.db.models.subscriptions import Subscription
from tianji.db.repo.subscriptions_repo import SubscriptionsRepo
from tianji.db.repo.usage_repo import UsageRepo
from tianji.economy.subscriptions.catalog import (
    PAID_TIERS,
    PREMIUM_TIERS,
    TIER_FREE,
    add_months,
    daily_limit,
    duration_months,
    features_for,
    get_price,
    is_feature_available,
    is_missing,
    resolve_feature_path,
    upgrade_tier,
)
from tianji.economy.subscriptions.types import (
    ExpiryCheckResult,
    FeatureCheckResult,
    OrderStatusResult,
    SubscriptionCreateResult,
    SubscriptionStatus,
    SubscriptionStatusResult,
    UsageResult,
)

logger = structlog.get_logger(__name__)

FEATURE_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]{0,63}$")
FEATURE_PATH_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*(\.[A-Za-z][A-Za-z0-9_]*)*$")
MAX_PAYMENT_METHOD_LENGTH = 32


def _is_active_at(subscription: Subscription | None, now_utc: datetime) -> bool:
    if subscription is None or subscription.status != SubscriptionStatus.ACTIVE.value:
        return False
    if subscription.expires_at is None:
        return False
    return ensure_utc(subscription.expires_at) > now_utc


def _validate_feature(feature: str) -> None:
    if not isinstance(feature, str) or not FEATURE_NAME_RE.match(feature):
        raise ValidationError("feature must be a simple identifier")


def _usage_result(*, feature: str, usage_date, count: int, limit: int) -> UsageResult:
    remaining = -1 if limit == 0 else max(0, limit - count)
    return UsageResult(
        feature=feature,
        usage_date=usage_date,
        count=count,
        limit=limit,
        remaining=remaining,
    )


def _as_order_status(subscription: Subscription) -> OrderStatusResult:
    return OrderStatusResult(
        order_id=subscription.order_id,
        tier=subscription.tier,
        status=subscription.status,
        paid=subscription.started_at is not None,
        started_at=ensure_utc(subscription.started_at) if subscription.started_at else None,
        expires_at=ensure_utc(subscription.expires_at) if subscription.expires_at else None,
    )


class SubscriptionService:
    @staticmethod
    async def effective_tier(session: AsyncSession, *, user_id: str, now_utc: datetime) -> str:
        subscription = await SubscriptionsRepo.get_open_for_user(session, user_id)
        if _is_active_at(subscription, now_utc):
            return subscription.tier
        return TIER_FREE

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        user_id: str,
        tier: str,
        is_yearly: bool,
        payment_method: str | None,
        now_utc: datetime,
    ) -> SubscriptionCreateResult:
        if tier not in PAID_TIERS:
            raise ValidationError("tier must be one of basic, premium, vip")
        if payment_method is not None and len(payment_method) > MAX_PAYMENT_METHOD_LENGTH:
            raise ValidationError("paymentMethod is too long")

        existing = await SubscriptionsRepo.get_open_for_user(session, user_id)
        if (
            existing is not None
            and existing.status == SubscriptionStatus.ACTIVE.value
            and not _is_active_at(existing, now_utc)
        ):
            expired_ids = await SubscriptionsRepo.expire_due(session, now_utc=now_utc, user_id=user_id)
            if expired_ids:
                logger.info(
                    "subscriptions_expired",
                    user_id=user_id,
                    expired_count=len(expired_ids),
                    subscription_ids=expired_ids,
                )
            existing = await SubscriptionsRepo.get_open_for_user(session, user_id)
        if existing is not None:
            raise SubscriptionConflictError(
                f"User already has a {existing.status} subscription (order {existing.order_id})"
            )

        subscription = Subscription(
            order_id=str(uuid4()),
            user_id=user_id,
            tier=tier,
            status=SubscriptionStatus.PENDING.value,
            is_yearly=is_yearly,
            payment_method=payment_method,
            price_amount=get_price(tier, is_yearly=is_yearly),
            auto_renew=True,
            created_at=now_utc,
            updated_at=now_utc,
        )
        try:
            async with session.begin_nested():
                await SubscriptionsRepo.create(session, subscription=subscription)
        except IntegrityError as exc:
            raise SubscriptionConflictError("User already has an open subscription") from exc

        logger.info(
            "subscription_created",
            user_id=user_id,
            order_id=subscription.order_id,
            tier=tier,
            is_yearly=is_yearly,
            price_amount=subscription.price_amount,
        )
        return SubscriptionCreateResult(
            order_id=subscription.order_id,
            subscription_id=subscription.id,
            tier=subscription.tier,
            status=subscription.status,
            is_yearly=subscription.is_yearly,
            price_amount=subscription.price_amount,
        )

    @staticmethod
    async def confirm_payment(
        session: AsyncSession,
        *,
        order_id: str,
        now_utc: datetime,
    ) -> OrderStatusResult:
        subscription = await SubscriptionsRepo.get_by_order_id_for_update(session, order_id)
        if subscription is None:
            raise NotFoundError("Order not found")
        if subscription.status == SubscriptionStatus.ACTIVE.value:
            return _as_order_status(subscription)
        if subscription.status != SubscriptionStatus.PENDING.value:
            raise SubscriptionConflictError(f"Order is already {subscription.status}")

        expires_at = add_months(now_utc, duration_months(is_yearly=subscription.is_yearly))
        activated_id = await SubscriptionsRepo.activate_pending(
            session,
            order_id=order_id,
            started_at=now_utc,
            expires_at=expires_at,
        )
        refreshed = await SubscriptionsRepo.get_by_order_id(session, order_id)
        if refreshed is None:
            raise NotFoundError("Order not found")
        if activated_id is None and refreshed.status != SubscriptionStatus.ACTIVE.value:
            raise SubscriptionConflictError(f"Order is already {refreshed.status}")

        logger.info(
            "subscription_activated",
            user_id=refreshed.user_id,
            order_id=order_id,
            tier=refreshed.tier,
            expires_at=expires_at.isoformat(),
        )
        return _as_order_status(refreshed)

    @staticmethod
    async def check_order_status(
        session: AsyncSession,
        *,
        user_id: str,
        order_id: str,
    ) -> OrderStatusResult:
        if not order_id:
            raise ValidationError("orderId is required")
        subscription = await SubscriptionsRepo.get_by_order_id(session, order_id)
        if subscription is None or subscription.user_id != user_id:
            raise NotFoundError("Order not found")
        return _as_order_status(subscription)

    @staticmethod
    async def check_expired(
        session: AsyncSession,
        *,
        now_utc: datetime,
        user_id: str | None = None,
    ) -> ExpiryCheckResult:
        expired_ids = await SubscriptionsRepo.expire_due(session, now_utc=now_utc, user_id=user_id)
        if expired_ids:
            logger.info(
                "subscriptions_expired",
                user_id=user_id,
                expired_count=len(expired_ids),
                subscription_ids=expired_ids,
            )

        new_tier = TIER_FREE
        if user_id is not None:
            new_tier = await SubscriptionService.effective_tier(
                session,
                user_id=user_id,
                now_utc=now_utc,
            )
        return ExpiryCheckResult(
            expired=bool(expired_ids),
            new_tier=new_tier,
            expired_subscription_ids=expired_ids,
        )

    @staticmethod
    async def cancel(session: AsyncSession, *, user_id: str, now_utc: datetime) -> int:
        cancelled_id = await SubscriptionsRepo.cancel_open_for_user(
            session,
            user_id=user_id,
            now_utc=now_utc,
        )
        if cancelled_id is None:
            raise NotFoundError("No active or pending subscription to cancel")
        logger.info("subscription_cancelled", user_id=user_id, subscription_id=cancelled_id)
        return cancelled_id

    @staticmethod
    async def status(
        session: AsyncSession,
        *,
        user_id: str,
        now_utc: datetime,
    ) -> SubscriptionStatusResult:
        subscription = await SubscriptionsRepo.get_open_for_user(session, user_id)
        if subscription is None:
            return SubscriptionStatusResult(
                tier=TIER_FREE,
                status=SubscriptionStatus.ACTIVE.value,
                expires_at=None,
                auto_renew=False,
                is_premium=False,
                subscription_id=None,
                features=features_for(TIER_FREE),
            )

        expires_at = ensure_utc(subscription.expires_at) if subscription.expires_at else None
        if subscription.status == SubscriptionStatus.ACTIVE.value and not _is_active_at(
            subscription, now_utc
        ):
            return SubscriptionStatusResult(
                tier=TIER_FREE,
                status=SubscriptionStatus.EXPIRED.value,
                expires_at=expires_at,
                auto_renew=False,
                is_premium=False,
                subscription_id=subscription.id,
                features=features_for(TIER_FREE),
            )

        effective = subscription.tier if _is_active_at(subscription, now_utc) else TIER_FREE
        return SubscriptionStatusResult(
            tier=effective,
            status=subscription.status,
            expires_at=expires_at,
            auto_renew=subscription.auto_renew,
            is_premium=effective in PREMIUM_TIERS,
            subscription_id=subscription.id,
            features=features_for(effective),
        )

    @staticmethod
    async def check_feature(
        session: AsyncSession,
        *,
        user_id: str,
        feature_path: str,
        now_utc: datetime,
    ) -> FeatureCheckResult:
        if not isinstance(feature_path, str) or not FEATURE_PATH_RE.match(feature_path):
            raise ValidationError("featurePath must be a dotted feature identifier")

        tier = await SubscriptionService.effective_tier(session, user_id=user_id, now_utc=now_utc)
        feature = feature_path.split(".", maxsplit=1)[0]
        denied = FeatureCheckResult(
            allowed=False,
            tier=tier,
            reason=f"Feature {feature_path} is not available on the {tier} tier",
            upgrade_tier=upgrade_tier(tier),
        )

        node = resolve_feature_path(tier, feature_path)
        if is_missing(node) or node is False:
            return denied
        if not is_feature_available(tier, feature):
            return denied

        limit = daily_limit(tier, feature)
        if limit > 0:
            count = await UsageRepo.get_count(
                session,
                user_id=user_id,
                feature=feature,
                usage_date=usage_local_date(now_utc, get_settings().usage_timezone),
            )
            if count >= limit:
                return FeatureCheckResult(
                    allowed=False,
                    tier=tier,
                    reason=f"Daily limit of {limit} reached for {feature}",
                    upgrade_tier=upgrade_tier(tier),
                )
        return FeatureCheckResult(allowed=True, tier=tier)

    @staticmethod
    async def record_usage(
        session: AsyncSession,
        *,
        user_id: str,
        feature: str,
        metadata: dict[str, object] | None,
        now_utc: datetime,
    ) -> UsageResult:
        _validate_feature(feature)
        tier = await SubscriptionService.effective_tier(session, user_id=user_id, now_utc=now_utc)
        if not is_feature_available(tier, feature):
            raise QuotaExceededError(f"Feature {feature} is not available on the {tier} tier")

        limit = daily_limit(tier, feature)
        usage_date = usage_local_date(now_utc, get_settings().usage_timezone)
        count = await UsageRepo.increment(
            session,
            user_id=user_id,
            feature=feature,
            usage_date=usage_date,
            metadata=metadata,
            now_utc=now_utc,
            limit=limit if limit > 0 else None,
        )
        if count is None:
            logger.info(
                "usage_quota_exceeded",
                user_id=user_id,
                feature=feature,
                tier=tier,
                limit=limit,
            )
            raise QuotaExceededError(f"Daily limit of {limit} reached for {feature}")
        return _usage_result(feature=feature, usage_date=usage_date, count=count, limit=limit)

    @staticmethod
    async def usage(
        session: AsyncSession,
        *,
        user_id: str,
        feature: str,
        now_utc: datetime,
    ) -> UsageResult:
        _validate_feature(feature)
        tier = await SubscriptionService.effective_tier(session, user_id=user_id, now_utc=now_utc)
        usage_date = usage_local_date(now_utc, get_settings().usage_timezone)
        count = await UsageRepo.get_count(
            session,
            user_id=user_id,
            feature=feature,
            usage_date=usage_date,
        )
        return _usage_result(
            feature=feature,
            usage_date=usage_date,
            count=count,
            limit=daily_limit(tier, feature),
        )
