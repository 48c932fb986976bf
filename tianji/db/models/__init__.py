from tianji.db.models.coin_balances import CoinBalance
from tianji.db.models.coin_ledger_entries import CoinLedgerEntry
from tianji.db.models.completeness_rewards import CompletenessReward
from tianji.db.models.star_charts import StarChart
from tianji.db.models.subscriptions import Subscription
from tianji.db.models.time_asset_unlocks import TimeAssetUnlock
from tianji.db.models.timespace_cache_entries import TimespaceCacheEntry
from tianji.db.models.usage_counters import UsageCounter
from tianji.db.models.user_profiles import UserProfile

__all__ = [
    "CoinBalance",
    "CoinLedgerEntry",
    "CompletenessReward",
    "StarChart",
    "Subscription",
    "TimeAssetUnlock",
    "TimespaceCacheEntry",
    "UsageCounter",
    "UserProfile",
]
