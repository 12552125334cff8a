"""Tier-based content and feature access rules."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .api.models import Feature, Subscription, Tier

_FREE_FEATURES: frozenset[Feature] = frozenset({
    Feature.BASIC_DIET_PLANS,
    Feature.BASIC_RECIPES,
})

_PREMIUM_FEATURES: frozenset[Feature] = _FREE_FEATURES | {
    Feature.PROGRESS_TRACKING,
    Feature.PREMIUM_DIET_PLANS,
    Feature.PRIORITY_SUPPORT,
    Feature.EXCLUSIVE_RECIPES,
    Feature.NUTRITIONAL_ANALYSIS,
}

_PRO_FEATURES: frozenset[Feature] = frozenset(Feature)

# Every feature appears in every row
TIER_FEATURES: dict[Tier, dict[str, bool]] = {
    tier: {feature.value: feature in enabled for feature in Feature}
    for tier, enabled in (
        (Tier.FREE, _FREE_FEATURES),
        (Tier.PREMIUM, _PREMIUM_FEATURES),
        (Tier.PRO, _PRO_FEATURES),
    )
}

# -1 means unlimited
TIER_LIMITS: dict[Tier, dict[str, int]] = {
    Tier.FREE: {
        "max_diet_plans": 3,
        "max_recipes": 10,
        "max_tracking_days": 0,
        "max_analytics_reports": 0,
    },
    Tier.PREMIUM: {
        "max_diet_plans": -1,
        "max_recipes": -1,
        "max_tracking_days": 90,
        "max_analytics_reports": 5,
    },
    Tier.PRO: {
        "max_diet_plans": -1,
        "max_recipes": -1,
        "max_tracking_days": -1,
        "max_analytics_reports": -1,
    },
}

TIER_PRICING: dict[Tier, dict[str, Any]] = {
    Tier.FREE: {
        "price": 0,
        "currency": "INR",
        "period": "Forever",
        "features": [
            "Basic Diet Plans",
            "Basic Recipes",
            "Community Support",
            "Basic Cart Management",
        ],
    },
    Tier.PREMIUM: {
        "price": 499,
        "currency": "INR",
        "period": "per month",
        "features": [
            "All Free Features",
            "Progress Tracking of Diet Plans",
            "Premium Diet Plans",
            "Priority Customer Support",
            "Exclusive Recipes",
            "Nutritional Analysis",
        ],
    },
    Tier.PRO: {
        "price": 799,
        "currency": "INR",
        "period": "per month",
        "features": [
            "All Premium Features",
            "Advanced Analytics",
            "Restaurant Recommendations",
            "24/7 Priority Support",
            "Exclusive Workshop Notifications",
            "Pro Recipes and Diet Plans",
            "1-on-1 Nutrition Consultation",
        ],
    },
}

_DISPLAY_NAMES: dict[Tier, str] = {
    Tier.FREE: "Free",
    Tier.PREMIUM: "Premium",
    Tier.PRO: "Pro",
}


def _tier_of(subscription: Subscription | None) -> Tier:
    if subscription is None or not subscription.tier:
        return Tier.FREE
    return Tier.parse(subscription.tier)


def can_access_content(
    subscription: Subscription | None, content_tier: Tier | str
) -> bool:
    """True if the subscription's tier is at least ``content_tier``.

    A missing subscription counts as free.
    """
    return _tier_of(subscription).rank >= Tier.parse(content_tier).rank


def has_feature(subscription: Subscription | None, feature: Feature | str) -> bool:
    """Look ``feature`` up in the static tier table. Unknown names are off."""
    name = feature.value if isinstance(feature, Feature) else str(feature)
    return TIER_FEATURES[_tier_of(subscription)].get(name, False)


def features_for(tier: Tier | str) -> dict[str, bool]:
    """Return a fresh copy of the feature row for ``tier``."""
    return dict(TIER_FEATURES[Tier.parse(tier)])


def subscription_limits(subscription: Subscription | None) -> dict[str, int]:
    return dict(TIER_LIMITS[_tier_of(subscription)])


def tier_display_name(tier: Tier | str | None) -> str:
    return _DISPLAY_NAMES[Tier.parse(tier)]


def is_subscription_active(
    subscription: Subscription | None, now: datetime | None = None
) -> bool:
    """Free plans never lapse; paid plans need ``is_active`` and a future end date."""
    if subscription is None:
        return False
    if _tier_of(subscription) is Tier.FREE:
        return True
    if not subscription.is_active or subscription.end_date is None:
        return False

    end = subscription.end_date
    if now is None:
        now = datetime.now(timezone.utc) if end.tzinfo else datetime.now()
    return end > now
