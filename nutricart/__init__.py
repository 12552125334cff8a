"""NutriCart storefront client: cart, subscription tiers and diet recommendations."""

from .api import (
    APIError,
    AuthRequiredError,
    Cart,
    CartItem,
    DietPlan,
    Feature,
    NetworkError,
    NutriCartClient,
    NutriCartError,
    Product,
    Recipe,
    Subscription,
    Tier,
    User,
    UserProfile,
)
from .compatibility import CompatibilityResult, DietRecommendation, recommend
from .config import NutriCartConfig, load_config
from .store import CartStore, StoreSession, SubscriptionStore
from .tiers import can_access_content, has_feature

__all__ = [
    "NutriCartClient",
    "NutriCartError",
    "APIError",
    "NetworkError",
    "AuthRequiredError",
    "Cart",
    "CartItem",
    "DietPlan",
    "Feature",
    "Product",
    "Recipe",
    "Subscription",
    "Tier",
    "User",
    "UserProfile",
    "CartStore",
    "SubscriptionStore",
    "StoreSession",
    "can_access_content",
    "has_feature",
    "recommend",
    "CompatibilityResult",
    "DietRecommendation",
    "NutriCartConfig",
    "load_config",
]
