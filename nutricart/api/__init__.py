"""NutriCart REST backend client."""

from .auth import AuthSession, Authenticator
from .client import DEFAULT_BASE_URL, NutriCartClient
from .errors import (
    APIError,
    AuthRequiredError,
    NetworkError,
    NutriCartError,
    PaymentError,
)
from .models import (
    Cart,
    CartItem,
    DietPlan,
    Feature,
    Order,
    Product,
    Recipe,
    RecipeIngredient,
    Subscription,
    Tier,
    User,
    UserProfile,
)

__all__ = [
    "NutriCartClient",
    "DEFAULT_BASE_URL",
    "Authenticator",
    "AuthSession",
    "NutriCartError",
    "APIError",
    "NetworkError",
    "AuthRequiredError",
    "PaymentError",
    "Cart",
    "CartItem",
    "DietPlan",
    "Feature",
    "Order",
    "Product",
    "Recipe",
    "RecipeIngredient",
    "Subscription",
    "Tier",
    "User",
    "UserProfile",
]
