"""Data models for NutriCart backend payloads.

The backend speaks camelCase JSON; every model has a ``from_dict``
constructor for server payloads and, where the client sends it back,
a ``to_dict`` producing the same shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


class Tier(str, Enum):
    """Subscription tier. Ordered ``FREE < PREMIUM < PRO``."""

    FREE = "free"
    PREMIUM = "premium"
    PRO = "pro"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    @classmethod
    def parse(cls, value: Any) -> Tier:
        """Map a raw tier value to a Tier; anything unknown is FREE."""
        if isinstance(value, Tier):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.FREE


_TIER_RANK: dict[Tier, int] = {Tier.FREE: 0, Tier.PREMIUM: 1, Tier.PRO: 2}


class Feature(str, Enum):
    """Closed set of tier-gated features."""

    BASIC_DIET_PLANS = "basicDietPlans"
    BASIC_RECIPES = "basicRecipes"
    # premium
    PROGRESS_TRACKING = "progressTracking"
    PREMIUM_DIET_PLANS = "premiumDietPlans"
    PRIORITY_SUPPORT = "prioritySupport"
    EXCLUSIVE_RECIPES = "exclusiveRecipes"
    NUTRITIONAL_ANALYSIS = "nutritionalAnalysis"
    # pro
    ADVANCED_ANALYTICS = "advancedAnalytics"
    RESTAURANT_RECOMMENDATIONS = "restaurantRecommendations"
    PRIORITY_SUPPORT_24X7 = "prioritySupport24x7"
    EXCLUSIVE_WORKSHOPS = "exclusiveWorkshops"
    PRO_RECIPES = "proRecipes"
    PRO_DIET_PLANS = "proDietPlans"
    ONE_ON_ONE_CONSULTATION = "oneOnOneConsultation"


def to_decimal(value: Any) -> Decimal:
    """Parse a JSON number/string into a Decimal without float noise."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


def parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _str_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


@dataclass
class CartItem:
    """A single product line in the cart."""

    product_id: str
    quantity: int
    unit_price: Decimal
    name: str = ""

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_dict(cls, data: dict) -> CartItem:
        product_id = data.get("productId", data.get("product_id", ""))
        return cls(
            product_id=str(product_id),
            quantity=int(data.get("quantity") or 0),
            unit_price=to_decimal(data.get("unitPrice", data.get("price"))),
            name=data.get("name", "") or "",
        )

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "quantity": self.quantity,
            "unitPrice": str(self.unit_price),
            "name": self.name,
        }


@dataclass
class Cart:
    """The authenticated user's cart as last returned by the server."""

    items: list[CartItem] = field(default_factory=list)
    total: Decimal = Decimal("0")
    coupon_code: str | None = None
    discount: Decimal = Decimal("0")

    @classmethod
    def empty(cls) -> Cart:
        return cls()

    @classmethod
    def from_dict(cls, data: dict | None) -> Cart:
        if not data:
            return cls.empty()
        if isinstance(data.get("cart"), dict):
            data = data["cart"]

        items: list[CartItem] = []
        for raw in data.get("items") or []:
            item = CartItem.from_dict(raw)
            # Zero/negative lines are never kept
            if item.quantity > 0:
                items.append(item)

        return cls(
            items=items,
            total=to_decimal(data.get("total")),
            coupon_code=data.get("couponCode") or None,
            discount=to_decimal(data.get("discount")),
        )

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def find(self, product_id: str) -> CartItem | None:
        product_id = str(product_id)
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "total": str(self.total),
            "couponCode": self.coupon_code,
            "discount": str(self.discount),
        }


@dataclass
class Subscription:
    """A user's subscription. Replaced wholesale on upgrade."""

    tier: Tier = Tier.FREE
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool = True
    features: dict[str, bool] = field(default_factory=dict)
    payment_id: str = ""

    @classmethod
    def default(cls) -> Subscription:
        return cls(tier=Tier.FREE, is_active=True)

    @classmethod
    def from_dict(cls, data: dict | str | None) -> Subscription | None:
        if not data:
            return None
        # Seed users may carry a bare tier string
        if isinstance(data, str):
            return cls(tier=Tier.parse(data), is_active=True)
        return cls(
            tier=Tier.parse(data.get("tier")),
            start_date=parse_datetime(data.get("startDate")),
            end_date=parse_datetime(data.get("endDate")),
            is_active=bool(data.get("isActive", True)),
            features={
                str(k): bool(v) for k, v in (data.get("features") or {}).items()
            },
            payment_id=data.get("paymentId", "") or "",
        )

    def to_dict(self) -> dict:
        return {
            "tier": self.tier.value,
            "startDate": _format_datetime(self.start_date),
            "endDate": _format_datetime(self.end_date),
            "isActive": self.is_active,
            "paymentId": self.payment_id,
            "features": dict(self.features),
        }

    def cancelled(self) -> Subscription:
        """Return a copy marked inactive; tier and dates are kept."""
        return replace(self, is_active=False, features=dict(self.features))


@dataclass
class User:
    id: str
    email: str = ""
    name: str = ""
    subscription: Subscription | None = None
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> User:
        if isinstance(data.get("user"), dict):
            data = data["user"]
        return cls(
            id=str(data.get("id", data.get("_id", ""))),
            email=data.get("email", "") or "",
            name=data.get("name", "") or "",
            subscription=Subscription.from_dict(data.get("subscription")),
            raw=dict(data),
        )

    def to_dict(self) -> dict:
        data = dict(self.raw)
        data.update({"id": self.id, "email": self.email, "name": self.name})
        if self.subscription is not None:
            data["subscription"] = self.subscription.to_dict()
        return data


@dataclass
class UserProfile:
    """Answers to the compatibility quiz. Never persisted."""

    age: int | None = None
    gender: str = ""
    weight: float | None = None
    height: float | None = None
    activity_level: str = ""
    health_goals: list[str] = field(default_factory=list)
    dietary_restrictions: list[str] = field(default_factory=list)
    allergies: list[str] = field(default_factory=list)
    budget: str = ""
    cooking_experience: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> UserProfile:
        return cls(
            age=data.get("age"),
            gender=data.get("gender", "") or "",
            weight=data.get("weight"),
            height=data.get("height"),
            activity_level=data.get("activityLevel", "") or "",
            health_goals=_str_list(data.get("healthGoals")),
            dietary_restrictions=_str_list(data.get("dietaryRestrictions")),
            allergies=_str_list(data.get("allergies")),
            budget=data.get("budget", "") or "",
            cooking_experience=data.get("cookingExperience", "") or "",
        )


@dataclass
class DietPlan:
    id: str
    name: str
    description: str = ""
    suitable_for: list[str] = field(default_factory=list)
    budget: str = ""
    benefits: list[str] = field(default_factory=list)
    subscription_tier: Tier = Tier.FREE

    @classmethod
    def from_dict(cls, data: dict) -> DietPlan:
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", "") or "",
            description=data.get("description", "") or "",
            suitable_for=_str_list(data.get("suitableFor")),
            budget=str(data.get("budget", "") or ""),
            benefits=_str_list(data.get("benefits")),
            subscription_tier=Tier.parse(data.get("subscriptionTier")),
        )


@dataclass
class RecipeIngredient:
    name: str
    quantity: str = ""
    product_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict | str) -> RecipeIngredient:
        if isinstance(data, str):
            return cls(name=data)
        product_id = data.get("productId")
        return cls(
            name=data.get("name", "") or "",
            quantity=str(data.get("quantity", data.get("amount", "")) or ""),
            product_id=str(product_id) if product_id is not None else None,
        )


@dataclass
class Recipe:
    id: str
    name: str
    ingredients: list[RecipeIngredient] = field(default_factory=list)
    diet_compatible: list[str] = field(default_factory=list)
    subscription_tier: Tier = Tier.FREE

    @classmethod
    def from_dict(cls, data: dict) -> Recipe:
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", data.get("title", "")) or "",
            ingredients=[
                RecipeIngredient.from_dict(i) for i in data.get("ingredients") or []
            ],
            diet_compatible=_str_list(data.get("dietCompatible")),
            subscription_tier=Tier.parse(data.get("subscriptionTier")),
        )


@dataclass
class Product:
    id: str
    name: str
    description: str = ""
    category: str = ""
    price: Decimal = Decimal("0")
    unit: str = ""
    in_stock: bool = True
    diet_compatible: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> Product:
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", "") or "",
            description=data.get("description", "") or "",
            category=data.get("category", "") or "",
            price=to_decimal(data.get("price")),
            unit=data.get("unit", "") or "",
            in_stock=bool(data.get("inStock", True)),
            diet_compatible=_str_list(data.get("dietCompatible")),
        )


@dataclass
class Order:
    id: str
    items: list[CartItem] = field(default_factory=list)
    total: Decimal = Decimal("0")
    status: str = ""
    created_at: datetime | None = None
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> Order:
        if isinstance(data.get("order"), dict):
            data = data["order"]
        return cls(
            id=str(data.get("id", "")),
            items=[CartItem.from_dict(i) for i in data.get("items") or []],
            total=to_decimal(data.get("total")),
            status=data.get("status", "") or "",
            created_at=parse_datetime(data.get("createdAt")),
            raw=dict(data),
        )
