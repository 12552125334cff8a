"""UI-layer actions sitting between widgets and the stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Iterable, TypeVar

from .api.models import Subscription, Tier
from .store.cart import CartResult, CartStore
from .tiers import can_access_content

T = TypeVar("T")


async def set_quantity(store: CartStore, product_id: str, quantity: int) -> CartResult:
    """Quantity stepper handler: zero or less removes the line."""
    if quantity <= 0:
        return await store.remove_from_cart(product_id)
    return await store.update_cart_item(product_id, quantity)


async def increment(store: CartStore, product_id: str) -> CartResult:
    current = store.get_item_quantity(product_id)
    if current == 0:
        return await store.add_to_cart(product_id, 1)
    return await set_quantity(store, product_id, current + 1)


async def decrement(store: CartStore, product_id: str) -> CartResult:
    return await set_quantity(store, product_id, store.get_item_quantity(product_id) - 1)


@dataclass
class GatedContent(Generic[T]):
    unlocked: list[T] = field(default_factory=list)
    locked: list[T] = field(default_factory=list)


def gate_content(subscription: Subscription | None, items: Iterable[T]) -> GatedContent[T]:
    """Split diet plans/recipes into what the subscriber may open and what is locked.

    Items without a ``subscription_tier`` attribute are treated as free.
    """
    gated: GatedContent[T] = GatedContent()
    for item in items:
        tier = getattr(item, "subscription_tier", Tier.FREE)
        if can_access_content(subscription, tier):
            gated.unlocked.append(item)
        else:
            gated.locked.append(item)
    return gated
