"""Session-scoped client state: cart and subscription."""

from .cart import CartResult, CartStore
from .session import OrderResult, StoreSession
from .subscription import (
    PaymentProcessor,
    SimulatedPaymentProcessor,
    SubscriptionResult,
    SubscriptionStore,
)

__all__ = [
    "CartStore",
    "CartResult",
    "SubscriptionStore",
    "SubscriptionResult",
    "PaymentProcessor",
    "SimulatedPaymentProcessor",
    "StoreSession",
    "OrderResult",
]
