"""CLI entry point for the NutriCart client."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .actions import set_quantity
from .api import NutriCartClient, NutriCartError, Tier, UserProfile
from .compatibility import recommend
from .config import NutriCartConfig, load_config
from .db import LocalStorage
from .notify import Notification, Notifier
from .store import SimulatedPaymentProcessor, StoreSession
from .tiers import TIER_FEATURES, TIER_PRICING, tier_display_name

logger = logging.getLogger(__name__)


class ConsoleNotifier(Notifier):
    """Prints notifications; errors go to stderr."""

    def notify(self, notification: Notification) -> None:
        stream = sys.stderr if notification.is_error else sys.stdout
        print(f"{notification.title}: {notification.description}", file=stream)


def main(argv: list[str] | None = None) -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="nutricart",
        description="NutriCart storefront client: cart, subscriptions and diet recommendations",
    )
    parser.add_argument(
        "--config", "-c", type=str, default=None, help="Path to a TOML config file"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("tiers", help="Show subscription tiers and their features")

    rec_parser = sub.add_parser("recommend", help="Rank diet plans for a quiz profile")
    rec_parser.add_argument(
        "--profile", type=str, required=True, help="Quiz answers as a JSON file"
    )
    rec_parser.add_argument("--json", action="store_true", help="Output JSON")

    login_parser = sub.add_parser("login", help="Log in and store the token")
    login_parser.add_argument("email", type=str)
    login_parser.add_argument("--password", type=str, default=None)

    sub.add_parser("logout", help="Forget the stored token")

    cart_parser = sub.add_parser("cart", help="Manage the cart")
    cart_sub = cart_parser.add_subparsers(dest="cart_command")
    cart_sub.add_parser("show", help="Show the cart")
    add_parser = cart_sub.add_parser("add", help="Add a product")
    add_parser.add_argument("product_id", type=str)
    add_parser.add_argument("--quantity", "-q", type=int, default=1)
    set_parser = cart_sub.add_parser("set", help="Set a product's quantity (0 removes)")
    set_parser.add_argument("product_id", type=str)
    set_parser.add_argument("quantity", type=int)
    remove_parser = cart_sub.add_parser("remove", help="Remove a product")
    remove_parser.add_argument("product_id", type=str)
    cart_sub.add_parser("clear", help="Empty the cart")
    coupon_parser = cart_sub.add_parser("coupon", help="Apply or remove a coupon")
    coupon_parser.add_argument("code", type=str, nargs="?", default=None)
    coupon_parser.add_argument("--remove", action="store_true")

    sub_parser = sub.add_parser("subscription", help="Manage the subscription")
    subscription_sub = sub_parser.add_subparsers(dest="subscription_command")
    subscription_sub.add_parser("status", help="Show the current subscription")
    upgrade_parser = subscription_sub.add_parser("upgrade", help="Upgrade to a tier")
    upgrade_parser.add_argument("tier", choices=[t.value for t in Tier])
    subscription_sub.add_parser("cancel", help="Cancel the subscription")

    sub.add_parser("orders", help="List past orders")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    config = load_config(args.config)
    logging.basicConfig(
        level="DEBUG" if args.verbose else config.logging.level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    match args.command:
        case "tiers":
            _cmd_tiers()
        case "recommend":
            asyncio.run(_cmd_recommend(config, args))
        case "login":
            asyncio.run(_cmd_login(config, args))
        case "logout":
            asyncio.run(_cmd_logout(config))
        case "cart":
            asyncio.run(_cmd_cart(config, args))
        case "subscription":
            asyncio.run(_cmd_subscription(config, args))
        case "orders":
            asyncio.run(_cmd_orders(config))


def _build_session(config: NutriCartConfig, client: NutriCartClient) -> StoreSession:
    return StoreSession(
        client,
        LocalStorage(config.storage.path),
        notifier=ConsoleNotifier(),
        payment_processor=SimulatedPaymentProcessor(config.subscription.payment_delay),
    )


def _new_client(config: NutriCartConfig) -> NutriCartClient:
    return NutriCartClient(config.api.base_url, timeout=config.api.timeout)


def _cmd_tiers() -> None:
    for tier in Tier:
        pricing = TIER_PRICING[tier]
        print(
            f"{tier_display_name(tier)}: {pricing['price']} "
            f"{pricing['currency']} {pricing['period']}"
        )
        for name, enabled in TIER_FEATURES[tier].items():
            mark = "✓" if enabled else " "
            print(f"  [{mark}] {name}")
        print()


async def _cmd_recommend(config: NutriCartConfig, args) -> None:
    profile_path = Path(args.profile)
    if not profile_path.exists():
        print(f"Profile file not found: {profile_path}", file=sys.stderr)
        sys.exit(1)
    profile = UserProfile.from_dict(json.loads(profile_path.read_text()))

    async with _new_client(config) as client:
        try:
            plans = await client.get_diet_plans()
            recipes = await client.get_recipes()
        except NutriCartError as e:
            print(f"Could not load catalog: {e}", file=sys.stderr)
            sys.exit(1)

    result = recommend(profile, plans, recipes)

    if args.json:
        data = {
            "recommendations": [
                {
                    "name": r.name,
                    "planId": r.plan_id,
                    "score": r.score,
                    "features": r.features,
                }
                for r in result.recommendations
            ],
            "recipes": [{"id": r.id, "name": r.name} for r in result.recipes],
        }
        print(json.dumps(data, ensure_ascii=False, indent=2))
    else:
        print(result.display())


async def _cmd_login(config: NutriCartConfig, args) -> None:
    password = args.password or getpass.getpass("Password: ")
    async with _new_client(config) as client:
        session = _build_session(config, client)
        try:
            auth = await session.login(args.email, password)
        except NutriCartError as e:
            print(f"Login failed: {e}", file=sys.stderr)
            sys.exit(1)
        print(f"Logged in as {auth.user.name or auth.user.email}")


async def _cmd_logout(config: NutriCartConfig) -> None:
    async with _new_client(config) as client:
        _build_session(config, client).logout()
    print("Logged out")


async def _restored(session: StoreSession) -> bool:
    if await session.restore() is None:
        print("Not logged in. Run `nutricart login EMAIL` first.", file=sys.stderr)
        return False
    return True


async def _cmd_cart(config: NutriCartConfig, args) -> None:
    async with _new_client(config) as client:
        session = _build_session(config, client)
        if not await _restored(session):
            sys.exit(1)
        store = session.cart

        match args.cart_command:
            case "add":
                await store.add_to_cart(args.product_id, args.quantity)
            case "set":
                await set_quantity(store, args.product_id, args.quantity)
            case "remove":
                await store.remove_from_cart(args.product_id)
            case "clear":
                await store.clear_cart()
            case "coupon":
                if args.remove:
                    await store.remove_coupon()
                elif args.code:
                    await store.apply_coupon(args.code)
                else:
                    print("Give a coupon code or --remove", file=sys.stderr)
                    sys.exit(1)

        cart = store.cart
        if cart is None or not cart.items:
            print("Your cart is empty.")
            return
        print(f"Cart ({store.item_count()} items):")
        for item in cart.items:
            label = item.name or item.product_id
            print(f"  {label:<30} x{item.quantity:<4} {item.line_total:>10}")
        if cart.coupon_code:
            print(f"  Coupon {cart.coupon_code}: -{cart.discount}")
        print(f"  Total: {store.total()}")


async def _cmd_subscription(config: NutriCartConfig, args) -> None:
    async with _new_client(config) as client:
        session = _build_session(config, client)
        if not await _restored(session):
            sys.exit(1)
        store = session.subscription

        match args.subscription_command:
            case "upgrade":
                print("Processing payment...")
                result = await store.upgrade(args.tier, {})
                if not result.success:
                    print(f"Upgrade failed: {result.error}", file=sys.stderr)
                    sys.exit(1)
            case "cancel":
                await store.cancel()

        sub = store.subscription
        state = "active" if store.is_active() else "inactive"
        print(f"Tier: {tier_display_name(sub.tier)} ({state})")
        if sub.end_date is not None:
            label = "Renews on" if sub.is_active else "Expired on"
            print(f"{label}: {sub.end_date.date().isoformat()}")


async def _cmd_orders(config: NutriCartConfig) -> None:
    async with _new_client(config) as client:
        session = _build_session(config, client)
        if not await _restored(session):
            sys.exit(1)
        try:
            orders = await session.orders()
        except NutriCartError as e:
            print(f"Could not load orders: {e}", file=sys.stderr)
            sys.exit(1)

    if not orders:
        print("No orders yet.")
        return
    for order in orders:
        created = order.created_at.date().isoformat() if order.created_at else ""
        print(f"  #{order.id:<10} {created:<12} {order.status:<12} {order.total}")
