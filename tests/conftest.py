"""Shared fixtures: an in-memory fake of the NutriCart REST backend."""

import json

import httpx
import pytest

from nutricart.api.client import NutriCartClient
from nutricart.db import LocalStorage
from nutricart.notify import CollectingNotifier

BASE_URL = "http://nutricart.test/api"


class FakeBackend:
    """Routes (method, path) to canned responses and records every request.

    Paths are given relative to ``/api``. A route may be a ``(status, body)``
    pair or a callable taking the ``httpx.Request``.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method, path, status=200, body=None, handler=None):
        self.routes[(method, "/api" + path)] = handler or (status, body)

    def fail(self, method, path):
        """Make ``path`` unreachable (connection refused)."""

        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        self.on(method, path, handler=refuse)

    def __call__(self, request):
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Route not found"})
        if callable(route):
            return route(request)
        status, body = route
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def last_json(self):
        return json.loads(self.requests[-1].content)

    def paths(self):
        return [(r.method, r.url.path.removeprefix("/api")) for r in self.requests]


def cart_payload(*lines, total=None, coupon=None, discount="0"):
    """Build a server cart body from ``(product_id, quantity, price)`` tuples."""
    items = [
        {"productId": pid, "quantity": qty, "unitPrice": price, "name": f"Item {pid}"}
        for pid, qty, price in lines
    ]
    return {
        "items": items,
        "total": total if total is not None else "0",
        "couponCode": coupon,
        "discount": discount,
    }


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(backend):
    """Client with a bearer token, talking to the fake backend."""
    return NutriCartClient(BASE_URL, token="tok-abc", transport=httpx.MockTransport(backend))


@pytest.fixture
def anon_client(backend):
    return NutriCartClient(BASE_URL, transport=httpx.MockTransport(backend))


@pytest.fixture
def storage():
    store = LocalStorage(":memory:")
    yield store
    store.close()


@pytest.fixture
def notifier():
    return CollectingNotifier()
