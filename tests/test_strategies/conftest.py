"""Shared fixtures for submission strategy tests."""

import json

import httpx
import pytest

RESULTS = [
    {"flavor": "Tiramisu", "points": 12},
    {"flavor": "Parmesan", "points": 9},
    {"flavor": "Salted Caramel", "points": 4},
]


class FakeEndpoint:
    """Stand-in for the spreadsheet script endpoint.

    `post` and `get` are callables taking an httpx.Request and returning an
    httpx.Response; tests swap them out to simulate failures. Every request
    is recorded.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.post = lambda request: httpx.Response(200, json={"success": True, "results": RESULTS})
        self.get = lambda request: httpx.Response(200, json={"success": True, "results": RESULTS})

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            return self.post(request)
        return self.get(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def methods(self) -> list[str]:
        return [request.method for request in self.requests]


def html_reply(payload) -> httpx.Response:
    """Reply the way a script endpoint answers a form post."""
    body = f"<html><head><title>Saved</title></head><body><pre>{json.dumps(payload)}</pre></body></html>"
    return httpx.Response(200, html=body)


def raise_timeout(request):
    raise httpx.ReadTimeout("timed out", request=request)


def raise_connect_error(request):
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def endpoint():
    return FakeEndpoint()
