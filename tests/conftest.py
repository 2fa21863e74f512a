"""Shared fixtures: a scripted session standing in for the network."""

from __future__ import annotations

import pytest

from imc_distribution.event import Event, Venue


class ScriptedSession:
    """Answers requests from a route table instead of the network.

    Each route maps a URL fragment to an outcome: a dict response, an
    exception to raise, or a list of those consumed one per call.
    Unmatched requests get ``{"id": "auto-N"}``.
    """

    live = True

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def _handle(self, channel, method, url, body=None, headers=None):
        self.calls.append({"channel": channel, "method": method, "url": url, "body": body, "headers": headers or {}})
        for fragment, outcome in self.routes.items():
            if fragment in url:
                if isinstance(outcome, list):
                    outcome = outcome.pop(0)
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        return {"id": f"auto-{len(self.calls)}"}

    def post_json(self, channel, url, payload, headers=None):
        return self._handle(channel, "POST", url, payload, headers)

    def post_form(self, channel, url, params, headers=None):
        return self._handle(channel, "POST", url, params, headers)

    def put_bytes(self, channel, url, data, headers=None):
        return self._handle(channel, "PUT", url, data, headers)

    def get_json(self, channel, url, headers=None):
        return self._handle(channel, "GET", url, None, headers)

    def get_bytes(self, channel, url):
        self._handle(channel, "GET", url)
        return b"image-bytes"

    def urls(self):
        return [c["url"] for c in self.calls]


@pytest.fixture
def event():
    return Event(
        title="Jazz Jam Thursdays",
        date="2026-03-05",
        time="8:00 PM",
        description="Open jam with the house trio.",
        ticket_link="https://tickets.example.com/jazz",
        ticket_price=15.0,
    )


@pytest.fixture
def venue():
    return Venue(
        name="The Dakota East Side Ice House",
        address="433 S. Hackberry St",
        city="San Antonio",
        state="TX",
    )
