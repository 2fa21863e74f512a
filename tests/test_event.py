"""Tests for building events and venues from request mappings."""

import pytest

from imc_distribution.errors import InvalidRequest
from imc_distribution.event import Event, Venue

BASE = {"title": "Jazz Jam Thursdays", "date": "2026-03-05"}


class TestEventFromDict:
    def test_camel_and_snake_case(self):
        a = Event.from_dict({**BASE, "endTime": "11 PM", "ticketPrice": "15"})
        b = Event.from_dict({**BASE, "end_time": "11 PM", "ticket_price": 15})
        assert a == b
        assert a.ticket_price == 15.0

    @pytest.mark.parametrize("value,expected", [
        ("false", False),
        ("False", False),
        ("0", False),
        ("no", False),
        ("true", True),
        ("YES", True),
        ("1", True),
        (True, True),
        (0, False),
    ])
    def test_is_free_flag(self, value, expected):
        assert Event.from_dict({**BASE, "isFree": value}).is_free is expected

    def test_paid_event_stays_paid(self):
        event = Event.from_dict({**BASE, "isFree": "false", "ticketPrice": 15})
        assert event.free is False

    @pytest.mark.parametrize("price", ["$15", "free", [15], True])
    def test_unreadable_price(self, price):
        with pytest.raises(InvalidRequest):
            Event.from_dict({**BASE, "ticketPrice": price})

    def test_missing_price(self):
        event = Event.from_dict(BASE)
        assert event.ticket_price is None
        assert event.free is True


class TestVenueFromDict:
    def test_alternate_keys(self):
        venue = Venue.from_dict({"name": "The Dakota", "street": "433 S. Hackberry St", "region": "TX"})
        assert venue.address == "433 S. Hackberry St"
        assert venue.state == "TX"

    def test_missing_venue(self):
        assert Venue.from_dict(None) == Venue()
