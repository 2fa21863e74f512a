"""Event and venue inputs to a distribution request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from imc_distribution.errors import InvalidRequest


def _pick(data: Mapping[str, Any], *keys: str, default: Any = "") -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return default


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _price(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidRequest(f"Invalid ticket price: {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRequest(f"Invalid ticket price: {value!r}") from exc


@dataclass(frozen=True)
class Venue:
    name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Venue:
        if not data:
            return cls()
        return cls(
            name=str(_pick(data, "name")),
            address=str(_pick(data, "address", "street")),
            city=str(_pick(data, "city")),
            state=str(_pick(data, "state", "region")),
        )

    def one_line(self) -> str:
        parts = [p for p in (self.address, self.city, self.state) if p]
        return ", ".join(parts)


@dataclass(frozen=True)
class Event:
    title: str
    date: str
    time: str = ""
    end_time: str = ""
    description: str = ""
    ticket_link: str = ""
    ticket_price: float | None = None
    is_free: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Event:
        """Build an Event from a request mapping (camelCase or snake_case)."""
        price = _pick(data, "ticketPrice", "ticket_price", default=None)
        return cls(
            title=str(_pick(data, "title", "name")),
            date=str(_pick(data, "date")),
            time=str(_pick(data, "time")),
            end_time=str(_pick(data, "endTime", "end_time")),
            description=str(_pick(data, "description")),
            ticket_link=str(_pick(data, "ticketLink", "ticket_link")),
            ticket_price=_price(price),
            is_free=_flag(_pick(data, "isFree", "is_free", default=False)),
        )

    @property
    def free(self) -> bool:
        return self.is_free or not self.ticket_price
