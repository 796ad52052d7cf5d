"""Request and response objects of the HTTP API, and the month date format."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

DATE_LAYOUT = "01-2006"

_MONTH_RE = re.compile(r"(\d{2})-(\d{4})")


def parse_month(value: str) -> date:
    """Parse an "MM-YYYY" string into the first day of that month."""
    match = _MONTH_RE.fullmatch(value)
    if match is None:
        raise ValueError(f"cannot parse {value!r} as {DATE_LAYOUT}")
    month, year = int(match.group(1)), int(match.group(2))
    try:
        return date(year, month, 1)
    except ValueError as exc:
        raise ValueError(f"cannot parse {value!r} as {DATE_LAYOUT}: {exc}") from exc


def format_month(value: date) -> str:
    """Format a date as "MM-YYYY"."""
    return f"{value.month:02d}-{value.year:04d}"


@dataclass
class CreateSubscriptionRequest:
    service_name: str = ""
    price: int = 0
    user_id: str = ""
    start_date: str = ""
    end_date: str | None = None


@dataclass
class SubIDRequest:
    """A request that only names a subscription by the id from the path."""

    sub_id: str = ""


@dataclass
class UpdateSubscriptionRequest:
    sub_id: str = ""
    price: int | None = None
    end_date: str | None = None


@dataclass
class ListSubscriptionsRequest:
    user_id: str | None = None
    service_name: str | None = None


@dataclass
class GetTotalCostRequest:
    from_date: str = ""
    to_date: str = ""
    user_id: str | None = None
    service_name: str | None = None


@dataclass
class SubscriptionIDResponse:
    sub_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"sub_id": self.sub_id}


@dataclass
class SubscriptionResponse:
    id: str
    service_name: str
    price: int
    user_id: str
    start_date: str
    end_date: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "sub_id": self.id,
            "service_name": self.service_name,
            "price": self.price,
            "user_id": self.user_id,
            "start_date": self.start_date,
        }
        if self.end_date is not None:
            data["end_date"] = self.end_date
        return data


@dataclass
class SubscriptionListResponse:
    subs: list[SubscriptionResponse] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        # An empty list is sent as null.
        return {"subscriptions": [s.to_dict() for s in self.subs] or None}


@dataclass
class TotalCostResponse:
    total_cost: int

    def to_dict(self) -> dict[str, Any]:
        return {"total_cost": self.total_cost}


@dataclass
class ErrorResponse:
    code: int
    messages: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "messages": list(self.messages)}