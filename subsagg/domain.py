"""Domain models of subscriptions."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date


@dataclass
class Subscription:
    """A user's subscription to a service, priced per month."""

    service_name: str
    price: int
    user_id: uuid.UUID
    start_date: date
    end_date: date | None = None
    id: uuid.UUID | None = None


@dataclass
class SubscriptionPatch:
    """Fields of a subscription to change; None leaves a field as is."""

    price: int | None = None
    end_date: date | None = None

    def is_empty(self) -> bool:
        return self.price is None and self.end_date is None


@dataclass
class SubscriptionFilters:
    """Filters for listing subscriptions; None means no filter."""

    user_id: uuid.UUID | None = None
    service: str | None = None

    def is_empty(self) -> bool:
        return self.user_id is None and self.service is None


@dataclass
class TotalCostFilters:
    """Period and filters for the total cost of subscriptions."""

    from_date: date
    to_date: date
    sub_filters: SubscriptionFilters = field(default_factory=SubscriptionFilters)