"""Business operations on subscriptions."""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from subsagg.domain import Subscription, SubscriptionFilters, SubscriptionPatch, TotalCostFilters
from subsagg.dto import SubscriptionIDResponse, SubscriptionListResponse, SubscriptionResponse, TotalCostResponse
from subsagg.errors import wrap_with_api_error
from subsagg.mappers import (
    to_subscription_id_response,
    to_subscription_list_response,
    to_subscription_response,
    to_total_cost_response,
)
from subsagg.repository import SubscriptionRepository


@contextmanager
def _api_errors() -> Iterator[None]:
    try:
        yield
    except Exception as err:
        wrapped = wrap_with_api_error(err)
        if wrapped is err:
            raise
        raise wrapped from err


class SubscriptionService:
    """Runs subscription operations against a repository, raising API-aware errors."""

    def __init__(self, repo: SubscriptionRepository) -> None:
        self._repo = repo

    def create_subscription(self, sub: Subscription) -> SubscriptionIDResponse:
        sub.id = uuid.uuid4()
        with _api_errors():
            sub_id = self._repo.insert(sub)
        return to_subscription_id_response(sub_id)

    def get_subscription(self, sub_id: uuid.UUID) -> SubscriptionResponse:
        with _api_errors():
            subscription = self._repo.select_by_id(sub_id)
        return to_subscription_response(subscription)

    def update_subscription(self, sub_id: uuid.UUID, patch: SubscriptionPatch) -> None:
        with _api_errors():
            self._repo.update(sub_id, patch)

    def delete_subscription(self, sub_id: uuid.UUID) -> None:
        with _api_errors():
            self._repo.delete(sub_id)

    def list_subscriptions(self, filters: SubscriptionFilters) -> SubscriptionListResponse:
        with _api_errors():
            subs = self._repo.select_list(filters)
        return to_subscription_list_response(subs)

    def get_subscriptions_total_cost(self, filters: TotalCostFilters) -> TotalCostResponse:
        with _api_errors():
            total = self._repo.select_total_cost(filters)
        return to_total_cost_response(total)