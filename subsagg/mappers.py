"""Conversions between API objects and domain models."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import date

from subsagg.domain import Subscription, SubscriptionFilters, SubscriptionPatch, TotalCostFilters
from subsagg.dto import (
    CreateSubscriptionRequest,
    ErrorResponse,
    GetTotalCostRequest,
    ListSubscriptionsRequest,
    SubIDRequest,
    SubscriptionIDResponse,
    SubscriptionListResponse,
    SubscriptionResponse,
    TotalCostResponse,
    UpdateSubscriptionRequest,
    format_month,
    parse_month,
)

_log = logging.getLogger(__name__)

# Requests must pass validation before mapping, so parse failures are contract violations.


def _must_parse_month(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return parse_month(value)
    except ValueError:
        _log.error("validation and mapping contract violated")
        raise


def _must_parse_uuid(value: str | None) -> uuid.UUID | None:
    if value is None:
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        _log.error("validation and mapping contract violated")
        raise


def to_subscription(request: CreateSubscriptionRequest) -> Subscription:
    return Subscription(
        service_name=request.service_name,
        price=request.price,
        user_id=_must_parse_uuid(request.user_id),
        start_date=_must_parse_month(request.start_date),
        end_date=_must_parse_month(request.end_date),
    )


def to_subscription_id(request: SubIDRequest | UpdateSubscriptionRequest) -> uuid.UUID:
    return _must_parse_uuid(request.sub_id)


def to_subscription_patch(request: UpdateSubscriptionRequest) -> SubscriptionPatch:
    return SubscriptionPatch(price=request.price, end_date=_must_parse_month(request.end_date))


def to_subscription_filters(request: ListSubscriptionsRequest) -> SubscriptionFilters:
    return SubscriptionFilters(user_id=_must_parse_uuid(request.user_id), service=request.service_name)


def to_total_cost_filters(request: GetTotalCostRequest) -> TotalCostFilters:
    return TotalCostFilters(
        from_date=_must_parse_month(request.from_date),
        to_date=_must_parse_month(request.to_date),
        sub_filters=SubscriptionFilters(user_id=_must_parse_uuid(request.user_id), service=request.service_name),
    )


def to_subscription_id_response(sub_id: uuid.UUID) -> SubscriptionIDResponse:
    return SubscriptionIDResponse(sub_id=str(sub_id))


def to_subscription_response(model: Subscription) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=str(model.id),
        service_name=model.service_name,
        price=model.price,
        user_id=str(model.user_id),
        start_date=format_month(model.start_date),
        end_date=format_month(model.end_date) if model.end_date is not None else None,
    )


def to_subscription_list_response(models: Iterable[Subscription]) -> SubscriptionListResponse:
    return SubscriptionListResponse(subs=[to_subscription_response(m) for m in models])


def to_total_cost_response(total_cost: int) -> TotalCostResponse:
    return TotalCostResponse(total_cost=total_cost)


def to_error_response(messages: Iterable[str], status_code: int) -> ErrorResponse:
    return ErrorResponse(code=status_code, messages=list(messages))