"""Validation of API requests with readable error messages."""

from __future__ import annotations

import re
from functools import singledispatch
from typing import TypeVar

from subsagg.dto import (
    DATE_LAYOUT,
    CreateSubscriptionRequest,
    GetTotalCostRequest,
    ListSubscriptionsRequest,
    SubIDRequest,
    UpdateSubscriptionRequest,
    parse_month,
)

_UUID4_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")

_MESSAGES = {
    "required": "{0} value required",
    "required_without": "required at least one of values: {0}, {1}",
    "gte": "{0} value must be > {1}",
    "uuid4": "{0} value must meet uuid4 format",
    "datetime": "{0} datetime value must be in {1} format",
    "afterdate": "{0} datetime value must be after {1}",
}

T = TypeVar("T")


class ValidationFailed(Exception):
    """A request failed validation; messages holds one message per field."""

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


def _message(tag: str, field: str, param: str = "") -> str:
    text = _MESSAGES[tag].replace("{0}", field)
    return text.replace("{1}", param) if param else text


def _is_month(value: str) -> bool:
    try:
        parse_month(value)
    except ValueError:
        return False
    return True


def _uuid4_error(field: str, value: str) -> str | None:
    return None if _UUID4_RE.match(value) else _message("uuid4", field)


def _required_uuid4(field: str, value: str) -> str | None:
    return _message("required", field) if not value else _uuid4_error(field, value)


def _required_month(field: str, value: str) -> str | None:
    if not value:
        return _message("required", field)
    return None if _is_month(value) else _message("datetime", field, DATE_LAYOUT)


def _optional_month(field: str, value: str | None) -> str | None:
    if value is None or _is_month(value):
        return None
    return _message("datetime", field, DATE_LAYOUT)


def _non_negative(field: str, value: int | None) -> str | None:
    if value is None or value >= 0:
        return None
    return _message("gte", field, "0")


def _user_or_service(user_id: str | None, service_name: str | None) -> str | None:
    if user_id is None:
        if service_name is None:
            return _message("required_without", "UserID", "ServiceName")
        return None
    return _uuid4_error("UserID", user_id)


@singledispatch
def _collect(request: object) -> list[str | None]:
    raise TypeError(f"no validation rules for {type(request).__name__}")


@_collect.register(CreateSubscriptionRequest)
def _(request: CreateSubscriptionRequest) -> list[str | None]:
    end_error = _optional_month("EndDate", request.end_date)
    if request.end_date is not None and end_error is None:
        after = _is_month(request.start_date) and parse_month(request.end_date) > parse_month(request.start_date)
        if not after:
            end_error = _message("afterdate", "EndDate", "StartDate")
    return [
        None if request.service_name else _message("required", "ServiceName"),
        _non_negative("Price", request.price),
        _required_uuid4("UserID", request.user_id),
        _required_month("StartDate", request.start_date),
        end_error,
    ]


@_collect.register(SubIDRequest)
def _(request: SubIDRequest) -> list[str | None]:
    return [_required_uuid4("SubID", request.sub_id)]


@_collect.register(UpdateSubscriptionRequest)
def _(request: UpdateSubscriptionRequest) -> list[str | None]:
    if request.price is None and request.end_date is None:
        price_error = _message("required_without", "Price", "EndDate")
    else:
        price_error = _non_negative("Price", request.price)
    return [
        _required_uuid4("SubID", request.sub_id),
        price_error,
        _optional_month("EndDate", request.end_date),
    ]


@_collect.register(ListSubscriptionsRequest)
def _(request: ListSubscriptionsRequest) -> list[str | None]:
    return [_user_or_service(request.user_id, request.service_name)]


@_collect.register(GetTotalCostRequest)
def _(request: GetTotalCostRequest) -> list[str | None]:
    return [
        _required_month("FromDate", request.from_date),
        _required_month("ToDate", request.to_date),
        _user_or_service(request.user_id, request.service_name),
    ]


def validate(request: T) -> T:
    """Return the request if it is valid; raise ValidationFailed otherwise."""
    messages = [m for m in _collect(request) if m is not None]
    if messages:
        raise ValidationFailed(messages)
    return request