"""HTTP handlers of the subscription API and their JSON responses."""

from __future__ import annotations

import json
import logging
from typing import Any

from werkzeug.wrappers import Request, Response

from subsagg.dto import (
    CreateSubscriptionRequest,
    GetTotalCostRequest,
    ListSubscriptionsRequest,
    SubIDRequest,
    UpdateSubscriptionRequest,
)
from subsagg.errors import (
    APIError,
    AppError,
    ParsingRequestError,
    SomethingWentWrongError,
    SubscriptionActivePeriodInvalid,
    SubscriptionEndDateInvalid,
    SubscriptionNotFound,
)
from subsagg.mappers import (
    to_error_response,
    to_subscription,
    to_subscription_filters,
    to_subscription_id,
    to_subscription_patch,
    to_total_cost_filters,
)
from subsagg.service import SubscriptionService
from subsagg.validation import ValidationFailed, validate

CONTENT_TYPE_JSON = "application/json"

_BAD_REQUEST_ERRORS = (SubscriptionActivePeriodInvalid, SubscriptionEndDateInvalid)


class _BadPayload(Exception):
    pass


def resolve_http_error(err: BaseException | None, logger: logging.Logger) -> tuple[int, APIError]:
    """Return the HTTP status and the client-facing error for a service error."""
    if err is None:
        logger.error("unable to resolve nil error")
        return 500, SomethingWentWrongError()
    if isinstance(err, AppError):
        api_error = err.api_error
        if isinstance(api_error, _BAD_REQUEST_ERRORS):
            return 400, api_error
        if isinstance(api_error, SubscriptionNotFound):
            return 404, api_error
    logger.error(str(err))
    return 500, SomethingWentWrongError()


def json_response(code: int, data: Any) -> Response:
    """A JSON response with the given status; None sends no body."""
    response = Response(status=code, content_type=CONTENT_TYPE_JSON)
    if data is not None:
        payload = data.to_dict() if hasattr(data, "to_dict") else data
        response.set_data(json.dumps(payload) + "\n")
    return response


def _error(messages: list[str], code: int) -> Response:
    return json_response(code, to_error_response(messages, code))


def _parse_error() -> Response:
    return _error([str(ParsingRequestError())], 400)


def _check(value: Any, kind: type, nullable: bool) -> Any:
    if value is None:
        return None
    if kind is int and (isinstance(value, bool) or not isinstance(value, int)):
        raise _BadPayload
    if kind is str and not isinstance(value, str):
        raise _BadPayload
    return value


def _decode_json(request: Request, target: Any, spec: dict[str, tuple[str, type, bool]]) -> Any:
    """Fill target's attributes from the JSON body; keys match case-insensitively."""
    try:
        payload = json.loads(request.get_data(as_text=True))
    except ValueError as exc:
        raise _BadPayload from exc
    if payload is None:
        return target
    if not isinstance(payload, dict):
        raise _BadPayload
    for key, value in payload.items():
        entry = spec.get(key.lower())
        if entry is None:
            continue
        attr, kind, nullable = entry
        checked = _check(value, kind, nullable)
        if checked is None and not nullable:
            continue
        setattr(target, attr, checked)
    return target


def _decode_query(request: Request, target: Any, spec: dict[str, str]) -> Any:
    """Fill target's attributes from the query string; unknown keys are errors."""
    if ";" in request.query_string.decode("latin-1"):
        raise _BadPayload
    for key in request.args.keys():
        attr = spec.get(key)
        if attr is None:
            raise _BadPayload
        setattr(target, attr, request.args.getlist(key)[0])
    return target


_CREATE_SPEC = {
    "service_name": ("service_name", str, False),
    "price": ("price", int, False),
    "user_id": ("user_id", str, False),
    "start_date": ("start_date", str, False),
    "end_date": ("end_date", str, True),
}
_UPDATE_SPEC = {
    "price": ("price", int, True),
    "end_date": ("end_date", str, True),
}
_LIST_SPEC = {"user_id": "user_id", "service_name": "service_name"}
_TOTAL_SPEC = {"from": "from_date", "to": "to_date", "user_id": "user_id", "service_name": "service_name"}


class SubscriptionController:
    """Turns HTTP requests into service calls and service results into responses."""

    def __init__(self, service: SubscriptionService, logger: logging.Logger) -> None:
        self._service = service
        self._logger = logger

    def _failure(self, err: BaseException) -> Response:
        code, api_error = resolve_http_error(err, self._logger)
        return _error([str(api_error)], code)

    def create_subscription(self, request: Request) -> Response:
        try:
            dto = _decode_json(request, CreateSubscriptionRequest(), _CREATE_SPEC)
        except _BadPayload:
            return _parse_error()
        try:
            validate(dto)
        except ValidationFailed as exc:
            return _error(exc.messages, 400)
        try:
            result = self._service.create_subscription(to_subscription(dto))
        except Exception as err:
            return self._failure(err)
        return json_response(201, result)

    def get_subscription(self, request: Request, sub_id: str) -> Response:
        dto = SubIDRequest(sub_id=sub_id)
        try:
            validate(dto)
        except ValidationFailed as exc:
            return _error(exc.messages, 400)
        try:
            result = self._service.get_subscription(to_subscription_id(dto))
        except Exception as err:
            return self._failure(err)
        return json_response(200, result)

    def update_subscription(self, request: Request, sub_id: str) -> Response:
        try:
            dto = _decode_json(request, UpdateSubscriptionRequest(sub_id=sub_id), _UPDATE_SPEC)
        except _BadPayload:
            return _parse_error()
        try:
            validate(dto)
        except ValidationFailed as exc:
            return _error(exc.messages, 400)
        try:
            self._service.update_subscription(to_subscription_id(dto), to_subscription_patch(dto))
        except Exception as err:
            return self._failure(err)
        return json_response(204, None)

    def delete_subscription(self, request: Request, sub_id: str) -> Response:
        dto = SubIDRequest(sub_id=sub_id)
        try:
            validate(dto)
        except ValidationFailed as exc:
            return _error(exc.messages, 400)
        try:
            self._service.delete_subscription(to_subscription_id(dto))
        except Exception as err:
            return self._failure(err)
        return json_response(204, None)

    def list_subscriptions(self, request: Request) -> Response:
        try:
            dto = _decode_query(request, ListSubscriptionsRequest(), _LIST_SPEC)
        except _BadPayload:
            return _parse_error()
        try:
            validate(dto)
        except ValidationFailed as exc:
            return _error(exc.messages, 400)
        try:
            result = self._service.list_subscriptions(to_subscription_filters(dto))
        except Exception as err:
            return self._failure(err)
        return json_response(200, result)

    def get_total_cost(self, request: Request) -> Response:
        try:
            dto = _decode_query(request, GetTotalCostRequest(), _TOTAL_SPEC)
        except _BadPayload:
            return _parse_error()
        try:
            validate(dto)
        except ValidationFailed as exc:
            return _error(exc.messages, 400)
        try:
            result = self._service.get_subscriptions_total_cost(to_total_cost_filters(dto))
        except Exception as err:
            return self._failure(err)
        return json_response(200, result)