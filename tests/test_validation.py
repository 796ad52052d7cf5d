import uuid

import pytest

from subsagg.dto import (
    CreateSubscriptionRequest,
    GetTotalCostRequest,
    ListSubscriptionsRequest,
    SubIDRequest,
    UpdateSubscriptionRequest,
)
from subsagg.validation import ValidationFailed, validate


def _uid():
    return str(uuid.uuid4())


def _errors(request):
    with pytest.raises(ValidationFailed) as info:
        validate(request)
    return info.value.messages


def test_valid_create_is_returned():
    req = CreateSubscriptionRequest("Netflix", 500, _uid(), "01-2025", "06-2025")
    assert validate(req) is req


def test_empty_create_reports_required_fields():
    messages = _errors(CreateSubscriptionRequest())
    assert messages == ["ServiceName value required", "UserID value required", "StartDate value required"]


def test_negative_price():
    messages = _errors(CreateSubscriptionRequest("svc", -1, _uid(), "01-2025"))
    assert len(messages) == 1
    assert messages[0].startswith("Price")


def test_end_date_before_start():
    messages = _errors(CreateSubscriptionRequest("svc", 1, _uid(), "05-2025", "04-2025"))
    assert messages == ["EndDate datetime value must be after StartDate"]


def test_end_date_equal_start_rejected():
    messages = _errors(CreateSubscriptionRequest("svc", 1, _uid(), "05-2025", "05-2025"))
    assert len(messages) == 1 and messages[0].startswith("EndDate")


@pytest.mark.parametrize(
    "user_id",
    [str(uuid.uuid1()), _uid().upper(), "not-a-uuid"],
)
def test_user_id_must_be_uuid4(user_id):
    messages = _errors(CreateSubscriptionRequest("svc", 1, user_id, "01-2025"))
    assert messages == ["UserID value must meet uuid4 format"]


def test_bad_start_date_format():
    messages = _errors(CreateSubscriptionRequest("svc", 1, _uid(), "2025-01"))
    assert messages[0] == "StartDate datetime value must be in 01-2006 format"


def test_sub_id_request():
    req = SubIDRequest(_uid())
    assert validate(req) is req
    assert len(_errors(SubIDRequest("x"))) == 1


def test_update_needs_price_or_end_date():
    messages = _errors(UpdateSubscriptionRequest(_uid()))
    assert messages == ["required at least one of values: Price, EndDate"]


def test_update_price_zero_is_valid():
    req = UpdateSubscriptionRequest(_uid(), price=0)
    assert validate(req) is req


def test_update_empty_end_date_is_checked():
    messages = _errors(UpdateSubscriptionRequest(_uid(), end_date=""))
    assert len(messages) == 1 and messages[0].startswith("EndDate")


def test_list_requires_user_or_service():
    assert len(_errors(ListSubscriptionsRequest())) == 1
    req = ListSubscriptionsRequest(service_name="svc")
    assert validate(req) is req


def test_list_invalid_user_id():
    messages = _errors(ListSubscriptionsRequest(user_id=""))
    assert messages[0].startswith("UserID")


def test_total_cost_missing_dates():
    messages = _errors(GetTotalCostRequest(service_name="svc"))
    assert [m.split()[0] for m in messages] == ["FromDate", "ToDate"]


def test_unknown_request_type():
    with pytest.raises(TypeError):
        validate(object())