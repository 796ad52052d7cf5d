from datetime import date

import pytest

from subsagg.dto import (
    ErrorResponse,
    SubscriptionIDResponse,
    SubscriptionListResponse,
    SubscriptionResponse,
    TotalCostResponse,
    format_month,
    parse_month,
)


def test_parse_month():
    assert parse_month("03-2024") == date(2024, 3, 1)


def test_format_month_drops_day():
    assert format_month(date(2024, 3, 15)) == "03-2024"


@pytest.mark.parametrize("text", ["01-2025", "12-1999", "07-0001"])
def test_month_round_trip(text):
    assert format_month(parse_month(text)) == text


@pytest.mark.parametrize("text", ["", "3-2024", "13-2024", "00-2024", "2024-03", "03-24", "03-2024 "])
def test_parse_month_rejects(text):
    with pytest.raises(ValueError):
        parse_month(text)


def test_subscription_response_omits_end_date():
    resp = SubscriptionResponse("id", "svc", 100, "uid", "01-2025")
    data = resp.to_dict()
    assert "end_date" not in data
    assert data["sub_id"] == "id"


def test_subscription_response_with_end_date():
    resp = SubscriptionResponse("id", "svc", 100, "uid", "01-2025", "02-2025")
    assert resp.to_dict()["end_date"] == "02-2025"


def test_list_response_empty_is_null():
    assert SubscriptionListResponse().to_dict() == {"subscriptions": None}


def test_list_response_items():
    item = SubscriptionResponse("id", "svc", 100, "uid", "01-2025")
    assert SubscriptionListResponse([item]).to_dict() == {"subscriptions": [item.to_dict()]}


def test_simple_responses():
    assert SubscriptionIDResponse("abc").to_dict() == {"sub_id": "abc"}
    assert TotalCostResponse(42).to_dict() == {"total_cost": 42}
    assert ErrorResponse(400, ["bad"]).to_dict() == {"code": 400, "messages": ["bad"]}