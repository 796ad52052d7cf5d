import pytest

from subsagg.errors import (
    CONSTRAINT_CHECK_END_DATE_AFTER_START_DATE,
    CONSTRAINT_CHECK_VALID_PRICE_VALUE,
    CONSTRAINT_EXCLUSION_NO_OVERLAPPING_SUBS,
    AppError,
    CheckViolation,
    ExclusionViolation,
    NoSubscriptionError,
    ParsingRequestError,
    QueryExecError,
    SomethingWentWrongError,
    SubscriptionActivePeriodInvalid,
    SubscriptionEndDateInvalid,
    SubscriptionNotFound,
    wrap_with_api_error,
)


def test_api_error_messages():
    assert str(ParsingRequestError()) == "invalid request"
    assert str(SomethingWentWrongError()) == "sorry, something went wrong"
    assert str(SubscriptionNotFound()) == "subscription with provided id not found"


def test_app_error_joins_messages():
    err = AppError(SubscriptionNotFound(), NoSubscriptionError())
    assert str(err) == "subscription with provided id not found\nno subscription with provided id"
    assert isinstance(err.svc_error, NoSubscriptionError)


def test_app_error_without_service_error():
    err = AppError(SubscriptionNotFound())
    assert str(err) == str(SubscriptionNotFound())
    assert err.svc_error is None


def test_violation_messages():
    assert str(ExclusionViolation(CONSTRAINT_EXCLUSION_NO_OVERLAPPING_SUBS)) == (
        "no_overlapping_subscriptions exclusion violated"
    )
    assert str(CheckViolation(CONSTRAINT_CHECK_END_DATE_AFTER_START_DATE)) == (
        "end_date_after_start_date check violated"
    )


def test_exclusion_violation_wrapped():
    inner = ExclusionViolation(CONSTRAINT_EXCLUSION_NO_OVERLAPPING_SUBS)
    err = QueryExecError(inner)
    wrapped = wrap_with_api_error(err)
    assert isinstance(wrapped, AppError)
    assert isinstance(wrapped.api_error, SubscriptionActivePeriodInvalid)
    assert wrapped.svc_error is err


def test_check_violation_wrapped():
    err = CheckViolation(CONSTRAINT_CHECK_END_DATE_AFTER_START_DATE)
    wrapped = wrap_with_api_error(err)
    assert isinstance(wrapped.api_error, SubscriptionEndDateInvalid)
    assert str(wrapped.api_error) == "end date invalid, value must be after start date"
    assert wrapped.svc_error is err


def test_unknown_check_constraint_unchanged():
    err = QueryExecError(CheckViolation(CONSTRAINT_CHECK_VALID_PRICE_VALUE))
    assert wrap_with_api_error(err) is err


def test_no_subscription_wrapped():
    err = NoSubscriptionError()
    wrapped = wrap_with_api_error(err)
    assert isinstance(wrapped.api_error, SubscriptionNotFound)
    assert str(wrapped.api_error) == "subscription with provided id not found"
    assert wrapped.svc_error is err


@pytest.mark.parametrize("err", [RuntimeError("boom"), QueryExecError("timeout")])
def test_other_errors_unchanged(err):
    assert wrap_with_api_error(err) is err


def test_query_exec_error_chains_cause():
    inner = NoSubscriptionError()
    err = QueryExecError(inner)
    assert err.__cause__ is inner
    assert str(err).startswith("sql query execution failed: ")