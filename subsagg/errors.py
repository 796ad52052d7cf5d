"""Error types of the repository and service layers, and their mapping to API errors."""

from __future__ import annotations

from collections.abc import Iterator

# Error class names used by the database for constraint violations.
CHECK_CONSTRAINT_VIOLATION = "check_violation"
EXCLUSION_CONSTRAINT_VIOLATION = "exclusion_violation"

# Constraints of the "subscriptions" table.
CONSTRAINT_CHECK_VALID_PRICE_VALUE = "valid_price_value"
CONSTRAINT_CHECK_END_DATE_AFTER_START_DATE = "end_date_after_start_date"
CONSTRAINT_EXCLUSION_NO_OVERLAPPING_SUBS = "no_overlapping_subscriptions"

# Names of the "subscriptions" table and its columns.
SUBSCRIPTIONS_TABLE = "subscriptions"
SUBSCRIPTIONS_PUBLIC_ID = "public_id"
SUBSCRIPTIONS_SERVICE_NAME = "service_name"
SUBSCRIPTIONS_PRICE = "price"
SUBSCRIPTIONS_USER_ID = "user_id"
SUBSCRIPTIONS_START_DATE = "start_date"
SUBSCRIPTIONS_END_DATE = "end_date"


class APIError(Exception):
    """An error whose message is safe to show to API clients."""

    default_message = "api error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or type(self).default_message
        super().__init__(self.message)


class ParsingRequestError(APIError):
    default_message = "invalid request"


class SomethingWentWrongError(APIError):
    default_message = "sorry, something went wrong"


class SubscriptionActivePeriodInvalid(APIError):
    default_message = "there is the same subscription with active period overlapping"


class SubscriptionEndDateInvalid(APIError):
    default_message = "end date invalid, value must be after start date"


class SubscriptionNotFound(APIError):
    default_message = "subscription with provided id not found"


class AppError(Exception):
    """Pairs an API-facing error with the internal error that caused it."""

    def __init__(self, api_error: BaseException | None, svc_error: BaseException | None = None) -> None:
        self.api_error = api_error
        self.svc_error = svc_error
        super().__init__("\n".join(str(e) for e in (api_error, svc_error) if e is not None))
        self.__cause__ = svc_error


class RepositoryError(Exception):
    """Base class of storage errors."""

    default_message = "repository error"

    def __init__(self, detail: object = None, *, message: str | None = None) -> None:
        text = message or type(self).default_message
        if detail is not None and str(detail):
            text = f"{text}: {detail}"
        super().__init__(text)
        if isinstance(detail, BaseException):
            self.__cause__ = detail


class QueryBuildingError(RepositoryError):
    default_message = "sql query building failed"


class QueryExecError(RepositoryError):
    default_message = "sql query execution failed"


class NoSubscriptionError(RepositoryError):
    default_message = "no subscription with provided id"


class ExclusionViolation(RepositoryError):
    """An exclusion constraint of the table was violated."""

    def __init__(self, constraint: str, detail: object = None) -> None:
        self.constraint = constraint
        super().__init__(detail, message=f"{constraint} exclusion violated")


class CheckViolation(RepositoryError):
    """A check constraint of the table was violated."""

    def __init__(self, constraint: str, detail: object = None) -> None:
        self.constraint = constraint
        super().__init__(detail, message=f"{constraint} check violated")


def _chain(err: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def _has(err: BaseException, kind: type, constraint: str | None = None) -> bool:
    return any(
        isinstance(e, kind) and (constraint is None or getattr(e, "constraint", None) == constraint)
        for e in _chain(err)
    )


def wrap_with_api_error(err: BaseException) -> BaseException:
    """Wrap a known storage error into an AppError; return any other error unchanged."""
    if _has(err, ExclusionViolation, CONSTRAINT_EXCLUSION_NO_OVERLAPPING_SUBS):
        return AppError(SubscriptionActivePeriodInvalid(), err)
    if _has(err, CheckViolation, CONSTRAINT_CHECK_END_DATE_AFTER_START_DATE):
        return AppError(SubscriptionEndDateInvalid(), err)
    if _has(err, NoSubscriptionError):
        return AppError(SubscriptionNotFound(), err)
    return err