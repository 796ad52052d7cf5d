import uuid
from datetime import date

import pytest

from subsagg.domain import Subscription, SubscriptionFilters, SubscriptionPatch, TotalCostFilters
from subsagg.errors import (
    AppError,
    NoSubscriptionError,
    QueryBuildingError,
    QueryExecError,
    SubscriptionActivePeriodInvalid,
    SubscriptionEndDateInvalid,
    wrap_with_api_error,
)
from subsagg.repository import SubscriptionRepository, apply_migrations, connect_db

SCHEMA = """
CREATE TABLE subscriptions (
    id INTEGER PRIMARY KEY,
    public_id TEXT UNIQUE NOT NULL,
    service_name TEXT NOT NULL,
    price INTEGER NOT NULL CONSTRAINT valid_price_value CHECK (price >= 0),
    user_id TEXT NOT NULL,
    start_date TEXT NOT NULL,
    end_date TEXT,
    CONSTRAINT end_date_after_start_date CHECK (end_date IS NULL OR end_date > start_date)
);
CREATE TRIGGER no_overlapping_subscriptions_trg BEFORE INSERT ON subscriptions
WHEN EXISTS (
    SELECT 1 FROM subscriptions s
    WHERE s.user_id = NEW.user_id AND s.service_name = NEW.service_name
      AND (s.end_date IS NULL OR s.end_date > NEW.start_date)
      AND (NEW.end_date IS NULL OR NEW.end_date > s.start_date)
)
BEGIN
    SELECT RAISE(ABORT, 'exclusion_violation: no_overlapping_subscriptions');
END;
"""

USER_A = uuid.UUID("11111111-1111-4111-8111-111111111111")
USER_B = uuid.UUID("22222222-2222-4222-8222-222222222222")


@pytest.fixture
def migrations(tmp_path):
    directory = tmp_path / "migrations"
    directory.mkdir()
    (directory / "000001_init.up.sql").write_text(SCHEMA)
    (directory / "000001_init.down.sql").write_text("DROP TABLE subscriptions;")
    return directory


@pytest.fixture
def repo(tmp_path, migrations):
    connection = connect_db(tmp_path / "subs.db")
    apply_migrations(connection, migrations)
    repository = SubscriptionRepository(connection)
    yield repository
    repository.close()


def make_sub(service="Netflix", price=400, user=USER_A, start=date(2025, 1, 1), end=None):
    return Subscription(
        id=uuid.uuid4(), service_name=service, price=price, user_id=user, start_date=start, end_date=end
    )


def test_migrations_applied_once(tmp_path, migrations):
    connection = connect_db(tmp_path / "m.db")
    assert apply_migrations(connection, migrations) == 1
    assert apply_migrations(connection, f"file://{migrations}") == 0
    tables = {r[0] for r in connection.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert "subscriptions" in tables


def test_missing_migrations_dir(tmp_path):
    connection = connect_db(":memory:")
    with pytest.raises(FileNotFoundError):
        apply_migrations(connection, tmp_path / "absent")


def test_insert_and_select_round_trip(repo):
    sub = make_sub(end=date(2025, 6, 1))
    returned = repo.insert(sub)
    assert returned == sub.id
    assert repo.select_by_id(sub.id) == sub


def test_select_missing_raises(repo):
    with pytest.raises(NoSubscriptionError):
        repo.select_by_id(uuid.uuid4())


def test_update_changes_fields(repo):
    sub = make_sub()
    repo.insert(sub)
    repo.update(sub.id, SubscriptionPatch(price=999, end_date=date(2026, 1, 1)))
    stored = repo.select_by_id(sub.id)
    assert stored.price == 999
    assert stored.end_date == date(2026, 1, 1)


def test_update_errors(repo):
    with pytest.raises(QueryBuildingError):
        repo.update(uuid.uuid4(), SubscriptionPatch())
    with pytest.raises(NoSubscriptionError):
        repo.update(uuid.uuid4(), SubscriptionPatch(price=5))


def test_delete(repo):
    sub = make_sub()
    repo.insert(sub)
    repo.delete(sub.id)
    with pytest.raises(NoSubscriptionError):
        repo.select_by_id(sub.id)
    with pytest.raises(NoSubscriptionError):
        repo.delete(sub.id)


def test_select_list_filters_and_order(repo):
    late = make_sub(service="Spotify", start=date(2025, 5, 1))
    early = make_sub(service="Netflix", start=date(2024, 3, 1))
    other = make_sub(service="Spotify", user=USER_B, start=date(2024, 1, 1))
    for sub in (late, early, other):
        repo.insert(sub)

    assert [s.id for s in repo.select_list(SubscriptionFilters(user_id=USER_A))] == [early.id, late.id]
    assert [s.id for s in repo.select_list(SubscriptionFilters(service="Spotify"))] == [other.id, late.id]
    assert [s.id for s in repo.select_list(SubscriptionFilters(user_id=USER_B, service="Netflix"))] == []


def test_total_cost_open_ended(repo):
    repo.insert(make_sub(price=100, start=date(2025, 1, 1)))
    filters = TotalCostFilters(date(2025, 1, 1), date(2025, 4, 1), SubscriptionFilters(user_id=USER_A))
    assert repo.select_total_cost(filters) == 100 * 3


def test_total_cost_no_match_is_zero(repo):
    repo.insert(make_sub(price=100, start=date(2025, 1, 1)))
    filters = TotalCostFilters(date(2025, 1, 1), date(2025, 4, 1), SubscriptionFilters(user_id=USER_B))
    assert repo.select_total_cost(filters) == 0


def test_overlap_is_exclusion_violation(repo):
    repo.insert(make_sub(start=date(2025, 1, 1)))
    with pytest.raises(QueryExecError) as info:
        repo.insert(make_sub(start=date(2025, 3, 1)))
    wrapped = wrap_with_api_error(info.value)
    assert isinstance(wrapped, AppError)
    assert isinstance(wrapped.api_error, SubscriptionActivePeriodInvalid)


def test_end_before_start_is_check_violation(repo):
    with pytest.raises(QueryExecError) as info:
        repo.insert(make_sub(start=date(2025, 3, 1), end=date(2025, 1, 1)))
    wrapped = wrap_with_api_error(info.value)
    assert isinstance(wrapped, AppError)
    assert isinstance(wrapped.api_error, SubscriptionEndDateInvalid)