"""Storage of subscriptions in an SQLite database.

Constraint violations are recognised from the database error text: check
constraints by their name, exclusion constraints by a trigger that aborts with
``exclusion_violation: <constraint>``.
"""

from __future__ import annotations

import logging
import os
import re
import sqlite3
import threading
import uuid
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Any

from subsagg.domain import Subscription, SubscriptionFilters, SubscriptionPatch, TotalCostFilters
from subsagg.errors import (
    CHECK_CONSTRAINT_VIOLATION,
    EXCLUSION_CONSTRAINT_VIOLATION,
    SUBSCRIPTIONS_END_DATE,
    SUBSCRIPTIONS_PRICE,
    SUBSCRIPTIONS_PUBLIC_ID,
    SUBSCRIPTIONS_SERVICE_NAME,
    SUBSCRIPTIONS_START_DATE,
    SUBSCRIPTIONS_TABLE,
    SUBSCRIPTIONS_USER_ID,
    CheckViolation,
    ExclusionViolation,
    NoSubscriptionError,
    QueryBuildingError,
    QueryExecError,
)

_log = logging.getLogger(__name__)

_COLUMNS = (
    SUBSCRIPTIONS_PUBLIC_ID,
    SUBSCRIPTIONS_SERVICE_NAME,
    SUBSCRIPTIONS_PRICE,
    SUBSCRIPTIONS_USER_ID,
    SUBSCRIPTIONS_START_DATE,
    SUBSCRIPTIONS_END_DATE,
)
_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM {SUBSCRIPTIONS_TABLE}"
_MIGRATION_RE = re.compile(r"(\d+)_.*\.up\.sql")
_CHECK_FAILED_RE = re.compile(r"CHECK constraint failed:\s*(\S+)")
_EXCLUSION_RE = re.compile(re.escape(EXCLUSION_CONSTRAINT_VIOLATION) + r":\s*(\S+)")


def connect_db(uri: str | os.PathLike) -> sqlite3.Connection:
    """Open the database and check that it answers."""
    target = os.fspath(uri)
    connection = sqlite3.connect(
        target,
        uri=target.startswith("file:"),
        check_same_thread=False,
        isolation_level=None,
    )
    try:
        connection.execute("SELECT 1").fetchone()
    except sqlite3.Error:
        connection.close()
        raise
    _log.info("database connected")
    return connection


def _set_version(connection: sqlite3.Connection, version: int, dirty: bool) -> None:
    connection.execute("DELETE FROM schema_migrations")
    connection.execute("INSERT INTO schema_migrations (version, dirty) VALUES (?, ?)", (version, int(dirty)))
    connection.commit()


def _find_migrations(directory: Path) -> list[tuple[int, Path]]:
    found: dict[int, Path] = {}
    for path in directory.iterdir():
        match = _MIGRATION_RE.fullmatch(path.name)
        if match is None:
            continue
        version = int(match.group(1))
        if version in found:
            raise ValueError(f"duplicate migration version {version}")
        found[version] = path
    return sorted(found.items())


def apply_migrations(connection: sqlite3.Connection, migrations_dir: str | os.PathLike) -> int:
    """Apply the pending ``<version>_<name>.up.sql`` files; return how many were applied."""
    directory = Path(os.fspath(migrations_dir).removeprefix("file://"))
    if not directory.is_dir():
        raise FileNotFoundError(f"migrations directory not found: {directory}")

    connection.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER NOT NULL PRIMARY KEY, dirty INTEGER NOT NULL)"
    )
    row = connection.execute("SELECT version, dirty FROM schema_migrations ORDER BY version DESC LIMIT 1").fetchone()
    if row is not None and row[1]:
        raise RuntimeError(f"Dirty database version {row[0]}. Fix and force version.")
    current = -1 if row is None else row[0]

    applied = 0
    for version, path in _find_migrations(directory):
        if version <= current:
            continue
        _set_version(connection, version, dirty=True)
        connection.executescript(path.read_text(encoding="utf-8"))
        _set_version(connection, version, dirty=False)
        applied += 1

    _log.info("database migrated and ready")
    return applied


def _catch_db_errors(err: sqlite3.Error) -> BaseException:
    if isinstance(err, sqlite3.IntegrityError):
        text = str(err)
        match = _EXCLUSION_RE.search(text)
        if match:
            return ExclusionViolation(match.group(1), err)
        match = _CHECK_FAILED_RE.search(text)
        if match:
            return CheckViolation(match.group(1), err)
    return err


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _to_subscription(row: Sequence[Any]) -> Subscription:
    public_id, service_name, price, user_id, start_date, end_date = row
    return Subscription(
        id=uuid.UUID(public_id),
        service_name=service_name,
        price=price,
        user_id=uuid.UUID(user_id),
        start_date=date.fromisoformat(start_date),
        end_date=date.fromisoformat(end_date) if end_date is not None else None,
    )


def _age_months(end: date, start: date) -> int:
    """Whole months from start to end, negative when end comes first."""
    if end < start:
        return -_age_months(start, end)
    months = (end.year - start.year) * 12 + end.month - start.month
    if end.day < start.day:
        months -= 1
    return months


def _filter_clauses(filters: SubscriptionFilters) -> tuple[list[str], list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    if filters.service is not None:
        clauses.append(f"{SUBSCRIPTIONS_SERVICE_NAME} = ?")
        params.append(filters.service)
    if filters.user_id is not None:
        clauses.append(f"{SUBSCRIPTIONS_USER_ID} = ?")
        params.append(str(filters.user_id))
    return clauses, params


def _where(clauses: list[str]) -> str:
    return f" WHERE {' AND '.join(clauses)}" if clauses else ""


class SubscriptionRepository:
    """Subscriptions stored in the ``subscriptions`` table."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection
        self._lock = threading.Lock()

    def _exec(self, query: str, params: Sequence[Any] = (), *, translate: bool = True) -> tuple[list, int]:
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute(query, tuple(params))
                return cursor.fetchall(), cursor.rowcount
        except sqlite3.Error as exc:
            raise QueryExecError(_catch_db_errors(exc) if translate else exc)

    def insert(self, sub: Subscription) -> uuid.UUID:
        """Store a new subscription and return its public id."""
        if sub.id is None:
            raise QueryBuildingError("subscription id is not set")
        placeholders = ", ".join("?" for _ in _COLUMNS)
        query = f"INSERT INTO {SUBSCRIPTIONS_TABLE} ({', '.join(_COLUMNS)}) VALUES ({placeholders})"
        self._exec(
            query,
            (
                str(sub.id),
                sub.service_name,
                sub.price,
                str(sub.user_id),
                sub.start_date.isoformat(),
                _iso(sub.end_date),
            ),
        )
        return sub.id

    def select_by_id(self, sub_id: uuid.UUID) -> Subscription:
        rows, _ = self._exec(f"{_SELECT} WHERE {SUBSCRIPTIONS_PUBLIC_ID} = ?", (str(sub_id),))
        if not rows:
            raise NoSubscriptionError()
        return _to_subscription(rows[0])

    def update(self, sub_id: uuid.UUID, patch: SubscriptionPatch) -> None:
        assignments: list[str] = []
        params: list[Any] = []
        if patch.price is not None:
            assignments.append(f"{SUBSCRIPTIONS_PRICE} = ?")
            params.append(patch.price)
        if patch.end_date is not None:
            assignments.append(f"{SUBSCRIPTIONS_END_DATE} = ?")
            params.append(patch.end_date.isoformat())
        if not assignments:
            raise QueryBuildingError("update statements must have at least one Set clause")

        query = f"UPDATE {SUBSCRIPTIONS_TABLE} SET {', '.join(assignments)} WHERE {SUBSCRIPTIONS_PUBLIC_ID} = ?"
        _, affected = self._exec(query, (*params, str(sub_id)))
        if affected == 0:
            raise NoSubscriptionError()

    def delete(self, sub_id: uuid.UUID) -> None:
        query = f"DELETE FROM {SUBSCRIPTIONS_TABLE} WHERE {SUBSCRIPTIONS_PUBLIC_ID} = ?"
        _, affected = self._exec(query, (str(sub_id),))
        if affected == 0:
            raise NoSubscriptionError()

    def select_list(self, filters: SubscriptionFilters) -> list[Subscription]:
        """Subscriptions matching the filters, ordered by start date."""
        clauses, params = _filter_clauses(filters)
        query = f"{_SELECT}{_where(clauses)} ORDER BY {SUBSCRIPTIONS_START_DATE}"
        rows, _ = self._exec(query, params, translate=False)
        return [_to_subscription(row) for row in rows]

    def select_total_cost(self, filters: TotalCostFilters) -> int:
        """Sum of price times active months of the subscriptions within the period."""
        period = (
            f"(({SUBSCRIPTIONS_END_DATE} <= ? AND {SUBSCRIPTIONS_END_DATE} > ?)"
            f" OR ({SUBSCRIPTIONS_START_DATE} >= ? AND {SUBSCRIPTIONS_START_DATE} < ?))"
        )
        from_iso, to_iso = filters.from_date.isoformat(), filters.to_date.isoformat()
        extra, extra_params = _filter_clauses(filters.sub_filters)
        query = (
            f"SELECT {SUBSCRIPTIONS_PRICE}, {SUBSCRIPTIONS_START_DATE}, {SUBSCRIPTIONS_END_DATE}"
            f" FROM {SUBSCRIPTIONS_TABLE}{_where([period, *extra])}"
        )
        rows, _ = self._exec(query, (to_iso, from_iso, from_iso, to_iso, *extra_params))

        total = 0
        for price, start_raw, end_raw in rows:
            start = date.fromisoformat(start_raw)
            end = date.fromisoformat(end_raw) if end_raw is not None else None
            upper = min(end, filters.to_date) if end is not None else filters.to_date
            lower = max(start, filters.from_date)
            total += price * _age_months(upper, lower)
        return total

    def close(self) -> None:
        self._conn.close()