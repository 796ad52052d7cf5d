# subsagg

A small WSGI service that keeps users' online subscriptions in an SQLite
database and works out how much they cost over a chosen period.

Each subscription has a service name, a monthly price, the owner's user id
(a UUID v4), a start month and an optional end month. Months are written as
`MM-YYYY`, for example `07-2025`.

## Installing

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Configuration

`subsagg.config.load_config(path)` reads a YAML (`.yaml`, `.yml`) or JSON
(`.json`) file into a `Config` with a `server` (`ServerConfig`) and a
`subs_repo` (`RepoConfig`) section:

```yaml
server:
  host: 0.0.0.0
  port: "8080"
  log_level: info          # debug, info, warn or error

subscriptions-repo:
  driver: sqlite
  db_uri: subscriptions.db
  max_open_conns: 15
  migrations_dir: migrations
```

`HOST`, `PORT`, `DB_URI` and `MIGRATIONS_DIR` in the environment override the
matching values in the file. `log_level` defaults to `info` and
`max_open_conns` to `15`. `driver` and `max_open_conns` are read but not used:
storage is always SQLite through one shared connection.

`db_uri` is a file path, or an SQLite `file:` URI. `migrations_dir` is a
directory path; a leading `file://` is stripped.

## Running

The `subsagg` command picks its config file from two environment variables:

- `ENV` names the environment and is required; the file read is `<ENV>.yaml`.
- `CONFIG_DIR` is the directory that file lives in.

```
ENV=local CONFIG_DIR=./config subsagg
```

On start it opens the database, applies pending migrations and serves HTTP
with Werkzeug's threaded server (host `0.0.0.0` if none is set, port `80` if
none is set). It runs until it receives SIGINT or SIGTERM, then stops the
server and closes the database. Request logs go to standard output as
`key=value` lines.

## Database schema and migrations

The package does not ship a schema. `apply_migrations(connection,
migrations_dir)` runs every file named `<version>_<name>.up.sql` whose version
is above the one recorded in the `schema_migrations` table, in version order,
and returns how many it ran. A migration left half-applied marks the database
dirty, and later runs refuse to continue until that is fixed by hand.

Your migrations must create a `subscriptions` table with the columns
`public_id`, `service_name`, `price`, `user_id`, `start_date` and `end_date`
(dates stored as ISO `YYYY-MM-DD` text). Two database errors are turned into
client errors:

- a CHECK constraint named `end_date_after_start_date` failing gives
  "end date invalid, value must be after start date";
- a trigger that aborts with `exclusion_violation: no_overlapping_subscriptions`
  gives "there is the same subscription with active period overlapping".

Without such a constraint and trigger those rules are simply not enforced.

## API

All routes live under `/api/v1`. Every response carries an `X-Request-ID`
header, and each request and response is logged with that id, the status and
the time taken in milliseconds.

| Method | Path                              | What it does                         |
|--------|-----------------------------------|--------------------------------------|
| POST   | `/subscriptions`                  | create a subscription                |
| GET    | `/subscriptions/{subId}`          | fetch one subscription               |
| PATCH  | `/subscriptions/{subId}`          | change the price and/or end month    |
| DELETE | `/subscriptions/{subId}`          | remove a subscription                |
| GET    | `/subscriptions`                  | list subscriptions                   |
| GET    | `/subscriptions/cost/total`       | total cost over a period             |

### Create

```
POST /api/v1/subscriptions
{
  "service_name": "Streaming Plus",
  "price": 400,
  "user_id": "60601fee-2bf1-4721-ae6f-7636e79a0cba",
  "start_date": "07-2025",
  "end_date": "12-2025"
}
```

Answers `201` with `{"sub_id": "<uuid>"}`. `end_date` is optional and must be
after `start_date`; `price` must not be negative. JSON keys are matched
without regard to case, and unknown keys are ignored.

### Get

Answers `200` with `sub_id`, `service_name`, `price`, `user_id`,
`start_date` and, when set, `end_date`.

### Update and delete

`PATCH` takes `price`, `end_date` or both, and answers `204` with no body.
`DELETE` answers `204` as well. An unknown id gives `404`.

### List and total cost

`GET /api/v1/subscriptions` takes the query parameters `user_id` and
`service_name`; at least one of them is required. Results come ordered by
start month, as `{"subscriptions": [...]}`; when nothing matches the value is
`null`.

`GET /api/v1/subscriptions/cost/total` takes `from` and `to` (both `MM-YYYY`,
required) plus the same `user_id` / `service_name` filters, and answers
`{"total_cost": <int>}`. A subscription counts when its end month falls in
(`from`, `to`] or its start month falls in [`from`, `to`); it contributes its
price times the whole months between the later of its start and `from` and the
earlier of its end and `to`.

Query parameters other than the listed ones, or a `;` in the query string,
give `400` with "invalid request".

### Errors

Every error has the same shape:

```json
{"code": 400, "messages": ["UserID value must meet uuid4 format"]}
```

Validation problems give `400` with one message per failing field (fields are
named `ServiceName`, `Price`, `UserID`, `StartDate`, `EndDate`, `SubID`,
`FromDate`, `ToDate`), a body that is not valid JSON gives `400` with
"invalid request", a missing subscription gives `404`, and anything unexpected
is logged and gives `500` with "sorry, something went wrong".

## Using it from Python

The service is a plain WSGI application and can be mounted in any WSGI
server:

```python
import sys

from subsagg.app import create_router
from subsagg.controller import SubscriptionController
from subsagg.logsetup import new_text_logger
from subsagg.repository import SubscriptionRepository, apply_migrations, connect_db
from subsagg.service import SubscriptionService

connection = connect_db("subscriptions.db")
apply_migrations(connection, "migrations")
logger = new_text_logger(sys.stdout, "info")
service = SubscriptionService(SubscriptionRepository(connection))
application = create_router(SubscriptionController(service, logger), logger)
```

`subsagg.app.App(config)` does the same wiring from a `Config` and adds
`run()` and `shutdown()`. The layers below it can also be used on their own:
`subsagg.validation.validate` checks the request objects in `subsagg.dto`,
`subsagg.mappers` turns them into the models of `subsagg.domain`, and
`SubscriptionService` raises `subsagg.errors.AppError` carrying the
client-facing error for known storage failures.