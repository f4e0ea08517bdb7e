# helmsman

The data layer of a trading journal. It stores accounts, strategies, trades,
tags, trade tags, snapshots and users in SQLite. Each table has a repository
class with create, read, update, delete and paged list operations. Single-record
reads can go through an optional read-through cache.

## Install

    pip install .

To install the test tools as well:

    pip install ".[test]"

## Modules

### `helmsman.database`

- `init_db(driver, db_file)` opens the shared SQLite connection and returns it.
  The only supported driver is `"sqlite"`, compared case-insensitively. Any
  other driver raises `ValueError`. Calling it again closes the previous
  connection first.
- `get_db()` returns the shared connection. It raises `RuntimeError` if
  `init_db` has not been called. `close_db()` closes the connection.
- `init_sqlite(db_file)` opens a standalone connection with `sqlite3.Row` rows.
- `MemoryCache` is a thread-safe in-memory cache. It offers `get`, `set` (the
  TTL may be given in seconds or as a `timedelta`; zero or `None` means the
  entry never expires), `set_placeholder` (which marks a key as absent for ten
  minutes), `delete`, `multi_get` and `multi_set`.
- `init_redis(dsn, dial_timeout, read_timeout, write_timeout)` connects and pings
  a shared `redis.Redis` client. `get_redis_client()` returns that client and
  `close_redis()` closes it.
- `init_cache(cache_type)` records which cache backend is selected, as a
  `CacheType(ctype, rdb)`. `get_cache_type()` returns that choice. Selecting
  `"redis"` requires that the Redis client has already been initialised.
- Errors:
  - `RecordNotFoundError`: no record matched.
  - `CacheNotFoundError`: the key is not in the cache.
  - `PlaceholderError`: the key holds an "absent" placeholder.

### `helmsman.ecode`

- `AppError(code, msg)` is an exception that carries a numeric code and a
  message.
- `http_code(num)` returns the base code for business module `num`, which must
  be between 1 and 999. The base code is `200000 + num * 100`.
- `new_error(code, msg)` creates an `AppError` and registers it. Registering the
  same code twice raises `ValueError`.
- `get_error_code(err)` walks the exception's cause chain and returns the code
  of the first `AppError` it finds. If there is none, it returns `-1`.
- Predefined codes:
  - System codes such as `SUCCESS` (code 0), `INVALID_PARAMS` (10001) and
    `NOT_FOUND`.
  - Per-table business codes such as `ERR_CREATE_ACCOUNTS`,
    `ERR_GET_BY_ID_TRADES` and `ERR_LIST_TRADE_TAGS`.

### `helmsman.dao`

There is one repository per table. Each is built on
`helmsman.dao.base.Repository`, and each creates its table if the table is
missing.

| Module | Record | Repository |
|---|---|---|
| `helmsman.dao.accounts` | `Account` | `AccountsDao` |
| `helmsman.dao.snapshots` | `Snapshot` | `SnapshotsDao` |
| `helmsman.dao.strategies` | `Strategy` | `StrategiesDao` |
| `helmsman.dao.tags` | `Tag` | `TagsDao` |
| `helmsman.dao.trade_tags` | `TradeTag` | `TradeTagsDao` |
| `helmsman.dao.trades` | `Trade` | `TradesDao` |
| `helmsman.dao.users` | `User` | `UsersDao` |

`Repository(db, cache=None)` provides these methods:

- `create`
- `delete_by_id`
- `update_by_id`
- `get_by_id`
- `get_by_columns`
- `create_by_tx`
- `delete_by_tx`
- `update_by_tx`

The `*_by_tx` methods run on the connection you pass in and do not commit. Wrap
them in `with conn:` to make them one transaction.

Some repositories differ from the default:

- `TradeTagsDao` is keyed by `trade_id`, not `id`. It adds `delete_by_trade_id`,
  `update_by_trade_id` and `get_by_trade_id`. Its lists sort by `-trade_id`
  unless you give another order.
- `UsersDao` deletes softly, by setting `deleted_at`. Deleted users no longer
  appear in reads. It adds these methods:
  - `delete_by_ids`
  - `get_by_condition`, which takes a `Conditions`
  - `get_by_ids`, which returns a dict of id to user
  - `get_by_last_id(last_id, limit, sort)`, for keyset paging

## Example

```python
from helmsman.database import init_db, MemoryCache
from helmsman.dao.accounts import Account, AccountsDao

db = init_db("sqlite", "journal.db")
accounts = AccountsDao(db, MemoryCache())

account = Account(user_id=1, name="main", initial_balance=10000.0, currency="USD")
accounts.create(account)          # the generated id is written back to account.id
print(accounts.get_by_id(account.id))
```

### Filtering and paging

```python
from helmsman.dao.base import Column, Params

records, total = accounts.get_by_columns(
    Params(page=0, limit=20, sort="-initial_balance,name",
           columns=[Column(name="currency", value="USD"),
                    Column(name="initial_balance", exp=">=", value=1000)])
)
```

Filters:

- A `Column` accepts these `exp` values:
  - `=`/`eq` (the default)
  - `!=`/`neq`
  - `>`/`gt`, `>=`/`gte`, `<`/`lt`, `<=`/`lte`
  - `like`, which wraps the value in `%`
  - `in` and `notin`, which take a list or a comma-separated string
- `logic` joins a column to the next one with `and` (the default) or `or`.
- Column names must be columns of the table. Anything else raises
  `ValueError("query params error: ...")`.

Sorting and paging:

- `sort` is a comma-separated list of fields. A leading `-` sorts that field
  descending. An empty sort gives `id DESC`.
- A `limit` outside 1–1000 becomes 1000.
- Setting `sort` to `"ignore count"` skips the count query and returns a total
  of 0.

### Partial updates

`update_by_id` writes only the fields that are set. Empty strings and zero
numbers count as unset and are left alone. It also refreshes `updated_at`
where the table has one. A record whose key is 0 raises `ValueError`.

### Caching

A repository given a cache object reads through it:

- A miss loads the record from the database and stores a copy for five
  minutes.
- A lookup that finds nothing stores a placeholder. For the next ten minutes,
  reads of that key raise `RecordNotFoundError` without querying the database.
- Concurrent misses for the same key result in a single database query.
- Updates and deletes drop the key from the cache.

## What the package does not do

- The cache object a repository uses must offer the `MemoryCache` interface.
  The package ships only `MemoryCache`. `init_redis` and `init_cache` set up a
  Redis client and record the chosen backend, but no Redis-backed cache for the
  repositories is included.
- There is no HTTP server, no request handlers and no command-line program. The
  error codes in `helmsman.ecode` are defined for such a layer, but nothing here
  serves them.
- Configuration is not read from any file. Connection settings are passed as
  arguments.

## Tests

    pytest