import pytest

from helmsman.dao.base import Column, Params
from helmsman.dao.strategies import StrategiesDao, Strategy
from helmsman.database import MemoryCache, RecordNotFoundError, init_sqlite


@pytest.fixture
def conn():
    connection = init_sqlite(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def playbook(conn):
    return StrategiesDao(conn, MemoryCache())


@pytest.fixture
def breakout(playbook):
    record = Strategy(user_id=1, name="breakout", description="range breakout")
    playbook.create(record)
    return record


def test_create_writes_back_id(breakout):
    assert breakout.id == 1
    assert breakout.created_at is not None


@pytest.mark.parametrize("cached", [True, False])
def test_lookup_found_and_missing(conn, cached):
    strategies = StrategiesDao(conn, MemoryCache() if cached else None)
    strategies.create(Strategy(user_id=3, name="trend"))
    assert strategies.get_by_id(1).user_id == 3
    for absent in (2, 4):
        with pytest.raises(RecordNotFoundError):
            strategies.get_by_id(absent)


def test_placeholder_hides_later_insert(playbook):
    with pytest.raises(RecordNotFoundError):
        playbook.get_by_id(7)
    playbook.create(Strategy(id=7, name="late"))
    with pytest.raises(RecordNotFoundError):
        playbook.get_by_id(7)


@pytest.mark.parametrize("through_tx", [False, True])
def test_partial_update(playbook, conn, breakout, through_tx):
    playbook.get_by_id(1)
    patch = Strategy(id=1, name="pullback")
    if through_tx:
        with conn:
            playbook.update_by_tx(conn, patch)
    else:
        playbook.update_by_id(patch)
    fetched = playbook.get_by_id(1)
    assert (fetched.name, fetched.description, fetched.user_id) == ("pullback", "range breakout", 1)


def test_update_rejects_zero_id(playbook):
    with pytest.raises(ValueError, match="id cannot be 0"):
        playbook.update_by_id(Strategy())


@pytest.mark.parametrize("through_tx", [False, True])
def test_removal(playbook, conn, breakout, through_tx):
    assert playbook.get_by_id(1).name == "breakout"
    if through_tx:
        with conn:
            playbook.delete_by_tx(conn, 1)
    else:
        playbook.delete_by_id(1)
    with pytest.raises(RecordNotFoundError):
        playbook.get_by_id(1)


@pytest.mark.parametrize(
    "params, names, total",
    [
        (Params(page=0, limit=10, sort="ignore count"), ["a", "b", "c"], 0),
        (Params(page=0, limit=2, sort="id"), ["a", "b"], 3),
        (Params(limit=10, columns=[Column(name="name", value="b")]), ["b"], 1),
        (Params(limit=10, columns=[Column(name="id", exp="<", value=0)]), [], 0),
    ],
)
def test_listing(playbook, params, names, total):
    for name in ("a", "b", "c"):
        playbook.create(Strategy(name=name))
    records, counted = playbook.get_by_columns(params)
    assert sorted(r.name for r in records) == names
    assert counted == total


@pytest.mark.parametrize("column", [Column(), Column(name="unknown", value=1)])
def test_listing_rejects_bad_column(playbook, column):
    with pytest.raises(ValueError, match="query params error"):
        playbook.get_by_columns(Params(columns=[column]))


def test_create_by_tx(playbook, conn):
    with conn:
        new_id = playbook.create_by_tx(conn, Strategy(name="tx"))
    assert new_id == 1
    assert playbook.get_by_id(new_id).name == "tx"