import pytest

from helmsman.dao.base import Column, Params
from helmsman.dao.tags import Tag, TagsDao
from helmsman.database import MemoryCache, RecordNotFoundError, init_sqlite


@pytest.fixture
def store():
    handle = init_sqlite(":memory:")
    tags = TagsDao(handle, MemoryCache())
    yield tags, handle
    handle.close()


@pytest.fixture
def labelled(store):
    tags, _ = store
    for name in ("a", "b", "c"):
        tags.create(Tag(user_id=2, name=name, color="red"))
    return tags


def test_create_writes_back_id(store):
    tags, _ = store
    record = Tag(user_id=1, name="fomo", color="red")
    tags.create(record)
    assert record.id == 1
    assert tags.get_by_id(1).color == "red"


@pytest.mark.parametrize("wanted, found", [(1, True), (2, True), (4, False), (9, False)])
def test_get_by_id(labelled, wanted, found):
    if found:
        assert labelled.get_by_id(wanted).id == wanted
    else:
        with pytest.raises(RecordNotFoundError):
            labelled.get_by_id(wanted)


def test_get_by_id_returns_copy(labelled):
    labelled.get_by_id(1).name = "mutated"
    assert labelled.get_by_id(1).name == "a"


def test_update_colour_only(labelled, store):
    _, handle = store
    labelled.get_by_id(1)
    labelled.update_by_id(Tag(id=1, color="blue"))
    with handle:
        labelled.update_by_tx(handle, Tag(id=2, name="renamed"))
    first, second = labelled.get_by_id(1), labelled.get_by_id(2)
    assert (first.color, first.name, first.user_id) == ("blue", "a", 2)
    assert (second.name, second.color) == ("renamed", "red")


def test_update_zero_id(labelled):
    with pytest.raises(ValueError, match="id cannot be 0"):
        labelled.update_by_id(Tag())


def test_deletes_clear_cache(labelled, store):
    _, handle = store
    labelled.get_by_id(1)
    labelled.delete_by_id(1)
    with handle:
        labelled.delete_by_tx(handle, 2)
    for gone in (1, 2):
        with pytest.raises(RecordNotFoundError):
            labelled.get_by_id(gone)
    assert labelled.get_by_id(3).name == "c"


@pytest.mark.parametrize(
    "params, ids, total",
    [
        (Params(page=0, limit=10, sort="ignore count"), [3, 2, 1], 0),
        (Params(limit=10), [3, 2, 1], 3),
        (Params(page=1, limit=2, sort="id"), [3], 3),
    ],
)
def test_pages(labelled, params, ids, total):
    records, counted = labelled.get_by_columns(params)
    assert ([r.id for r in records], counted) == (ids, total)


def test_pages_reject_blank_column(labelled):
    with pytest.raises(ValueError, match="query params error"):
        labelled.get_by_columns(Params(columns=[Column()]))


def test_create_by_tx(store):
    tags, handle = store
    with handle:
        assert tags.create_by_tx(handle, Tag(name="tx")) == 1
    assert tags.get_by_id(1).name == "tx"