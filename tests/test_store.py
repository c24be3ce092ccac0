

import random
import pytest
from slotstore.store import RecordStore, SearchResult
from slotstore.storage.slot import Record, Slot
from slotstore.constants import NIL
from slotstore.exceptions import (DuplicateKeyError, StoreFullError, KeyNotFoundError,
                                  StoreIOError, InvalidRecordError, NameTooLongError,
                                  CorruptStoreError)

@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "records.dat"

@pytest.fixture
def store(store_path):
    s = RecordStore.open(str(store_path), capacity=3)
    yield s
    s.close()

@pytest.fixture
def big_store(tmp_path):
    s = RecordStore.open(str(tmp_path / "big.dat"), capacity=50)
    yield s
    s.close()

def _state(store):
    h = store.header
    return (h.count, h.first_active, h.last_active, h.free_head)

def _active_slots(store):
    return [row.index for row in store.dump_active()]

def _free_slots(store):
    return [row.index for row in store.dump_free()]

def assert_consistent(store):
    """Partition, count and link invariants"""
    assert store.verify() == []
    active = _active_slots(store)
    free = _free_slots(store)
    assert set(active).isdisjoint(free)
    assert set(active) | set(free) == set(range(1, store.capacity + 1))
    assert store.header.count == len(active)

def test_open_requires_capacity_for_new_store(tmp_path):
    with pytest.raises(StoreIOError):
        RecordStore.open(str(tmp_path / "nope.dat"))

def test_initial_state(store):
    # Scenario 1
    assert _state(store) == (0, NIL, NIL, 1)
    assert len(store) == 0
    assert store.keys() == []
    assert _free_slots(store) == [1, 2, 3]
    assert_consistent(store)

def test_capacity_scenario(store):
    # Scenario 2: fill
    for key, name in [(1, "A"), (2, "B"), (3, "C")]:
        store.insert(key, name)
    assert _state(store) == (3, 1, 3, NIL)
    assert store.keys() == [1, 2, 3]
    assert_consistent(store)

    # Scenario 3: full, nothing changes
    before = _state(store)
    with pytest.raises(StoreFullError):
        store.insert(4, "D")
    assert _state(store) == before

    # Scenario 4: delete frees slot 2 onto the free head
    assert store.delete(2) is True
    assert store.header.count == 2
    assert store.keys() == [1, 3]
    assert store.header.free_head == 2
    assert_consistent(store)

    # Scenario 6
    assert store.search(2) is None

    # Scenario 5: the freed slot is reused
    assert store.insert(4, "D") == 2
    assert store.header.count == 3
    assert store.keys() == [1, 3, 4]
    assert store.header.free_head == NIL
    assert_consistent(store)

def test_insert_returns_slot_and_round_trips(store):
    index = store.insert(7, "Seven")
    assert index == 1

    result = store.search(7)
    assert result == SearchResult(index=1, record=Record(7, "Seven"))
    assert store.get(7) == Record(7, "Seven")
    assert 7 in store
    assert 8 not in store

def test_search_returns_copy(store):
    store.insert(1, "one")
    result = store.search(1)
    result.record.name = "changed"
    assert store.get(1).name == "one"

def test_get_missing(store):
    with pytest.raises(KeyNotFoundError):
        store.get(99)
    # KeyNotFoundError is a KeyError too
    with pytest.raises(KeyError):
        store.get(99)

def test_duplicate_key_rejected(store):
    store.insert(1, "first")
    before = _state(store)

    with pytest.raises(DuplicateKeyError):
        store.insert(1, "again")
    with pytest.raises(DuplicateKeyError):
        store.insert_ordered(1, "again")

    assert _state(store) == before
    assert store.get(1).name == "first"

def test_duplicate_checked_before_full(store):
    for key in (1, 2, 3):
        store.insert(key, "x")
    # both conditions hold; the duplicate is reported
    with pytest.raises(DuplicateKeyError):
        store.insert(2, "dup")

def test_invalid_records_rejected(store):
    before = _state(store)
    with pytest.raises(InvalidRecordError):
        store.insert(-1, "free marker")
    with pytest.raises(NameTooLongError):
        store.insert(5, "n" * 31)
    with pytest.raises(ValueError):
        store.insert_ordered(2 ** 40, "huge")
    assert _state(store) == before
    assert_consistent(store)

def test_full_width_name(store):
    name = "N" * 30
    store.insert(1, name)
    assert store.get(1).name == name

def test_ordered_insert_positions(big_store):
    big_store.insert_ordered(20, "twenty")    # empty list
    big_store.insert_ordered(10, "ten")       # before head
    big_store.insert_ordered(40, "forty")     # after tail
    big_store.insert_ordered(30, "thirty")    # interior
    big_store.insert_ordered(-5, "negative")  # before head again

    assert big_store.keys() == [-5, 10, 20, 30, 40]
    rows = big_store.dump_active()
    assert big_store.header.first_active == rows[0].index
    assert big_store.header.last_active == rows[-1].index
    assert_consistent(big_store)

def test_ordered_insert_random_keys(big_store):
    rng = random.Random(1234)
    keys = rng.sample(range(-1000, 1000), 40)
    keys = [k for k in keys if k != -1]
    for key in keys:
        big_store.insert_ordered(key, f"n{key}")

    assert big_store.keys() == sorted(keys)
    assert_consistent(big_store)

def test_ordered_insert_after_deletes(big_store):
    for key in (5, 1, 9, 3, 7):
        big_store.insert_ordered(key, str(key))
    big_store.delete(1)
    big_store.delete(9)
    big_store.insert_ordered(0, "0")
    big_store.insert_ordered(10, "10")
    big_store.insert_ordered(4, "4")

    assert big_store.keys() == [0, 3, 4, 5, 7, 10]
    assert_consistent(big_store)

def test_append_keeps_insertion_order(big_store):
    for key in (30, 10, 20):
        big_store.insert(key, str(key))
    assert big_store.keys() == [30, 10, 20]
    assert [r.name for r in big_store] == ["30", "10", "20"]

@pytest.mark.parametrize("victim", [10, 20, 30])
def test_delete_positions(big_store, victim):
    for key in (10, 20, 30):
        big_store.insert(key, str(key))

    assert big_store.delete(victim)
    expected = [k for k in (10, 20, 30) if k != victim]
    assert big_store.keys() == expected
    assert big_store.search(victim) is None
    assert_consistent(big_store)

def test_delete_last_record_resets_header(store):
    store.insert(1, "solo")
    assert store.delete(1)
    assert _state(store) == (0, NIL, NIL, 1)
    assert_consistent(store)

def test_delete_absent_is_noop(store):
    store.insert(1, "a")
    store.insert(2, "b")
    before = _state(store)

    assert store.delete(99) is False
    assert _state(store) == before
    assert store.keys() == [1, 2]

def test_delete_clears_slot(store):
    index = store.insert(1, "secret")
    store.delete(1)
    freed = store.dump_all()[index - 1]
    assert not freed.active
    assert freed.name == ""
    assert freed.prev == NIL

def test_lifo_reuse(big_store):
    indices = {key: big_store.insert(key, str(key)) for key in range(1, 6)}

    big_store.delete(2)
    big_store.delete(4)
    # most recently freed first
    assert big_store.insert(100, "x") == indices[4]
    assert big_store.insert(2, "same key again") == indices[2]
    assert big_store.get(2).name == "same key again"
    assert_consistent(big_store)

def test_random_operations_keep_invariants(big_store):
    rng = random.Random(42)
    live = set()
    for _ in range(300):
        op = rng.random()
        key = rng.randint(0, 80)
        if op < 0.4:
            try:
                big_store.insert(key, f"a{key}")
                live.add(key)
            except (DuplicateKeyError, StoreFullError):
                assert key in live or len(live) == big_store.capacity
        elif op < 0.7:
            try:
                big_store.insert_ordered(key, f"o{key}")
                live.add(key)
            except (DuplicateKeyError, StoreFullError):
                assert key in live or len(live) == big_store.capacity
        else:
            assert big_store.delete(key) == (key in live)
            live.discard(key)

    assert set(big_store.keys()) == live
    assert_consistent(big_store)

def test_persistence_across_reopen(store_path):
    with RecordStore.open(str(store_path), capacity=5) as s:
        s.insert_ordered(3, "three")
        s.insert_ordered(1, "one")
        s.insert_ordered(2, "two")
        s.delete(3)

    # capacity argument is ignored for an existing file
    with RecordStore.open(str(store_path), capacity=99) as s:
        assert s.capacity == 5
        assert s.keys() == [1, 2]
        assert s.get(2).name == "two"
        assert s.header.free_head == 1  # slot of the deleted key 3
        assert_consistent(s)

def test_dump_all_tags_slots(store):
    store.insert(1, "a")
    store.insert(2, "b")
    store.delete(1)

    rows = store.dump_all()
    assert [r.index for r in rows] == [1, 2, 3]
    assert [r.active for r in rows] == [False, True, False]
    assert rows[1].key == 2
    assert rows[0].next == 3  # freed slot points at the old free head
    assert rows[1].to_dict() == {"index": 2, "active": True, "key": 2,
                                 "name": "b", "next": NIL, "prev": NIL}

def test_dump_active_and_free(store):
    store.insert(1, "a")
    store.insert(2, "b")

    active = store.dump_active()
    assert [(r.index, r.key, r.prev, r.next) for r in active] == [(1, 1, NIL, 2), (2, 2, 1, NIL)]
    free = store.dump_free()
    assert [(r.index, r.next) for r in free] == [(3, NIL)]

def test_verify_reports_broken_links(store):
    store.insert(1, "a")
    store.insert(2, "b")
    fm = store.file_manager

    # break the back link of slot 2
    fm.write_slot(2, Slot(next=NIL, prev=NIL, record=Record(2, "b")))
    problems = store.verify()
    assert any("prev" in p for p in problems)

def test_verify_reports_lost_slot(store):
    store.insert(1, "a")
    fm = store.file_manager
    header = fm.read_header()
    header.free_head = NIL  # orphan slots 2 and 3
    fm.write_header(header)

    problems = store.verify()
    assert any("neither list" in p for p in problems)

def test_walk_detects_active_cycle(store):
    store.insert(1, "a")
    store.insert(2, "b")
    fm = store.file_manager
    fm.write_slot(2, Slot(next=1, prev=1, record=Record(2, "b")))

    with pytest.raises(CorruptStoreError):
        store.search(99)
    assert any("cycle" in p for p in store.verify())
