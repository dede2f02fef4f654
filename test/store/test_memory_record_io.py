import threading

from contoso.store.base.err_code import ErrCode
from contoso.store.base.query import ListQuery
from contoso.store.base.record import VERSION_TOKEN_SIZE
from contoso.store.impl.memory_record_io import InMemoryRecordIO, VersionClock


def test_insert_assigns_id_and_token():
    io = InMemoryRecordIO("students")
    a = io.insert({"last_name": "Alexander"})
    b = io.insert({"last_name": "Alonso"})

    assert (a.record_id, b.record_id) == (1, 2)
    assert len(a.version) == VERSION_TOKEN_SIZE
    assert a.version != b.version
    assert io.get(1)["last_name"] == "Alexander"
    assert io.get(99) is None


def test_shared_clock_never_repeats_across_tables():
    clock = VersionClock()
    students = InMemoryRecordIO("students", clock=clock)
    instructors = InMemoryRecordIO("instructors", clock=clock)

    tokens = {students.insert({}).version, instructors.insert({}).version, students.insert({}).version}
    assert len(tokens) == 3


def test_conditional_write_outcomes():
    io = InMemoryRecordIO("departments")
    rec = io.insert({"name": "A", "budget": 100})

    ok = io.try_conditional_write(rec.record_id, rec.version, {"name": "B"})
    assert ok.ok
    assert ok.value != rec.version
    assert io.get(rec.record_id)["name"] == "B"
    assert io.get(rec.record_id)["budget"] == 100

    stale = io.try_conditional_write(rec.record_id, rec.version, {"name": "C"})
    assert not stale.ok
    assert stale.err == ErrCode.VERSION_CONFLICT
    assert stale.value["name"] == "B"
    assert io.get(rec.record_id)["name"] == "B"

    missing = io.try_conditional_write(42, rec.version, {"name": "C"})
    assert missing.err == ErrCode.KEY_NOT_FOUND


def test_conditional_delete_outcomes():
    io = InMemoryRecordIO("departments")
    rec = io.insert({"name": "A"})
    newer = io.try_conditional_write(rec.record_id, rec.version, {"name": "B"}).value

    stale = io.try_conditional_delete(rec.record_id, rec.version)
    assert stale.err == ErrCode.VERSION_CONFLICT
    assert io.get(rec.record_id) is not None

    assert io.try_conditional_delete(rec.record_id, newer).ok
    assert io.get(rec.record_id) is None
    assert io.try_conditional_delete(rec.record_id, newer).err == ErrCode.KEY_NOT_FOUND


def test_concurrent_writers_with_same_token_only_one_wins():
    io = InMemoryRecordIO("departments")
    rec = io.insert({"budget": 0})
    results = []
    barrier = threading.Barrier(8)

    def writer(n):
        barrier.wait()
        results.append(io.try_conditional_write(rec.record_id, rec.version, {"budget": n}))

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    winners = [r for r in results if r.ok]
    assert len(winners) == 1
    assert all(r.err == ErrCode.VERSION_CONFLICT for r in results if not r.ok)


def test_count_and_slice_filter_and_order():
    io = InMemoryRecordIO("students")
    for last, first in [("Li", "Yan"), ("Alonso", "Meredith"), ("Anand", "Arturo"), ("Alexander", "Carson")]:
        io.insert({"last_name": last, "first_mid_name": first})

    everyone = ListQuery(order_by="last_name")
    assert io.count(everyone) == 4
    assert [r["last_name"] for r in io.slice(everyone, 0, 10)] == ["Alexander", "Alonso", "Anand", "Li"]
    assert [r["last_name"] for r in io.slice(everyone, 1, 2)] == ["Alonso", "Anand"]

    desc = ListQuery(order_by="last_name", descending=True)
    assert [r["last_name"] for r in io.slice(desc, 0, 2)] == ["Li", "Anand"]

    search = ListQuery(search="AR", search_fields=("last_name", "first_mid_name"), order_by="last_name")
    # "ar" hits Carson and Arturo, case-insensitively
    assert io.count(search) == 2
    assert [r["last_name"] for r in io.slice(search, 0, 10)] == ["Alexander", "Anand"]


def test_ties_keep_ascending_id():
    io = InMemoryRecordIO("students")
    for _ in range(3):
        io.insert({"enrollment_date": "2012-09-01"})

    desc = ListQuery(order_by="enrollment_date", descending=True)
    assert [r.record_id for r in io.slice(desc, 0, 3)] == [1, 2, 3]
