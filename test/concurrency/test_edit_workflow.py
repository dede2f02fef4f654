from decimal import Decimal

import pytest

from contoso.concurrency.conflict_resolver import CONCURRENT_DELETE_ADVISORY, ConflictResolver
from contoso.concurrency.edit_workflow import DeleteStatus, EditStatus, EditWorkflow
from contoso.entities import DEPARTMENT
from contoso.store.base.errors import StorageUnavailable, ValidationRejected
from contoso.store.base.query import ListQuery
from contoso.store.base.record import EditIntent
from contoso.store.impl.memory_record_io import InMemoryRecordIO


def test_edit_success_returns_new_token(department_workflow, seeded_department):
    outcome = department_workflow.attempt_edit(
        seeded_department.record_id, seeded_department.version, {"name": "B"}
    )

    assert outcome.status is EditStatus.SUCCESS
    assert outcome.new_token != seeded_department.version
    assert outcome.record["name"] == "B"
    assert outcome.record["budget"] == Decimal("100")
    assert department_workflow.read(seeded_department.record_id) == outcome.record


def test_scenario_two_writers(department_workflow, seeded_department):
    rid, t1 = seeded_department.record_id, seeded_department.version

    # writer X
    x = department_workflow.attempt_edit(rid, t1, {"name": "B"})
    assert x.status is EditStatus.SUCCESS
    t2 = x.new_token

    # writer Y, still holding T1, submits the whole form it loaded (name "A")
    y = department_workflow.attempt_edit(rid, t1, {"name": "A", "budget": Decimal("200")})

    assert y.status is EditStatus.NEEDS_MERGE
    assert y.current["name"] == "B"
    assert y.current["budget"] == Decimal("100")
    assert y.report.field_errors["name"] == "Current value: B"
    assert y.report.field_errors["budget"] == "Current value: $100.00"
    assert y.record.version == t2
    assert y.record["budget"] == Decimal("200")
    # nothing of Y was applied
    assert department_workflow.read(rid)["budget"] == Decimal("100")


def test_unrelated_field_conflict_has_no_false_positive(department_workflow, seeded_department):
    rid, t1 = seeded_department.record_id, seeded_department.version
    department_workflow.attempt_edit(rid, t1, {"name": "B"})

    y = department_workflow.attempt_edit(rid, t1, {"budget": Decimal("200")})

    assert y.status is EditStatus.NEEDS_MERGE
    assert list(y.report.field_errors) == ["budget"]
    assert y.record["name"] == "B"


def test_resubmitting_merged_record_succeeds(department_workflow, seeded_department):
    rid, t1 = seeded_department.record_id, seeded_department.version
    department_workflow.attempt_edit(rid, t1, {"name": "B"})
    conflict = department_workflow.attempt_edit(rid, t1, {"budget": Decimal("200")})

    retry = department_workflow.attempt_edit(
        rid, conflict.record.version, {"budget": conflict.record["budget"]}
    )

    assert retry.status is EditStatus.SUCCESS
    stored = department_workflow.read(rid)
    assert stored["budget"] == Decimal("200")
    assert stored["name"] == "B"


def test_retry_conflicts_again_if_someone_wrote_in_between(department_workflow, seeded_department):
    rid, t1 = seeded_department.record_id, seeded_department.version
    department_workflow.attempt_edit(rid, t1, {"name": "B"})
    conflict = department_workflow.attempt_edit(rid, t1, {"budget": Decimal("200")})
    department_workflow.attempt_edit(rid, conflict.record.version, {"name": "C"})

    retry = department_workflow.attempt_edit(rid, conflict.record.version, {"budget": Decimal("200")})
    assert retry.status is EditStatus.NEEDS_MERGE


def test_scenario_edit_after_delete(department_workflow, seeded_department):
    rid, t1 = seeded_department.record_id, seeded_department.version
    assert department_workflow.attempt_delete(rid, t1).status is DeleteStatus.SUCCESS

    y = department_workflow.attempt_edit(rid, t1, {"budget": Decimal("200")})

    assert y.status is EditStatus.DELETED
    assert y.new_token is None
    assert y.report.field_errors == {}
    assert len(y.report.advisories) == 1
    assert "deleted by another user" in y.report.advisories[0]


def test_delete_after_concurrent_edit_needs_confirmation(department_workflow, seeded_department):
    rid, t1 = seeded_department.record_id, seeded_department.version
    t2 = department_workflow.attempt_edit(rid, t1, {"name": "B"}).new_token

    first = department_workflow.attempt_delete(rid, t1)
    assert first.status is DeleteStatus.NEEDS_CONFIRMATION
    assert first.current.version == t2
    assert first.message == CONCURRENT_DELETE_ADVISORY

    confirmed = department_workflow.attempt_delete(rid, first.current.version)
    assert confirmed.status is DeleteStatus.SUCCESS

    assert department_workflow.attempt_delete(rid, t2).status is DeleteStatus.ALREADY_GONE


def test_validation_rejected_before_store_call(department_workflow, department_store, seeded_department):
    calls = []
    original = department_store.conditional_update
    department_store.conditional_update = lambda *a: calls.append(a) or original(*a)

    with pytest.raises(ValidationRejected) as exc:
        department_workflow.attempt_edit(
            seeded_department.record_id,
            seeded_department.version,
            {"budget": Decimal("-1"), "name": "x" * 51, "color": "red"},
        )

    assert set(exc.value.errors) == {"budget", "name", "color"}
    assert calls == []


def test_create_requires_all_required_fields(department_workflow):
    with pytest.raises(ValidationRejected) as exc:
        department_workflow.create({"name": "Physics"})
    assert set(exc.value.errors) == {"budget", "start_date"}


def test_storage_unavailable_is_not_merged(department_workflow, department_store, seeded_department):
    def boom(record_id, intent: EditIntent):
        raise StorageUnavailable()

    department_store.conditional_update = boom

    with pytest.raises(StorageUnavailable):
        department_workflow.attempt_edit(
            seeded_department.record_id, seeded_department.version, {"name": "B"}
        )


@pytest.fixture
def checked_workflow(department_store):
    instructors = InMemoryRecordIO("instructors")
    instructors.insert({"last_name": "Abercrombie", "first_mid_name": "Kim"})
    tables = {"instructors": instructors}
    return EditWorkflow(
        schema=DEPARTMENT,
        store=department_store,
        resolver=ConflictResolver(DEPARTMENT),
        reference_exists=lambda table, rid: tables[table].get(rid) is not None,
    )


def test_create_with_unknown_administrator_is_rejected(checked_workflow, department_io, make_department):
    with pytest.raises(ValidationRejected) as exc:
        checked_workflow.create(make_department(instructor_id=999))

    assert list(exc.value.errors) == ["instructor_id"]
    assert department_io.count(ListQuery()) == 0

    assert checked_workflow.create(make_department(instructor_id=1))["instructor_id"] == 1


def test_edit_to_unknown_administrator_is_rejected(checked_workflow, department_store, seeded_department):
    calls = []
    original = department_store.conditional_update
    department_store.conditional_update = lambda *a: calls.append(a) or original(*a)

    with pytest.raises(ValidationRejected) as exc:
        checked_workflow.attempt_edit(
            seeded_department.record_id, seeded_department.version, {"instructor_id": 42}
        )

    assert list(exc.value.errors) == ["instructor_id"]
    assert calls == []
    assert department_store.read(seeded_department.record_id).value["instructor_id"] is None
