import pytest

from interest_api.operations import (
    BeforeRecordOperationEventHandler,
    CreateRecordOperation,
    DataError,
    DeleteRecordOperation,
    EventDispatcher,
    IdentityConflictError,
    InvalidArgumentError,
    NotFoundError,
    OperationState,
    StopRecordOperation,
    UpdateRecordOperation,
)
from interest_api.operations.handlers import StopIfRepeatingPreviousRecordOperation


class RecordingHandler(BeforeRecordOperationEventHandler):
    def __init__(self, name, calls):
        self.name = name
        self.calls = calls

    def __call__(self, event):
        self.calls.append(self.name)


class FailingHandler(BeforeRecordOperationEventHandler):
    def __call__(self, event):
        event.record_operation.data["touched"] = True
        raise DataError("disk on fire", 1)


class StoppingHandler(BeforeRecordOperationEventHandler):
    def __call__(self, event):
        raise StopRecordOperation("nothing to do")


@pytest.fixture
def make_operation(record_adapter, mapping_repository):
    def make(operation_class, remote_id, data=None, handlers=(), table="article"):
        return operation_class(
            table,
            remote_id,
            data,
            record_adapter=record_adapter,
            mapping_repository=mapping_repository,
            dispatcher=EventDispatcher(handlers),
        )
    return make


def test_create_update_delete(make_operation, record_adapter, mapping_repository):
    created = make_operation(CreateRecordOperation, "a-1", {"title": "One"})()
    assert created.state == OperationState.COMMITTED
    assert mapping_repository.get("article", "a-1") == created.uid

    updated = make_operation(UpdateRecordOperation, "a-1", {"body": "text"})()
    assert updated.uid == created.uid
    assert record_adapter.get_record("article", created.uid) == {"uid": created.uid, "title": "One", "body": "text"}

    deleted = make_operation(DeleteRecordOperation, "a-1")()
    assert deleted.state == OperationState.COMMITTED
    assert mapping_repository.get("article", "a-1") == 0
    assert record_adapter.get_record("article", created.uid) is None


def test_create_existing_remote_id_conflicts(make_operation):
    make_operation(CreateRecordOperation, "a-1", {"title": "One"})()

    operation = make_operation(CreateRecordOperation, "a-1", {"title": "Again"})
    with pytest.raises(IdentityConflictError):
        operation()
    assert operation.state == OperationState.ABORTED


def test_update_or_delete_unmapped_remote_id(make_operation):
    with pytest.raises(NotFoundError):
        make_operation(UpdateRecordOperation, "nope", {"title": "x"})()
    with pytest.raises(NotFoundError):
        make_operation(DeleteRecordOperation, "nope")()


def test_update_remote_id_of_other_table(make_operation):
    make_operation(CreateRecordOperation, "a-1", {"title": "One"})()

    with pytest.raises(NotFoundError):
        make_operation(UpdateRecordOperation, "a-1", {"title": "x"}, table="page")()


def test_same_remote_id_in_another_table_is_a_new_record(make_operation, record_adapter, mapping_repository):
    article = make_operation(CreateRecordOperation, "x-1", {"title": "Article"})()
    page = make_operation(CreateRecordOperation, "x-1", {"title": "Page"}, table="page")()

    assert article.state == OperationState.COMMITTED
    assert page.state == OperationState.COMMITTED
    assert mapping_repository.get("article", "x-1") == article.uid
    assert mapping_repository.get("page", "x-1") == page.uid

    make_operation(DeleteRecordOperation, "x-1", table="page")()

    assert mapping_repository.get("article", "x-1") == article.uid
    assert record_adapter.get_record("article", article.uid) == {"uid": article.uid, "title": "Article"}


def test_create_onto_uid_of_live_record_conflicts(make_operation, record_adapter, mapping_repository):
    class ClaimUidHandler(BeforeRecordOperationEventHandler):
        def __call__(self, event):
            event.record_operation.uid = 1

    first = make_operation(CreateRecordOperation, "a-1", {"title": "One"})()
    operation = make_operation(CreateRecordOperation, "a-2", {"title": "Two"}, handlers=[ClaimUidHandler()])

    with pytest.raises(IdentityConflictError) as exc_info:
        operation()

    assert exc_info.value.code == 1634667871365
    assert operation.state == OperationState.ABORTED
    assert mapping_repository.get("article", "a-2") == 0
    assert record_adapter.get_record("article", first.uid) == {"uid": first.uid, "title": "One"}


@pytest.mark.parametrize("table, remote_id, data", [
    ("Bad-Table", "r", {}),
    ("", "r", {}),
    ("article", "", {}),
    ("article", "r", ["not", "a", "mapping"]),
])
def test_invalid_arguments(make_operation, table, remote_id, data):
    with pytest.raises(InvalidArgumentError):
        make_operation(CreateRecordOperation, remote_id, data, table=table)


def test_handlers_run_in_registration_order(make_operation):
    calls = []

    make_operation(
        CreateRecordOperation, "a-1", {},
        handlers=[RecordingHandler("first", calls), RecordingHandler("second", calls)],
    )()

    assert calls == ["first", "second"]


def test_failing_handler_aborts_without_commit(make_operation, record_adapter, mapping_repository):
    calls = []
    operation = make_operation(
        CreateRecordOperation, "a-1", {"title": "One"},
        handlers=[FailingHandler(), RecordingHandler("after", calls)],
    )
    committed = []
    operation.on_commit(committed.append)

    with pytest.raises(DataError):
        operation()

    assert operation.state == OperationState.ABORTED
    assert calls == []
    assert committed == []
    assert mapping_repository.get("article", "a-1") == 0
    assert record_adapter.count_records("article") == 0


def test_stopped_operation_is_skipped(make_operation, record_adapter):
    operation = make_operation(CreateRecordOperation, "a-1", {"title": "One"}, handlers=[StoppingHandler()])

    assert operation() is operation
    assert operation.state == OperationState.SKIPPED
    assert record_adapter.count_records("article") == 0


def test_on_commit_callbacks_run_after_commit(make_operation, mapping_repository):
    operation = make_operation(CreateRecordOperation, "a-1", {"title": "One"})
    seen = []
    operation.on_commit(lambda committed: seen.append(mapping_repository.get(committed.table, committed.remote_id)))

    operation()

    assert seen == [operation.uid]


def test_repeated_operations_are_skipped(make_operation, mapping_repository):
    stop_if_repeating = StopIfRepeatingPreviousRecordOperation(mapping_repository)

    first = make_operation(CreateRecordOperation, "a-1", {"title": "One"}, handlers=[stop_if_repeating])()
    repeated = make_operation(UpdateRecordOperation, "a-1", {"title": "One"}, handlers=[stop_if_repeating])()
    changed = make_operation(UpdateRecordOperation, "a-1", {"title": "Two"}, handlers=[stop_if_repeating])()
    reverted = make_operation(UpdateRecordOperation, "a-1", {"title": "One"}, handlers=[stop_if_repeating])()
    deleted = make_operation(DeleteRecordOperation, "a-1", handlers=[stop_if_repeating])()

    assert first.state == OperationState.COMMITTED
    assert repeated.state == OperationState.SKIPPED
    assert changed.state == OperationState.COMMITTED
    assert reverted.state == OperationState.COMMITTED
    assert deleted.state == OperationState.COMMITTED


def test_aborted_operation_can_be_retried(make_operation, mapping_repository):
    stop_if_repeating = StopIfRepeatingPreviousRecordOperation(mapping_repository)

    with pytest.raises(DataError):
        make_operation(CreateRecordOperation, "a-1", {"title": "One"}, handlers=[stop_if_repeating, FailingHandler()])()

    retried = make_operation(CreateRecordOperation, "a-1", {"title": "One"}, handlers=[stop_if_repeating])()

    assert retried.state == OperationState.COMMITTED


def test_repeated_operations_with_url_are_not_skipped(make_operation, mapping_repository):
    stop_if_repeating = StopIfRepeatingPreviousRecordOperation(mapping_repository)
    data = {"title": "One", "url": "http://x/feed.xml"}

    first = make_operation(CreateRecordOperation, "a-1", dict(data), handlers=[stop_if_repeating])()
    repeated = make_operation(UpdateRecordOperation, "a-1", dict(data), handlers=[stop_if_repeating])()

    assert first.state == OperationState.COMMITTED
    assert repeated.state == OperationState.COMMITTED
