import logging
import re
from enum import Enum
from typing import Callable, Dict, Any, List, Optional

from record_store import RecordAdapter, RecordExistsError, RemoteIdMappingRepository
from interest_api.config.templating import ConfigResolver
from .events import BeforeRecordOperationEvent, EventDispatcher
from .exceptions import (
    IdentityConflictError,
    InvalidArgumentError,
    NotFoundError,
    StopRecordOperation,
)

logger = logging.getLogger(__name__)

TABLE_NAME_PATTERN = re.compile(r'^[a-z_][a-z0-9_]*$')


class OperationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class OperationState(str, Enum):
    """Lifecycle of a record operation"""
    PENDING = "pending"       # Built, handlers not run yet
    READY = "ready"           # All handlers passed, about to commit
    ABORTED = "aborted"       # A handler or the commit raised (terminal)
    SKIPPED = "skipped"       # A handler stopped the operation (terminal)
    COMMITTED = "committed"   # Data persisted and mapping updated (terminal)


class RecordOperation:
    """A create, update or delete of one record identified by a remote id.

    Handlers registered with the dispatcher may rewrite ``data`` and ``uid``
    before the commit. Nothing is persisted unless every handler passes.
    """

    kind: OperationKind

    def __init__(
        self,
        table: str,
        remote_id: str,
        data: Optional[Dict[str, Any]],
        record_adapter: RecordAdapter,
        mapping_repository: RemoteIdMappingRepository,
        dispatcher: EventDispatcher,
        config_resolver: Optional[ConfigResolver] = None,
    ):
        if not TABLE_NAME_PATTERN.match(table or ''):
            raise InvalidArgumentError(f'Invalid table name: "{table}"', 1634661302541)
        if not remote_id:
            raise InvalidArgumentError('The remote ID cannot be empty.', 1634661335108)
        if data is not None and not isinstance(data, dict):
            raise InvalidArgumentError('The record data must be a mapping.', 1634661351882)

        self.table = table
        self.remote_id = str(remote_id)
        self.data: Dict[str, Any] = dict(data or {})
        self.uid = 0
        self.state = OperationState.PENDING
        self._commit_callbacks: List[Callable[["RecordOperation"], None]] = []

        self.record_adapter = record_adapter
        self.mapping_repository = mapping_repository
        self.dispatcher = dispatcher
        self.config_resolver = config_resolver or ConfigResolver.for_operation(
            self.table, self.remote_id, self.data
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(table={self.table!r}, remote_id={self.remote_id!r}, "
            f"uid={self.uid}, state={self.state.value})"
        )

    def on_commit(self, callback: Callable[["RecordOperation"], None]) -> None:
        """Run `callback` after the operation has been committed"""
        self._commit_callbacks.append(callback)

    def __call__(self) -> "RecordOperation":
        """Run the handler chain and commit the operation."""
        try:
            self.prepare()
            self.dispatcher.dispatch(BeforeRecordOperationEvent(self))
        except StopRecordOperation as e:
            self.state = OperationState.SKIPPED
            logger.info(f"Operation on {self.table} remote id {self.remote_id} stopped: {e}")
            return self
        except Exception:
            self.state = OperationState.ABORTED
            raise

        self.state = OperationState.READY

        try:
            self.commit()
        except Exception as e:
            self.state = OperationState.ABORTED
            logger.error(f"Commit failed for {self.table} remote id {self.remote_id}: {e}")
            raise

        self.state = OperationState.COMMITTED
        for callback in self._commit_callbacks:
            callback(self)
        logger.info(f"Committed {self.kind.value} of {self.table}:{self.uid} (remote id {self.remote_id})")
        return self

    def prepare(self) -> None:
        """Checks that run before any handler"""

    def commit(self) -> None:
        raise NotImplementedError


class CreateRecordOperation(RecordOperation):
    kind = OperationKind.CREATE

    def prepare(self) -> None:
        if self.mapping_repository.exists(self.table, self.remote_id):
            raise IdentityConflictError(
                f'The remote ID "{self.remote_id}" already exists in table "{self.table}".',
                1634667859102
            )

    def commit(self) -> None:
        try:
            self.uid = self.record_adapter.create_record(self.table, self.data, uid=self.uid or None)
        except RecordExistsError as e:
            raise IdentityConflictError(str(e), 1634667871365) from e
        self.mapping_repository.set(self.table, self.remote_id, self.uid)


class UpdateRecordOperation(RecordOperation):
    kind = OperationKind.UPDATE

    def prepare(self) -> None:
        self.uid = self.mapping_repository.get(self.table, self.remote_id)
        if self.uid == 0:
            raise NotFoundError(
                f'The remote ID "{self.remote_id}" doesn\'t exist in table "{self.table}".',
                1634667883524
            )

    def commit(self) -> None:
        if not self.record_adapter.update_record(self.table, self.uid, self.data):
            raise NotFoundError(
                f'The record {self.table}:{self.uid} with remote ID "{self.remote_id}" does not exist.',
                1634667902344
            )
        self.mapping_repository.set(self.table, self.remote_id, self.uid)


class DeleteRecordOperation(RecordOperation):
    kind = OperationKind.DELETE

    def prepare(self) -> None:
        self.uid = self.mapping_repository.get(self.table, self.remote_id)
        if self.uid == 0:
            raise NotFoundError(
                f'The remote ID "{self.remote_id}" doesn\'t exist in table "{self.table}".',
                1634667917396
            )

    def commit(self) -> None:
        self.record_adapter.delete_record(self.table, self.uid)
        self.mapping_repository.remove(self.table, self.remote_id)


OPERATION_CLASSES = {
    OperationKind.CREATE: CreateRecordOperation,
    OperationKind.UPDATE: UpdateRecordOperation,
    OperationKind.DELETE: DeleteRecordOperation,
}
