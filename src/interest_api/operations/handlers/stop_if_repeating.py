import hashlib
import json
import logging

from interest_api.operations.events import (
    BeforeRecordOperationEvent,
    BeforeRecordOperationEventHandler,
)
from interest_api.operations.exceptions import StopRecordOperation
from interest_api.operations.record_operation import DeleteRecordOperation
from record_store import RemoteIdMappingRepository

logger = logging.getLogger(__name__)


class StopIfRepeatingPreviousRecordOperation(BeforeRecordOperationEventHandler):
    """Stops an operation identical to the previous one for the same remote id.

    Creates and updates with the same payload count as identical, so a
    repeated upsert is skipped too. Must run before any handler that rewrites
    the payload. The hash of an operation is only remembered once it commits,
    so failed operations can be retried. Deletions are never stopped, and
    neither are operations carrying a ``url``: the remote content behind an
    unchanged url may have changed and must be revalidated.
    """

    def __init__(self, mapping_repository: RemoteIdMappingRepository):
        self.mapping_repository = mapping_repository

    @classmethod
    def metadata_key(cls) -> str:
        return f"{cls.__module__}.{cls.__qualname__}"

    @staticmethod
    def operation_hash(event: BeforeRecordOperationEvent) -> str:
        operation = event.record_operation
        payload = json.dumps(
            [operation.table, operation.remote_id, operation.data],
            sort_keys=True,
            default=str,
        )
        return hashlib.sha1(payload.encode('utf-8')).hexdigest()

    def __call__(self, event: BeforeRecordOperationEvent) -> None:
        operation = event.record_operation
        if isinstance(operation, DeleteRecordOperation):
            return

        current_hash = self.operation_hash(event)

        previous = self.mapping_repository.get_metadata_value(
            operation.table, operation.remote_id, self.metadata_key()
        ) or {}
        if previous.get('hash') == current_hash and not operation.data.get('url'):
            logger.info(f"Skipping repeated operation on {operation.table} remote id {operation.remote_id}")
            raise StopRecordOperation(
                f'Identical to the previous operation on remote id "{operation.remote_id}".'
            )

        operation.on_commit(lambda committed: self.mapping_repository.set_metadata_value(
            committed.table,
            committed.remote_id,
            self.metadata_key(),
            {'hash': current_hash}
        ))
