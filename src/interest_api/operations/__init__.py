"""
Record operations and the handler pipeline run before they are committed.
"""

from .exceptions import (
    RecordOperationError,
    InvalidNameError,
    InvalidArgumentError,
    IdentityConflictError,
    MissingArgumentError,
    NotFoundError,
    DataError,
    StopRecordOperation,
)
from .events import (
    BeforeRecordOperationEvent,
    BeforeRecordOperationEventHandler,
    EventDispatcher,
)
from .record_operation import (
    OperationKind,
    OperationState,
    RecordOperation,
    CreateRecordOperation,
    UpdateRecordOperation,
    DeleteRecordOperation,
    OPERATION_CLASSES,
)

__all__ = [
    'RecordOperationError', 'InvalidNameError', 'InvalidArgumentError',
    'IdentityConflictError', 'MissingArgumentError', 'NotFoundError',
    'DataError', 'StopRecordOperation',
    'BeforeRecordOperationEvent', 'BeforeRecordOperationEventHandler', 'EventDispatcher',
    'OperationKind', 'OperationState', 'RecordOperation', 'CreateRecordOperation',
    'UpdateRecordOperation', 'DeleteRecordOperation', 'OPERATION_CLASSES',
]
