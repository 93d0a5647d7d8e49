import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, TYPE_CHECKING

from interest_api.utils.decorators import log_execution_time

if TYPE_CHECKING:
    from interest_api.operations.record_operation import RecordOperation

logger = logging.getLogger(__name__)


class BeforeRecordOperationEvent:
    """Emitted before a record operation is committed.

    Handlers read and mutate the wrapped operation in place.
    """

    def __init__(self, record_operation: "RecordOperation"):
        self.record_operation = record_operation


class BeforeRecordOperationEventHandler(ABC):
    """Base class for handlers run before a record operation is committed"""

    @abstractmethod
    def __call__(self, event: BeforeRecordOperationEvent) -> None:
        """Handle the event

        Args:
            event: The event wrapping the pending operation

        Raises:
            RecordOperationError: to abort the operation
            StopRecordOperation: to end the operation without committing
        """
        pass


class EventDispatcher:
    """Runs registered handlers in registration order; the first exception stops the chain"""

    def __init__(self, handlers: Optional[Iterable[BeforeRecordOperationEventHandler]] = None):
        self.handlers: List[BeforeRecordOperationEventHandler] = list(handlers or [])

    def register(self, handler: BeforeRecordOperationEventHandler) -> None:
        self.handlers.append(handler)

    @log_execution_time
    def dispatch(self, event: BeforeRecordOperationEvent) -> BeforeRecordOperationEvent:
        operation = event.record_operation
        for handler in self.handlers:
            logger.debug(
                f"Running {type(handler).__name__} for {operation.table} "
                f"remote id {operation.remote_id}"
            )
            handler(event)
        return event
