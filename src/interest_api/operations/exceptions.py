"""Exceptions raised while processing a record operation.

Every ``RecordOperationError`` aborts the operation before anything is
committed. ``code`` identifies the place the error was raised.
"""


class RecordOperationError(Exception):
    """Base class for errors that abort a record operation"""

    def __init__(self, message: str, code: int = 0):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return self.message


class InvalidNameError(RecordOperationError):
    """A file name failed validation"""


class InvalidArgumentError(RecordOperationError):
    """The operation's table or payload is malformed"""


class IdentityConflictError(RecordOperationError):
    """The target of a create operation already exists"""


class MissingArgumentError(RecordOperationError):
    """A required property is missing from the payload"""


class NotFoundError(RecordOperationError):
    """A referenced remote id, uid or URL resource does not resolve"""


class DataError(RecordOperationError):
    """Generic I/O or decoding failure"""


class StopRecordOperation(Exception):
    """Ends an operation early without committing and without failing"""
