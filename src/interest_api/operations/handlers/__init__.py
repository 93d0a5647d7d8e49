"""
Handlers run before a record operation is committed.
"""

from .persist_file_data import PersistFileDataEventHandler, hashed_subfolder_names
from .stop_if_repeating import StopIfRepeatingPreviousRecordOperation

__all__ = [
    'PersistFileDataEventHandler', 'hashed_subfolder_names',
    'StopIfRepeatingPreviousRecordOperation',
]
