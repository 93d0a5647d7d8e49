"""
Record Store

SQLite persistence for records, remote id mappings, handler metadata and the
stored-file index.
"""

from .record_adapter import RecordAdapter, RecordExistsError
from .mapping_repository import RemoteIdMappingRepository
from .file_index import FileIndex
from .local import init_db, get_record_adapter

__all__ = [
    'RecordAdapter', 'RecordExistsError', 'RemoteIdMappingRepository', 'FileIndex',
    'init_db', 'get_record_adapter'
]
