"""
Storage layer for the Interest API.

Local file system storages, folders and stored files, addressed by combined
identifiers such as ``1:/user_upload/``.
"""

from .filenames import is_valid_file_name, sanitize_file_name
from .local import (
    ResourceFactory,
    Storage,
    Folder,
    StoredFile,
    ResourceError,
    InvalidIdentifierError,
    FolderDoesNotExistError,
    FileDoesNotExistError,
    ExistingTargetFileNameError,
)

__all__ = [
    'is_valid_file_name', 'sanitize_file_name',
    'ResourceFactory', 'Storage', 'Folder', 'StoredFile',
    'ResourceError', 'InvalidIdentifierError', 'FolderDoesNotExistError',
    'FileDoesNotExistError', 'ExistingTargetFileNameError',
]
