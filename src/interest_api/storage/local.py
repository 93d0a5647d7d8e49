"""
Local file system storages addressed by combined identifiers.

A combined identifier is ``<storage uid>:<folder path>``, e.g. ``1:/user_upload/``.
Storage ``1`` lives in ``<storage_dir>/1`` on disk. Every stored file is
registered in the file index, which assigns its uid.
"""

import hashlib
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Dict, Optional, Tuple

from record_store import FileIndex
from .filenames import sanitize_file_name

logger = logging.getLogger(__name__)


class ResourceError(Exception):
    """Base class for storage errors"""


class InvalidIdentifierError(ResourceError):
    pass


class FolderDoesNotExistError(ResourceError):
    pass


class FileDoesNotExistError(ResourceError):
    pass


class ExistingTargetFileNameError(ResourceError):
    pass


def normalize_folder_identifier(identifier: str) -> str:
    """Return ``identifier`` as ``/a/b/`` (``/`` for the root)."""
    parts = [part for part in identifier.replace('\\', '/').split('/') if part]
    if any(part in ('.', '..') for part in parts):
        raise InvalidIdentifierError(f"Folder identifier may not contain . or ..: {identifier}")
    if not parts:
        return '/'
    return '/' + '/'.join(parts) + '/'


def split_combined_identifier(combined_identifier: str) -> Tuple[int, str]:
    """Split ``1:/user_upload/`` into ``(1, "/user_upload/")``"""
    storage_part, separator, folder_part = combined_identifier.partition(':')
    if not separator:
        raise InvalidIdentifierError(f"Not a combined identifier: {combined_identifier}")
    try:
        storage_uid = int(storage_part)
    except ValueError:
        raise InvalidIdentifierError(f"Invalid storage uid in: {combined_identifier}") from None
    return storage_uid, normalize_folder_identifier(folder_part)


class StoredFile:
    """A file persisted in a storage and registered in the file index"""

    def __init__(self, storage: "Storage", uid: int, folder_identifier: str, name: str):
        self.storage = storage
        self.uid = uid
        self.folder_identifier = folder_identifier
        self.name = name

    def __repr__(self) -> str:
        return f"StoredFile(uid={self.uid}, identifier={self.identifier!r})"

    @property
    def identifier(self) -> str:
        return self.folder_identifier + self.name

    @property
    def combined_identifier(self) -> str:
        return f"{self.storage.uid}:{self.identifier}"

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lstrip('.').lower()

    @property
    def path(self) -> Path:
        return self.storage.path_for(self.identifier)

    @property
    def folder(self) -> "Folder":
        return Folder(self.storage, self.folder_identifier)

    def get_contents(self) -> bytes:
        return self.path.read_bytes()

    def set_contents(self, contents: bytes) -> None:
        """Replace the file contents.

        Written to a temporary file in the same folder, then moved into place.
        The permissions of the file being replaced are kept.
        """
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix='.tmp-')
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(contents)
            if self.path.exists():
                os.chmod(tmp_path, stat.S_IMODE(self.path.stat().st_mode))
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        self.storage.file_index.update_contents_info(
            self.uid, len(contents), hashlib.sha1(contents).hexdigest()
        )
        logger.info(f"Wrote {len(contents)} bytes to {self.identifier} (uid {self.uid})")

    def rename(self, new_name: str) -> "StoredFile":
        """Rename the file within its folder"""
        new_name = self.storage.sanitize_file_name(new_name)
        if new_name == self.name:
            return self

        target = self.path.with_name(new_name)
        if target.exists():
            raise ExistingTargetFileNameError(
                f'The target file name "{new_name}" already exists in "{self.folder_identifier}".'
            )

        self.path.rename(target)
        self.storage.file_index.rename(self.uid, new_name)
        logger.info(f"Renamed {self.identifier} to {new_name}")
        self.name = new_name
        return self


class Folder:
    """A folder inside a storage"""

    def __init__(self, storage: "Storage", identifier: str):
        self.storage = storage
        self.identifier = normalize_folder_identifier(identifier)

    def __repr__(self) -> str:
        return f"Folder({self.combined_identifier!r})"

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, Folder)
            and other.storage.uid == self.storage.uid
            and other.identifier == self.identifier
        )

    @property
    def combined_identifier(self) -> str:
        return f"{self.storage.uid}:{self.identifier}"

    @property
    def path(self) -> Path:
        return self.storage.path_for(self.identifier)

    def has_folder(self, name: str) -> bool:
        return (self.path / name).is_dir()

    def get_subfolder(self, name: str) -> "Folder":
        if not self.has_folder(name):
            raise FolderDoesNotExistError(f'Folder "{name}" does not exist in "{self.identifier}".')
        return Folder(self.storage, self.identifier + name)

    def create_folder(self, name: str) -> "Folder":
        """Create a subfolder, or return it if it already exists"""
        return self.storage.create_folder(self.identifier + name)

    def has_file(self, name: str) -> bool:
        return self.storage.has_file_in_folder(name, self)

    def get_file(self, name: str) -> Optional[StoredFile]:
        return self.storage.get_file_in_folder(name, self)

    def create_file(self, name: str) -> StoredFile:
        return self.storage.create_file(name, self)

    def list_files(self):
        """Stored files directly inside this folder, sorted by name"""
        files = []
        for entry in sorted(self.path.iterdir()):
            if entry.is_file() and not entry.name.startswith('.tmp-'):
                stored = self.get_file(entry.name)
                if stored is not None:
                    files.append(stored)
        return files


class Storage:
    """A local directory holding folders and indexed files"""

    def __init__(self, uid: int, root: Path, file_index: FileIndex):
        self.uid = uid
        self.root = Path(root)
        self.file_index = file_index

    def path_for(self, identifier: str) -> Path:
        return self.root / identifier.lstrip('/')

    def sanitize_file_name(self, name: str) -> str:
        return sanitize_file_name(name)

    def get_folder(self, identifier: str) -> Folder:
        folder = Folder(self, identifier)
        if not folder.path.is_dir():
            raise FolderDoesNotExistError(f'Folder "{self.uid}:{folder.identifier}" does not exist.')
        return folder

    def create_folder(self, identifier: str) -> Folder:
        """Create the folder (and parents) if absent"""
        folder = Folder(self, identifier)
        if not folder.path.is_dir():
            folder.path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created folder {folder.combined_identifier}")
        return folder

    def has_file_in_folder(self, name: str, folder: Folder) -> bool:
        return (folder.path / name).is_file()

    def get_file_in_folder(self, name: str, folder: Folder) -> Optional[StoredFile]:
        if not self.has_file_in_folder(name, folder):
            return None
        row = self.file_index.find(self.uid, folder.identifier, name)
        if row is None:
            return None
        return StoredFile(self, row['uid'], folder.identifier, name)

    def create_file(self, name: str, folder: Folder) -> StoredFile:
        """Create an empty file and register it in the index.

        Uses exclusive creation, so a concurrent creator of the same name loses
        with ExistingTargetFileNameError instead of overwriting.
        """
        name = self.sanitize_file_name(name)
        folder.path.mkdir(parents=True, exist_ok=True)
        path = folder.path / name
        try:
            with open(path, 'xb'):
                pass
        except FileExistsError:
            raise ExistingTargetFileNameError(
                f'File "{name}" already exists in "{folder.combined_identifier}".'
            ) from None

        stale = self.file_index.find(self.uid, folder.identifier, name)
        if stale is not None:
            return StoredFile(self, stale['uid'], folder.identifier, name)

        uid = self.file_index.add(self.uid, folder.identifier, name)
        return StoredFile(self, uid, folder.identifier, name)


class ResourceFactory:
    """Resolves storages, folders and files from identifiers and uids"""

    def __init__(self, storage_dir: str, file_index: FileIndex):
        self.storage_dir = Path(storage_dir)
        self.file_index = file_index
        self._storages: Dict[int, Storage] = {}

    def get_storage(self, uid: int) -> Storage:
        if uid not in self._storages:
            self._storages[uid] = Storage(uid, self.storage_dir / str(uid), self.file_index)
        return self._storages[uid]

    def get_storage_from_combined_identifier(self, combined_identifier: str) -> Storage:
        storage_uid, _ = split_combined_identifier(combined_identifier)
        return self.get_storage(storage_uid)

    def get_folder_from_combined_identifier(self, combined_identifier: str) -> Folder:
        storage_uid, folder_identifier = split_combined_identifier(combined_identifier)
        return self.get_storage(storage_uid).get_folder(folder_identifier)

    def get_file(self, uid: int) -> StoredFile:
        """Return the stored file with ``uid``

        Raises:
            FileDoesNotExistError: if the uid isn't indexed or the file is gone from disk
        """
        row = self.file_index.get(uid) if uid else None
        if row is None:
            raise FileDoesNotExistError(f"No file with uid {uid} is indexed.")

        storage = self.get_storage(row['storage_id'])
        stored = StoredFile(storage, row['uid'], row['folder'], row['name'])
        if not stored.path.is_file():
            raise FileDoesNotExistError(f"File {stored.identifier} (uid {uid}) is missing from storage {storage.uid}.")
        return stored
