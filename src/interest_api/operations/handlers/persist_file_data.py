import hashlib
import logging
from typing import Dict, List, Optional, Sequence

import requests

from interest_api.media import OnlineMediaHelperRegistry
from interest_api.operations.events import (
    BeforeRecordOperationEvent,
    BeforeRecordOperationEventHandler,
)
from interest_api.operations.exceptions import (
    DataError,
    IdentityConflictError,
    InvalidArgumentError,
    InvalidNameError,
    MissingArgumentError,
    NotFoundError,
)
from interest_api.operations.record_operation import (
    CreateRecordOperation,
    DeleteRecordOperation,
    RecordOperation,
)
from interest_api.storage import (
    ExistingTargetFileNameError,
    FileDoesNotExistError,
    Folder,
    FolderDoesNotExistError,
    InvalidIdentifierError,
    ResourceFactory,
    StoredFile,
    is_valid_file_name,
)
from interest_api.utils.decorators import log_execution_time
from record_store import RemoteIdMappingRepository
from .content_sources import (
    AcquiredContent,
    ContentRequest,
    ContentSource,
    InlineBase64Source,
    OnlineMediaSource,
    UrlDownloadSource,
)

logger = logging.getLogger(__name__)

# Payload keys consumed here and never persisted as record fields
TRANSIENT_KEYS = ('fileData', 'url', 'name')


def hashed_subfolder_names(file_name: str, depth: int) -> List[str]:
    """Single hex character folder names for ``depth`` levels below the upload folder.

    Level i uses character i of the MD5 hex digest of the file name, so the
    same name always lands in the same folder.
    """
    if depth <= 0:
        return []
    file_name_hash = hashlib.md5(file_name.encode('utf-8')).hexdigest()
    return list(file_name_hash[:depth])


class PersistFileDataEventHandler(BeforeRecordOperationEventHandler):
    """Intercepts file records to store the file data in a storage.

    The payload's ``name``, ``fileData`` and ``url`` are turned into a stored
    file; the operation continues with the stored file's uid and the
    remaining fields only.
    """

    def __init__(
        self,
        mapping_repository: RemoteIdMappingRepository,
        resource_factory: ResourceFactory,
        file_table: str = "file",
        upload_folder_path: str = "1:/user_upload/",
        hashed_subfolders: str = "0",
        http_session: Optional[requests.Session] = None,
        http_timeout: float = 30.0,
        media_registry: Optional[OnlineMediaHelperRegistry] = None,
        content_sources: Optional[Sequence[ContentSource]] = None,
    ):
        self.mapping_repository = mapping_repository
        self.resource_factory = resource_factory
        self.file_table = file_table
        self.upload_folder_path = upload_folder_path
        self.hashed_subfolders = hashed_subfolders

        http_session = http_session or requests.Session()
        media_registry = media_registry or OnlineMediaHelperRegistry.default(http_session, http_timeout)

        self.content_sources: List[ContentSource] = list(content_sources or [
            InlineBase64Source(),
            OnlineMediaSource(media_registry, mapping_repository, file_table),
            UrlDownloadSource(mapping_repository, self.metadata_key(), http_session, http_timeout),
        ])

    @classmethod
    def metadata_key(cls) -> str:
        """Key under which download cache headers are kept per remote id"""
        return f"{cls.__module__}.{cls.__qualname__}"

    @log_execution_time
    def __call__(self, event: BeforeRecordOperationEvent) -> None:
        operation = event.record_operation

        if isinstance(operation, DeleteRecordOperation):
            return
        if operation.table != self.file_table:
            return

        is_create = isinstance(operation, CreateRecordOperation)
        data = operation.data
        file_base_name = data.get('name')

        if not is_valid_file_name(file_base_name):
            raise InvalidNameError(f'Invalid file name: "{file_base_name}"', 1634664683340)

        storage_path = operation.config_resolver.resolve(self.upload_folder_path)
        download_folder = self.resolve_download_folder(storage_path)

        depth = self.resolve_hashed_subfolder_depth(operation)
        download_folder = self.resolve_subfolder_path(download_folder, file_base_name, depth)

        if is_create and download_folder.storage.has_file_in_folder(file_base_name, download_folder):
            raise IdentityConflictError(
                f'File "{file_base_name}" already exists in "{storage_path}".',
                1634666560886
            )

        acquired = self.acquire_content(ContentRequest(
            table=operation.table,
            data=data,
            remote_id=operation.remote_id,
            file_base_name=file_base_name,
            folder=download_folder,
            is_create=is_create,
        ))

        if acquired is None and is_create:
            raise MissingArgumentError(
                'Cannot download file. Missing property "url" in the data.',
                1634667221986
            )

        stored_file = acquired.file if acquired is not None else None
        if stored_file is None:
            stored_file = self.create_file_object(download_folder, file_base_name, is_create, operation)

        if acquired is not None and acquired.content:
            try:
                stored_file.set_contents(acquired.content)
            except OSError as e:
                raise DataError(f'Could not write file "{stored_file.identifier}": {e}', 1634669112871) from e

        if acquired is not None and acquired.cache_headers is not None:
            self.remember_cache_headers(operation, acquired.cache_headers)

        for key in TRANSIENT_KEYS:
            data.pop(key, None)

        operation.uid = stored_file.uid
        operation.data = data

    def resolve_download_folder(self, storage_path: str) -> Folder:
        """Return the upload folder, creating it if it doesn't exist yet"""
        try:
            storage = self.resource_factory.get_storage_from_combined_identifier(storage_path)
            try:
                return self.resource_factory.get_folder_from_combined_identifier(storage_path)
            except FolderDoesNotExistError:
                _, folder_path = storage_path.split(':', 1)
                return storage.create_folder(folder_path)
        except InvalidIdentifierError as e:
            raise InvalidArgumentError(f'Invalid upload folder "{storage_path}": {e}', 1634664925411) from e

    def resolve_hashed_subfolder_depth(self, operation: RecordOperation) -> int:
        value = operation.config_resolver.resolve(self.hashed_subfolders, {'default': '0'})
        try:
            return max(0, int(value.strip()))
        except ValueError:
            logger.warning(f"Ignoring non-numeric hashed subfolder depth {value!r}")
            return 0

    def resolve_subfolder_path(self, folder: Folder, file_name: str, depth: int) -> Folder:
        """Descend (creating as needed) into the hashed subfolders for ``file_name``"""
        for subfolder_name in hashed_subfolder_names(file_name, depth):
            if folder.has_folder(subfolder_name):
                folder = folder.get_subfolder(subfolder_name)
                continue
            folder = folder.create_folder(subfolder_name)
        return folder

    def remember_cache_headers(self, operation: RecordOperation, cache_headers: Dict[str, Optional[str]]) -> None:
        """Store the download validators once ``operation`` has committed"""
        operation.on_commit(lambda committed: self.mapping_repository.set_metadata_value(
            committed.table,
            committed.remote_id,
            self.metadata_key(),
            cache_headers
        ))

    def acquire_content(self, request: ContentRequest) -> Optional[AcquiredContent]:
        for source in self.content_sources:
            acquired = source.try_acquire(request)
            if acquired is not None:
                logger.debug(f"Content for remote id {request.remote_id} acquired by {type(source).__name__}")
                return acquired
        return None

    def create_file_object(
        self,
        download_folder: Folder,
        file_base_name: str,
        is_create: bool,
        operation: RecordOperation,
    ) -> StoredFile:
        """Create the stored file, or look up the one mapped to the operation's remote id"""
        if is_create:
            try:
                return download_folder.create_file(file_base_name)
            except ExistingTargetFileNameError as e:
                raise IdentityConflictError(str(e), 1634666560888) from e

        uid = self.mapping_repository.get(operation.table, operation.remote_id)

        try:
            stored_file = self.resource_factory.get_file(uid)
        except FileDoesNotExistError:
            if uid == 0:
                raise NotFoundError(
                    f'The file with remote ID "{operation.remote_id}" does not exist.',
                    1634668710602
                ) from None

            raise NotFoundError(
                f'The file with remote ID "{operation.remote_id}" and UID "{uid}" does not exist.',
                1634668857809
            ) from None

        self.rename_file(stored_file, file_base_name)

        return stored_file

    def rename_file(self, stored_file: StoredFile, file_name: str) -> None:
        """Rename a file if the file name has changed"""
        if stored_file.storage.sanitize_file_name(file_name) != stored_file.name:
            try:
                stored_file.rename(file_name)
            except ExistingTargetFileNameError as e:
                raise IdentityConflictError(str(e), 1634668891254) from e
