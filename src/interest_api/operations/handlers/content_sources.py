"""
Content sources for file records.

Each source inspects the operation payload and either acquires the file
content or declines by returning None. Sources are tried in order and the
first one that acquires something ends the search.
"""

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Dict, Optional

import requests

from interest_api.media import OnlineMediaHelperRegistry
from interest_api.operations.exceptions import (
    DataError,
    IdentityConflictError,
    NotFoundError,
)
from interest_api.storage import ExistingTargetFileNameError, Folder, StoredFile
from record_store import RemoteIdMappingRepository

logger = logging.getLogger(__name__)


@dataclass
class ContentRequest:
    """What a source needs to know about the pending file operation"""
    table: str
    data: Dict[str, Any]
    remote_id: str
    file_base_name: str
    folder: Folder
    is_create: bool


@dataclass
class AcquiredContent:
    """Result of a source that did not decline.

    ``content`` is None when the stored bytes must stay as they are, e.g. after
    a 304 Not Modified. ``file`` is set when the source materialized the stored
    file itself. ``cache_headers`` are the validators to remember for the next
    download, once the operation commits.
    """
    content: Optional[bytes] = None
    file: Optional[StoredFile] = None
    not_modified: bool = False
    cache_headers: Optional[Dict[str, Optional[str]]] = None


class ContentSource(ABC):

    @abstractmethod
    def try_acquire(self, request: ContentRequest) -> Optional[AcquiredContent]:
        pass


def decode_base64(file_data: str) -> bytes:
    """Decode base64 file data, ignoring line breaks and surrounding whitespace"""
    if isinstance(file_data, bytes):
        file_data = file_data.decode('ascii', errors='strict')
    cleaned = ''.join(str(file_data).split())
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DataError(f'Could not decode base64 file data: {e}', 1634664713911) from e


class InlineBase64Source(ContentSource):
    """Content sent inline as the base64 encoded ``fileData`` property"""

    def try_acquire(self, request: ContentRequest) -> Optional[AcquiredContent]:
        file_data = request.data.get('fileData')
        if not file_data:
            return None
        return AcquiredContent(content=decode_base64(file_data))


class OnlineMediaSource(ContentSource):
    """Create only: let an online media helper turn ``url`` into a media file.

    A media file that already exists for the same media is reused only while
    no remote id of the file table owns it.
    """

    def __init__(
        self,
        registry: OnlineMediaHelperRegistry,
        mapping_repository: Optional[RemoteIdMappingRepository] = None,
        file_table: str = "file",
    ):
        self.registry = registry
        self.mapping_repository = mapping_repository
        self.file_table = file_table

    def is_unowned(self, stored: StoredFile) -> bool:
        if self.mapping_repository is None:
            return True
        return self.mapping_repository.remote_id_for(self.file_table, stored.uid) is None

    def try_acquire(self, request: ContentRequest) -> Optional[AcquiredContent]:
        url = request.data.get('url')
        if not request.is_create or not url:
            return None

        stored = self.registry.transform_url_to_file(
            url,
            request.folder,
            self.registry.supported_file_extensions(),
            reusable=self.is_unowned,
        )
        if stored is None:
            return None

        target_name = f"{PurePosixPath(request.file_base_name).stem}.{stored.extension}"
        try:
            stored.rename(target_name)
        except ExistingTargetFileNameError as e:
            raise IdentityConflictError(str(e), 1634666560887) from e

        return AcquiredContent(file=stored)


class UrlDownloadSource(ContentSource):
    """Download ``url`` with a conditional GET.

    The Date and ETag of the last committed download are kept as metadata of
    the remote id and sent back as If-Modified-Since and If-None-Match. A
    create always downloads unconditionally. The validators of a fresh
    download are returned as ``cache_headers``; storing them is left to the
    caller so that an aborted operation leaves no trace.
    """

    def __init__(
        self,
        mapping_repository: RemoteIdMappingRepository,
        metadata_key: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ):
        self.mapping_repository = mapping_repository
        self.metadata_key = metadata_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def conditional_headers(self, table: str, remote_id: str) -> Dict[str, str]:
        metadata = self.mapping_repository.get_metadata_value(table, remote_id, self.metadata_key) or {}

        headers = {}
        if metadata.get('date'):
            headers['If-Modified-Since'] = metadata['date']
        if metadata.get('etag'):
            headers['If-None-Match'] = metadata['etag']
        return headers

    def try_acquire(self, request: ContentRequest) -> Optional[AcquiredContent]:
        url = request.data.get('url')
        if not url:
            return None

        headers = {} if request.is_create else self.conditional_headers(request.table, request.remote_id)
        logger.info(f"Downloading {url} for remote id {request.remote_id} (conditional: {bool(headers)})")

        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise DataError(f'Request failed. URL: "{url}" Message: "{e}"', 1634667759712) from e

        if response.status_code == 304:
            logger.info(f"{url} not modified since last download")
            return AcquiredContent(not_modified=True)

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise NotFoundError(f'Request failed. URL: "{url}" Message: "{e}"', 1634667759711) from e

        return AcquiredContent(
            content=response.content,
            cache_headers={
                'date': response.headers.get('Date'),
                'etag': response.headers.get('ETag'),
            },
        )
