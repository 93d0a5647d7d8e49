"""Construction of the collaborators shared by the CLI and the HTTP app."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from fastapi import Request

from record_store import (
    FileIndex,
    RecordAdapter,
    RemoteIdMappingRepository,
    get_record_adapter,
    init_db,
)
from interest_api.config.settings import Settings, get_settings
from interest_api.media import OnlineMediaHelperRegistry
from interest_api.operations import (
    EventDispatcher,
    OperationKind,
    OPERATION_CLASSES,
    RecordOperation,
)
from interest_api.operations.handlers import (
    PersistFileDataEventHandler,
    StopIfRepeatingPreviousRecordOperation,
)
from interest_api.storage import ResourceFactory

logger = logging.getLogger(__name__)


def build_default_dispatcher(
    settings: Settings,
    mapping_repository: RemoteIdMappingRepository,
    resource_factory: ResourceFactory,
    http_session: requests.Session,
    media_registry: Optional[OnlineMediaHelperRegistry] = None,
) -> EventDispatcher:
    """Register the standard handlers in the order they must run"""
    dispatcher = EventDispatcher()

    if settings.skip_repeated_operations:
        dispatcher.register(StopIfRepeatingPreviousRecordOperation(mapping_repository))

    dispatcher.register(PersistFileDataEventHandler(
        mapping_repository=mapping_repository,
        resource_factory=resource_factory,
        file_table=settings.file_table,
        upload_folder_path=settings.file_upload_folder_path,
        hashed_subfolders=settings.hashed_subfolders,
        http_session=http_session,
        http_timeout=settings.http_timeout,
        media_registry=media_registry,
    ))

    return dispatcher


@dataclass
class Services:
    """Everything needed to build and run record operations"""
    settings: Settings
    record_adapter: RecordAdapter
    mapping_repository: RemoteIdMappingRepository
    resource_factory: ResourceFactory
    dispatcher: EventDispatcher
    http_session: requests.Session

    def create_operation(
        self,
        kind: OperationKind,
        table: str,
        remote_id: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> RecordOperation:
        operation_class = OPERATION_CLASSES[OperationKind(kind)]
        return operation_class(
            table,
            remote_id,
            data,
            record_adapter=self.record_adapter,
            mapping_repository=self.mapping_repository,
            dispatcher=self.dispatcher,
        )

    def get_record_by_remote_id(self, table: str, remote_id: str) -> Optional[Dict[str, Any]]:
        """Look up the current row of ``remote_id`` via the mapping"""
        uid = self.mapping_repository.get(table, remote_id)
        if uid == 0:
            return None
        return self.record_adapter.get_record(table, uid)


def build_services(
    settings: Optional[Settings] = None,
    http_session: Optional[requests.Session] = None,
    media_registry: Optional[OnlineMediaHelperRegistry] = None,
) -> Services:
    """Initialize the database and wire up the default services."""
    settings = settings or get_settings()
    http_session = http_session or requests.Session()

    init_db(settings.db_path)

    mapping_repository = RemoteIdMappingRepository(settings.db_path)
    resource_factory = ResourceFactory(settings.storage_dir, FileIndex(settings.db_path))

    dispatcher = build_default_dispatcher(
        settings,
        mapping_repository,
        resource_factory,
        http_session,
        media_registry,
    )

    logger.info(f"Services initialized (db: {settings.db_path}, storage: {settings.storage_dir})")

    return Services(
        settings=settings,
        record_adapter=get_record_adapter(settings.db_path),
        mapping_repository=mapping_repository,
        resource_factory=resource_factory,
        dispatcher=dispatcher,
        http_session=http_session,
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the app's services."""
    return request.app.state.services
