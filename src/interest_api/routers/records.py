import logging
from typing import Any, Dict

from fastapi import (
    APIRouter,
    Body,
    Depends,
    HTTPException,
    Path,
    Query,
    Response,
    status
)

from interest_api.dependencies import Services, get_services
from interest_api.operations import (
    IdentityConflictError,
    OperationKind,
    OperationState,
    RecordOperation,
)
from interest_api.schemas import (
    GetRecordResponse,
    RecordOperationResponse,
    StoredFileInfo,
)
from interest_api.storage import FileDoesNotExistError

logger = logging.getLogger(__name__)

router = APIRouter()


def _operation_response(operation: RecordOperation) -> RecordOperationResponse:
    return RecordOperationResponse(
        table=operation.table,
        remote_id=operation.remote_id,
        uid=operation.uid,
        state=operation.state,
    )


@router.post(
    "/records/{table}/{remote_id}",
    response_model=RecordOperationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_record(
    response: Response,
    table: str = Path(..., description="The table to create the record in"),
    remote_id: str = Path(..., description="The caller's identifier for the record"),
    update: bool = Query(False, description="Quietly update the record if it already exists"),
    data: Dict[str, Any] = Body(default={}),
    services: Services = Depends(get_services),
) -> RecordOperationResponse:
    """
    Create a record identified by a remote id.

    For the file table the payload carries `name` plus either `fileData`
    (base64) or `url`.
    """
    try:
        operation = services.create_operation(OperationKind.CREATE, table, remote_id, data)()
    except IdentityConflictError:
        if not update or not services.mapping_repository.exists(table, remote_id):
            raise
        logger.info(f"Remote id {remote_id} exists, updating instead")
        operation = services.create_operation(OperationKind.UPDATE, table, remote_id, data)()
        response.status_code = status.HTTP_200_OK

    if operation.state == OperationState.SKIPPED:
        response.status_code = status.HTTP_200_OK

    return _operation_response(operation)


@router.put("/records/{table}/{remote_id}", response_model=RecordOperationResponse)
def update_record(
    table: str = Path(..., description="The table of the record"),
    remote_id: str = Path(..., description="The caller's identifier for the record"),
    data: Dict[str, Any] = Body(default={}),
    services: Services = Depends(get_services),
) -> RecordOperationResponse:
    """Update a record identified by a remote id."""
    operation = services.create_operation(OperationKind.UPDATE, table, remote_id, data)()
    return _operation_response(operation)


@router.delete("/records/{table}/{remote_id}", response_model=RecordOperationResponse)
def delete_record(
    table: str = Path(..., description="The table of the record"),
    remote_id: str = Path(..., description="The caller's identifier for the record"),
    services: Services = Depends(get_services),
) -> RecordOperationResponse:
    """Delete a record identified by a remote id."""
    operation = services.create_operation(OperationKind.DELETE, table, remote_id)()
    return _operation_response(operation)


@router.get("/records/{table}/{remote_id}", response_model=GetRecordResponse)
def get_record(
    table: str = Path(..., description="The table of the record"),
    remote_id: str = Path(..., description="The caller's identifier for the record"),
    services: Services = Depends(get_services),
) -> GetRecordResponse:
    """Return the current fields of a record identified by a remote id."""
    record = services.get_record_by_remote_id(table, remote_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f'The remote ID "{remote_id}" doesn\'t exist in table "{table}".'
        )

    file_info = None
    if table == services.settings.file_table:
        try:
            stored_file = services.resource_factory.get_file(record["uid"])
            file_info = StoredFileInfo(
                identifier=stored_file.combined_identifier,
                name=stored_file.name,
                size_bytes=stored_file.path.stat().st_size,
            )
        except FileDoesNotExistError:
            logger.warning(f"Record {table}:{record['uid']} has no stored file")

    return GetRecordResponse(
        table=table,
        remote_id=remote_id,
        uid=record["uid"],
        record=record,
        file=file_info,
    )
