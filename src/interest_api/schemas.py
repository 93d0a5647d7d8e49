####################################
# --- Request/response schemas --- #
####################################

from typing import Any, Dict, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)

from interest_api.operations import OperationState


class RecordOperationResponse(BaseModel):
    """Response model for create, update and delete of `/v1/records/:table/:remote_id`."""
    table: str = Field(description="The table of the record.")
    remote_id: str = Field(description="The caller's identifier of the record.")
    uid: int = Field(description="The internal id of the record.")
    state: OperationState = Field(description="How the operation ended.")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "table": "file",
                "remote_id": "logo-2024",
                "uid": 12,
                "state": "committed",
            }
        }
    )


class StoredFileInfo(BaseModel):
    """Location of a stored file."""
    identifier: str = Field(
        description="Combined identifier of the file.",
        json_schema_extra={"example": "1:/user_upload/a/logo.png"},
    )
    name: str
    size_bytes: int


class GetRecordResponse(BaseModel):
    """Response model for `GET /v1/records/:table/:remote_id`."""
    table: str
    remote_id: str
    uid: int
    record: Dict[str, Any] = Field(description="The record's persisted fields.")
    file: Optional[StoredFileInfo] = Field(None, description="Set for records of the file table.")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "table": "file",
                "remote_id": "logo-2024",
                "uid": 12,
                "record": {"uid": 12, "title": "Company logo"},
                "file": {
                    "identifier": "1:/user_upload/logo.png",
                    "name": "logo.png",
                    "size_bytes": 7,
                },
            }
        }
    )
