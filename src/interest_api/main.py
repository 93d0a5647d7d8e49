from textwrap import dedent
import logging
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.routing import APIRoute

from interest_api.config import configure_logging
from interest_api.config.settings import Settings, get_settings
from interest_api.dependencies import Services, build_services
from interest_api.errors import (
    handle_broad_exceptions,
    handle_pydantic_validation_errors,
    handle_record_operation_errors,
)
from interest_api.operations import RecordOperationError
from interest_api.routers.health import router as health_router
from interest_api.routers.records import router as records_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Create a FastAPI application."""
    settings = settings or (services.settings if services else get_settings())
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Interest API",
        summary="Create, update and delete records addressed by remote ids",
        version="v1",
        description=dedent(
            """\
        Records are addressed by the caller's own identifier (the *remote id*).

        | Table | Payload |
        | --- | --- |
        | `file` | `name` plus `fileData` (base64) or `url` |
        | any other | the record's fields |
        """
        ),
        docs_url="/",
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.state.settings = settings
    logger.info("initializing services")
    app.state.services = services or build_services(settings)

    app.include_router(records_router, prefix="/v1", tags=["records"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(
        exc_class_or_status_code=RecordOperationError,
        handler=handle_record_operation_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
