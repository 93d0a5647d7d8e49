from fastapi import APIRouter, Depends

from interest_api.dependencies import Services, get_services

router = APIRouter()


@router.get("/health")
def health_check(services: Services = Depends(get_services)):
    """
    Health check endpoint for monitoring API status and component readiness.

    Returns status of the database and the storage directory.
    """
    health_status = {
        "status": "ok",
        "components": {
            "database": "ready",
            "storage": "ready",
        },
        "ready": False
    }

    try:
        services.record_adapter.count_records(services.settings.file_table)
    except Exception as e:
        health_status["components"]["database"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    try:
        services.resource_factory.storage_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        health_status["components"]["storage"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    health_status["ready"] = all(
        state == "ready" for state in health_status["components"].values()
    )

    return health_status
