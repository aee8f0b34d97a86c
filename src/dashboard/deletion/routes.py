from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from loguru import logger

from ..common.auth import UserPayload, require_permission
from .dependencies import deletion_orchestrator
from .errors import ConfigurationError, EntityNotFoundError, EntityValidationError
from .kinds import CUSTOMER, EMPLOYEE, EntityKind
from .orchestrator import EntityDeletionOrchestrator, EntityId
from .schemas import DeleteResponse, ErrorResponse

router = APIRouter(prefix="/api")

_RESPONSES = {
    200: {"model": DeleteResponse, "description": "Entity deleted"},
    400: {"model": ErrorResponse, "description": "Entity ID missing"},
    404: {"model": ErrorResponse, "description": "Entity not found"},
    500: {"model": ErrorResponse, "description": "Stores not configured or delete failed"},
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_delete(
    orchestrator: EntityDeletionOrchestrator, raw_id: str | None
) -> JSONResponse:
    """Run a deletion and map its outcome to a response.

    The store calls run in the thread pool; once started they run to
    completion even if the client disconnects.
    """
    kind: EntityKind = orchestrator.kind
    try:
        orchestrator.ensure_configured()
        entity_id = EntityId.parse(raw_id)
        result = await run_in_threadpool(orchestrator.delete_entity, entity_id)
    except ConfigurationError as e:
        logger.error(f"Cannot delete {kind.name} {raw_id}: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    except EntityValidationError:
        return _error(status.HTTP_400_BAD_REQUEST, f"{kind.label} ID missing")
    except EntityNotFoundError:
        return _error(status.HTTP_404_NOT_FOUND, f"{kind.label} not found")
    except Exception as e:
        logger.error(f"Failed to delete {kind.name} {raw_id}: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Server error")

    body = DeleteResponse(message=result.message)
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump())


@router.delete(
    "/customers/{customer_id}",
    tags=["customer"],
    summary="Delete Customer",
    description="Deletes a customer record together with its image, image folder and login.",
    operation_id="delete_customer",
    responses=_RESPONSES,
)
async def delete_customer(
    customer_id: str,
    user: UserPayload | None = Depends(require_permission("dashboard_write")),
    orchestrator: EntityDeletionOrchestrator = Depends(deletion_orchestrator(CUSTOMER)),
) -> JSONResponse:
    _ = user
    return await handle_delete(orchestrator, customer_id)


@router.delete(
    "/customers/",
    tags=["customer"],
    include_in_schema=False,
)
async def delete_customer_without_id(
    user: UserPayload | None = Depends(require_permission("dashboard_write")),
    orchestrator: EntityDeletionOrchestrator = Depends(deletion_orchestrator(CUSTOMER)),
) -> JSONResponse:
    _ = user
    return await handle_delete(orchestrator, None)


@router.delete(
    "/employees/{employee_id}",
    tags=["employee"],
    summary="Delete Employee",
    description="Deletes an employee record together with its image, image folder and login.",
    operation_id="delete_employee",
    responses=_RESPONSES,
)
async def delete_employee(
    employee_id: str,
    user: UserPayload | None = Depends(require_permission("dashboard_write")),
    orchestrator: EntityDeletionOrchestrator = Depends(deletion_orchestrator(EMPLOYEE)),
) -> JSONResponse:
    _ = user
    return await handle_delete(orchestrator, employee_id)


@router.delete(
    "/employees/",
    tags=["employee"],
    include_in_schema=False,
)
async def delete_employee_without_id(
    user: UserPayload | None = Depends(require_permission("dashboard_write")),
    orchestrator: EntityDeletionOrchestrator = Depends(deletion_orchestrator(EMPLOYEE)),
) -> JSONResponse:
    _ = user
    return await handle_delete(orchestrator, None)
