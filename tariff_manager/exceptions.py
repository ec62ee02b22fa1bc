"""
Exceptions metier et gestionnaires d'erreurs / Domain exceptions and error handlers.

Every engine failure is scoped to the requested operation: validation and
idempotency errors are raised before any write, storage failures propagate
to the caller. Partial batch application is not an exception (see
MonthlyAdjustmentOrchestrator).
"""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError


class TariffError(Exception):
    """Exception de base / Base application exception."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(TariffError):
    """Entree invalide, rejetee avant toute ecriture / Bad input, rejected before any write."""

    def __init__(self, message: str, details: dict[str, Any] | None = None, error_code: str = "ERR_VALIDATION"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )


class InvalidPercentage(ValidationError):
    """Pourcentage d'ajustement non fini / Adjustment percentage is not a finite number."""

    def __init__(self, value: Any):
        super().__init__(
            message=f"Adjustment percentage must be a finite number, got {value!r}",
            details={"percentage": str(value)},
            error_code="ERR_INVALID_PERCENTAGE",
        )


class NotFoundError(TariffError):
    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id},
        )


class AssignmentConflict(TariffError):
    """Paire client/route deja active / Client-route pairing already active."""

    def __init__(self, client_id: int, route_id: int, assignment_id: int):
        super().__init__(
            message=f"Route {route_id} is already assigned to client {client_id}",
            error_code="ERR_ASSIGNMENT_CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            details={"client_id": client_id, "route_id": route_id, "client_route_id": assignment_id},
        )


class AlreadyAppliedThisPeriod(TariffError):
    """Ajustement mensuel deja applique / Monthly adjustment already applied for the period."""

    def __init__(self, adjustment_month: str):
        super().__init__(
            message=f"A monthly adjustment has already been applied for {adjustment_month}",
            error_code="ERR_ALREADY_APPLIED",
            status_code=status.HTTP_409_CONFLICT,
            details={"adjustment_month": adjustment_month},
        )


class StorageUnavailable(TariffError):
    """Collaborateur de stockage indisponible / Storage collaborator failure."""

    def __init__(self, message: str = "Storage is unavailable", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="ERR_STORAGE_UNAVAILABLE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
        )


# Gestionnaires globaux / Global exception handlers

async def tariff_exception_handler(request: Request, exc: TariffError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    """Base injoignable / Database unreachable -> StorageUnavailable."""
    return await tariff_exception_handler(request, StorageUnavailable(details={"reason": str(exc.orig)}))
