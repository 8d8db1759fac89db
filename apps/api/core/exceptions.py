"""
Custom exception classes and error handling.

Provides consistent error responses across the API. Every domain error is an
HTTPException subclass carrying a stable ``error_code`` and a user-facing
(localized) detail message, so services can raise them directly and FastAPI
renders them without per-route translation.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception with consistent structure."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

    def __str__(self) -> str:
        return f"{self.error_code}: {self.detail}"


class ValidationError(APIException):
    """Malformed or missing input, rejected before any write."""

    def __init__(self, detail: str, field: Optional[str] = None):
        error_code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=error_code
        )
        self.field = field


class UnauthorizedError(APIException):
    """Authentication required."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class PermissionDenied(APIException):
    """Role or membership precondition failed."""

    def __init__(self, detail: str = "No tienes permiso para realizar esta acción"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="PERMISSION_DENIED"
        )


class NotFound(APIException):
    """Referenced row is absent or already resolved."""

    def __init__(self, resource: str, identifier: Any = None, detail: Optional[str] = None):
        if detail is None:
            detail = f"{resource} no encontrado" if identifier is None else f"{resource} no encontrado: {identifier}"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )
        self.resource = resource


class ConflictError(APIException):
    """Resource conflict (e.g., duplicate entry)."""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )


class AlreadyExists(ConflictError):
    def __init__(self, detail: str = "El registro ya existe"):
        super().__init__(detail, error_code="ALREADY_EXISTS")


class AlreadyMember(ConflictError):
    def __init__(self, detail: str = "Ya eres miembro de este equipo"):
        super().__init__(detail, error_code="ALREADY_MEMBER")


class DuplicatePending(ConflictError):
    def __init__(self, detail: str = "Ya existe una solicitud pendiente"):
        super().__init__(detail, error_code="DUPLICATE_PENDING")


class CapacityExceeded(ConflictError):
    def __init__(self, detail: str = "El equipo está lleno", error_code: str = "CAPACITY_EXCEEDED"):
        super().__init__(detail, error_code=error_code)


class TeamFull(CapacityExceeded):
    """Capacity ran out between a pending request and its resolution."""

    def __init__(self, detail: str = "El equipo está lleno"):
        super().__init__(detail, error_code="TEAM_FULL")


class TransientBackendError(APIException):
    """Network/database failure with no semantic meaning; safe to retry."""

    def __init__(self, detail: str = "Algo salió mal. Por favor intenta de nuevo."):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code="TRANSIENT_BACKEND_ERROR"
        )
