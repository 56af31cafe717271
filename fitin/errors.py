from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Optional
import logging

from .observability import REQUEST_ID_HEADER, get_request_id, log_ctx, log_ctx_json

logger = logging.getLogger("fitin-errors")


class FitInError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: Optional[dict] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class ParseError(FitInError):
    """A numeric field did not parse to a finite number."""

    def __init__(self, field: str):
        super().__init__(
            code="PARSE_ERROR",
            message=f"{field.capitalize()} must be a number",
            details={"field": field},
        )
        self.field = field


class OutOfBoundsError(FitInError):
    def __init__(self, field: str, min_value: float, max_value: float, actual: float):
        super().__init__(
            code="OUT_OF_BOUNDS",
            message=f"{field.capitalize()} must be between {min_value:g} and {max_value:g}",
            details={"field": field, "min": min_value, "max": max_value, "actual": actual},
        )
        self.field = field
        self.min = min_value
        self.max = max_value
        self.actual = actual


class InvalidEnumError(FitInError):
    def __init__(self, field: str, allowed: list[str]):
        super().__init__(
            code="INVALID_ENUM",
            message=f"{field.capitalize()} must be one of: {', '.join(allowed)}",
            details={"field": field, "allowed": list(allowed)},
        )
        self.field = field
        self.allowed = list(allowed)


class MissingRequiredError(FitInError):
    def __init__(self, step: str, field: str, message: Optional[str] = None):
        super().__init__(
            code="MISSING_REQUIRED",
            message=message or "Please fill all fields",
            details={"step": step, "field": field},
        )
        self.step = step
        self.field = field


class ValidationFailed(FitInError):
    """Several field errors reported together (aggregate validation)."""

    def __init__(self, errors: list[FitInError]):
        super().__init__(
            code="VALIDATION_FAILED",
            message=errors[0].message if errors else "Invalid data",
            details={
                "fieldErrors": [{"code": err.code, "message": err.message, **err.details} for err in errors]
            },
        )
        self.errors = list(errors)


class InvalidTransitionError(FitInError):
    def __init__(self, step: str, event: str):
        super().__init__(
            code="INVALID_TRANSITION",
            message=f"Cannot {event.replace('_', ' ')} during the {step} step",
            status_code=409,
            details={"step": step, "event": event},
        )
        self.step = step
        self.event = event


class UnauthorizedError(FitInError):
    """Ends the flow: the caller must redirect instead of retrying."""

    def __init__(
        self,
        redirect_to: str,
        *,
        code: str = "UNAUTHORIZED",
        message: str = "Please sign in to continue",
        status_code: int = 401,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details={"redirectTo": redirect_to},
        )
        self.redirect_to = redirect_to


def setup_error_handlers(app: FastAPI):
    def _json_error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
        response = JSONResponse(status_code=status_code, content=content)
        request_id = get_request_id(request)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.exception_handler(FitInError)
    async def fitin_error_handler(request: Request, exc: FitInError):
        return _json_error_response(
            request=request,
            status_code=exc.status_code,
            content={
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                    "details": exc.details,
                }
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        field_errors = []
        for error in exc.errors():
            field_errors.append({
                "field": ".".join(str(p) for p in error["loc"]),
                "issue": error["msg"]
            })

        return _json_error_response(
            request=request,
            status_code=400,
            content={
                "error": {
                    "code": "VALIDATION_FAILED",
                    "message": "Invalid data",
                    "details": {"fieldErrors": field_errors},
                }
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        code = "INTERNAL_ERROR"
        if exc.status_code == 401:
            code = "UNAUTHORIZED"
        elif exc.status_code == 404:
            code = "NOT_FOUND"
        elif exc.status_code == 405:
            code = "METHOD_NOT_ALLOWED"

        return _json_error_response(
            request=request,
            status_code=exc.status_code,
            content={
                "error": {
                    "code": code,
                    "message": exc.detail if isinstance(exc.detail, str) else "Error",
                    "details": {},
                }
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception context=%s",
            log_ctx_json(log_ctx(request, extra={"status_code": 500})),
            exc_info=True,
        )
        return _json_error_response(
            request=request,
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "Internal server error",
                    "details": {},
                }
            },
        )
