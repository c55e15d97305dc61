"""Error envelope, exception handlers and the per-request unit of work"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Type, TypeVar

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from planning_gateway.domain.exceptions import (
    ConflictError,
    DomainException,
    InvalidTermsError,
    NotFoundError,
    ValidationError,
)
from planning_gateway.infrastructure.observability.metrics import conflict_counter

ModelT = TypeVar("ModelT", bound=BaseModel)

STATUS_CODES = {
    NotFoundError: 404,
    InvalidTermsError: 422,
    ValidationError: 422,
    ConflictError: 409,
}


def error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def status_for(exc: DomainException) -> int:
    for exc_type, status in STATUS_CODES.items():
        if isinstance(exc, exc_type):
            return status
    return 400


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the failed statement hit a unique constraint (PostgreSQL SQLSTATE 23505 or SQLite message)"""
    if getattr(exc.orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(exc.orig).lower()


@contextmanager
def unit_of_work(db: Session, request_id: str) -> Iterator[None]:
    """
    Commit once if the block succeeds, roll back everything otherwise.

    Domain errors propagate to the exception handlers; anything unexpected
    becomes a 500.
    """
    try:
        yield
        db.commit()
    except DomainException as e:
        db.rollback()
        logging.warning(f"Request rejected: {e}", extra={"request_id": request_id, "code": e.code})
        raise
    except StaleDataError as e:
        db.rollback()
        conflict_counter.inc()
        logging.warning(f"Concurrent write rejected: {e}", extra={"request_id": request_id})
        raise ConflictError("The resource was modified concurrently, retry the request") from e
    except IntegrityError as e:
        db.rollback()
        if is_unique_violation(e):
            conflict_counter.inc()
            logging.warning(f"Duplicate write rejected: {e.orig}", extra={"request_id": request_id})
            raise ConflictError("The request conflicts with an existing record") from e
        logging.warning(f"Constraint violation: {e.orig}", extra={"request_id": request_id})
        raise ValidationError("The request violates a data constraint") from e
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException):
        return JSONResponse(status_code=status_for(exc), content=error_body(exc.code, str(exc)))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in errors
        )
        return JSONResponse(status_code=422, content=error_body(ValidationError.code, message))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content=error_body("http_error", str(exc.detail)))


def parse_request(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a payload against a request model, reporting failures as a 422 before any state changes"""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors())
