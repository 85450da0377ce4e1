"""RFC 7807 Problem Details rendering for domain and request-validation failures."""
from __future__ import annotations

from http import HTTPStatus
from typing import Any

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .domain_errors import DomainError, InvalidRequest

PROBLEM_TYPE_BASE = "https://api.tenders.local/problems"
PROBLEM_MEDIA_TYPE = "application/problem+json"


def _title(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Domain Error"


def problem_payload(exc: DomainError) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "type": f"{PROBLEM_TYPE_BASE}/{exc.code.lower()}",
        "title": _title(exc.http_status),
        "status": exc.http_status,
        "detail": exc.message,
        "code": exc.code,
        "reason": exc.message,
    }
    if exc.details is not None:
        payload["details"] = exc.details
    return payload


def build_problem_details_response(exc: DomainError) -> JSONResponse:
    """Render DomainError as RFC 7807 payload with stable domain code."""
    return JSONResponse(
        status_code=exc.http_status,
        content=problem_payload(exc),
        media_type=PROBLEM_MEDIA_TYPE,
    )


def invalid_request_from_validation(exc: RequestValidationError) -> InvalidRequest:
    """Collapse pydantic/FastAPI validation errors into one InvalidRequest."""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    message = f"{errors[0]['field']}: {errors[0]['message']}" if errors else InvalidRequest.message
    return InvalidRequest(message=message, details={"errors": errors})


def build_validation_problem_response(exc: RequestValidationError) -> JSONResponse:
    return build_problem_details_response(invalid_request_from_validation(exc))
