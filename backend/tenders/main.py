"""FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .database import init_db
from .domain_errors import DomainError, InternalError
from .problem_details import build_problem_details_response, build_validation_problem_response
from .routers import bids, tenders

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if settings.AUTO_CREATE_SCHEMA:
        init_db()
        logger.info("Database schema ensured")
    yield


# Create app
app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Tender publication and bid approval workflow API",
    lifespan=lifespan,
)

if settings.ENV.lower() == "production" and any(origin.strip() == "*" for origin in settings.cors_origins):
    raise RuntimeError("ALLOWED_ORIGINS must be explicit in production (no wildcard).")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def handle_domain_error(request: Request, exc: DomainError):
    if exc.http_status >= 500:
        logger.error("Domain failure on %s %s: %s", request.method, request.url.path, exc.code)
    return build_problem_details_response(exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    logger.debug("Rejected request %s %s: %s", request.method, request.url.path, exc.errors())
    return build_validation_problem_response(exc)


@app.exception_handler(SQLAlchemyError)
async def handle_persistence_error(request: Request, exc: SQLAlchemyError):
    logger.exception("Persistence failure on %s %s", request.method, request.url.path, exc_info=exc)
    return build_problem_details_response(InternalError(details={"reason": exc.__class__.__name__}))


# Include routers
app.include_router(tenders.router, prefix="/api")
app.include_router(bids.router, prefix="/api")


@app.get("/api/ping", response_class=PlainTextResponse)
def ping():
    """Liveness check."""
    return "ok"


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("tenders.main:app", host=settings.server_host, port=settings.server_port)
