"""FastAPI application entrypoint. No business logic; only wiring, middleware and error rendering."""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from fleetdesk.api.v1 import router as v1_router
from fleetdesk.core.config import APP_VERSION, settings
from fleetdesk.core.database import engine
from fleetdesk.core.security import dummy_password_hash
from fleetdesk.schemas.common import ErrorResponse
from fleetdesk.services.errors import InternalError, ServiceError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # Precompute the timing-equalization hash so the first failed login is not slower.
    await asyncio.to_thread(dummy_password_hash, settings.BCRYPT_ROUNDS)
    logger.info("Fleetdesk API started", extra={"environment": settings.APP_ENV})
    yield
    await engine.dispose()


app = FastAPI(
    title="Fleetdesk API",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


@app.middleware("http")
async def answer_options(request: Request, call_next):
    """Any OPTIONS that is not a CORS preflight gets an empty 200 instead of 405."""
    if request.method == "OPTIONS":
        return Response(status_code=200)
    return await call_next(request)


# Registered after answer_options so CORS is outermost and handles real preflights.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(
    status_code: int,
    message: str,
    errors: list[dict] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.exception_handler(ServiceError)
async def handle_service_error(_request: Request, exc: ServiceError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    message = InternalError.default_message if isinstance(exc, InternalError) else exc.message
    return _error_response(exc.status_code, message, headers=headers)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    # Input values are left out so passwords never echo back.
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return _error_response(400, "Invalid request.", errors=errors)


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return _error_response(500, InternalError.default_message)


app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Fleetdesk API"}
