import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import router as auth_router
from core import config, db
from core.errors import ApiError, BackendError
from core.responses import envelope, error_envelope
from devices import router as devices_router
from users import router as users_router

API_VERSION = "1.0.0"

logger = logging.getLogger("api")


def configure_logging() -> None:
    logging.basicConfig(
        level=config.log_level(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Refuse traffic until the database answers; gives up after the retry budget.
    await db.connect_with_retry()
    try:
        yield
    finally:
        await db.close_pool()
        logger.info("db_pool_closed")


configure_logging()

app = FastAPI(title="Device Registry API", version=API_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users_router.router, tags=["users"])
app.include_router(devices_router.router, tags=["devices"])
app.include_router(auth_router.router, tags=["auth"])


def _cause(exc: BaseException) -> str | None:
    # Specific causes are only shown outside production.
    if config.is_production():
        return None
    cause = exc.__cause__ or exc
    return f"{type(cause).__name__}: {cause}"


@app.exception_handler(ApiError)
async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    error = _cause(exc) if exc.status_code >= 500 else None
    return JSONResponse(status_code=exc.status_code, content=error_envelope(exc.message, error=error))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return JSONResponse(status_code=400, content=error_envelope(message))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_envelope(message))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error method=%s path=%s", request.method, request.url.path)
    error = _cause(exc) or "Internal server error"
    return JSONResponse(status_code=500, content=error_envelope("Something went wrong!", error=error))


@app.get("/health")
async def health() -> JSONResponse:
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        await db.execute("SELECT 1")
    except (BackendError, RuntimeError) as exc:
        body = error_envelope("unhealthy", error=_cause(exc))
        body["data"] = {"status": "unhealthy", "database": "disconnected", "timestamp": timestamp}
        return JSONResponse(status_code=500, content=body)
    data = {"status": "healthy", "database": "connected", "timestamp": timestamp}
    return JSONResponse(status_code=200, content=envelope(data, message="healthy"))


@app.get("/health/db")
async def health_db() -> JSONResponse:
    status = await db.db_status()
    if not status.get("connected"):
        error = status.pop("error", None)
        body = error_envelope("Database is not reachable", error=None if config.is_production() else error)
        body["data"] = {"server": "running", **status}
        return JSONResponse(status_code=500, content=body)
    return JSONResponse(status_code=200, content=envelope({"server": "running", **status}))


@app.get("/")
def root() -> dict:
    return envelope(
        {
            "name": "Device Registry API",
            "version": API_VERSION,
            "endpoints": {
                "users": "/users",
                "devices": "/devices",
                "auth": "/auth",
                "health": "/health",
                "db_status": "/health/db",
            },
        },
        message="running",
    )
