import logging
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from . import config
from .api import admin as admin_api
from .api import applications as applications_api
from .api import auth as auth_api
from .api import companies as companies_api
from .api import jobs as jobs_api
from .api import students as students_api
from .database import engine, init_db
from .utils.error_handlers import AppError, create_error_response, get_error_message

app = FastAPI(title="Job Portal API")

app.include_router(auth_api.router)
app.include_router(students_api.router)
app.include_router(companies_api.router)
app.include_router(jobs_api.router)
app.include_router(applications_api.router)
app.include_router(admin_api.router)

logger = logging.getLogger(__name__)


def register_exception_handlers(target: FastAPI) -> None:
    """Every error leaves the API as {"success": false, "error": ...}."""

    @target.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        return create_error_response(exc.status_code, exc.message, exc.details or None)

    @target.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTPException with user-friendly messages."""
        return create_error_response(exc.status_code, exc.detail)

    @target.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ())[1:])
        message = f"{field}: {first.get('msg')}" if field else get_error_message("validation_error")
        return create_error_response(422, message, {"fields": [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors
        ]})

    @target.exception_handler(IntegrityError)
    async def sqlalchemy_integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning("Database IntegrityError: %s", exc)
        return create_error_response(409, "This record already exists. Please check your input.")

    @target.exception_handler(OperationalError)
    async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError):
        """Handle database operational errors."""
        logger.exception("Database OperationalError: %s", exc)
        return create_error_response(503, get_error_message("database_error"))

    @target.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        """Handle general database errors."""
        logger.exception("Database SQLAlchemyError: %s", exc)
        return create_error_response(500, get_error_message("database_error"))

    @target.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle ValueError with user-friendly message."""
        logger.warning("ValueError: %s", exc)
        return create_error_response(400, str(exc) or get_error_message("validation_error"))

    @target.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors globally."""
        logger.exception("Unhandled exception: %s", exc)
        return create_error_response(500, get_error_message("server_error"))


register_exception_handlers(app)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "Backend running",
        "service": "Job Portal API",
    }


@app.get("/db/health")
def db_health():
    if getattr(app.state, "db_init_error", None):
        raise HTTPException(
            status_code=503,
            detail=f"DB init failed: {app.state.db_init_error}",
        )

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"DB connection failed: {e}",
        )

    return {"status": "ok"}


# Resumes stored on local disk are served from here (STORAGE_BACKEND=local).
if config.STORAGE_BACKEND == "local":
    Path(config.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    app.mount("/files", StaticFiles(directory=config.UPLOAD_DIR), name="files")


_default_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*_default_origins, *config.FRONTEND_ORIGINS],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    try:
        init_db()
        app.state.db_init_error = None
    except Exception as e:
        logger.exception("Database initialisation failed: %s", e)
        app.state.db_init_error = str(e)
