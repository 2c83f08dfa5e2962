import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import GENERIC_ERROR_MESSAGE, error_code, first_error_message
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.routes.auth import router as auth_router
from app.routes.turnos import router as turnos_router
from app.tasks.cleanup import start_cleanup_scheduler

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = start_cleanup_scheduler(settings)
    try:
        yield
    finally:
        if scheduler is not None and scheduler.running:
            scheduler.shutdown(wait=False)


app = FastAPI(title="Turnos API", lifespan=lifespan)
logger.info(
    "Startup config: ENV=%s EMAIL_PROVIDER=%s CLEANUP_ENABLED=%s",
    settings.ENV,
    settings.EMAIL_PROVIDER,
    settings.CLEANUP_ENABLED,
)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException):  # noqa: ARG001
    message = exc.detail if isinstance(exc.detail, str) and exc.detail else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": error_code(exc.status_code), "message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": first_error_message(exc.errors()),
        },
    )


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    # Details stay in the server log.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": GENERIC_ERROR_MESSAGE},
    )


app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.is_prod)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(turnos_router)

@app.get("/health")
def health_check():
    return {"ok": True}
