import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import ALLOWED_ORIGINS, LOG_LEVEL, SECURITY_HEADERS_ENABLED
from .domain.composer.router import router as composer_router
from .domain.composer.service import SendGuard, issues_from_errors
from .errors import ComposerError, DeliveryError, ValidationError
from .notifications import NotificationQueue
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SEND_PATHS = ("/api/send-email", "/api/compose/send")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    app.state.notifications = NotificationQueue()
    app.state.send_guard = SendGuard()

    yield

    logger.info("Application shutting down...")
    app.state.notifications.clear()
    app.state.send_guard.clear()


app = FastAPI(title="Mail Composer API", version=__version__, lifespan=lifespan)


@app.exception_handler(ValidationError)
async def payload_validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"message": exc.message, "issues": exc.issues})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Reshape FastAPI's 422 body errors into the composer's 400 format"""
    issues = issues_from_errors(exc.errors(), skip=("body",))
    logger.warning(f"Validation error for {request.url.path}: {sorted(issues)}")
    return JSONResponse(
        status_code=400, content={"message": ValidationError.message, "issues": issues}
    )


@app.exception_handler(ComposerError)
async def composer_error_handler(request: Request, exc: ComposerError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - Error: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} - Unexpected error: {exc}")
    message = DeliveryError.message if request.url.path in SEND_PATHS else ComposerError.message
    return JSONResponse(status_code=500, content={"message": message})


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(composer_router)


@app.get("/")
def root():
    return {"message": "Mail Composer API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
