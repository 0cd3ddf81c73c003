"""
ScholarLink App Shell

Local FastAPI app that exposes the client core (sessions, notifications,
messaging, payment profile, tutor directory, admin) to the UI layer and
turns service errors into user-facing messages.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scholarlink.api.routes import admin, auth, conversations, notifications, payment, profile, sessions, tutors
from scholarlink.config import LOG_LEVEL
from scholarlink.container import AppContainer
from scholarlink.database import close_redis
from scholarlink.errors import ScholarLinkError

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the container (unless one was installed beforehand), starts local
    reminder delivery and restores the previous auth session.
    """
    logger.info("Starting ScholarLink app shell...")

    container = getattr(app.state, "container", None)
    if container is None:
        container = await AppContainer.create()
        app.state.container = container

    await container.start()
    logger.info("Reminder scheduler started")

    yield

    logger.info("Shutting down ScholarLink app shell...")
    await container.shutdown()
    await close_redis()
    logger.info("Reminder scheduler stopped")


app = FastAPI(
    title="ScholarLink",
    description="Tutoring marketplace client core",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)


# The UI runs from a local dev server during development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing"""
    start_time = time.time()

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration_ms:.2f}ms"
    )

    return response


@app.exception_handler(ScholarLinkError)
async def scholarlink_exception_handler(request: Request, exc: ScholarLinkError):
    """Map service errors to their status code and user-facing message"""
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.code}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.code,
                "message": exc.message,
                "details": exc.details or None
            }
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors"""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": jsonable_errors(exc)
            }
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all uncaught exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "Something went wrong. Please try again.",
                "details": str(exc) if app.debug else None
            }
        }
    )


def jsonable_errors(exc: RequestValidationError):
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness plus the current top-level destination"""
    container = getattr(app.state, "container", None)
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
        "service": "scholarlink",
        "destination": container.user_session.destination.value if container else None
    }


app.include_router(auth.router)
app.include_router(sessions.router)
app.include_router(notifications.router)
app.include_router(conversations.router)
app.include_router(payment.router)
app.include_router(tutors.router)
app.include_router(profile.router)
app.include_router(admin.router)


@app.get("/", tags=["Root"])
async def root():
    """API root endpoint"""
    return {
        "name": "ScholarLink",
        "version": VERSION,
        "description": "Tutoring marketplace client core",
        "docs": "/api/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info"
    )
