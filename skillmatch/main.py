from datetime import datetime
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from skillmatch.config import ALLOWED_ORIGINS
from skillmatch.routers import jobs, resumes
from skillmatch.utils.logging_config import configure_for_environment, get_logger
from skillmatch.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    PerformanceMiddleware,
    HealthCheckMiddleware,
    request_validation_handler,
)

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("SkillMatch API starting up...")

    if getattr(app.state, "container", None) is None:
        from skillmatch.services.container import build_container
        app.state.container = build_container()

    try:
        await app.state.container.store.init_indexes()
        logger.info("Database indexes initialized successfully")
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - some operations may be slower without indexes")

    logger.info("SkillMatch API startup completed")

    yield

    logger.info("SkillMatch API shutting down...")

app = FastAPI(title="SkillMatch API", version="1.0.0", lifespan=lifespan)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Starlette wraps middleware in reverse order of registration: the last one
# added is the outermost.
app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(HealthCheckMiddleware)
app.add_middleware(ExceptionHandlerMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
@app.head("/")
async def root():
    """Root endpoint - handles both GET and HEAD requests for health checks"""
    return {"message": "Welcome to the SkillMatch API", "version": "1.0.0", "status": "ok"}

@app.get("/health")
@app.head("/health")
async def health_check():
    """Health check endpoint - handles both GET and HEAD requests"""
    return {"status": "ok", "timestamp": datetime.utcnow().isoformat()}

app.include_router(resumes.router, prefix="/api/v1/resumes", tags=["resumes"])
app.include_router(jobs.router, prefix="/api/v1/jobs", tags=["jobs"])

logger.info("SkillMatch API initialized successfully")
