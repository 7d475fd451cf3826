import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from approval_system.api.v1.api import api_router
from approval_system.core.config import settings
from approval_system.core.exceptions import GENERIC_ERROR_MESSAGE
from approval_system.core.logging_config import setup_logging
from approval_system.db.init_db import init_db
from approval_system.middleware.logging import LoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_db()
    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    yield


app_config = {
    "title": settings.APP_NAME,
    "description": "Leave and reimbursement applications with multi-level approval",
    "version": "1.0.0",
    "docs_url": "/api/docs",
    "redoc_url": "/api/redoc",
    "openapi_url": "/api/openapi.json",
}

app = FastAPI(lifespan=lifespan, **app_config)

app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR_MESSAGE})


app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    return {
        "message": f"Welcome to the {settings.APP_NAME}",
        "status": "active",
        "version": app_config["version"],
        "docs": app_config["docs_url"],
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "environment": settings.ENVIRONMENT,
    }
