"""
FastAPI entrypoint for the Trip Ledger backend application.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from tripledger.core.config import settings
from tripledger.core.exceptions import LedgerError, StoreError
from tripledger.core.utils import format_error
from tripledger.api.router import api_router, root_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Trip Ledger API",
    description="Shared trip expenses and settlements",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    """Translate the ledger error taxonomy into HTTP responses."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(format_error(exc.message, exc.details))
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are validation errors (400)."""
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(format_error("Invalid request", exc.errors()))
    )


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    """Backing store failures are logged and reported as 500, never retried here."""
    logger.error(f"{request.method} {request.url.path} store failure: {exc}", exc_info=True)
    error = StoreError("Storage failure")
    return JSONResponse(status_code=error.status_code, content=format_error(error.message))


# Include API routes
app.include_router(root_router)
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Trip Ledger API is running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
