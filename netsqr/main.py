"""
NETS QR Backend - FastAPI Application

Places NETS QR orders, ingests NETS callbacks and streams transaction status
to clients.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from . import __version__
from .config import settings
from .exceptions import NetsError
from .db.init_db import initialize_database
from .api.transactions import router as transactions_router
from .api.callbacks import router as callbacks_router


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup creates the database tables. Nothing needs tearing down.
    """
    logger.info("Starting NETS QR backend server...")
    logger.info(f"Demo mode: {settings.demo_mode}")
    logger.info(f"NETS gateway: {settings.nets_gateway_base_url}")

    if not settings.nets_client_id or not settings.nets_client_secret:
        logger.warning("NETS_CLIENT_ID / NETS_CLIENT_SECRET not set; order placement will fail")

    try:
        await initialize_database()
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    logger.info("Server startup complete")

    yield

    logger.info("Shutting down NETS QR backend server...")


app = FastAPI(
    title="NETS QR API",
    description="NETS QR order placement and callback reconciliation",
    version=__version__,
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NetsError)
async def nets_error_handler(request: Request, exc: NetsError):
    """
    Handle transaction lifecycle errors with the standard error body.

    The status code comes from the exception class (502 for gateway errors,
    404 for unknown transactions, ...).
    """
    logger.warning(
        f"NETS error: {exc.error_code} - {exc.message}",
        extra={"details": exc.details}
    )

    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """
    Handle validation errors not caught by Pydantic.
    """
    logger.warning(f"Validation error: {str(exc)}")

    return JSONResponse(
        status_code=400,
        content={
            "error_code": "validation_error",
            "message": str(exc),
            "details": {}
        },
    )


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unexpected errors.

    Logs full exception for debugging but returns generic message to client.
    """
    logger.error(f"Unexpected error: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error_code": "internal_error",
            "message": "An unexpected error occurred",
            "details": {"error_type": type(exc).__name__} if settings.demo_mode else {}
        },
    )


@app.get("/api/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancers.

    Returns:
        Server status and version information
    """
    return {
        "status": "healthy",
        "version": __version__,
        "demo_mode": settings.demo_mode,
        "gateway": settings.nets_gateway_base_url,
        "credentials_configured": bool(settings.nets_client_id and settings.nets_client_secret),
    }


app.include_router(transactions_router, prefix="/api/transactions", tags=["Transactions"])
app.include_router(callbacks_router, prefix="/api/nets", tags=["Callbacks"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "netsqr.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.demo_mode,
        log_level=settings.log_level.lower()
    )
