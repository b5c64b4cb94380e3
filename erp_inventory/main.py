"""
ERP Inventory FastAPI Main Application
Entry point for the inventory normalization and transformation REST API
"""
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from erp_inventory.core.config import settings
from erp_inventory.core.database import check_db_connection, init_db
from erp_inventory.core.exceptions import InventoryError
from erp_inventory.core.logging import setup_logging, get_logger
from erp_inventory.api.v1.api_router import api_router

logger = get_logger("main")

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## ERP Inventory API

    Package-aware quantity normalization and transformation (manufacturing /
    repackaging) orders.

    ### Key Features:
    - **Normalization**: any package quantity to base units, and back for display
    - **Transformation Orders**: DRAFT -> PREPARING -> COMPLETED lifecycle
    - **Execution**: input consumption, output production, waste, cost allocation
    - **Lineage**: cost attribution from every input line to every output line
    """,
    docs_url=settings.DOCS_URL,
    openapi_url=settings.OPENAPI_URL,
)


# Health check endpoint
@app.get("/health", tags=["System"])
async def health_check():
    """
    Health check endpoint for monitoring and load balancers

    Returns system status and database connectivity
    """
    try:
        db_status = check_db_connection()

        return {
            "status": "healthy" if db_status else "degraded",
            "version": settings.APP_VERSION,
            "database": "connected" if db_status else "disconnected",
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unavailable")


# Application startup event
@app.on_event("startup")
async def startup_event():
    """
    Application startup tasks

    Configure logging, verify the database and create missing tables
    """
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if not check_db_connection():
        logger.error("Failed to connect to database on startup")
        raise RuntimeError("Database connection failed")

    init_db()
    logger.info("Application startup completed successfully")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down application")


@app.exception_handler(InventoryError)
async def inventory_exception_handler(request: Request, exc: InventoryError):
    """
    Render domain errors with their mapped HTTP status

    Returns:
        JSON error response built from the exception's to_dict()
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors
    """
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": str(exc) if settings.DEBUG else "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# Include API routers
app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "erp_inventory.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
