"""
Wind Farm Monitor Backend - FastAPI Application

Entry point for the REST API server and the offline sweeper.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from windfarm.app import config
from windfarm.app.database import init_db, engine
from windfarm.app.dependencies import publisher, sweeper
from windfarm.app.errors import CommandValidationError, PersistenceError, TransportError
from windfarm.app.api import telemetry, turbines, alerts, commands

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database and start offline detection; stop it on shutdown."""
    await init_db()
    ticker = sweeper.ticker()
    ticker.start()
    try:
        yield
    finally:
        await ticker.stop()
        await publisher.aclose()
        await engine.dispose()
        logger.info("Shutdown complete")


app = FastAPI(
    title="Wind Farm Monitor API",
    description="Turbine telemetry, alerting and operator commands",
    version="1.0.0",
    lifespan=lifespan
)


@app.exception_handler(CommandValidationError)
async def command_validation_handler(request: Request, exc: CommandValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message})


@app.exception_handler(TransportError)
async def transport_handler(request: Request, exc: TransportError):
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_handler(request: Request, exc: PersistenceError):
    logger.error("Persistence failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "database unavailable"})


# Include routers
app.include_router(telemetry.router, prefix="/api/v1")
app.include_router(turbines.router, prefix="/api/v1")
app.include_router(alerts.router, prefix="/api/v1")
app.include_router(commands.router, prefix="/api/v1")


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}
