"""
Lead Capture Engine - FastAPI Application
Main entry point with all routes configured.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from leadcapture.config import settings
from leadcapture.database import init_db, async_session
from leadcapture.api import customers, leads
from leadcapture.services.pipeline_service import build_orchestrator
from leadcapture.services.supervisor import PipelineSupervisor

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    orchestrator = build_orchestrator(settings, async_session)
    app.state.orchestrator = orchestrator
    app.state.supervisor = PipelineSupervisor(orchestrator)
    logger.info(
        f"Pipeline ready (oracle={settings.ORACLE_PROVIDER}, email={settings.EMAIL_PROVIDER})"
    )
    yield
    # Shutdown: let in-flight submissions finish
    await app.state.supervisor.drain()


app = FastAPI(
    title="Lead Capture API",
    description="Form intake with AI lead classification and auto-response",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(customers.router)
app.include_router(leads.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "message": "Lead Capture API is running",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health(request: Request):
    """Detailed health check."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "pipelines": request.app.state.supervisor.stats()
    }
