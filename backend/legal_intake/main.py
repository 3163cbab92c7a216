"""
Legal Intake - FastAPI Application Entry Point
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from legal_intake.api import health, intake
from legal_intake.config import IntakeConfig
from legal_intake.errors import ConfigurationError
from legal_intake.intake.orchestrator import IntakeOrchestrator
from legal_intake.llm.factory import LLMProviderFactory

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup: 每個 process 只建立一個 orchestrator
    app.state.orchestrator = None
    app.state.startup_error = None
    try:
        config = IntakeConfig.from_env()
        provider = LLMProviderFactory.from_config(config)
        app.state.orchestrator = IntakeOrchestrator(provider, config)
        logger.info(f"Legal intake starting with provider {provider.provider_name} ({provider.model_name})")
    except ConfigurationError as e:
        logger.error(f"Legal intake is misconfigured, /run disabled: {e.message}")
        app.state.startup_error = e

    yield
    # Shutdown
    logger.info("Legal intake is shutting down...")


app = FastAPI(
    title="Legal Intake",
    description="Multi-stage LLM intake pipeline API",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(intake.router, prefix="/api/v1/intake", tags=["Legal Intake"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": "Legal Intake",
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs",
    }
