"""
main.py — FastAPI Application Entrypoint

Purpose:
- Initialize logging and the database schema.
- Register API routers.
- Define root-level health/status endpoints.
- Provide `app` object used by ASGI server (uvicorn / hypercorn).

Routing and startup only. Economy logic lives under services/
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from corpsim import __version__
from corpsim.api.v1 import admin, cron
from corpsim.core.config import settings
from corpsim.core.database import init_schema
from corpsim.core.logging import configure_logging

# -----------------------------------------------------------------------------
# App Initialization
# -----------------------------------------------------------------------------

configure_logging(settings.LOG_LEVEL)  # Set logging defaults at startup


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_schema()
    yield


app = FastAPI(
    title="corpsim Economy Engine",
    description="Turn and economy engine for a multiplayer corporate simulation",
    version=__version__,
    lifespan=lifespan,
)

# -----------------------------------------------------------------------------
# Router Registration
# -----------------------------------------------------------------------------

# Mount all v1 API routers under /api/v1 prefix
app.include_router(cron.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")

# -----------------------------------------------------------------------------
# Health Check
# -----------------------------------------------------------------------------

@app.get("/")
def root():
    return {"status": "ok", "message": "corpsim engine running"}
