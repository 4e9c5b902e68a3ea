"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smartlink.api import router as api_router
from smartlink.core.config import settings
from smartlink.core.errors import register_exception_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Smart Link API",
    version="0.1.0",
    docs_url="/api-docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Smart Link API running"}


def run() -> None:
    """Console entrypoint: serve the API with uvicorn on PORT."""
    import uvicorn

    logger.info("Starting Smart Link API on port %s (frontend %s)", settings.PORT, settings.FRONTEND_URL)
    uvicorn.run("smartlink.main:app", host="0.0.0.0", port=settings.PORT)
