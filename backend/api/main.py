"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import document, lookups
from db import init_db
from services.errors import GeodictError, render_error
from settings import settings

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)


# Create app
app = FastAPI(
    title="Geodict API",
    description="Place-name annotation, IP and street address lookups behind a Placemaker-style API",
    version="0.1.0",
)

# Cross-origin JavaScript clients call the API directly
if settings.CORS_ALLOW_ALL:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Include routers
app.include_router(document.router, prefix="/v1", tags=["document"])
app.include_router(lookups.router, tags=["lookups"])


@app.exception_handler(GeodictError)
async def geodict_error_handler(request: Request, exc: GeodictError):
    """Render request-level failures in the format the client asked for."""
    status_code, content, media_type = render_error(exc)
    logger.info("%s %s failed with %s: %s", request.method, request.url.path, exc.code, exc.message)
    return Response(content=content, status_code=status_code, media_type=media_type)


@app.on_event("startup")
def startup_event():
    """Initialize reference tables on startup."""
    init_db()


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Geodict API", "version": settings.GEODICT_VERSION}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
