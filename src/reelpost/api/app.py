"""FastAPI application factory."""

from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from reelpost.api.dependencies import get_runtime
from reelpost.api.middleware import reelpost_error_handler
from reelpost.api.routes import clips, jobs, settings, status
from reelpost.models.errors import ReelpostError

VERSION = "0.1.0"


def create_app(mount_media: bool = True) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="reelpost",
        description="Resumable short-video production and publishing pipeline",
        version=VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ReelpostError, reelpost_error_handler)

    app.include_router(jobs.router)
    app.include_router(clips.router)
    app.include_router(settings.router)
    app.include_router(status.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": VERSION}

    # Public media for the local storage provider
    if mount_media:
        public_dir = Path(get_runtime().config.get("storage.public_dir") or "./public")
        public_dir.mkdir(parents=True, exist_ok=True)
        app.mount("/media", StaticFiles(directory=public_dir), name="media")

    return app
