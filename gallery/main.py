"""
Gallery API - personal photo library with people tagging
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
import logging
import time

from . import __version__
from .config import Settings, get_settings
from .database import Database
from .errors import GalleryError
from .services.image_store import ImageStore
from .services.sync import sync_images

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    settings = app.state.settings
    database = app.state.database

    # Startup
    print("Starting Gallery API...")
    await database.init()

    # Ensure directories exist
    Path(settings.images_dir).mkdir(parents=True, exist_ok=True)

    if settings.sync_on_startup:
        async with database.session() as db:
            result = await sync_images(
                db,
                app.state.image_store,
                deactivate_missing=settings.sync_deactivate_missing
            )
        print(f"[Startup] Synced {result.synced} images, {len(result.errors)} errors")
        for error in result.errors:
            print(f"[Startup]   {error}")

    yield

    # Shutdown
    print("[Shutdown] Closing database connections...")
    await database.close()
    print("Gallery shutdown complete.")


async def gallery_error_handler(request: Request, exc: GalleryError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Build the app; tests pass their own settings and database."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Gallery",
        description="Personal photo library with people tagging",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database or Database(settings.database_url, echo=settings.debug)
    app.state.image_store = ImageStore(settings.images_dir)
    app.state.started_at = time.monotonic()

    app.add_exception_handler(GalleryError, gallery_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers - all under /api prefix
    from .routers import images, people

    app.include_router(images.router, prefix="/api/images", tags=["Images"])
    app.include_router(people.router, prefix="/api/people", tags=["People"])

    @app.get("/api")
    async def api_root():
        return {
            "name": "Gallery",
            "version": __version__,
            "status": "running"
        }

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - app.state.started_at, 3)
        }

    return app


app = create_app()


def main():
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )
    uvicorn.run(
        "gallery.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )


if __name__ == "__main__":
    main()
