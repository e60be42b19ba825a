import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.errors import InternalError, register_error_handlers
from .db import Database
from .routers import documents
from .services.document_store import DocumentStore
from .settings import Settings, settings as default_settings
from .storage import LocalStorage

logger = logging.getLogger("masterplan")


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _log_routes(app: FastAPI) -> None:
    logger.info("=" * 60)
    logger.info("Registered routes:")
    for route in app.routes:
        if hasattr(route, "path") and hasattr(route, "methods"):
            for method in sorted(route.methods):
                if method != "HEAD":
                    logger.info(f"  {method:6s} {route.path}")
    logger.info("=" * 60)


def create_app(
    store: DocumentStore | None = None,
    storage: LocalStorage | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the API. Pass store/storage to inject handles; otherwise they are built from settings."""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = None
        if app.state.store is None:
            db = Database(settings.conninfo, min_size=settings.DB_POOL_MIN, max_size=settings.DB_POOL_MAX)
            try:
                db.open()
            except Exception as e:
                logger.error(f"✗ database connection failed ({settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME}): {e}")
                db.close()
                raise
            logger.info(f"✓ database connection established ({settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME})")
            if settings.DB_AUTO_MIGRATE:
                db.apply_migrations()
            app.state.store = DocumentStore(db)
        if app.state.storage is None:
            app.state.storage = LocalStorage(settings.UPLOADS_DIR)
        logger.info(f"✓ uploads root: {app.state.storage.root}")
        _log_routes(app)
        try:
            yield
        finally:
            if db is not None:
                db.close()
                logger.info("database pool closed")

    app = FastAPI(title="Master Plan Documents API", version="0.1.0", lifespan=lifespan)
    app.state.store = store
    app.state.storage = storage
    app.state.max_upload_size = settings.MAX_UPLOAD_SIZE

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app, debug=settings.DEBUG)

    @app.get("/api/health")
    def health():
        return {"message": "Server is running!", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api/test-db")
    def test_db():
        try:
            app.state.store.ping()
        except InternalError as e:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Database connection failed",
                    "details": e.message,
                    "config": {"database": settings.DB_NAME, "host": settings.DB_HOST, "port": settings.DB_PORT},
                },
            )
        return {"message": "Database connection successful"}

    app.include_router(documents.router)
    return app


configure_logging()
app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=default_settings.PORT)


if __name__ == "__main__":
    run()
