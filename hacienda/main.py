import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

import hacienda.models  # noqa: F401  registers every table on Base.metadata
from hacienda.core.config import settings
from hacienda.core.database import Base, SessionLocal, engine
from hacienda.core.minio_client import initialize_minio_bucket, minio_client
from hacienda.monitoring.setup import setup_monitoring
from hacienda.routes import (
    alerts,
    auth,
    browser,
    download,
    files,
    imports,
    notifications,
    quick_links,
)
from hacienda.services.errors import (
    ImportAbortedError,
    InvalidNameError,
    InvalidOperationError,
    ItemNotFoundError,
    ServiceError,
    StorageOperationError,
)
from hacienda.tasks.trash_purge import start_trash_purge_task

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("hacienda-files")

ERROR_STATUS = {
    ItemNotFoundError: 404,
    InvalidNameError: 400,
    InvalidOperationError: 400,
    ImportAbortedError: 400,
    StorageOperationError: 502,
}

ROUTERS = (auth, files, download, browser, notifications, alerts, quick_links, imports)


async def _prepare_database():
    async with engine.begin() as conn:
        if engine.dialect.name == "sqlite":
            await conn.execute(text("PRAGMA journal_mode=WAL;"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready (%s)", ", ".join(sorted(Base.metadata.tables)))


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await _prepare_database()
        await run_in_threadpool(initialize_minio_bucket)
    except Exception:
        logger.exception("Startup failed")
        raise
    logger.info("Bucket %s ready", settings.MINIO_BUCKET)

    purge_task = None
    if settings.TRASH_RETENTION_DAYS > 0:
        purge_task = asyncio.create_task(start_trash_purge_task())
        logger.info("Trash purge scheduled every %ss", settings.TRASH_PURGE_INTERVAL_SECONDS)

    yield

    if purge_task is not None:
        purge_task.cancel()
        with suppress(asyncio.CancelledError):
            await purge_task
    logger.info("Hacienda files service stopped")


async def _probe(check) -> str:
    try:
        await check()
    except Exception as e:
        logger.warning("Health probe %s failed: %s", check.__name__, e)
        return f"error: {e}"
    return "ok"


async def _database_probe():
    async with SessionLocal() as session:
        await session.execute(text("SELECT 1"))


async def _storage_probe():
    if not await run_in_threadpool(minio_client.bucket_exists, settings.MINIO_BUCKET):
        raise RuntimeError(f"bucket {settings.MINIO_BUCKET} is missing")


def create_app() -> FastAPI:
    app = FastAPI(title="Hacienda ERP Files", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "Content-Length"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        status_code = ERROR_STATUS.get(type(exc), 400)
        logger.info("%s %s -> %s %s", request.method, request.url.path, status_code, exc.message)
        return JSONResponse(status_code=status_code, content={"detail": exc.message})

    for router in ROUTERS:
        app.include_router(router)

    setup_monitoring(app)

    @app.get("/health")
    async def health_check():
        database = await _probe(_database_probe)
        storage = await _probe(_storage_probe)
        return {
            "status": "running" if database == storage == "ok" else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": database,
            "storage": storage,
        }

    return app


app = create_app()


def run():
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level="info", timeout_keep_alive=60)


if __name__ == "__main__":
    run()
