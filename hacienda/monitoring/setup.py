import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

purge_runs = Counter("trash_purge_runs_total", "Trash purge loop runs")
purge_items_deleted = Counter("trash_purge_items_deleted_total", "Trashed items permanently deleted by the purge")
purge_failed_deletes = Counter("trash_purge_failed_deletes_total", "Failed blob deletes in the trash purge")
purge_duration = Histogram("trash_purge_duration_seconds", "Duration of a trash purge run in seconds")

import_runs = Counter("storage_import_runs_total", "Storage import runs")
import_files_created = Counter("storage_import_files_total", "File records created by storage imports")
import_folders_seen = Counter("storage_import_folders_total", "Folder paths resolved by storage imports")
import_errors = Counter("storage_import_errors_total", "Objects that failed to import")
import_duration = Histogram("storage_import_duration_seconds", "Duration of a storage import in seconds")

def report_purge(items_deleted: int, failed: int, duration: float) -> None:
    """Record trash purge metrics to Prometheus."""
    purge_runs.inc()
    if items_deleted:
        purge_items_deleted.inc(items_deleted)
    if failed:
        purge_failed_deletes.inc(failed)
    purge_duration.observe(duration)

def report_import(files: int, folders: int, errors: int, duration: float) -> None:
    """Record storage import metrics to Prometheus."""
    import_runs.inc()
    if files:
        import_files_created.inc(files)
    if folders:
        import_folders_seen.inc(folders)
    if errors:
        import_errors.inc(errors)
    import_duration.observe(duration)

SLOW_REQUEST_SECONDS = 2.0

def setup_monitoring(app: ASGIApp):
    Instrumentator().instrument(app).expose(app, endpoint="/api/metrics", include_in_schema=False)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
        finally:
            elapsed = time.perf_counter() - started
            level = logging.WARNING if elapsed > SLOW_REQUEST_SECONDS else logging.INFO
            logger.log(level, "%s %s %s %.3fs", request.method, request.url.path, status, elapsed)
