"""Mirror the objects already in the bucket as browsable file records.

Usage: hacienda-import --owner-id <user id> --owner-email <email>
"""
import asyncio
import logging

import typer

import hacienda.models  # noqa: F401
from hacienda.core.config import settings
from hacienda.core.database import Base, SessionLocal, engine
from hacienda.core.storage import storage
from hacienda.schemas.importer import ImportStatus
from hacienda.services.errors import ImportAbortedError
from hacienda.services.importer import StorageImporter

logger = logging.getLogger("hacienda-files")

app = typer.Typer(add_completion=False, help="Import storage objects into the file browser.")


async def _run(owner_id: str, owner_email: str, prefix: str, pause: float) -> ImportStatus:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    def echo(status: ImportStatus):
        if status.total:
            typer.echo(f"[{status.processed}/{status.total}] {status.debug_info}")

    async with SessionLocal() as db:
        importer = StorageImporter(
            db,
            storage,
            owner_id=owner_id,
            owner_email=owner_email,
            prefix=prefix,
            pause_seconds=pause,
            on_status=echo,
        )
        return await importer.run()


@app.command()
def main(
    owner_id: str = typer.Option(settings.IMPORT_OWNER_ID, "--owner-id", envvar="OWNER_ID"),
    owner_email: str = typer.Option(settings.IMPORT_OWNER_EMAIL, "--owner-email", envvar="OWNER_EMAIL"),
    prefix: str = typer.Option(settings.IMPORT_PREFIX, "--prefix"),
    pause: float = typer.Option(settings.IMPORT_PAUSE_SECONDS, "--pause", help="Seconds to wait every few objects"),
):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    typer.echo("Starting storage import...")
    typer.echo(f"Bucket: {storage.bucket}")
    typer.echo(f"Owner ID: {owner_id}")

    try:
        status = asyncio.run(_run(owner_id, owner_email, prefix, pause))
    except ImportAbortedError as e:
        typer.echo(f"Import aborted: {e.message}", err=True)
        raise typer.Exit(code=1)

    typer.echo("")
    typer.echo("Import complete!" if not status.errors else "Import finished with errors:")
    for error in status.errors:
        typer.echo(f"  {error}", err=True)
    typer.echo(f"Folders: {status.folders}")
    typer.echo(f"Files created: {status.files} (skipped {status.skipped})")
    if status.errors:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
