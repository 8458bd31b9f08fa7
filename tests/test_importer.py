"""Tests for the storage importer."""

import pytest
from sqlalchemy import select

from hacienda.core.storage import ObjectStorage
from hacienda.models.file_item import FileItem, ItemType
from hacienda.services.errors import ImportAbortedError
from hacienda.services.importer import StorageImporter


def make_importer(session, storage, **kwargs) -> StorageImporter:
    kwargs.setdefault("owner_id", "owner-1")
    kwargs.setdefault("owner_email", "owner@hacienda-erp.com")
    kwargs.setdefault("pause_seconds", 0)
    return StorageImporter(session, storage, **kwargs)


async def all_items(session) -> list[FileItem]:
    return list((await session.execute(select(FileItem))).scalars().all())


@pytest.mark.asyncio
async def test_import_builds_folder_tree_once(session, storage, fake_minio):
    fake_minio.put("files/ConversionFiles/MOCK8/FIN/report.csv", b"a,b")
    fake_minio.put("files/ConversionFiles/MOCK8/FIN/ledger.csv", b"c,d,e")
    fake_minio.put("files/ConversionFiles/MOCK8/HR/people.xlsx", b"xlsx")
    fake_minio.put("files/readme.txt", b"hi")
    fake_minio.put("trash/ignored.txt", b"old")

    status = await make_importer(session, storage).run()

    assert status.total == 4
    assert status.processed == 4
    assert status.files == 4
    assert status.errors == []
    assert status.folders == 4

    items = await all_items(session)
    folders = {i.name: i for i in items if i.type == ItemType.FOLDER}
    files = {i.name: i for i in items if i.type == ItemType.FILE}
    assert sorted(folders) == ["ConversionFiles", "FIN", "HR", "MOCK8"]
    assert folders["ConversionFiles"].parent_id is None
    assert folders["MOCK8"].parent_id == folders["ConversionFiles"].id
    assert folders["FIN"].parent_id == folders["MOCK8"].id
    assert folders["HR"].parent_id == folders["MOCK8"].id

    assert files["report.csv"].parent_id == folders["FIN"].id
    assert files["report.csv"].storage_key == "files/ConversionFiles/MOCK8/FIN/report.csv"
    assert files["report.csv"].mime_type == "text/csv"
    assert files["ledger.csv"].size == 5
    assert files["readme.txt"].parent_id is None
    assert all(i.owner_id == "owner-1" for i in items)


@pytest.mark.asyncio
async def test_import_twice_skips_known_objects(session, storage, fake_minio):
    fake_minio.put("files/A/one.txt", b"1")
    await make_importer(session, storage).run()

    fake_minio.put("files/A/two.txt", b"2")
    status = await make_importer(session, storage).run()

    assert status.files == 1
    assert status.skipped == 1
    items = await all_items(session)
    assert len([i for i in items if i.type == ItemType.FOLDER]) == 1
    assert len([i for i in items if i.type == ItemType.FILE]) == 2


@pytest.mark.asyncio
async def test_import_records_per_object_errors(session, storage, fake_minio, monkeypatch):
    fake_minio.put("files/A/good.txt", b"1")
    fake_minio.put("files/A/broken.txt", b"2")
    fake_minio.put("files/B/also-good.txt", b"3")

    importer = make_importer(session, storage)
    original = importer._create_file_record

    async def flaky(key, size):
        if key.endswith("broken.txt"):
            raise RuntimeError("disk on fire")
        return await original(key, size)

    monkeypatch.setattr(importer, "_create_file_record", flaky)
    status = await importer.run()

    assert status.processed == 3
    assert status.files == 2
    assert status.errors == ["broken.txt: disk on fire"]


@pytest.mark.asyncio
async def test_import_reports_progress(session, storage, fake_minio):
    fake_minio.put("files/one.txt", b"1")
    fake_minio.put("files/two.txt", b"2")
    updates = []

    await make_importer(session, storage, on_status=updates.append).run()

    assert updates[0].total == 0
    assert updates[-1].debug_info == "Import complete"
    assert max(u.processed for u in updates) == 2


@pytest.mark.asyncio
async def test_import_with_empty_bucket(session, storage):
    status = await make_importer(session, storage).run()
    assert status.total == 0
    assert "No files found" in status.debug_info


@pytest.mark.asyncio
async def test_import_requires_owner(session, storage):
    with pytest.raises(ImportAbortedError, match="User not authenticated"):
        await make_importer(session, storage, owner_id=None).run()


@pytest.mark.asyncio
async def test_import_requires_credentials(session, fake_minio):
    storage = ObjectStorage(fake_minio, "bucket", has_credentials=False)
    with pytest.raises(ImportAbortedError, match="No storage credentials"):
        await make_importer(session, storage).run()


@pytest.mark.asyncio
async def test_listing_failure_is_reported(session, storage, monkeypatch):
    async def broken_listing(prefix):
        raise ConnectionError("bucket unreachable")

    monkeypatch.setattr(storage, "list_prefix", broken_listing)
    status = await make_importer(session, storage).run()

    assert status.errors == ["Import failed: bucket unreachable"]


@pytest.mark.asyncio
async def test_import_replaces_characters_names_cannot_hold(session, storage, fake_minio):
    fake_minio.put("files/Q1: Sales/report?.csv", b"a,b")

    status = await make_importer(session, storage).run()

    assert status.files == 1
    items = {i.name: i for i in await all_items(session)}
    assert sorted(items) == ["Q1_ Sales", "report_.csv"]
    assert items["report_.csv"].parent_id == items["Q1_ Sales"].id
    assert items["report_.csv"].storage_key == "files/Q1: Sales/report?.csv"
