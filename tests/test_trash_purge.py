"""Tests for the trash retention purge."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from hacienda.core.config import settings
from hacienda.models.file_alert import FileAlert
from hacienda.models.file_item import FileItem, ItemType
from hacienda.tasks.trash_purge import purge_expired_trash


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr(settings, "TRASH_RETENTION_DAYS", 30)
    monkeypatch.setattr(settings, "TRASH_PURGE_RETRY_ATTEMPTS", 2)
    monkeypatch.setattr(settings, "TRASH_PURGE_RETRY_BACKOFF_SECS", 0)


@pytest.mark.asyncio
async def test_purge_deletes_only_expired_trash(session_maker, session, storage, fake_minio, make_item, user):
    now = datetime(2024, 6, 1)
    fake_minio.put("trash/old.txt", b"old")
    fake_minio.put("trash/recent.txt", b"recent")
    old = await make_item("old.txt", storage_key="trash/old.txt", is_deleted=True,
                          deleted_at=now - timedelta(days=31))
    recent = await make_item("recent.txt", storage_key="trash/recent.txt", is_deleted=True,
                             deleted_at=now - timedelta(days=2))
    live = await make_item("live.txt", storage_key="files/live.txt")
    session.add(FileAlert(file_item_id=old.id, user_id=user.id, user_email=user.email))
    await session.commit()

    purged, failed = await purge_expired_trash(session_maker, storage, now=now)

    assert (purged, failed) == (1, 0)
    assert "trash/old.txt" not in fake_minio.objects
    assert "trash/recent.txt" in fake_minio.objects

    async with session_maker() as db:
        remaining = {i.id for i in (await db.execute(select(FileItem))).scalars().all()}
        alerts = (await db.execute(select(FileAlert))).scalars().all()
    assert remaining == {recent.id, live.id}
    assert alerts == []


@pytest.mark.asyncio
async def test_purge_keeps_rows_whose_blob_cannot_be_deleted(session_maker, storage, fake_minio, make_item):
    now = datetime(2024, 6, 1)
    fake_minio.put("trash/stuck.txt", b"x")
    fake_minio.fail_keys.add("trash/stuck.txt")
    stuck = await make_item("stuck.txt", storage_key="trash/stuck.txt", is_deleted=True,
                            deleted_at=now - timedelta(days=40))
    empty = await make_item("empty.txt", is_deleted=True, deleted_at=now - timedelta(days=40))

    purged, failed = await purge_expired_trash(session_maker, storage, now=now)

    assert (purged, failed) == (1, 1)
    async with session_maker() as db:
        remaining = {i.id for i in (await db.execute(select(FileItem))).scalars().all()}
    assert remaining == {stuck.id}
    assert empty.id not in remaining


@pytest.mark.asyncio
async def test_purge_removes_live_contents_of_expired_folders(session_maker, storage, fake_minio, make_item):
    now = datetime(2024, 6, 1)
    folder = await make_item("Archive", ItemType.FOLDER, is_deleted=True, deleted_at=now - timedelta(days=45))
    done = await make_item("2019", ItemType.FOLDER, parent_id=folder.id)
    stuck_parent = await make_item("2020", ItemType.FOLDER, parent_id=folder.id)
    fake_minio.put("files/a_ledger.csv", b"a,b")
    fake_minio.put("files/b_payroll.csv", b"c,d")
    ledger = await make_item("ledger.csv", parent_id=done.id, storage_key="files/a_ledger.csv")
    payroll = await make_item("payroll.csv", parent_id=stuck_parent.id, storage_key="files/b_payroll.csv")
    fake_minio.fail_keys.add("files/b_payroll.csv")

    purged, failed = await purge_expired_trash(session_maker, storage, now=now)

    assert (purged, failed) == (2, 1)
    assert "files/a_ledger.csv" not in fake_minio.objects
    async with session_maker() as db:
        remaining = {i.id for i in (await db.execute(select(FileItem))).scalars().all()}
    assert ledger.id not in remaining
    assert remaining == {folder.id, stuck_parent.id, payroll.id}

    fake_minio.fail_keys.clear()
    assert await purge_expired_trash(session_maker, storage, now=now) == (3, 0)
    assert fake_minio.objects == {}
