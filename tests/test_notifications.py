"""Tests for toasts, persisted notifications and file alerts."""

from types import SimpleNamespace

import pytest
from sqlalchemy import select

from hacienda.models.file_item import ItemType
from hacienda.models.notification import Notification, NotificationType
from hacienda.services import notification_service
from hacienda.services.alert_service import AlertService, notify_subscribers
from hacienda.services.errors import ItemNotFoundError
from hacienda.services.notification_service import (
    NotificationService,
    ToastCenter,
    create_notification,
)


def test_toasts_expire_after_their_duration(monkeypatch):
    clock = [100.0]
    monkeypatch.setattr(notification_service, "time", SimpleNamespace(monotonic=lambda: clock[0]))
    center = ToastCenter(default_duration=5)

    short = center.show_toast("ana", "Saved", "done", "success")
    center.show_toast("ana", "Heads up", "later", "info", duration=30)
    center.show_toast("luis", "Other", "user", "warning")

    assert len(center.list_toasts("ana")) == 2
    clock[0] += 6
    assert [t.title for t in center.list_toasts("ana")] == ["Heads up"]
    assert short.duration == 5


def test_showing_toasts_drops_expired_ones(monkeypatch):
    clock = [0.0]
    monkeypatch.setattr(notification_service, "time", SimpleNamespace(monotonic=lambda: clock[0]))
    center = ToastCenter(default_duration=5)

    for i in range(1000):
        center.show_toast("ana", "Saved", f"item {i}", "success")
        clock[0] += 10

    assert len(center._toasts["ana"]) == 1
    center.show_toast("ana", "Saved", "last", "success", duration=60)
    assert [t.message for t in center._toasts["ana"]] == ["last"]


def test_toasts_can_be_dismissed():
    center = ToastCenter(default_duration=60)
    toast = center.show_toast("ana", "Saved", "done")
    assert center.remove_toast("ana", toast.id) is True
    assert center.remove_toast("ana", toast.id) is False
    assert center.list_toasts("ana") == []


def test_unknown_toast_type_is_rejected():
    with pytest.raises(ValueError):
        ToastCenter().show_toast("ana", "x", "y", "fatal")


async def add_notification(session, user_id, title):
    notification = await create_notification(session, user_id, title, f"{title} message", NotificationType.MODIFY)
    await session.commit()
    return notification


@pytest.mark.asyncio
async def test_notifications_newest_first_with_unread_count(session):
    await add_notification(session, "ana", "first")
    await add_notification(session, "ana", "second")
    await add_notification(session, "luis", "not mine")

    service = NotificationService(session, "ana")
    items, unread = await service.list_notifications()

    assert [n.title for n in items] == ["second", "first"]
    assert unread == 2


@pytest.mark.asyncio
async def test_mark_read_and_mark_all_read(session):
    first = await add_notification(session, "ana", "first")
    await add_notification(session, "ana", "second")
    service = NotificationService(session, "ana")

    marked = await service.mark_read(first.id)
    assert marked.is_read
    assert marked.read_at is not None
    assert await service.unread_count() == 1

    assert await service.mark_all_read() == 1
    assert await service.unread_count() == 0


@pytest.mark.asyncio
async def test_notifications_are_scoped_to_their_owner(session):
    theirs = await add_notification(session, "luis", "private")
    service = NotificationService(session, "ana")

    with pytest.raises(ItemNotFoundError):
        await service.mark_read(theirs.id)
    with pytest.raises(ItemNotFoundError):
        await service.delete(theirs.id)


@pytest.mark.asyncio
async def test_delete_and_clear_all(session):
    first = await add_notification(session, "ana", "first")
    await add_notification(session, "ana", "second")
    await add_notification(session, "luis", "kept")
    service = NotificationService(session, "ana")

    await service.delete(first.id)
    assert [n.title for n in (await service.list_notifications())[0]] == ["second"]

    assert await service.clear_all() == 1
    remaining = (await session.execute(select(Notification))).scalars().all()
    assert [n.title for n in remaining] == ["kept"]


@pytest.mark.asyncio
async def test_set_alert_upserts_and_confirms(session, user, make_item):
    folder = await make_item("Payroll", ItemType.FOLDER)
    alerts = AlertService(session, user)

    alert = await alerts.set_alert(folder.id)
    again = await alerts.set_alert(folder.id, alert_on_upload=False, email_notification=False)

    assert again.id == alert.id
    assert again.alert_on_upload is False
    assert again.email_notification is False
    assert [a.id for a in await alerts.list_alerts()] == [alert.id]

    items, _ = await NotificationService(session, user.id).list_notifications()
    assert {n.type for n in items} == {NotificationType.ALERT}


@pytest.mark.asyncio
async def test_set_alert_on_missing_or_trashed_item(session, user, make_item):
    trashed = await make_item("old.txt", is_deleted=True)
    alerts = AlertService(session, user)

    with pytest.raises(ItemNotFoundError):
        await alerts.set_alert("missing")
    with pytest.raises(ItemNotFoundError):
        await alerts.set_alert(trashed.id)
    with pytest.raises(ItemNotFoundError):
        await alerts.remove_alert(trashed.id)


@pytest.mark.asyncio
async def test_notify_subscribers_respects_event_flags(session, user, make_item, monkeypatch):
    folder = await make_item("Payroll", ItemType.FOLDER)
    await AlertService(session, user).set_alert(folder.id, alert_on_delete=False)
    sent = []
    monkeypatch.setattr("hacienda.services.alert_service.email_enabled", lambda: True)
    monkeypatch.setattr("hacienda.services.alert_service.send_email", lambda *args: sent.append(args) or True)

    assert await notify_subscribers(session, [folder.id], NotificationType.DELETE, "Deleted", "gone") == 0
    assert await notify_subscribers(session, [folder.id], NotificationType.MODIFY, "Changed", "renamed") == 1

    res = await session.execute(
        select(Notification).where(Notification.type == NotificationType.MODIFY)
    )
    assert [n.message for n in res.scalars().all()] == ["renamed"]
    assert sent == [(user.email, "Hacienda ERP: Changed", "renamed")]
