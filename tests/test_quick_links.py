"""Tests for QuickLinkService."""

import pytest

from hacienda.models.file_item import ItemType
from hacienda.services.errors import InvalidNameError, InvalidOperationError, ItemNotFoundError
from hacienda.services.quick_link_service import QuickLinkService


@pytest.mark.asyncio
async def test_create_defaults_to_folder_name_and_color(session, user, make_item):
    folder = await make_item("Payroll", ItemType.FOLDER, folder_color="#22c55e")
    links = QuickLinkService(session, user.id)

    link = await links.create(folder.id)
    assert link.name == "Payroll"
    assert link.folder_color == "#22c55e"
    assert link.sort_order == 0

    second = await links.create(folder.id, name=" Nómina ", folder_color="#a855f7")
    assert second.name == "Nómina"
    assert second.folder_color == "#a855f7"
    assert second.sort_order == 1


@pytest.mark.asyncio
async def test_create_requires_live_folder(session, user, make_item):
    file = await make_item("a.txt")
    trashed = await make_item("Old", ItemType.FOLDER, is_deleted=True)
    links = QuickLinkService(session, user.id)

    for target in ("missing", file.id, trashed.id):
        with pytest.raises(ItemNotFoundError):
            await links.create(target)


@pytest.mark.asyncio
async def test_update_validates_name_and_color(session, user, make_item):
    folder = await make_item("Payroll", ItemType.FOLDER)
    links = QuickLinkService(session, user.id)
    link = await links.create(folder.id)

    updated = await links.update(link.id, name="Salaries", folder_color="#3b82f6")
    assert updated.name == "Salaries"
    assert updated.folder_color == "#3b82f6"

    with pytest.raises(InvalidNameError):
        await links.update(link.id, name="   ")
    with pytest.raises(InvalidOperationError):
        await links.update(link.id, folder_color="teal")


@pytest.mark.asyncio
async def test_links_are_private_to_their_user(session, user, make_item):
    folder = await make_item("Payroll", ItemType.FOLDER)
    link = await QuickLinkService(session, user.id).create(folder.id)
    other = QuickLinkService(session, "someone-else")

    assert await other.list_links() == []
    with pytest.raises(ItemNotFoundError):
        await other.delete(link.id)


@pytest.mark.asyncio
async def test_reorder_puts_unlisted_links_last(session, user, make_item):
    links = QuickLinkService(session, user.id)
    created = []
    for name in ("A", "B", "C"):
        folder = await make_item(name, ItemType.FOLDER)
        created.append(await links.create(folder.id))
    a, b, c = (link.id for link in created)

    reordered = await links.reorder([c, a])
    assert [link.id for link in reordered] == [c, a, b]
    assert [link.id for link in await links.list_links()] == [c, a, b]

    with pytest.raises(ItemNotFoundError):
        await links.reorder(["unknown"])


@pytest.mark.asyncio
async def test_delete_link(session, user, make_item):
    folder = await make_item("Payroll", ItemType.FOLDER)
    links = QuickLinkService(session, user.id)
    link = await links.create(folder.id)

    await links.delete(link.id)
    assert await links.list_links() == []
