"""Per-project accessibility levels: VIEW_ONLY < EDIT < ADMIN."""

import pytest
from httpx import AsyncClient

from photohub.models.project import Accessibility


def test_accessibility_ordering():
    assert Accessibility.ADMIN.satisfies(Accessibility.EDIT)
    assert Accessibility.ADMIN.satisfies(Accessibility.VIEW_ONLY)
    assert Accessibility.EDIT.satisfies(Accessibility.VIEW_ONLY)
    assert Accessibility.EDIT.satisfies(Accessibility.EDIT)
    assert not Accessibility.VIEW_ONLY.satisfies(Accessibility.EDIT)
    assert not Accessibility.EDIT.satisfies(Accessibility.ADMIN)


async def _project_with_album(client: AsyncClient, owner: dict, create_project) -> tuple[dict, str, str]:
    """Project + album + one photo owned by ``owner``."""
    project = await create_project(owner)
    resp = await client.post(
        "/v1/albums", json={"projectId": project["id"], "title": "Ceremony"}, headers=owner["headers"],
    )
    album_id = resp.json()["data"]["id"]
    resp = await client.post(
        f"/v1/photos/upload/{album_id}",
        files={"photo": ("p.jpg", b"\xff\xd8data", "image/jpeg")},
        headers=owner["headers"],
    )
    return project, album_id, resp.json()["data"]["id"]


@pytest.mark.asyncio
async def test_view_only_can_read_and_add_but_not_edit(
    client: AsyncClient, signup, create_project, invite_client,
):
    owner = await signup("owner@studio.com")
    project, album_id, photo_id = await _project_with_album(client, owner, create_project)
    viewer = await invite_client(owner, project["id"], "viewer@example.com", "VIEW_ONLY")
    h = viewer["headers"]

    assert (await client.get(f"/v1/projects/{project['id']}", headers=h)).status_code == 200
    assert (await client.get(f"/v1/albums/{album_id}", headers=h)).status_code == 200
    assert (await client.get(f"/v1/photos/{photo_id}", headers=h)).status_code == 200

    resp = await client.post(
        "/v1/albums", json={"projectId": project["id"], "title": "Guest shots"}, headers=h,
    )
    assert resp.status_code == 201
    resp = await client.post(
        f"/v1/photos/upload/{album_id}",
        files={"photo": ("guest.jpg", b"\xff\xd8guest", "image/jpeg")},
        headers=h,
    )
    assert resp.status_code == 201

    resp = await client.put(f"/v1/albums/{album_id}", json={"title": "Renamed"}, headers=h)
    assert resp.status_code == 403
    assert resp.json()["error"]["context"]["current"] == "VIEW_ONLY"
    assert (await client.put(f"/v1/projects/{project['id']}", json={"title": "X"}, headers=h)).status_code == 403
    assert (await client.delete(f"/v1/photos/{photo_id}", headers=h)).status_code == 403
    assert (await client.delete(f"/v1/albums/{album_id}", headers=h)).status_code == 403


@pytest.mark.asyncio
async def test_edit_can_modify_but_not_administer(
    client: AsyncClient, signup, create_project, invite_client,
):
    owner = await signup("owner@studio.com")
    project, album_id, photo_id = await _project_with_album(client, owner, create_project)
    editor = await invite_client(owner, project["id"], "editor@example.com", "EDIT")
    h = editor["headers"]

    assert (await client.put(f"/v1/albums/{album_id}", json={"title": "Renamed"}, headers=h)).status_code == 200
    assert (await client.put(f"/v1/projects/{project['id']}", json={"title": "New"}, headers=h)).status_code == 200
    assert (await client.delete(f"/v1/photos/{photo_id}", headers=h)).status_code == 200

    assert (await client.delete(f"/v1/albums/{album_id}", headers=h)).status_code == 403
    assert (await client.delete(f"/v1/projects/{project['id']}", headers=h)).status_code == 403
    resp = await client.post(
        "/v1/invites/add-project-customer",
        json={"projectId": project["id"], "email": "third@example.com"},
        headers=h,
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_no_grant_means_forbidden(client: AsyncClient, signup, create_project, invite_client):
    """Same tenant but no grant on the project: every read and write is refused."""
    owner = await signup("owner@studio.com")
    granted = await create_project(owner, "Granted")
    project, album_id, photo_id = await _project_with_album(client, owner, create_project)
    member = await invite_client(owner, granted["id"], "member@example.com", "ADMIN")
    h = member["headers"]

    assert (await client.get(f"/v1/projects/{project['id']}", headers=h)).status_code == 403
    assert (await client.get(f"/v1/albums/{album_id}", headers=h)).status_code == 403
    assert (await client.get(f"/v1/photos/{photo_id}", headers=h)).status_code == 403
    assert (await client.get(f"/v1/photos/album/{album_id}", headers=h)).status_code == 403
    resp = await client.post(
        "/v1/albums", json={"projectId": project["id"], "title": "Sneaky"}, headers=h,
    )
    assert resp.status_code == 403

    resp = await client.get("/v1/projects", headers=h)
    assert [p["title"] for p in resp.json()["data"]] == ["Granted"]


@pytest.mark.asyncio
async def test_admin_collaborator_can_delete(client: AsyncClient, signup, create_project, invite_client):
    owner = await signup("owner@studio.com")
    project, album_id, _ = await _project_with_album(client, owner, create_project)
    admin = await invite_client(owner, project["id"], "admin@example.com", "ADMIN")

    resp = await client.delete(f"/v1/albums/{album_id}", headers=admin["headers"])
    assert resp.status_code == 200
    resp = await client.delete(f"/v1/projects/{project['id']}", headers=admin["headers"])
    assert resp.status_code == 200
