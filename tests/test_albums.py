"""Album CRUD, batch upsert and photo ordering."""

import pytest
from httpx import AsyncClient


async def _bootstrap(client: AsyncClient, signup, create_project) -> dict:
    owner = await signup("owner@studio.com")
    project = await create_project(owner)
    return {"owner": owner, "headers": owner["headers"], "project_id": project["id"]}


async def _upload(client: AsyncClient, album_id: str, name: str, headers: dict) -> str:
    resp = await client.post(
        f"/v1/photos/upload/{album_id}",
        files={"photo": (name, b"\xff\xd8" + name.encode(), "image/jpeg")},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


@pytest.mark.asyncio
async def test_create_album_inherits_project_tenant(client: AsyncClient, signup, create_project):
    ctx = await _bootstrap(client, signup, create_project)
    resp = await client.post(
        "/v1/albums",
        json={
            "projectId": ctx["project_id"],
            "title": "Ceremony",
            "description": "Vows and rings",
            "coverImage": "https://cdn.example.com/cover.jpg",
        },
        headers=ctx["headers"],
    )
    assert resp.status_code == 201
    album = resp.json()["data"]
    assert album["projectId"] == ctx["project_id"]
    assert album["tenantId"] == ctx["owner"]["tenant"]["id"]
    assert album["coverImage"] == "https://cdn.example.com/cover.jpg"
    assert album["photoCount"] == 0


@pytest.mark.asyncio
async def test_create_album_for_unknown_project(client: AsyncClient, signup, create_project):
    ctx = await _bootstrap(client, signup, create_project)
    resp = await client.post(
        "/v1/albums",
        json={"projectId": "00000000-0000-0000-0000-000000000000", "title": "Lost"},
        headers=ctx["headers"],
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_album_photos_newest_first_and_count(client: AsyncClient, signup, create_project):
    """Three uploads, one deleted: two photos remain, newest first."""
    ctx = await _bootstrap(client, signup, create_project)
    resp = await client.post(
        "/v1/albums", json={"projectId": ctx["project_id"], "title": "Reception"}, headers=ctx["headers"],
    )
    album_id = resp.json()["data"]["id"]

    first = await _upload(client, album_id, "first.jpg", ctx["headers"])
    second = await _upload(client, album_id, "second.jpg", ctx["headers"])
    third = await _upload(client, album_id, "third.jpg", ctx["headers"])

    resp = await client.get(f"/v1/albums/{album_id}", headers=ctx["headers"])
    album = resp.json()["data"]
    assert [p["id"] for p in album["photos"]] == [third, second, first]
    assert album["photoCount"] == 3

    resp = await client.delete(f"/v1/photos/{second}", headers=ctx["headers"])
    assert resp.status_code == 200

    resp = await client.get(f"/v1/albums/{album_id}", headers=ctx["headers"])
    album = resp.json()["data"]
    assert [p["id"] for p in album["photos"]] == [third, first]
    assert album["photoCount"] == 2

    resp = await client.get(f"/v1/albums/project/{ctx['project_id']}", headers=ctx["headers"])
    assert resp.json()["data"][0]["photoCount"] == 2


@pytest.mark.asyncio
async def test_batch_creates_and_updates(client: AsyncClient, signup, create_project):
    ctx = await _bootstrap(client, signup, create_project)
    resp = await client.post(
        "/v1/albums", json={"projectId": ctx["project_id"], "title": "Old title"}, headers=ctx["headers"],
    )
    existing = resp.json()["data"]["id"]

    resp = await client.put(
        "/v1/albums/batch",
        json={
            "projectId": ctx["project_id"],
            "albums": [
                {"albumId": existing, "title": "New title"},
                {"title": "Portraits", "description": "Family shots"},
            ],
        },
        headers=ctx["headers"],
    )
    assert resp.status_code == 200
    saved = resp.json()["data"]
    assert [a["title"] for a in saved] == ["New title", "Portraits"]
    assert saved[0]["id"] == existing

    resp = await client.get(f"/v1/albums/project/{ctx['project_id']}", headers=ctx["headers"])
    assert resp.json()["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_batch_is_all_or_nothing(client: AsyncClient, signup, create_project):
    """One bad entry rolls back the entries before it."""
    ctx = await _bootstrap(client, signup, create_project)
    resp = await client.put(
        "/v1/albums/batch",
        json={
            "projectId": ctx["project_id"],
            "albums": [
                {"title": "Would be created"},
                {"albumId": "00000000-0000-0000-0000-000000000000", "title": "Missing"},
            ],
        },
        headers=ctx["headers"],
    )
    assert resp.status_code == 404

    resp = await client.get(f"/v1/albums/project/{ctx['project_id']}", headers=ctx["headers"])
    assert resp.json()["data"] == []


@pytest.mark.asyncio
async def test_batch_rejects_empty_list(client: AsyncClient, signup, create_project):
    ctx = await _bootstrap(client, signup, create_project)
    resp = await client.put(
        "/v1/albums/batch", json={"projectId": ctx["project_id"], "albums": []}, headers=ctx["headers"],
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_album_partial(client: AsyncClient, signup, create_project):
    ctx = await _bootstrap(client, signup, create_project)
    resp = await client.post(
        "/v1/albums",
        json={"projectId": ctx["project_id"], "title": "Ceremony", "description": "Keep me"},
        headers=ctx["headers"],
    )
    album_id = resp.json()["data"]["id"]

    resp = await client.put(f"/v1/albums/{album_id}", json={"title": "Church"}, headers=ctx["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"]["title"] == "Church"
    assert resp.json()["data"]["description"] == "Keep me"


@pytest.mark.asyncio
async def test_delete_album_hides_photos(client: AsyncClient, signup, create_project):
    ctx = await _bootstrap(client, signup, create_project)
    resp = await client.post(
        "/v1/albums", json={"projectId": ctx["project_id"], "title": "Doomed"}, headers=ctx["headers"],
    )
    album_id = resp.json()["data"]["id"]
    photo_id = await _upload(client, album_id, "x.jpg", ctx["headers"])

    resp = await client.delete(f"/v1/albums/{album_id}", headers=ctx["headers"])
    assert resp.status_code == 200

    assert (await client.get(f"/v1/albums/{album_id}", headers=ctx["headers"])).status_code == 404
    assert (await client.get(f"/v1/photos/{photo_id}", headers=ctx["headers"])).status_code == 404
    resp = await client.put(f"/v1/albums/{album_id}", json={"title": "Zombie"}, headers=ctx["headers"])
    assert resp.status_code == 404

    resp = await client.get(f"/v1/projects/{ctx['project_id']}", headers=ctx["headers"])
    assert resp.json()["data"]["albums"] == []


@pytest.mark.asyncio
async def test_update_album_rejects_null_title(client: AsyncClient, signup, create_project):
    ctx = await _bootstrap(client, signup, create_project)
    resp = await client.post(
        "/v1/albums", json={"projectId": ctx["project_id"], "title": "Ceremony"}, headers=ctx["headers"],
    )
    album_id = resp.json()["data"]["id"]

    resp = await client.put(f"/v1/albums/{album_id}", json={"title": None}, headers=ctx["headers"])
    assert resp.status_code == 400
    assert resp.json()["error"]["context"]["value"][0]["field"] == "title"

    resp = await client.get(f"/v1/albums/{album_id}", headers=ctx["headers"])
    assert resp.json()["data"]["title"] == "Ceremony"
