"""Project API tests — role-scoped listing and author-guarded changes.

Learn: The rules under test:
- Admins list every project of their company, users only their own
- Anyone in the company can read a project
- Only the author or an admin can change or delete it (403 otherwise)
- Other companies' projects do not exist (404)
"""

import uuid

import pytest


async def create_project(client, headers, **fields):
    body = {"name": "Kitchen remodel", "status": "Planning", **fields}
    r = await client.post("/api/projects", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_create_project(client, tenants, user_headers):
    r = await client.post(
        "/api/projects",
        json={
            "name": "Kitchen remodel",
            "status": "Planning",
            "address": "12 Elm Street",
            "startDate": "2024-03-01",
            "endDate": "2024-03-21",
        },
        headers=user_headers,
    )
    assert r.status_code == 201
    data = r.json()
    assert data["authorId"] == str(tenants.acme_user.id)
    assert data["companyId"] == str(tenants.acme.id)
    assert data["clientId"] is None
    assert data["client"] is None
    assert data["startDate"].startswith("2024-03-01T00:00:00")


@pytest.mark.asyncio
async def test_create_project_with_client(client, user_headers):
    r = await client.post("/api/clients", json={"name": "Smith"}, headers=user_headers)
    client_id = r.json()["id"]

    project = await create_project(client, user_headers, clientId=client_id)
    assert project["clientId"] == client_id
    assert project["client"] == {"id": client_id, "name": "Smith"}


@pytest.mark.asyncio
async def test_create_project_with_foreign_client(client, user_headers, other_admin_headers):
    r = await client.post("/api/clients", json={"name": "Globex"}, headers=other_admin_headers)
    r = await client.post(
        "/api/projects",
        json={"name": "Sneaky", "status": "Planning", "clientId": r.json()["id"]},
        headers=user_headers,
    )
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_reference"


@pytest.mark.asyncio
async def test_create_project_end_before_start(client, user_headers):
    r = await client.post(
        "/api/projects",
        json={
            "name": "Deck",
            "status": "Planning",
            "startDate": "2024-03-10",
            "endDate": "2024-03-01",
        },
        headers=user_headers,
    )
    assert r.status_code == 400
    assert "endDate" in r.json()["errors"]


@pytest.mark.asyncio
async def test_list_projects_admin_sees_company(
    client, admin_headers, user_headers, other_admin_headers
):
    await create_project(client, admin_headers, name="Admin project")
    await create_project(client, user_headers, name="User project")
    await create_project(client, other_admin_headers, name="Globex project")

    r = await client.get("/api/projects", headers=admin_headers)
    assert r.status_code == 200
    # Newest first
    assert [p["name"] for p in r.json()] == ["User project", "Admin project"]


@pytest.mark.asyncio
async def test_list_projects_user_sees_own(client, admin_headers, user_headers):
    await create_project(client, admin_headers, name="Admin project")
    await create_project(client, user_headers, name="User project")

    r = await client.get("/api/projects", headers=user_headers)
    assert [p["name"] for p in r.json()] == ["User project"]


@pytest.mark.asyncio
async def test_user_can_read_colleagues_project(client, admin_headers, user_headers):
    project = await create_project(client, admin_headers)
    r = await client.get(f"/api/projects/{project['id']}", headers=user_headers)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_other_company_project_is_404(client, user_headers, other_admin_headers):
    project = await create_project(client, other_admin_headers)
    r = await client.get(f"/api/projects/{project['id']}", headers=user_headers)
    assert r.status_code == 404

    r = await client.get(f"/api/projects/{uuid.uuid4()}", headers=user_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_author_updates_project(client, user_headers):
    project = await create_project(client, user_headers)
    r = await client.put(
        f"/api/projects/{project['id']}",
        json={"status": "In Progress", "notes": "Cabinets ordered"},
        headers=user_headers,
    )
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "In Progress"
    assert data["notes"] == "Cabinets ordered"
    assert data["name"] == "Kitchen remodel"


@pytest.mark.asyncio
async def test_non_author_user_cannot_update(client, admin_headers, user_headers):
    project = await create_project(client, admin_headers)
    r = await client.put(
        f"/api/projects/{project['id']}", json={"status": "Done"}, headers=user_headers
    )
    assert r.status_code == 403
    assert r.json()["code"] == "forbidden"


@pytest.mark.asyncio
async def test_admin_updates_users_project(client, admin_headers, user_headers):
    project = await create_project(client, user_headers)
    r = await client.put(
        f"/api/projects/{project['id']}", json={"status": "Done"}, headers=admin_headers
    )
    assert r.status_code == 200
    # Authorship does not move to the admin
    assert r.json()["authorId"] == project["authorId"]


@pytest.mark.asyncio
async def test_other_company_admin_cannot_update(client, user_headers, other_admin_headers):
    project = await create_project(client, user_headers)
    r = await client.put(
        f"/api/projects/{project['id']}", json={"status": "Done"}, headers=other_admin_headers
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_update_rejects_author_and_company(client, tenants, user_headers):
    project = await create_project(client, user_headers)
    r = await client.put(
        f"/api/projects/{project['id']}",
        json={"authorId": str(tenants.acme_admin.id)},
        headers=user_headers,
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_update_can_clear_client(client, user_headers):
    r = await client.post("/api/clients", json={"name": "Smith"}, headers=user_headers)
    project = await create_project(client, user_headers, clientId=r.json()["id"])

    r = await client.put(
        f"/api/projects/{project['id']}", json={"clientId": None}, headers=user_headers
    )
    assert r.status_code == 200
    assert r.json()["clientId"] is None
    assert r.json()["client"] is None


@pytest.mark.asyncio
async def test_update_with_null_name_is_ignored(client, user_headers):
    project = await create_project(client, user_headers)
    r = await client.put(
        f"/api/projects/{project['id']}",
        json={"name": None, "notes": "n"},
        headers=user_headers,
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Kitchen remodel"


@pytest.mark.asyncio
async def test_non_author_user_cannot_delete(client, admin_headers, user_headers):
    project = await create_project(client, admin_headers)
    r = await client.delete(f"/api/projects/{project['id']}", headers=user_headers)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_delete_other_company_project_is_404(client, user_headers, other_admin_headers):
    """An admin of another company gets 404, not 403: the company check runs first."""
    project = await create_project(client, user_headers)
    r = await client.delete(f"/api/projects/{project['id']}", headers=other_admin_headers)
    assert r.status_code == 404

    r = await client.get(f"/api/projects/{project['id']}", headers=user_headers)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_delete_project_removes_tasks(client, user_headers):
    project = await create_project(client, user_headers)
    r = await client.post(
        "/api/tasks",
        json={"title": "Demolish", "projectId": project["id"], "startDate": "2024-03-01"},
        headers=user_headers,
    )
    task_id = r.json()["id"]

    r = await client.delete(f"/api/projects/{project['id']}", headers=user_headers)
    assert r.status_code == 204

    r = await client.get(f"/api/tasks/{task_id}", headers=user_headers)
    assert r.status_code == 404
    r = await client.get("/api/tasks", headers=user_headers)
    assert r.json() == []
