"""User management tests (ADMIN only)."""

import uuid

import pytest


@pytest.mark.asyncio
async def test_user_role_cannot_manage_users(client, user_headers):
    r = await client.get("/api/users", headers=user_headers)
    assert r.status_code == 403
    assert r.json()["message"] == "Admin access required."


@pytest.mark.asyncio
async def test_users_require_token(client):
    r = await client.get("/api/users")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_create_user_defaults_to_user_role(client, tenants, admin_headers):
    r = await client.post(
        "/api/users",
        json={"email": "new@acme.com", "password": "longenough", "name": "New Hire"},
        headers=admin_headers,
    )
    assert r.status_code == 201
    user = r.json()
    assert user["role"] == "USER"
    assert user["companyId"] == str(tenants.acme.id)
    assert "password" not in user
    assert "passwordHash" not in user

    r = await client.post(
        "/api/auth/login", json={"email": "new@acme.com", "password": "longenough"}
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_create_admin(client, admin_headers):
    r = await client.post(
        "/api/users",
        json={"email": "boss@acme.com", "password": "longenough", "role": "ADMIN"},
        headers=admin_headers,
    )
    assert r.status_code == 201
    assert r.json()["role"] == "ADMIN"


@pytest.mark.asyncio
async def test_create_user_in_own_company_explicitly(client, tenants, admin_headers):
    r = await client.post(
        "/api/users",
        json={
            "email": "new@acme.com",
            "password": "longenough",
            "companyId": str(tenants.acme.id),
        },
        headers=admin_headers,
    )
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_create_user_in_other_company(client, tenants, admin_headers):
    r = await client.post(
        "/api/users",
        json={
            "email": "mole@globex.com",
            "password": "longenough",
            "companyId": str(tenants.globex.id),
        },
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_reference"


@pytest.mark.asyncio
async def test_create_user_duplicate_email(client, admin_headers):
    r = await client.post(
        "/api/users",
        json={"email": "admin@globex.com", "password": "longenough"},
        headers=admin_headers,
    )
    assert r.status_code == 409
    assert r.json()["message"] == "Email already in use."


@pytest.mark.asyncio
async def test_list_users_oldest_first_and_scoped(client, admin_headers):
    r = await client.get("/api/users", headers=admin_headers)
    assert r.status_code == 200
    assert [u["email"] for u in r.json()] == ["admin@acme.com", "user@acme.com"]


@pytest.mark.asyncio
async def test_get_user(client, tenants, admin_headers):
    r = await client.get(f"/api/users/{tenants.acme_user.id}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Bob Builder"

    r = await client.get(f"/api/users/{tenants.globex_admin.id}", headers=admin_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_update_user_name_and_role(client, tenants, admin_headers):
    r = await client.put(
        f"/api/users/{tenants.acme_user.id}",
        json={"name": "Robert Builder", "role": "ADMIN"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Robert Builder"
    assert r.json()["role"] == "ADMIN"


@pytest.mark.asyncio
async def test_update_user_password(client, tenants, admin_headers, password):
    r = await client.put(
        f"/api/users/{tenants.acme_user.id}",
        json={"password": "brand-new-secret"},
        headers=admin_headers,
    )
    assert r.status_code == 200

    r = await client.post(
        "/api/auth/login", json={"email": "user@acme.com", "password": password}
    )
    assert r.status_code == 401
    r = await client.post(
        "/api/auth/login", json={"email": "user@acme.com", "password": "brand-new-secret"}
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_update_user_email_not_allowed(client, tenants, admin_headers):
    r = await client.put(
        f"/api/users/{tenants.acme_user.id}",
        json={"email": "changed@acme.com"},
        headers=admin_headers,
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_update_user_only_null_password(client, tenants, admin_headers):
    r = await client.put(
        f"/api/users/{tenants.acme_user.id}",
        json={"password": None},
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert "body" in r.json()["errors"]


@pytest.mark.asyncio
async def test_update_other_company_user(client, tenants, admin_headers):
    r = await client.put(
        f"/api/users/{tenants.globex_admin.id}",
        json={"role": "USER"},
        headers=admin_headers,
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(client, tenants, admin_headers):
    r = await client.delete(f"/api/users/{tenants.acme_admin.id}", headers=admin_headers)
    assert r.status_code == 403
    assert r.json()["code"] == "self_deletion_forbidden"


@pytest.mark.asyncio
async def test_delete_user_unassigns_tasks(client, tenants, admin_headers):
    r = await client.post(
        "/api/projects", json={"name": "Roof", "status": "Planning"}, headers=admin_headers
    )
    project_id = r.json()["id"]
    r = await client.post(
        "/api/tasks",
        json={
            "title": "Replace shingles",
            "projectId": project_id,
            "assigneeId": str(tenants.acme_user.id),
        },
        headers=admin_headers,
    )
    task_id = r.json()["id"]

    r = await client.delete(f"/api/users/{tenants.acme_user.id}", headers=admin_headers)
    assert r.status_code == 204

    r = await client.get(f"/api/tasks/{task_id}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["assigneeId"] is None


@pytest.mark.asyncio
async def test_delete_user_with_projects_blocked(client, tenants, admin_headers, user_headers):
    r = await client.post(
        "/api/projects", json={"name": "Deck", "status": "Planning"}, headers=user_headers
    )
    assert r.status_code == 201

    r = await client.delete(f"/api/users/{tenants.acme_user.id}", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["code"] == "still_referenced"


@pytest.mark.asyncio
async def test_delete_missing_or_foreign_user(client, tenants, admin_headers):
    r = await client.delete(f"/api/users/{uuid.uuid4()}", headers=admin_headers)
    assert r.status_code == 404
    r = await client.delete(f"/api/users/{tenants.globex_admin.id}", headers=admin_headers)
    assert r.status_code == 404
