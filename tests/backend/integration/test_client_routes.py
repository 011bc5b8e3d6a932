import pytest

from gemquest.core.permissions import CLIENT_ADMIN, DEVELOPER, VIEWER
from gemquest.models import Client, User, UserRole


pytestmark = pytest.mark.asyncio


def token_from_link(link: str) -> str:
    return link.split("token=", 1)[1]


# ==============================================================================
# Clients
# ==============================================================================
async def test_creator_becomes_owner_and_client_admin(client, repo, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)

    resp = await client.post("/api/v1/clients", json={"name": "Acme", "plan": "pro"}, headers=headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["ownerId"] == str(user.id)
    assert data["plan"] == "pro"

    assert await repo.client_role_names(user.id, data["id"]) == [CLIENT_ADMIN]

    detail = await client.get(f"/api/v1/clients/{data['id']}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["data"]["name"] == "Acme"


async def test_sub_client_requires_admin_in_parent(
    client, create_user, create_client, grant, auth_header_factory
):
    parent = await create_client("parent")
    user, password = await create_user()
    await grant(user, VIEWER, parent)
    headers = await auth_header_factory(user.email, password)

    forbidden = await client.post(
        "/api/v1/clients", json={"name": "Child", "parentId": parent.id}, headers=headers
    )
    assert forbidden.status_code == 403
    assert await Client.filter(name="Child").count() == 0

    missing = await client.post(
        "/api/v1/clients", json={"name": "Child", "parentId": 99999}, headers=headers
    )
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "CLIENT_NOT_FOUND"

    await grant(user, CLIENT_ADMIN, parent)
    created = await client.post(
        "/api/v1/clients", json={"name": "Child", "parentId": parent.id}, headers=headers
    )
    assert created.status_code == 201
    assert created.json()["data"]["parentId"] == parent.id


async def test_get_missing_client_is_not_found(client, create_admin, auth_header_factory):
    admin, password = await create_admin()
    headers = await auth_header_factory(admin.email, password)

    resp = await client.get("/api/v1/clients/424242", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "CLIENT_NOT_FOUND"


# ==============================================================================
# Collaborators
# ==============================================================================
async def test_invite_new_collaborator_flow(
    client, mailer, create_user, create_client, grant, auth_header_factory
):
    acme = await create_client("acme")
    admin, password = await create_user()
    await grant(admin, CLIENT_ADMIN, acme)
    headers = await auth_header_factory(admin.email, password)

    resp = await client.post(
        "/api/v1/collaborators",
        json={"email": "newbie@example.com", "clientId": acme.id, "role": DEVELOPER},
        headers=headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["role"] == DEVELOPER
    assert data["clientId"] == acme.id
    assert data["created"] is True

    invited = await User.get(email="newbie@example.com")
    assert invited.email_confirmed is False

    sent = mailer.last_to("newbie@example.com")
    assert sent["template"] == "invitation"
    link = sent["variables"]["resetLink"]
    assert "/auth/set-password?token=" in link

    # The invitation link sets a password and confirms the address
    set_resp = await client.post(
        "/api/v1/auth/set-password",
        json={"token": token_from_link(link), "newPassword": "Invited#123"},
    )
    assert set_resp.status_code == 200
    login = await client.post(
        "/api/v1/auth/login", json={"email": "newbie@example.com", "password": "Invited#123"}
    )
    assert login.status_code == 200


async def test_reinvite_is_noop_and_other_role_conflicts(
    client, create_user, create_client, grant, auth_header_factory
):
    acme = await create_client("acme")
    admin, password = await create_user()
    await grant(admin, CLIENT_ADMIN, acme)
    member, _ = await create_user()
    headers = await auth_header_factory(admin.email, password)
    payload = {"email": member.email, "clientId": acme.id, "role": VIEWER}

    first = await client.post("/api/v1/collaborators", json=payload, headers=headers)
    again = await client.post("/api/v1/collaborators", json=payload, headers=headers)
    assert first.json()["data"]["created"] is True
    assert again.status_code == 200
    assert again.json()["data"]["created"] is False
    assert again.json()["data"]["id"] == first.json()["data"]["id"]
    assert await UserRole.filter(user_id=member.id, client_id=acme.id).count() == 1

    conflict = await client.post(
        "/api/v1/collaborators", json={**payload, "role": DEVELOPER}, headers=headers
    )
    assert conflict.status_code == 409
    assert conflict.json()["error"]["code"] == "ROLE_CONFLICT"


async def test_invite_unknown_role_or_client(
    client, create_admin, create_client, auth_header_factory
):
    acme = await create_client("acme")
    admin, password = await create_admin()
    headers = await auth_header_factory(admin.email, password)

    bad_role = await client.post(
        "/api/v1/collaborators",
        json={"email": "x@example.com", "clientId": acme.id, "role": "Overlord"},
        headers=headers,
    )
    assert bad_role.status_code == 404
    assert bad_role.json()["error"]["code"] == "ROLE_NOT_FOUND"

    bad_client = await client.post(
        "/api/v1/collaborators",
        json={"email": "x@example.com", "clientId": 99999, "role": VIEWER},
        headers=headers,
    )
    assert bad_client.status_code == 404
    assert bad_client.json()["error"]["code"] == "CLIENT_NOT_FOUND"


async def test_invitation_mail_failure_does_not_fail_request(
    client, mailer, create_admin, create_client, auth_header_factory
):
    acme = await create_client("acme")
    admin, password = await create_admin()
    headers = await auth_header_factory(admin.email, password)
    mailer.fail = True

    resp = await client.post(
        "/api/v1/collaborators",
        json={"email": "quiet@example.com", "clientId": acme.id, "role": VIEWER},
        headers=headers,
    )
    assert resp.status_code == 200
    assert await User.exists(email="quiet@example.com")


async def test_list_collaborators_requires_admin(
    client, create_user, create_client, grant, auth_header_factory
):
    acme = await create_client("acme")
    admin, admin_password = await create_user()
    viewer, viewer_password = await create_user()
    await grant(admin, CLIENT_ADMIN, acme)
    await grant(viewer, VIEWER, acme)

    viewer_headers = await auth_header_factory(viewer.email, viewer_password)
    forbidden = await client.get(
        "/api/v1/collaborators", params={"clientId": acme.id}, headers=viewer_headers
    )
    assert forbidden.status_code == 403

    admin_headers = await auth_header_factory(admin.email, admin_password)
    resp = await client.get("/api/v1/collaborators", params={"clientId": acme.id}, headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["total"] == 2
    assert {(item["user"]["email"], item["role"]) for item in data["items"]} == {
        (admin.email, CLIENT_ADMIN),
        (viewer.email, VIEWER),
    }


# ==============================================================================
# Experiences
# ==============================================================================
async def test_experience_lifecycle(client, create_user, create_client, grant, auth_header_factory):
    acme = await create_client("acme")
    admin, password = await create_user()
    await grant(admin, CLIENT_ADMIN, acme)
    headers = await auth_header_factory(admin.email, password)

    created = await client.post(
        "/api/v1/experiences",
        json={"name": "Gem Hunt", "description": "Find the gems", "clientId": acme.id},
        headers=headers,
    )
    assert created.status_code == 201
    experience = created.json()["data"]
    assert experience["createdById"] == str(admin.id)

    listed = await client.get(f"/api/v1/experiences/client/{acme.id}", headers=headers)
    assert listed.status_code == 200
    assert [e["name"] for e in listed.json()["data"]] == ["Gem Hunt"]

    updated = await client.put(
        f"/api/v1/experiences/{experience['id']}",
        json={"description": "Find all the gems"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["name"] == "Gem Hunt"
    assert updated.json()["data"]["description"] == "Find all the gems"

    deleted = await client.delete(f"/api/v1/experiences/{experience['id']}", headers=headers)
    assert deleted.status_code == 204

    gone = await client.put(
        f"/api/v1/experiences/{experience['id']}", json={"name": "x"}, headers=headers
    )
    assert gone.status_code == 404
    assert gone.json()["error"]["code"] == "EXPERIENCE_NOT_FOUND"


async def test_create_experience_in_missing_client(client, create_admin, auth_header_factory):
    admin, password = await create_admin()
    headers = await auth_header_factory(admin.email, password)

    resp = await client.post(
        "/api/v1/experiences", json={"name": "Orphan", "clientId": 99999}, headers=headers
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "CLIENT_NOT_FOUND"


async def test_experience_checks_use_owning_client(
    client, create_user, create_client, grant, auth_header_factory
):
    acme = await create_client("acme")
    globex = await create_client("globex")
    user, password = await create_user()
    await grant(user, CLIENT_ADMIN, globex)
    admin, admin_password = await create_user()
    await grant(admin, CLIENT_ADMIN, acme)

    admin_headers = await auth_header_factory(admin.email, admin_password)
    created = await client.post(
        "/api/v1/experiences", json={"name": "Acme only", "clientId": acme.id}, headers=admin_headers
    )
    experience_id = created.json()["data"]["id"]

    # Admin of another client cannot touch it
    headers = await auth_header_factory(user.email, password)
    update = await client.put(f"/api/v1/experiences/{experience_id}", json={"name": "x"}, headers=headers)
    assert update.status_code == 403
    delete = await client.delete(f"/api/v1/experiences/{experience_id}", headers=headers)
    assert delete.status_code == 403
    listing = await client.get(f"/api/v1/experiences/client/{acme.id}", headers=headers)
    assert listing.status_code == 403
