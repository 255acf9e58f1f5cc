"""
Integration tests for admin user management.

Tests token revocation on deactivation, role guards and audit logging.
"""

import pytest

from backend.app.services.audit import AuditAction, get_audit_trail
from conftest import auth, login


# TEST 1: Deactivated user loses access immediately
@pytest.mark.asyncio
async def test_deactivated_user_loses_access_immediately(client, admin_token, owner_user, owner_token):
    """
    A deactivated owner gets 401 on the next request, not after token expiry.
    """
    me = await client.get("/v1/auth/me", headers=auth(owner_token))
    assert me.status_code == 200

    response = await client.post(
        f"/v1/admin/users/{owner_user.id}/deactivate",
        json={"reason": "Fraudulent claims"},
        headers=auth(admin_token)
    )
    assert response.status_code == 200
    assert response.json()["action"] == AuditAction.USER_DEACTIVATED

    after = await client.get("/v1/auth/me", headers=auth(owner_token))
    assert after.status_code == 401
    assert "revoked" in after.json()["message"].lower()

    relogin = await client.post("/v1/auth/login", json={"email": "john.doe@example.com", "password": "password123"})
    assert relogin.status_code == 401
    assert relogin.json()["message"] == "Account is deactivated"


# TEST 2: Reactivation restores login
@pytest.mark.asyncio
async def test_activate_allows_login_again(client, admin_token, owner_user):
    await client.post(f"/v1/admin/users/{owner_user.id}/deactivate", headers=auth(admin_token))

    response = await client.post(f"/v1/admin/users/{owner_user.id}/activate", json={}, headers=auth(admin_token))
    assert response.status_code == 200

    token = await login(client, "john.doe@example.com", "password123")
    me = await client.get("/v1/auth/me", headers=auth(token))
    assert me.status_code == 200


# TEST 3: Admin lists active users
@pytest.mark.asyncio
async def test_admin_lists_active_users(client, admin_token, owner_user, other_owner_user):
    await client.post(f"/v1/admin/users/{other_owner_user.id}/deactivate", headers=auth(admin_token))

    response = await client.get("/v1/admin/users", headers=auth(admin_token))

    assert response.status_code == 200
    data = response.json()
    emails = {user["email"] for user in data["users"]}
    assert emails == {"admin@parceltracker.com", "john.doe@example.com"}
    assert data["total"] == 2


# TEST 4: Owners are kept out of admin endpoints
@pytest.mark.asyncio
async def test_owner_cannot_use_admin_endpoints(client, owner_token, other_owner_user):
    listing = await client.get("/v1/admin/users", headers=auth(owner_token))
    deactivate = await client.post(f"/v1/admin/users/{other_owner_user.id}/deactivate", headers=auth(owner_token))

    assert listing.status_code == 403
    assert deactivate.status_code == 403
    assert listing.json()["error_code"] == "ERR_PERM_001"


@pytest.mark.asyncio
async def test_admin_cannot_deactivate_self(client, admin_token, admin_user):
    response = await client.post(f"/v1/admin/users/{admin_user.id}/deactivate", headers=auth(admin_token))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_deactivate_unknown_user(client, admin_token):
    response = await client.post("/v1/admin/users/9999/deactivate", headers=auth(admin_token))

    assert response.status_code == 404


# TEST 5: Status changes are audited
@pytest.mark.asyncio
async def test_deactivation_is_audited(client, admin_token, admin_user, owner_user, db_session):
    response = await client.post(
        f"/v1/admin/users/{owner_user.id}/deactivate",
        json={"reason": "Audit check"},
        headers=auth(admin_token)
    )
    audit_log_id = response.json()["auditLogId"]

    trail = await get_audit_trail(db_session, target_type="user", target_id=owner_user.id)

    assert [entry.id for entry in trail] == [audit_log_id]
    assert trail[0].actor_id == admin_user.id
    assert trail[0].meta_data["reason"] == "Audit check"


# TEST 6: Error responses share one shape
@pytest.mark.asyncio
async def test_error_responses_are_consistent(client):
    unknown_route = await client.get("/v1/auth/nonexistent")
    no_token = await client.get("/v1/auth/me")

    assert unknown_route.status_code == 404
    assert no_token.status_code == 401
    for response in (unknown_route, no_token):
        body = response.json()
        assert set(body) == {"error_code", "message", "details"}
