"""
Integration tests for the parcel API.

Covers registration, lookup, status appends, listing and access control.
"""

import pytest

from conftest import auth

GULSHAN = {"location": "Gulshan-1 Sorting Center", "latitude": 23.7937, "longitude": 90.4066}
MOHAKHALI = {"location": "Mohakhali Transit Hub", "latitude": 23.7781, "longitude": 90.4056}
UTTARA = {"location": "Uttara Delivery Point", "latitude": 23.8709, "longitude": 90.3753}


async def create_parcel(client, token, tracking_number, status="picked_up", location=GULSHAN, user_id=None):
    payload = {"trackingNumber": tracking_number, "status": status, "initialHistory": location}
    if user_id is not None:
        payload["userId"] = user_id
    return await client.post("/v1/parcels", json=payload, headers=auth(token))


# TEST 1: Admin registers a parcel for an owner
@pytest.mark.asyncio
async def test_admin_creates_parcel(client, admin_token, owner_user):
    response = await create_parcel(client, admin_token, "trk001234567", user_id=owner_user.id)

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["trackingNumber"] == "TRK001234567"
    assert data["formattedTrackingNumber"] == "TRK0-0123-4567"
    assert data["ownerId"] == owner_user.id
    assert data["status"] == "picked_up"
    assert len(data["history"]) == 1
    assert data["history"][0]["location"] == GULSHAN["location"]
    assert data["currentLocation"]["latitude"] == GULSHAN["latitude"]


@pytest.mark.asyncio
async def test_parcel_defaults_to_admin_owner(client, admin_token, admin_user):
    response = await create_parcel(client, admin_token, "TRK001234568")

    assert response.status_code == 201
    assert response.json()["ownerId"] == admin_user.id


# TEST 2: Creation failures
@pytest.mark.asyncio
async def test_duplicate_tracking_number_conflicts(client, admin_token):
    first = await create_parcel(client, admin_token, "TRK001234567")
    second = await create_parcel(client, admin_token, "trk001234567", status="in_transit")

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["error_code"] == "ERR_PARCEL_DUPLICATE"


@pytest.mark.asyncio
async def test_unknown_owner_is_not_found(client, admin_token):
    response = await create_parcel(client, admin_token, "TRK001234567", user_id=9999)

    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_owner_cannot_create_parcel(client, owner_token):
    response = await create_parcel(client, owner_token, "TRK001234567")

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"


@pytest.mark.asyncio
async def test_create_requires_authentication(client):
    response = await client.post("/v1/parcels", json={
        "trackingNumber": "TRK001234567", "status": "picked_up", "initialHistory": GULSHAN
    })

    assert response.status_code == 401


@pytest.mark.parametrize("payload", [
    {"trackingNumber": "TRK1", "status": "picked_up", "initialHistory": GULSHAN},
    {"trackingNumber": "TRK-0012-34", "status": "picked_up", "initialHistory": GULSHAN},
    {"trackingNumber": "TRK001234567", "status": "lost", "initialHistory": GULSHAN},
    {"trackingNumber": "TRK001234567", "status": "picked_up",
     "initialHistory": {**GULSHAN, "latitude": 91}},
    {"trackingNumber": "TRK001234567", "status": "picked_up",
     "initialHistory": {**GULSHAN, "longitude": -181}},
    {"trackingNumber": "TRK001234567", "status": "picked_up",
     "initialHistory": {**GULSHAN, "location": "   "}},
    {"trackingNumber": "TRK001234567", "status": "picked_up"},
])
@pytest.mark.asyncio
async def test_invalid_parcel_payloads(client, admin_token, payload):
    response = await client.post("/v1/parcels", json=payload, headers=auth(admin_token))

    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "ERR_VALIDATION"
    assert body["details"]["errors"]


# TEST 3: Lookup by tracking number
@pytest.mark.asyncio
async def test_owner_reads_own_parcel(client, admin_token, owner_token, owner_user):
    created = await create_parcel(client, admin_token, "TRK001234567", status="in_transit", user_id=owner_user.id)

    response = await client.get("/v1/parcels/trk001234567", headers=auth(owner_token))

    assert response.status_code == 200
    data = response.json()
    assert data["trackingNumber"] == "TRK001234567"
    assert data["status"] == "in_transit"
    assert len(data["history"]) == 1
    assert data["history"][0]["status"] == "in_transit"
    assert data["id"] == created.json()["id"]


@pytest.mark.asyncio
async def test_other_owner_gets_not_found(client, admin_token, owner_user, other_owner_token):
    await create_parcel(client, admin_token, "TRK001234567", user_id=owner_user.id)

    hidden = await client.get("/v1/parcels/TRK001234567", headers=auth(other_owner_token))
    missing = await client.get("/v1/parcels/TRK000000000", headers=auth(other_owner_token))

    assert hidden.status_code == missing.status_code == 404
    assert hidden.json()["error_code"] == missing.json()["error_code"]


@pytest.mark.asyncio
async def test_admin_reads_any_parcel(client, admin_token, owner_user):
    await create_parcel(client, admin_token, "TRK001234567", user_id=owner_user.id)

    response = await client.get("/v1/parcels/TRK001234567", headers=auth(admin_token))

    assert response.status_code == 200


# TEST 4: Status updates append history
@pytest.mark.asyncio
async def test_owner_appends_status(client, admin_token, owner_token, owner_user):
    created = await create_parcel(client, admin_token, "TRK001234567", user_id=owner_user.id)
    parcel_id = created.json()["id"]

    response = await client.put(
        f"/v1/parcels/{parcel_id}/status",
        json={"status": "in_transit", **MOHAKHALI},
        headers=auth(owner_token)
    )
    assert response.status_code == 200, response.text

    response = await client.put(
        f"/v1/parcels/{parcel_id}/status",
        json={"status": "delivered", **UTTARA},
        headers=auth(admin_token)
    )
    data = response.json()
    assert data["status"] == "delivered"
    assert [entry["status"] for entry in data["history"]] == ["picked_up", "in_transit", "delivered"]
    assert data["currentLocation"]["location"] == UTTARA["location"]

    fetched = await client.get("/v1/parcels/TRK001234567", headers=auth(owner_token))
    assert [e["id"] for e in fetched.json()["history"]] == [e["id"] for e in data["history"]]
    assert fetched.json()["status"] == "delivered"


@pytest.mark.asyncio
async def test_other_owner_cannot_append(client, admin_token, owner_user, other_owner_token):
    created = await create_parcel(client, admin_token, "TRK001234567", user_id=owner_user.id)

    response = await client.put(
        f"/v1/parcels/{created.json()['id']}/status",
        json={"status": "delivered", **UTTARA},
        headers=auth(other_owner_token)
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_append_to_missing_parcel(client, admin_token):
    response = await client.put(
        "/v1/parcels/4242/status",
        json={"status": "delivered", **UTTARA},
        headers=auth(admin_token)
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_invalid_status_update(client, admin_token):
    created = await create_parcel(client, admin_token, "TRK001234567")

    response = await client.put(
        f"/v1/parcels/{created.json()['id']}/status",
        json={"status": "in_transit", "location": "Mohakhali", "latitude": 23.77},
        headers=auth(admin_token)
    )

    assert response.status_code == 422


# TEST 5: Listing
@pytest.mark.asyncio
async def test_list_paginates_owner_parcels(client, admin_token, owner_token, owner_user, other_owner_user):
    for i in range(25):
        await create_parcel(client, admin_token, f"TRKL{i:08d}", user_id=owner_user.id)
    await create_parcel(client, admin_token, "TRKOTHER0001", user_id=other_owner_user.id)

    response = await client.get("/v1/parcels?page=2&limit=10", headers=auth(owner_token))

    assert response.status_code == 200
    data = response.json()
    assert len(data["parcels"]) == 10
    assert data["pagination"] == {
        "currentPage": 2,
        "totalPages": 3,
        "totalParcels": 25,
        "hasNext": True,
        "hasPrev": True,
    }

    admin_view = await client.get("/v1/parcels", headers=auth(admin_token))
    assert admin_view.json()["pagination"]["totalParcels"] == 26


@pytest.mark.asyncio
async def test_list_filters_by_status(client, admin_token, owner_user, owner_token):
    delivered = await create_parcel(client, admin_token, "TRK001234567", user_id=owner_user.id)
    await create_parcel(client, admin_token, "TRK001234568", user_id=owner_user.id)
    await client.put(
        f"/v1/parcels/{delivered.json()['id']}/status",
        json={"status": "delivered", **UTTARA},
        headers=auth(admin_token)
    )

    response = await client.get("/v1/parcels?status=delivered", headers=auth(owner_token))

    assert [p["trackingNumber"] for p in response.json()["parcels"]] == ["TRK001234567"]


@pytest.mark.asyncio
async def test_list_rejects_oversized_page(client, owner_token):
    response = await client.get("/v1/parcels?limit=101", headers=auth(owner_token))

    assert response.status_code == 422
