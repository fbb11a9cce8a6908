"""
Integration tests for customer, service and therapist management.
"""
import pytest


@pytest.mark.asyncio
async def test_customer_crud(authed_client):
    created = await authed_client.post(
        "/api/customers",
        json={"name": "  Rina  ", "phone": "0811111111", "email": "rina@example.com", "isVip": True},
    )
    assert created.status_code == 201, created.text
    customer = created.json()["data"]
    assert customer["name"] == "Rina"
    assert customer["totalVisits"] == 0
    assert customer["loyaltyVisits"] == 0

    fetched = await authed_client.get(f"/api/customers/{customer['id']}")
    assert fetched.json()["data"]["email"] == "rina@example.com"

    updated = await authed_client.put(f"/api/customers/{customer['id']}", json={"notes": "Prefers mornings"})
    assert updated.json()["data"]["notes"] == "Prefers mornings"
    assert updated.json()["data"]["name"] == "Rina"

    deleted = await authed_client.delete(f"/api/customers/{customer['id']}")
    assert deleted.status_code == 200
    assert (await authed_client.get(f"/api/customers/{customer['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_duplicate_phone_conflicts(authed_client, seed):
    resp = await authed_client.post("/api/customers", json={"name": "Other", "phone": seed.sari_phone})
    assert resp.status_code == 409
    assert resp.json()["success"] is False

    other = (await authed_client.post("/api/customers", json={"name": "Other", "phone": "0822"})).json()["data"]
    resp = await authed_client.put(f"/api/customers/{other['id']}", json={"phone": seed.sari_phone})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_customer_list_search_sort_and_vip(authed_client, seed):
    await authed_client.post("/api/customers", json={"name": "Andi", "phone": "0833", "isVip": True})
    await authed_client.post("/api/customers", json={"name": "Zahra", "phone": "0844"})

    everyone = (await authed_client.get("/api/customers")).json()
    assert [c["name"] for c in everyone["data"]] == ["Andi", "Sari Dewi", "Zahra"]
    assert everyone["pagination"]["total"] == 3

    reverse = (await authed_client.get("/api/customers", params={"sortBy": "name", "order": "desc"})).json()
    assert reverse["data"][0]["name"] == "Zahra"

    vips = (await authed_client.get("/api/customers", params={"vip": "true"})).json()
    assert [c["name"] for c in vips["data"]] == ["Andi"]

    search = (await authed_client.get("/api/customers", params={"search": "0844"})).json()
    assert [c["name"] for c in search["data"]] == ["Zahra"]


@pytest.mark.asyncio
async def test_referenced_entities_cannot_be_deleted(authed_client, seed, treatment_payload):
    await authed_client.post("/api/treatments", json=treatment_payload())

    for path in (
        f"/api/customers/{seed.sari}",
        f"/api/services/{seed.facial}",
        f"/api/therapists/{seed.ani}",
    ):
        resp = await authed_client.delete(path)
        assert resp.status_code == 409, path
        assert "cannot be deleted" in resp.json()["error"]


@pytest.mark.asyncio
async def test_service_listing_is_public(client, seed):
    resp = await client.get("/api/services")

    assert resp.status_code == 200
    names = [s["name"] for s in resp.json()["data"]]
    assert names == ["Facial Glow", "Back Massage"]


@pytest.mark.asyncio
async def test_service_changes_require_session(client):
    resp = await client.post(
        "/api/services",
        json={"name": "Manicure", "category": "nails", "normalPrice": 40000, "duration": 45},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_service_crud_and_active_filter(authed_client, client, seed):
    created = await authed_client.post(
        "/api/services",
        json={"name": "Manicure", "category": "nails", "normalPrice": 40000,
              "promoPrice": 35000, "duration": 45, "therapistFee": 15000},
    )
    assert created.status_code == 201
    service = created.json()["data"]
    assert service["popularity"] == 0

    resp = await authed_client.put(f"/api/services/{service['id']}", json={"isActive": False})
    assert resp.json()["data"]["isActive"] is False

    active = (await client.get("/api/services", params={"active": "true"})).json()["data"]
    assert "Manicure" not in [s["name"] for s in active]

    resp = await authed_client.delete(f"/api/services/{service['id']}")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_promo_above_normal_price_is_rejected(authed_client, seed):
    resp = await authed_client.post(
        "/api/services",
        json={"name": "Pedicure", "category": "nails", "normalPrice": 40000, "promoPrice": 45000, "duration": 45},
    )
    assert resp.status_code == 400

    resp = await authed_client.put(f"/api/services/{seed.facial}", json={"therapistFee": 90000})
    assert resp.status_code == 400
    assert resp.json()["error"] == "therapistFee must not exceed normalPrice"


@pytest.mark.asyncio
async def test_therapist_crud(authed_client, seed):
    created = await authed_client.post(
        "/api/therapists",
        json={"initial": "C", "fullName": "Citra Ayu", "baseFeePerTreatment": 8000, "commissionRate": 0.2},
    )
    assert created.status_code == 201
    therapist = created.json()["data"]
    assert therapist["totalEarnings"] == 0
    assert therapist["averageRating"] == 0.0

    resp = await authed_client.put(f"/api/therapists/{therapist['id']}", json={"commissionRate": 0.25})
    assert resp.json()["data"]["commissionRate"] == 0.25

    listing = (await authed_client.get("/api/therapists")).json()["data"]
    assert [t["fullName"] for t in listing] == ["Ani Lestari", "Budi Santoso", "Citra Ayu"]

    assert (await authed_client.delete(f"/api/therapists/{therapist['id']}")).status_code == 200


@pytest.mark.asyncio
async def test_commission_rate_is_a_fraction(authed_client):
    resp = await authed_client.post(
        "/api/therapists",
        json={"initial": "D", "fullName": "Dewi", "commissionRate": 15},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_unknown_ids(authed_client):
    for path in ("/api/customers/404", "/api/services/404", "/api/therapists/404"):
        resp = await authed_client.get(path)
        assert resp.status_code == 404
        assert resp.json()["error"].endswith("not found")
