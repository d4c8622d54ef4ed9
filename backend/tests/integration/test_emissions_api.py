from httpx import AsyncClient

BASE = "/api/v1/emissions"


async def _create(client, headers, payload):
    response = await client.post(f"{BASE}/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_derives_total_and_period(client: AsyncClient, test_user1, auth_headers, emission_payload):
    data = await _create(client, auth_headers(test_user1), emission_payload(scope=1, year=2024, quarter=1))

    assert data["total_co2e"] == 150.0
    assert data["company"] == "Acme Logistics"
    assert data["status"] == "draft"
    assert data["period_start"] == "2024-01-01"
    assert data["period_end"] == "2024-03-31"
    assert len(data["entries"]) == 2


async def test_adding_an_entry_recomputes_total(client: AsyncClient, test_user1, auth_headers, emission_payload):
    headers = auth_headers(test_user1)
    record = await _create(client, headers, emission_payload(amounts=(100.0,)))
    assert record["total_co2e"] == 100.0

    entries = record["entries"] + emission_payload(amounts=(50.0,))["entries"]
    response = await client.put(f"{BASE}/{record['id']}", json={"entries": entries}, headers=headers)

    assert response.status_code == 200
    assert response.json()["total_co2e"] == 150.0
    assert len(response.json()["entries"]) == 2


async def test_empty_entries_rejected(client: AsyncClient, test_user1, auth_headers, emission_payload):
    payload = emission_payload()
    payload["entries"] = []

    response = await client.post(f"{BASE}/", json=payload, headers=auth_headers(test_user1))

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["errors"]


async def test_invalid_scope_rejected(client: AsyncClient, test_user1, auth_headers, emission_payload):
    response = await client.post(f"{BASE}/", json=emission_payload(scope=4), headers=auth_headers(test_user1))
    assert response.status_code == 422


async def test_published_record_is_immutable_for_owner(
    client: AsyncClient, test_user1, admin_user, auth_headers, emission_payload
):
    headers = auth_headers(test_user1)
    record = await _create(client, headers, emission_payload(status="published"))

    update = await client.put(f"{BASE}/{record['id']}", json={"company": "Renamed"}, headers=headers)
    assert update.status_code == 403
    assert update.json() == {"success": False, "message": "Cannot modify published emissions"}

    delete = await client.delete(f"{BASE}/{record['id']}", headers=headers)
    assert delete.status_code == 403

    unchanged = await client.get(f"{BASE}/{record['id']}", headers=headers)
    assert unchanged.json()["company"] == "Acme Logistics"


async def test_backward_status_move_rejected_for_owner(client: AsyncClient, test_user1, auth_headers, emission_payload):
    headers = auth_headers(test_user1)
    record = await _create(client, headers, emission_payload(status="verified"))

    response = await client.put(f"{BASE}/{record['id']}", json={"status": "draft"}, headers=headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_forward_status_move_allowed(client: AsyncClient, test_user1, auth_headers, emission_payload):
    headers = auth_headers(test_user1)
    record = await _create(client, headers, emission_payload())

    response = await client.put(f"{BASE}/{record['id']}", json={"status": "verified"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["status"] == "verified"


async def test_records_are_isolated_between_owners(
    client: AsyncClient, test_user1, test_user2, auth_headers, emission_payload
):
    record = await _create(client, auth_headers(test_user1), emission_payload())
    other = auth_headers(test_user2)

    assert (await client.get(f"{BASE}/{record['id']}", headers=other)).status_code == 404
    assert (await client.put(f"{BASE}/{record['id']}", json={"company": "x"}, headers=other)).status_code == 404
    assert (await client.delete(f"{BASE}/{record['id']}", headers=other)).status_code == 404

    listing = await client.get(f"{BASE}/", headers=other)
    assert listing.json()["total"] == 0


async def test_list_sorted_and_paginated(client: AsyncClient, test_user1, auth_headers, emission_payload):
    headers = auth_headers(test_user1)
    await _create(client, headers, emission_payload(scope=2, year=2023))
    await _create(client, headers, emission_payload(scope=3, year=2024))
    await _create(client, headers, emission_payload(scope=1, year=2024))

    response = await client.get(f"{BASE}/", params={"limit": 2}, headers=headers)

    body = response.json()
    assert body["success"] is True
    assert body["total"] == 3
    assert body["count"] == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "pages": 2}
    assert [(r["reporting_period"]["year"], r["scope"]) for r in body["data"]] == [(2024, 1), (2024, 3)]

    filtered = await client.get(f"{BASE}/", params={"scope": 2}, headers=headers)
    assert filtered.json()["total"] == 1


async def test_delete_draft(client: AsyncClient, test_user1, auth_headers, emission_payload):
    headers = auth_headers(test_user1)
    record = await _create(client, headers, emission_payload())

    response = await client.delete(f"{BASE}/{record['id']}", headers=headers)

    assert response.status_code == 204
    assert (await client.get(f"{BASE}/{record['id']}", headers=headers)).status_code == 404


async def test_bulk_import_requires_manager(
    client: AsyncClient, test_user1, manager_user, auth_headers, emission_payload
):
    payload = {"emissions": [emission_payload(scope=1), emission_payload(scope=2, amounts=(5.0,))]}

    denied = await client.post(f"{BASE}/bulk", json=payload, headers=auth_headers(test_user1))
    assert denied.status_code == 403

    response = await client.post(f"{BASE}/bulk", json=payload, headers=auth_headers(manager_user))
    assert response.status_code == 201
    assert [r["total_co2e"] for r in response.json()] == [150.0, 5.0]


async def test_summary_stats(client: AsyncClient, test_user1, auth_headers, emission_payload):
    headers = auth_headers(test_user1)
    await _create(client, headers, emission_payload(scope=1, month=1, quarter=1))
    await _create(client, headers, emission_payload(scope=1, amounts=(20.0,), month=2, quarter=1))
    await _create(client, headers, emission_payload(scope=2, amounts=(30.0,)))

    response = await client.get(f"{BASE}/summary/stats", params={"year": 2024}, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total_emissions"] == 200.0
    scopes = {row["scope"]: row for row in body["scope_summary"]}
    assert scopes[1]["total_co2e"] == 170.0
    assert scopes[1]["entry_count"] == 3
    assert scopes[2]["entry_count"] == 1
    assert [(row["month"], row["scope"]) for row in body["monthly_trends"]] == [(None, 2), (1, 1), (2, 1)]
