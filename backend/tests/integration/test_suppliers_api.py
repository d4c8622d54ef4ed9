from httpx import AsyncClient

BASE = "/api/v1/suppliers"


async def _create(client, headers, payload):
    response = await client.post(f"{BASE}/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_derives_total(client: AsyncClient, test_user1, auth_headers, supplier_payload):
    data = await _create(client, auth_headers(test_user1), supplier_payload())

    assert data["company"]["name"] == "Nordic Freight AB"
    assert data["relationship"]["type"] == "Transportation"
    assert data["emissions_data"]["total_co2e"] == 35.0
    assert data["connection_status"] == "not-connected"
    assert data["is_active"] is True


async def test_update_one_scope_recomputes_total(client: AsyncClient, test_user1, auth_headers, supplier_payload):
    headers = auth_headers(test_user1)
    supplier = await _create(client, headers, supplier_payload())

    response = await client.put(
        f"{BASE}/{supplier['id']}",
        json={"emissions_data": {"scope3": 15.0}},
        headers=headers,
    )

    assert response.status_code == 200
    emissions = response.json()["emissions_data"]
    assert emissions["scope1"] == 10.0
    assert emissions["scope3"] == 15.0
    assert emissions["total_co2e"] == 45.0


async def test_soft_delete_hides_supplier(client: AsyncClient, test_user1, auth_headers, supplier_payload):
    headers = auth_headers(test_user1)
    supplier = await _create(client, headers, supplier_payload())

    response = await client.delete(f"{BASE}/{supplier['id']}", headers=headers)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert (await client.get(f"{BASE}/{supplier['id']}", headers=headers)).status_code == 404
    assert (await client.get(f"{BASE}/", headers=headers)).json()["total"] == 0


async def test_list_sorted_by_total_desc(client: AsyncClient, test_user1, auth_headers, supplier_payload):
    headers = auth_headers(test_user1)
    await _create(client, headers, supplier_payload(name="Small Co", scope1=1.0, scope2=0.0, scope3=0.0))
    await _create(client, headers, supplier_payload(name="Big Co", scope1=100.0))

    body = (await client.get(f"{BASE}/", headers=headers)).json()

    assert [s["company"]["name"] for s in body["data"]] == ["Big Co", "Small Co"]


async def test_suppliers_isolated_between_owners(
    client: AsyncClient, test_user1, test_user2, auth_headers, supplier_payload
):
    supplier = await _create(client, auth_headers(test_user1), supplier_payload())
    response = await client.get(f"{BASE}/{supplier['id']}", headers=auth_headers(test_user2))
    assert response.status_code == 404


async def test_network_tree(client: AsyncClient, test_user1, auth_headers, supplier_payload, emission_payload):
    headers = auth_headers(test_user1)
    await client.post("/api/v1/emissions/", json=emission_payload(scope=1), headers=headers)
    await _create(client, headers, supplier_payload())

    response = await client.get(f"{BASE}/network/visualization", headers=headers)

    assert response.status_code == 200
    root = response.json()
    assert root["name"] == "Acme Logistics"
    assert root["type"] == "root"
    assert root["emissions"]["scope1"] == 150.0
    assert root["total"] == 150.0
    assert len(root["children"]) == 1
    assert root["children"][0]["total"] == 35.0
    assert root["children"][0]["type"] == "tier1"
    assert root["children"][0]["children"] == []


async def test_performance_analytics(client: AsyncClient, test_user1, auth_headers, supplier_payload):
    headers = auth_headers(test_user1)
    await _create(client, headers, supplier_payload(name="A"))
    await _create(client, headers, supplier_payload(name="B", scope1=0.0, scope2=0.0, scope3=5.0))

    response = await client.get(f"{BASE}/analytics/performance", headers=headers)

    body = response.json()
    assert body["performance_by_type"][0]["type"] == "Transportation"
    assert body["performance_by_type"][0]["total_suppliers"] == 2
    assert body["performance_by_type"][0]["avg_emissions"] == 20.0
    assert body["connection_summary"][0]["connection_status"] == "not-connected"


async def test_invite_marks_supplier_invited(client: AsyncClient, test_user1, auth_headers, supplier_payload):
    headers = auth_headers(test_user1)
    supplier = await _create(client, headers, supplier_payload())

    response = await client.post(
        f"{BASE}/{supplier['id']}/invite",
        json={"email": "carbon@nordicfreight.io"},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["supplier_name"] == "Nordic Freight AB"
    detail = (await client.get(f"{BASE}/{supplier['id']}", headers=headers)).json()
    assert detail["connection_status"] == "invited"
    assert detail["platform_data"]["invitation_sent"] is not None
