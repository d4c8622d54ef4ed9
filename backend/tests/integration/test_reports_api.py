from httpx import AsyncClient

BASE = "/api/v1/reports"

FY2024 = {"start_date": "2024-01-01T00:00:00Z", "end_date": "2024-12-31T23:59:59Z", "year": 2024}


def _request(**parameters):
    return {
        "report_type": "annual-ghg",
        "title": "FY2024 GHG inventory",
        "format": "pdf",
        "parameters": {"reporting_period": FY2024, **parameters},
    }


async def _generate(client, headers, report_worker, payload):
    response = await client.post(f"{BASE}/generate", json=payload, headers=headers)
    assert response.status_code == 202, response.text
    assert response.json()["status"] == "generating"
    await report_worker.join()
    return (await client.get(f"{BASE}/{response.json()['id']}", headers=headers)).json()


async def test_generate_then_poll_until_completed(
    client: AsyncClient, test_user1, auth_headers, emission_payload, supplier_payload, report_worker
):
    headers = auth_headers(test_user1)
    await client.post("/api/v1/emissions/", json=emission_payload(scope=1, amounts=(100.0,)), headers=headers)
    await client.post("/api/v1/emissions/", json=emission_payload(scope=2, amounts=(50.0,)), headers=headers)
    await client.post("/api/v1/emissions/", json=emission_payload(scope=1, year=2023), headers=headers)
    await client.post("/api/v1/suppliers/", json=supplier_payload(), headers=headers)

    report = await _generate(client, headers, report_worker, _request())

    assert report["status"] == "completed"
    emissions = report["data"]["emissions"]
    assert emissions["scope1"]["total"] == 100.0
    assert emissions["scope2"]["total"] == 50.0
    assert emissions["scope3"]["total"] == 0.0
    assert emissions["grandTotal"] == 150.0
    assert report["data"]["suppliers"] == [
        {"name": "Nordic Freight AB", "type": "Transportation", "emissions": 35.0, "status": "not-connected"}
    ]
    assert report["generation_metadata"]["data_points"] == 3
    assert [entry["action"] for entry in report["audit_trail"]] == ["generated"]


async def test_generation_filters(
    client: AsyncClient, test_user1, auth_headers, emission_payload, report_worker
):
    headers = auth_headers(test_user1)
    await client.post("/api/v1/emissions/", json=emission_payload(scope=1, status="verified"), headers=headers)
    await client.post("/api/v1/emissions/", json=emission_payload(scope=1, amounts=(7.0,)), headers=headers)
    await client.post("/api/v1/emissions/", json=emission_payload(scope=3, status="published"), headers=headers)

    report = await _generate(client, headers, report_worker, _request(scopes=[1], include_verified_only=True))

    emissions = report["data"]["emissions"]
    assert emissions["scope1"]["total"] == 150.0
    assert emissions["scope3"]["total"] == 0.0


async def test_download_before_completion_is_rejected(client: AsyncClient, test_user1, auth_headers):
    headers = auth_headers(test_user1)
    payload = _request()
    payload["schedule"] = {"frequency": "monthly", "recipients": ["cfo@acme.io"]}

    scheduled = await client.post(f"{BASE}/schedule", json=payload, headers=headers)
    assert scheduled.status_code == 201
    assert scheduled.json()["status"] == "scheduled"
    assert scheduled.json()["schedule"]["frequency"] == "monthly"

    response = await client.get(f"{BASE}/{scheduled.json()['id']}/download", headers=headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_download_counts_and_audits(client: AsyncClient, test_user1, auth_headers, report_worker):
    headers = auth_headers(test_user1)
    report = await _generate(client, headers, report_worker, _request())

    first = await client.get(f"{BASE}/{report['id']}/download", headers=headers)
    await client.get(f"{BASE}/{report['id']}/download", headers=headers)

    assert first.status_code == 200
    assert first.json()["filename"] == "annual-ghg_2024.pdf"
    assert first.json()["size"] == 1024000

    detail = (await client.get(f"{BASE}/{report['id']}", headers=headers)).json()
    assert detail["file_info"]["download_count"] == 2
    assert [entry["action"] for entry in detail["audit_trail"]] == ["generated", "downloaded", "downloaded"]


async def test_share_report(client: AsyncClient, test_user1, auth_headers, report_worker):
    headers = auth_headers(test_user1)
    report = await _generate(client, headers, report_worker, _request())

    response = await client.post(
        f"{BASE}/{report['id']}/share",
        json={"emails": ["auditor@kpmg.io"], "permission": "download", "make_public": True},
        headers=headers,
    )

    assert response.status_code == 200
    sharing = response.json()["sharing"]
    assert sharing["is_public"] is True
    assert sharing["share_token"]
    assert sharing["shared_with"][0]["email"] == "auditor@kpmg.io"


async def test_reports_isolated_and_listed(
    client: AsyncClient, test_user1, test_user2, auth_headers, report_worker
):
    headers = auth_headers(test_user1)
    report = await _generate(client, headers, report_worker, _request())

    assert (await client.get(f"{BASE}/{report['id']}", headers=auth_headers(test_user2))).status_code == 404

    listing = (await client.get(f"{BASE}/", params={"status": "completed"}, headers=headers)).json()
    assert listing["total"] == 1
    assert listing["data"][0]["id"] == report["id"]


async def test_invalid_period_rejected(client: AsyncClient, test_user1, auth_headers):
    payload = _request()
    payload["parameters"]["reporting_period"] = {"start_date": "2024-12-31T00:00:00Z", "end_date": "2024-01-01T00:00:00Z"}

    response = await client.post(f"{BASE}/generate", json=payload, headers=auth_headers(test_user1))

    assert response.status_code == 422


async def test_generate_accepts_mixed_offset_and_naive_period(
    client: AsyncClient, test_user1, auth_headers, emission_payload, report_worker
):
    headers = auth_headers(test_user1)
    await client.post("/api/v1/emissions/", json=emission_payload(scope=1, amounts=(100.0,)), headers=headers)
    period = {"start_date": "2024-01-01T00:00:00Z", "end_date": "2024-12-31T23:59:59", "year": 2024}

    report = await _generate(client, headers, report_worker, _request(reporting_period=period))

    assert report["status"] == "completed"
    assert report["data"]["emissions"]["scope1"]["total"] == 100.0


async def test_naive_end_before_aware_start_rejected(client: AsyncClient, test_user1, auth_headers):
    period = {"start_date": "2024-06-01T00:00:00+02:00", "end_date": "2024-05-31T21:59:59"}

    response = await client.post(f"{BASE}/generate", json=_request(reporting_period=period), headers=auth_headers(test_user1))

    assert response.status_code == 422
    assert response.json()["success"] is False
