from conftest import API


def _budget(**overrides):
    data = {"category": "Groceries", "type": "outflow", "planned_amount": 500,
            "period_start": "2024-03-01", "period_end": "2024-03-31"}
    data.update(overrides)
    return data


async def _spend(client, headers, amount, day, category="Groceries"):
    resp = await client.post(f"{API}/transactions", headers=headers, json={
        "date": day, "amount": amount, "category": category, "type": "outflow"
    })
    assert resp.status_code == 201
    return resp.json()


async def test_budget_status_follows_transactions(client, auth_headers):
    assert (await client.post(f"{API}/budgets", json=_budget(), headers=auth_headers)).status_code == 201
    await _spend(client, auth_headers, 300, "2024-03-10")
    await _spend(client, auth_headers, 150, "2024-03-20")
    await _spend(client, auth_headers, 1000, "2024-03-05", category="Rent")

    [status] = (await client.get(f"{API}/budgets", headers=auth_headers)).json()
    assert status["actual"] == 450
    assert status["percentage"] == 90
    assert status["status"] == "under"
    assert status["alert"]["severity"] == "warning"

    await _spend(client, auth_headers, 100, "2024-03-25")

    [status] = (await client.get(f"{API}/budgets", headers=auth_headers)).json()
    assert status["actual"] == 550
    assert status["display_percentage"] == 100
    assert status["status"] == "over"

    [alert] = (await client.get(f"{API}/budgets/alerts", headers=auth_headers)).json()
    assert alert["severity"] == "exceeded"


async def test_edits_and_deletes_reach_cached_status(client, auth_headers):
    await client.post(f"{API}/budgets", json=_budget(), headers=auth_headers)
    trx = await _spend(client, auth_headers, 450, "2024-03-10")
    assert (await client.get(f"{API}/budgets", headers=auth_headers)).json()[0]["actual"] == 450

    await client.put(f"{API}/transactions/{trx['id']}", headers=auth_headers, json={
        "date": "2024-03-10", "amount": 100, "category": "Groceries", "type": "outflow"
    })
    assert (await client.get(f"{API}/budgets", headers=auth_headers)).json()[0]["actual"] == 100

    await client.delete(f"{API}/transactions/{trx['id']}", headers=auth_headers)
    [status] = (await client.get(f"{API}/budgets", headers=auth_headers)).json()
    assert status["actual"] == 0
    assert status["alert"] is None


async def test_overlapping_budget_rejected(client, auth_headers):
    first = _budget(period_start="2024-01-01", period_end="2024-01-31")
    assert (await client.post(f"{API}/budgets", json=first, headers=auth_headers)).status_code == 201

    touching = _budget(period_start="2024-01-31", period_end="2024-02-15")
    resp = await client.post(f"{API}/budgets", json=touching, headers=auth_headers)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "A budget already exists for this category in this period"

    other_type = _budget(type="inflow", period_start="2024-01-31", period_end="2024-02-15")
    assert (await client.post(f"{API}/budgets", json=other_type, headers=auth_headers)).status_code == 201

    disjoint = _budget(period_start="2024-02-01", period_end="2024-02-15")
    assert (await client.post(f"{API}/budgets", json=disjoint, headers=auth_headers)).status_code == 201


async def test_budget_validation(client, auth_headers):
    reversed_period = _budget(period_start="2024-03-31", period_end="2024-03-01")
    assert (await client.post(f"{API}/budgets", json=reversed_period, headers=auth_headers)).status_code == 422

    same_day = _budget(period_start="2024-03-01", period_end="2024-03-01")
    assert (await client.post(f"{API}/budgets", json=same_day, headers=auth_headers)).status_code == 422

    zero = _budget(planned_amount=0)
    assert (await client.post(f"{API}/budgets", json=zero, headers=auth_headers)).status_code == 422


async def test_delete_budget(client, auth_headers):
    created = (await client.post(f"{API}/budgets", json=_budget(), headers=auth_headers)).json()
    assert len((await client.get(f"{API}/budgets", headers=auth_headers)).json()) == 1

    assert (await client.delete(f"{API}/budgets/{created['id']}", headers=auth_headers)).status_code == 200
    assert (await client.get(f"{API}/budgets", headers=auth_headers)).json() == []
    assert (await client.delete(f"{API}/budgets/{created['id']}", headers=auth_headers)).status_code == 404
