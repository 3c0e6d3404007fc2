from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import API
from finflow.core.security import AuthContext
from finflow.models.transaction import Transaction
from finflow.services.finance import FinanceService


async def _add(client, headers, category, amount, day, type):
    resp = await client.post(f"{API}/transactions", headers=headers, json={
        "date": day, "amount": amount, "category": category, "type": type
    })
    assert resp.status_code == 201


async def _seed_march(client, headers):
    await _add(client, headers, "Salary", 2000, "2024-03-01", "inflow")
    await _add(client, headers, "Freelance", 500, "2024-03-12", "inflow")
    await _add(client, headers, "Rent", 1000, "2024-03-02", "outflow")
    await _add(client, headers, "Food", 300, "2024-03-18", "outflow")


async def test_monthly_summary(client, auth_headers):
    await _seed_march(client, auth_headers)
    await _add(client, auth_headers, "Food", 80, "2024-02-20", "outflow")

    summary = (await client.get(f"{API}/analytics/summary", params={"month": "2024-03"},
                                headers=auth_headers)).json()
    assert summary["total_inflow"] == 2500
    assert summary["total_outflow"] == 1300
    assert summary["balance"] == 1200
    assert summary["outflow_categories"][0]["category"] == "Rent"


async def test_custom_range_summary_with_top(client, auth_headers):
    await _seed_march(client, auth_headers)

    summary = (await client.get(f"{API}/analytics/summary", headers=auth_headers,
                                params={"start": "2024-03-10", "end": "2024-03-31", "top": 1})).json()
    assert summary["total_inflow"] == 500
    assert summary["total_outflow"] == 300
    assert len(summary["inflow_categories"]) == 1

    bad = await client.get(f"{API}/analytics/summary", headers=auth_headers,
                           params={"start": "2024-03-31", "end": "2024-03-01"})
    assert bad.status_code == 422


async def test_summary_defaults_to_current_month(client, auth_headers):
    await _seed_march(client, auth_headers)
    summary = (await client.get(f"{API}/analytics/summary", headers=auth_headers)).json()
    assert summary["start"] == "2024-03-01"
    assert summary["end"] == "2024-03-31"


async def test_overview_and_trend(client, auth_headers):
    await _seed_march(client, auth_headers)
    await _add(client, auth_headers, "Salary", 1000, "2024-02-01", "inflow")

    overview = (await client.get(f"{API}/analytics/overview", headers=auth_headers)).json()
    assert overview["balance"] == 2200
    assert overview["current_month_balance"] == 1200
    assert overview["previous_month_balance"] == 1000

    trend = (await client.get(f"{API}/analytics/monthly", headers=auth_headers)).json()
    assert [m["month"] for m in trend["months"]] == ["2024-02", "2024-03"]


async def test_recurring_generation(client, auth_headers):
    rule = await client.post(f"{API}/recurring", headers=auth_headers, json={
        "amount": 1000, "category": "Rent", "type": "outflow", "frequency": "monthly",
        "start_date": "2024-01-31"
    })
    assert rule.status_code == 201
    rule_id = rule.json()["id"]

    result = (await client.post(f"{API}/recurring/generate", headers=auth_headers)).json()
    assert result["as_of"] == "2024-03-31"
    assert [t["date"] for t in result["created"]] == ["2024-01-31", "2024-02-29", "2024-03-31"]
    assert all(t["recurring_id"] == rule_id for t in result["created"])

    again = (await client.post(f"{API}/recurring/generate", headers=auth_headers)).json()
    assert again["created"] == []

    [listed] = (await client.get(f"{API}/recurring", headers=auth_headers)).json()
    assert listed["last_generated"] == "2024-03-31"

    paused = await client.patch(f"{API}/recurring/{rule_id}", json={"is_active": False}, headers=auth_headers)
    assert paused.json()["is_active"] is False
    later = (await client.post(f"{API}/recurring/generate", params={"as_of": "2024-06-30"},
                               headers=auth_headers)).json()
    assert later["created"] == []

    overview = (await client.get(f"{API}/analytics/overview", headers=auth_headers)).json()
    assert overview["total_outflow"] == 3000

    assert (await client.delete(f"{API}/recurring/{rule_id}", headers=auth_headers)).status_code == 200
    remaining = (await client.get(f"{API}/transactions", headers=auth_headers)).json()
    assert len(remaining) == 3
    assert all(t["recurring_id"] is None for t in remaining)


async def test_recurring_validation(client, auth_headers):
    resp = await client.post(f"{API}/recurring", headers=auth_headers, json={
        "amount": 10, "category": "Gym", "type": "outflow", "frequency": "monthly",
        "start_date": "2024-03-01", "end_date": "2024-02-01"
    })
    assert resp.status_code == 422

    resp = await client.post(f"{API}/recurring", headers=auth_headers, json={
        "amount": 10, "category": "Gym", "type": "outflow", "frequency": "hourly",
        "start_date": "2024-03-01"
    })
    assert resp.status_code == 422


async def test_summary_requires_both_range_ends(client, auth_headers):
    for params in [{"start": "2024-01-01"}, {"end": "2024-01-31"}]:
        resp = await client.get(f"{API}/analytics/summary", params=params, headers=auth_headers)
        assert resp.status_code == 422


def _rule(**overrides):
    data = {"amount": 1000, "category": "Rent", "type": "outflow", "frequency": "monthly",
            "start_date": "2024-01-31"}
    data.update(overrides)
    return data


async def test_generated_dates_stay_inside_transaction_window(client, auth_headers):
    too_old = await client.post(f"{API}/recurring", json=_rule(start_date="1990-01-01", frequency="yearly"),
                                headers=auth_headers)
    assert too_old.status_code == 422

    too_far = await client.post(f"{API}/recurring", json=_rule(start_date="2025-04-01"), headers=auth_headers)
    assert too_far.status_code == 422

    assert (await client.post(f"{API}/recurring", json=_rule(), headers=auth_headers)).status_code == 201

    # "today" is pinned to 2024-03-31, so the latest allowed date is 2025-03-31
    beyond = await client.post(f"{API}/recurring/generate", params={"as_of": "2030-12-31"}, headers=auth_headers)
    assert beyond.status_code == 422
    assert (await client.get(f"{API}/transactions", headers=auth_headers)).json() == []

    edge = (await client.post(f"{API}/recurring/generate", params={"as_of": "2025-03-31"},
                              headers=auth_headers)).json()
    assert len(edge["created"]) == 15
    assert edge["created"][-1]["date"] == "2025-03-31"


async def test_generation_skips_rule_already_claimed(client, auth_headers, session_factory):
    await client.post(f"{API}/recurring", json=_rule(), headers=auth_headers)
    me = (await client.get(f"{API}/auth/me", headers=auth_headers)).json()
    auth = AuthContext(user_id=me["id"], email=me["email"], session_id="other-worker", expires_at=None)

    async with session_factory() as session:
        [rule] = await FinanceService.list_recurring(session, auth)
        assert rule.last_generated is None

        # Another request generates while this session still holds the old rule state
        first = (await client.post(f"{API}/recurring/generate", headers=auth_headers)).json()
        assert len(first["created"]) == 3

        second = await FinanceService.generate_recurring(session, auth)
        assert second.created == []

    listed = (await client.get(f"{API}/transactions", headers=auth_headers)).json()
    assert sorted(t["date"] for t in listed) == ["2024-01-31", "2024-02-29", "2024-03-31"]


async def test_one_transaction_per_rule_and_date(client, auth_headers, session_factory):
    rule = (await client.post(f"{API}/recurring", json=_rule(), headers=auth_headers)).json()
    me = (await client.get(f"{API}/auth/me", headers=auth_headers)).json()

    async with session_factory() as session:
        for _ in range(2):
            session.add(Transaction(user_id=me["id"], date=date(2024, 1, 31), amount=1000, type="outflow",
                                    category="Rent", recurring_id=rule["id"]))
        with pytest.raises(IntegrityError):
            await session.commit()
