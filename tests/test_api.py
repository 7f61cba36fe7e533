"""HTTP API tests — auth, problem+json errors, and the vacation endpoints
end to end through FastAPI."""

from __future__ import annotations

import uuid

from tests.conftest import (
    YEAR,
    auth_headers,
    create_access_token,
)

BASE = "/api/v1/vacations"

PLAN_28 = {
    "year": YEAR,
    "comment": "Summer and autumn",
    "periods": [
        {"start_date": f"{YEAR}-06-01", "end_date": f"{YEAR}-06-14"},
        {"start_date": f"{YEAR}-08-01", "end_date": f"{YEAR}-08-14", "days_count": 14},
    ],
}


# ═════════════════════════════════════════════════════════════════════
# 1. System and auth
# ═════════════════════════════════════════════════════════════════════


class TestSystem:

    async def test_health(self, client):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"
        assert resp.json()["environment"] == "test"


class TestAuth:

    async def test_missing_token(self, client):
        resp = await client.get(f"{BASE}/requests")
        assert resp.status_code == 401

    async def test_expired_token(self, client, db, employee):
        await db.commit()
        token = create_access_token(employee.id, expired=True)
        resp = await client.get(
            f"{BASE}/requests", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 401
        assert "expired" in resp.json()["detail"]

    async def test_wrong_secret(self, client, db, employee):
        await db.commit()
        token = create_access_token(employee.id, secret="not-the-secret")
        resp = await client.get(
            f"{BASE}/requests", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 401

    async def test_refresh_token_rejected(self, client, db, employee):
        await db.commit()
        token = create_access_token(employee.id, token_type="refresh")
        resp = await client.get(
            f"{BASE}/requests", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 401

    async def test_unknown_user(self, client):
        resp = await client.get(
            f"{BASE}/requests",
            headers={"Authorization": f"Bearer {create_access_token(uuid.uuid4())}"},
        )
        assert resp.status_code == 401


# ═════════════════════════════════════════════════════════════════════
# 2. Workflow over HTTP
# ═════════════════════════════════════════════════════════════════════


class TestVacationEndpoints:

    async def test_full_approval_flow(self, client, db, employee, manager):
        await db.commit()

        created = await client.post(
            f"{BASE}/requests", json=PLAN_28, headers=auth_headers(employee)
        )
        assert created.status_code == 201
        request_id = created.json()["id"]
        assert created.json()["status_name"] == "draft"
        assert created.json()["days_requested"] == 28

        submitted = await client.post(
            f"{BASE}/requests/{request_id}/submit", headers=auth_headers(employee)
        )
        assert submitted.status_code == 200
        assert submitted.json()["status_name"] == "pending"

        approved = await client.post(
            f"{BASE}/requests/{request_id}/approve", headers=auth_headers(manager)
        )
        assert approved.status_code == 200
        assert approved.json()["status_name"] == "approved"

        limit = await client.get(
            f"{BASE}/limits/{employee.id}/{YEAR}", headers=auth_headers(employee)
        )
        assert limit.status_code == 200
        assert limit.json()["used_days"] == 28
        assert limit.json()["available_days"] == 0

        inbox = await client.get("/api/v1/notifications", headers=auth_headers(employee))
        assert inbox.status_code == 200
        assert inbox.json()["meta"]["unread"] == 1
        note_id = inbox.json()["data"][0]["id"]

        read = await client.put(
            f"/api/v1/notifications/{note_id}/read", headers=auth_headers(employee)
        )
        assert read.status_code == 200
        assert read.json()["data"]["is_read"] is True

    async def test_quota_mismatch_is_problem_json(self, client, db, employee):
        await db.commit()
        body = dict(PLAN_28, periods=PLAN_28["periods"][:1])

        created = await client.post(
            f"{BASE}/requests", json=body, headers=auth_headers(employee)
        )
        resp = await client.post(
            f"{BASE}/requests/{created.json()['id']}/submit",
            headers=auth_headers(employee),
        )

        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith("application/problem+json")
        problem = resp.json()
        assert problem["type"].endswith("/validation-error")
        assert "mismatch" in problem["errors"]["days_requested"][0]

    async def test_days_count_disagreeing_with_dates(self, client, db, employee):
        await db.commit()
        body = {
            "year": YEAR,
            "periods": [
                {"start_date": f"{YEAR}-06-01", "end_date": f"{YEAR}-06-14", "days_count": 20},
            ],
        }
        resp = await client.post(f"{BASE}/requests", json=body, headers=auth_headers(employee))
        assert resp.status_code == 422

    async def test_foreign_manager_gets_403(self, client, db, employee, foreign_manager):
        await db.commit()
        created = await client.post(
            f"{BASE}/requests", json=PLAN_28, headers=auth_headers(employee)
        )
        request_id = created.json()["id"]
        await client.post(f"{BASE}/requests/{request_id}/submit", headers=auth_headers(employee))

        resp = await client.post(
            f"{BASE}/requests/{request_id}/approve", headers=auth_headers(foreign_manager)
        )

        assert resp.status_code == 403
        assert resp.json()["type"].endswith("/forbidden")

    async def test_double_cancel_is_409(self, client, db, employee):
        await db.commit()
        created = await client.post(
            f"{BASE}/requests", json=PLAN_28, headers=auth_headers(employee)
        )
        request_id = created.json()["id"]

        first = await client.post(
            f"{BASE}/requests/{request_id}/cancel", headers=auth_headers(employee)
        )
        second = await client.post(
            f"{BASE}/requests/{request_id}/cancel", headers=auth_headers(employee)
        )

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["errors"]["status"] == ["cancelled"]

    async def test_reject_with_reason(self, client, db, employee, manager):
        await db.commit()
        created = await client.post(
            f"{BASE}/requests", json=PLAN_28, headers=auth_headers(employee)
        )
        request_id = created.json()["id"]
        await client.post(f"{BASE}/requests/{request_id}/submit", headers=auth_headers(employee))

        resp = await client.post(
            f"{BASE}/requests/{request_id}/reject",
            json={"reason": "Team offsite"},
            headers=auth_headers(manager),
        )

        assert resp.status_code == 200
        assert resp.json()["status_name"] == "rejected"
        assert resp.json()["reviewer_remarks"] == "Team offsite"

    async def test_unknown_request_is_404(self, client, db, employee):
        await db.commit()
        resp = await client.get(
            f"{BASE}/requests/{uuid.uuid4()}", headers=auth_headers(employee)
        )
        assert resp.status_code == 404
        assert resp.json()["type"].endswith("/not-found")

    async def test_list_filters_by_status(self, client, db, employee):
        await db.commit()
        await client.post(f"{BASE}/requests", json=PLAN_28, headers=auth_headers(employee))

        drafts = await client.get(
            f"{BASE}/requests", params={"status": 1}, headers=auth_headers(employee)
        )
        pending = await client.get(
            f"{BASE}/requests", params={"status": 2}, headers=auth_headers(employee)
        )

        assert drafts.json()["meta"]["total"] == 1
        assert pending.json()["meta"]["total"] == 0


# ═════════════════════════════════════════════════════════════════════
# 3. Quota administration
# ═════════════════════════════════════════════════════════════════════


class TestLimitEndpoints:

    async def test_admin_sets_quota(self, client, db, employee, admin):
        await db.commit()
        resp = await client.put(
            f"{BASE}/limits/{employee.id}/{YEAR}",
            json={"total_days": 30},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["total_days"] == 30
        assert resp.json()["persisted"] is True

    async def test_negative_quota(self, client, db, employee, admin):
        await db.commit()
        resp = await client.put(
            f"{BASE}/limits/{employee.id}/{YEAR}",
            json={"total_days": -5},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 422
        assert "total_days" in resp.json()["errors"]

    async def test_employee_cannot_set_quota(self, client, db, employee):
        await db.commit()
        resp = await client.put(
            f"{BASE}/limits/{employee.id}/{YEAR}",
            json={"total_days": 60},
            headers=auth_headers(employee),
        )
        assert resp.status_code == 403

    async def test_reconcile_clean_ledger(self, client, db, employee, admin):
        await db.commit()
        resp = await client.post(
            f"{BASE}/limits/{employee.id}/{YEAR}/reconcile", headers=auth_headers(admin)
        )
        assert resp.status_code == 200
        assert resp.json()["used_days"] == 0

    async def test_admin_lists_unit_quotas(self, client, db, unit, employee, colleague, admin):
        await db.commit()
        resp = await client.get(
            f"{BASE}/limits",
            params={"year": YEAR, "unit_id": str(unit.id)},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 3
        assert {u["full_name"] for u in body["users"]} == {
            "Maria Manager", "Erik Employee", "Clara Colleague",
        }
        assert all(u["persisted"] is False for u in body["users"])

    async def test_employee_cannot_list_quotas(self, client, db, employee):
        await db.commit()
        resp = await client.get(
            f"{BASE}/limits", params={"year": YEAR}, headers=auth_headers(employee)
        )
        assert resp.status_code == 403

    async def test_quota_list_requires_year(self, client, db, admin):
        await db.commit()
        resp = await client.get(f"{BASE}/limits", headers=auth_headers(admin))
        assert resp.status_code == 422


# ═════════════════════════════════════════════════════════════════════
# 4. Intersections and dashboard
# ═════════════════════════════════════════════════════════════════════


class TestUnitEndpoints:

    async def _approve(self, client, owner, reviewer, body):
        created = await client.post(f"{BASE}/requests", json=body, headers=auth_headers(owner))
        request_id = created.json()["id"]
        await client.post(f"{BASE}/requests/{request_id}/submit", headers=auth_headers(owner))
        resp = await client.post(
            f"{BASE}/requests/{request_id}/approve", headers=auth_headers(reviewer)
        )
        assert resp.status_code == 200

    async def test_intersections_and_dashboard(self, client, db, unit, employee, colleague, manager):
        await db.commit()
        await self._approve(client, employee, manager, PLAN_28)
        await self._approve(
            client,
            colleague,
            manager,
            {
                "year": YEAR,
                "periods": [
                    {"start_date": f"{YEAR}-06-10", "end_date": f"{YEAR}-06-23"},
                    {"start_date": f"{YEAR}-09-01", "end_date": f"{YEAR}-09-14"},
                ],
            },
        )

        found = await client.get(
            f"{BASE}/intersections",
            params={"unit_id": str(unit.id), "year": YEAR},
            headers=auth_headers(manager),
        )
        assert found.status_code == 200
        assert found.json()["total"] == 1
        assert found.json()["intersections"][0]["days_count"] == 5

        notified = await client.post(
            f"{BASE}/intersections/notify",
            params={"unit_id": str(unit.id), "year": YEAR},
            headers=auth_headers(manager),
        )
        assert notified.status_code == 200
        assert notified.json()["notified_user_id"] == str(manager.id)

        dashboard = await client.get(
            f"{BASE}/dashboard", params={"year": YEAR}, headers=auth_headers(manager)
        )
        assert dashboard.status_code == 200
        assert dashboard.json()["approved_days"] == 56
        assert dashboard.json()["subordinate_user_count"] == 2

    async def test_employee_cannot_see_unit_overlaps(self, client, db, unit, employee):
        await db.commit()
        resp = await client.get(
            f"{BASE}/intersections",
            params={"unit_id": str(unit.id), "year": YEAR},
            headers=auth_headers(employee),
        )
        assert resp.status_code == 403
