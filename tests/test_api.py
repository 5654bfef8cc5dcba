import json
from datetime import datetime

import pytest

from conftest import DHAKA, NEXT_MONDAY, WEEK, auth_headers
from hrm.services import scoring
from hrm.utils import periods

CRON = {"X-CRON-SECRET": "test-cron-secret"}


def score_body(org, *values, week_key=WEEK):
    return {
        "week_key": week_key,
        "subject_id": org.subject.id,
        "items": [{"criterion_id": c.id, "score_raw": v} for c, v in zip(org.criteria, values)],
    }


async def test_root(client):
    response = await client.get("/")
    assert response.status_code == 200


async def test_requires_token(client, org):
    response = await client.get("/hrm/weeks/current")
    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}

    response = await client.get("/hrm/weeks/current", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401


async def test_employee_cannot_mark(client, org, frozen_now):
    response = await client.post(
        "/hrm/marking/submit", json=score_body(org, 8, 6, 9), headers=auth_headers(org.subject)
    )
    assert response.status_code == 403


async def test_marking_flow(client, org, frozen_now):
    headers = auth_headers(org.marker)

    response = await client.get("/hrm/weeks/current", headers=headers)
    assert response.status_code == 200
    week = response.json()
    assert week["week_key"] == WEEK
    assert week["label"] == "Week-2"
    assert week["is_locked"] is False

    response = await client.post("/hrm/marking/submit", json=score_body(org, 8, 6, 9), headers=headers)
    assert response.status_code == 200
    assert response.json()["total_score"] == 77.0

    response = await client.get("/hrm/marking", headers=headers)
    assert response.status_code == 200
    [row] = response.json()["subjects"]
    assert row["submitted"] is True

    response = await client.get(
        f"/hrm/marking/subjects/{org.subject.id}/weekly", params={"month_key": "2025-06"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()[0]["weekly_result"]["weekly_avg_score"] == 77.0

    # the employee sees their own marks, but not someone else's
    response = await client.get(
        "/hrm/marking/me/weekly", params={"month_key": "2025-06"}, headers=auth_headers(org.subject)
    )
    assert response.status_code == 200
    response = await client.get(
        f"/hrm/marking/subjects/{org.marker.id}/weekly", headers=auth_headers(org.subject)
    )
    assert response.status_code == 403


async def test_invalid_scores_list_every_error(client, org, frozen_now):
    response = await client.post(
        "/hrm/marking/submit", json=score_body(org, 11, 6), headers=auth_headers(org.marker)
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid scores"
    assert len(body["errors"]) == 2


async def test_locked_week_submission(client, org, monkeypatch):
    monkeypatch.setattr(periods, "local_now", lambda: NEXT_MONDAY)
    response = await client.post(
        "/hrm/marking/submit", json=score_body(org, 8, 6, 9), headers=auth_headers(org.marker)
    )
    assert response.status_code == 403

    response = await client.post(f"/hrm/weeks/{WEEK}/unlock", headers=auth_headers(org.marker))
    assert response.status_code == 403
    response = await client.post(f"/hrm/weeks/{WEEK}/unlock", headers=auth_headers(org.super_admin))
    assert response.status_code == 200
    assert response.json()["is_locked"] is False

    response = await client.post(
        "/hrm/marking/submit", json=score_body(org, 8, 6, 9), headers=auth_headers(org.marker)
    )
    assert response.status_code == 200


async def test_criteria_set_endpoints(client, org):
    headers = auth_headers(org.super_admin)
    quality, delivery, _ = org.criteria

    response = await client.put(
        f"/hrm/criteria/sets/{org.subject.id}",
        json={"items": [{"criterion_id": quality.id, "weight": 50}, {"criterion_id": delivery.id, "weight": 40}]},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["errors"] == ["Weights must sum to 100 (current: 90)"]

    response = await client.put(
        f"/hrm/criteria/sets/{org.subject.id}",
        json={"items": [{"criterion_id": quality.id, "weight": 50}, {"criterion_id": delivery.id, "weight": 50}]},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["version"] == 2

    response = await client.get(f"/hrm/criteria/sets/{org.subject.id}/history", headers=headers)
    assert [s["version"] for s in response.json()] == [2, 1]

    response = await client.delete(f"/hrm/criteria/{quality.id}", headers=headers)
    assert response.status_code == 409


async def test_request_validation_errors(client, org):
    response = await client.put(
        f"/hrm/criteria/sets/{org.subject.id}", json={"items": "nope"}, headers=auth_headers(org.super_admin)
    )
    assert response.status_code == 400
    assert response.json()["errors"]


async def test_directory_endpoints(client, org):
    headers = auth_headers(org.super_admin)

    response = await client.put(
        "/hrm/people", json={"email": "new@example.com", "full_name": "New Hire"}, headers=headers
    )
    assert response.status_code == 200
    new_hire = response.json()
    assert new_hire["role"] == "EMPLOYEE"

    response = await client.post(
        "/hrm/assignments",
        json={"marker_id": org.marker.id, "subject_ids": [new_hire["id"], org.subject.id]},
        headers=headers,
    )
    assert response.json() == {"created_count": 1, "skipped_count": 1, "total": 2}

    response = await client.post(
        "/hrm/assignments", json={"marker_id": org.marker.id, "subject_ids": [org.marker.id]}, headers=headers
    )
    assert response.status_code == 400

    response = await client.get("/hrm/assignments", params={"marker_id": org.marker.id}, headers=headers)
    assert len(response.json()) == 2


async def test_monthly_and_funds_endpoints(client, org, frozen_now):
    await client.post("/hrm/marking/submit", json=score_body(org, 4, 3, 4), headers=auth_headers(org.marker))
    headers = auth_headers(org.super_admin)

    response = await client.post("/hrm/months/2025-06/compute", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["expected_weeks_count"] == 4
    [result] = body["results"]
    assert result["tier"] == "FINE"
    assert result["final_fine"] == 1000

    response = await client.get("/hrm/funds", params={"month_key": "2025-06"}, headers=headers)
    [entry] = response.json()["entries"]
    assert response.json()["summary"]["due_fine"] == 1000

    response = await client.patch(f"/hrm/funds/{entry['id']}", json={"status": "PAID", "actual_amount": 5}, headers=headers)
    assert response.status_code == 400
    response = await client.patch(f"/hrm/funds/{entry['id']}", json={"status": "COLLECTED"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["actual_amount"] == 1000

    response = await client.get("/hrm/funds/me", headers=auth_headers(org.subject))
    assert response.json()["fine_collected"] == 1000

    response = await client.post("/hrm/months/2025-06/lock", headers=headers)
    assert response.json()["status"] == "LOCKED"
    response = await client.post(f"/hrm/months/2025-06/subjects/{org.subject.id}/compute", headers=headers)
    assert response.status_code == 409

    response = await client.get("/hrm/months/me/history", headers=auth_headers(org.subject))
    assert response.json()[0]["month_key"] == "2025-06"


async def test_relay_endpoints(client, org, frozen_now):
    headers = auth_headers(org.super_admin)

    response = await client.get(
        "/hrm/notifications/relay/pending-marking",
        params={"subject_id": org.subject.id, "week_key": WEEK},
        headers=headers,
    )
    assert response.json()["pending"] is True

    await client.post("/hrm/marking/submit", json=score_body(org, 8, 6, 9), headers=auth_headers(org.marker))
    await client.post("/hrm/months/2025-06/compute", headers=headers)

    response = await client.post(
        "/hrm/notifications/relay/deliveries",
        json={"subject_id": org.subject.id, "month_key": "2025-06", "delivery_status": "SENT"},
        headers=headers,
    )
    assert response.status_code == 201
    assert response.json()["email_type"] == "MARKSHEET"

    response = await client.get(
        "/hrm/notifications/relay/marksheet-logged",
        params={"subject_id": org.subject.id, "month_key": "2025-06"},
        headers=headers,
    )
    assert response.json()["already_sent"] is True


@pytest.mark.parametrize("headers, status", [({}, 401), ({"X-CRON-SECRET": "wrong"}, 403)])
async def test_cron_secret(client, headers, status):
    response = await client.post("/hrm/cron/ensure-week", headers=headers)
    assert response.status_code == status


async def test_cron_jobs(client, org, monkeypatch):
    # Saturday after WEEK, early in the morning
    monkeypatch.setattr(periods, "local_now", lambda: datetime(2025, 6, 14, 0, 30, tzinfo=DHAKA))

    response = await client.post("/hrm/cron/ensure-week", headers=CRON)
    assert response.json()["week_key"] == WEEK
    assert response.json()["notified_markers"] == 2

    response = await client.post("/hrm/cron/compute-last-friday", headers=CRON)
    body = response.json()
    assert body["week_key"] == WEEK
    assert body["locked_weeks"] == [WEEK]
    assert body["markers_computed"] == 2
    assert body["notified_markers"] == 2

    # June has not ended yet, so May is computed; it has no submissions
    response = await client.post("/hrm/cron/compute-month-if-ended", headers=CRON)
    assert response.json() == {"month_key": "2025-05", "computed": False, "reason": "no submissions"}


def json_content(body) -> bytes:
    # json.dumps writes bare NaN/Infinity, which the request parser accepts
    return json.dumps(body).encode()


async def test_non_finite_numbers_are_rejected(client, org, frozen_now):
    marker = {**auth_headers(org.marker), "Content-Type": "application/json"}
    response = await client.post(
        "/hrm/marking/submit", content=json_content(score_body(org, float("nan"), 6, 9)), headers=marker
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"
    assert "score_raw" in response.json()["errors"][0]

    await client.post("/hrm/marking/submit", json=score_body(org, 10, 10, 10), headers=auth_headers(org.marker))
    admin = {**auth_headers(org.super_admin), "Content-Type": "application/json"}
    [result] = (await client.post("/hrm/months/2025-06/compute", headers=admin)).json()["results"]

    response = await client.patch(
        f"/hrm/months/results/{result['id']}/gift", content=json_content({"gift_amount": float("nan")}), headers=admin
    )
    assert response.status_code == 400

    [entry] = (await client.get("/hrm/funds", params={"month_key": "2025-06"}, headers=admin)).json()["entries"]
    response = await client.patch(
        f"/hrm/funds/{entry['id']}",
        content=json_content({"status": "PAID", "actual_amount": float("inf")}),
        headers=admin,
    )
    assert response.status_code == 400


async def test_database_failure_is_a_logged_500(client, org, frozen_now, monkeypatch):
    monkeypatch.setattr(scoring, "score", lambda items, raw: None)
    response = await client.post(
        "/hrm/marking/submit", json=score_body(org, 8, 6, 9), headers=auth_headers(org.marker)
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
