"""Tests for the HTTP surface."""

from datetime import datetime, timedelta, timezone

import pytest

PUSH_BODY = {
    "user_id": "user_1",
    "endpoint": "https://push.example/device-9",
    "p256dh_key": "p256",
    "auth_key": "auth",
    "user_agent": "Mozilla/5.0 (iPad; CPU OS 17_0) Safari/604.1",
}


async def _create(client, user_id="user_1", push=False, **variables):
    r = await client.post(
        "/api/v1/notifications",
        params={"push": str(push).lower()},
        json={"user_id": user_id, "dog_id": "dog_1", "template_key": "transport_started",
              "variables": variables or {"dogName": "Max", "eta": 25}},
    )
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.json()["service"] == "huellitas-notify"


@pytest.mark.asyncio
async def test_readiness_checks_database(client):
    r = await client.get("/api/v1/health/ready")
    assert r.status_code == 200
    assert r.json()["checks"]["database"] == "ok"
    assert r.json()["checks"]["redis"] == "disabled"


@pytest.mark.asyncio
async def test_trace_id_is_echoed(client):
    r = await client.get("/api/v1/health", headers={"X-Trace-Id": "trc_fixed"})
    assert r.headers["X-Trace-Id"] == "trc_fixed"


@pytest.mark.asyncio
async def test_templates_list_and_upsert(client):
    r = await client.get("/api/v1/templates")
    assert r.status_code == 200
    keys = {t["template_key"] for t in r.json()}
    assert "transport_started" in keys

    r = await client.put("/api/v1/templates/bath_done", json={
        "name": "Baño listo", "category": "routine",
        "title_pattern": "🛁 {dogName} está limpio", "body_pattern": "Terminamos el baño de {dogName}.",
    })
    assert r.status_code == 200
    assert r.json()["template_key"] == "bath_done"

    r = await client.put("/api/v1/templates/Bad-Key", json={
        "name": "x", "category": "routine", "title_pattern": "x", "body_pattern": "y",
    })
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_create_list_read_delete(client):
    created = await _create(client)
    assert created["category"] == "transport"
    assert "Max" in created["title"]

    r = await client.get("/api/v1/users/user_1/notifications")
    body = r.json()
    assert body["unread_count"] == 1
    assert body["notifications"][0]["id"] == created["id"]

    r = await client.patch(f"/api/v1/notifications/{created['id']}/read")
    assert r.status_code == 200
    assert r.json()["read"] is True

    r = await client.get("/api/v1/users/user_1/notifications", params={"unread_only": "true"})
    assert r.json()["notifications"] == []

    r = await client.delete(f"/api/v1/notifications/{created['id']}")
    assert r.status_code == 204
    r = await client.get(f"/api/v1/notifications/{created['id']}")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_unknown_template_is_404(client):
    r = await client.post("/api/v1/notifications", json={"user_id": "user_1", "template_key": "nope"})
    assert r.status_code == 404
    error = r.json()["error"]
    assert error["code"] == "TEMPLATE_NOT_FOUND"
    assert error["trace_id"]


@pytest.mark.asyncio
async def test_mark_all_read(client):
    await _create(client)
    await _create(client)
    r = await client.post("/api/v1/users/user_1/notifications/mark-all-read")
    assert r.json() == {"user_id": "user_1", "marked": 2}


@pytest.mark.asyncio
async def test_direct_notification(client):
    r = await client.post("/api/v1/notifications/direct", params={"push": "false"}, json={
        "user_id": "user_1", "title": "Mejora en obediencia", "message": "Max progresa", "category": "improvement",
    })
    assert r.status_code == 201
    assert r.json()["category"] == "behavior"


@pytest.mark.asyncio
async def test_create_pushes_to_subscribed_devices(client, relay_recorder):
    r = await client.post("/api/v1/push/subscriptions", json=PUSH_BODY)
    assert r.status_code == 201
    assert r.json()["device_type"] == "tablet"
    assert r.json()["browser_name"] == "Safari"

    await _create(client, push=True)
    assert len(relay_recorder.requests) == 1


@pytest.mark.asyncio
async def test_unsubscribe_flips_active_flag(client):
    await client.post("/api/v1/push/subscriptions", json=PUSH_BODY)
    r = await client.post("/api/v1/push/subscriptions/unsubscribe",
                          json={"user_id": "user_1", "endpoint": PUSH_BODY["endpoint"]})
    assert r.status_code == 200
    assert r.json()["is_active"] is False

    r = await client.post("/api/v1/push/subscriptions/unsubscribe",
                          json={"user_id": "someone_else", "endpoint": PUSH_BODY["endpoint"]})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_push_test_relay_failure_is_502(app, client, make_relay):
    app.state.relay, _ = make_relay(payload={"success": False, "error": "VAPID mismatch"})
    r = await client.post("/api/v1/push/test", json={
        "user_id": "user_1", "notification": {"title": "Prueba", "body": "Hola"},
    })
    assert r.status_code == 502
    assert r.json()["error"]["code"] == "RELAY_ERROR"


@pytest.mark.asyncio
async def test_preferences_upsert(client):
    body = {"categories": {"tips": False}, "priority_filter": "medium",
            "quiet_hours_enabled": True, "quiet_start_time": "22:00:00", "quiet_end_time": "07:00:00"}
    r = await client.put("/api/v1/users/user_1/preferences/dog_1", json=body)
    assert r.status_code == 200
    r = await client.put("/api/v1/users/user_1/preferences/dog_1", json={**body, "priority_filter": "high"})
    assert r.status_code == 200

    r = await client.get("/api/v1/users/user_1/preferences")
    prefs = r.json()
    assert len(prefs) == 1
    assert prefs[0]["priority_filter"] == "high"
    assert prefs[0]["categories"] == {"tips": False}


@pytest.mark.asyncio
async def test_preferences_reject_half_quiet_window(client):
    r = await client.put("/api/v1/users/user_1/preferences/dog_1",
                         json={"quiet_hours_enabled": True, "quiet_start_time": "22:00:00"})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_schedule_tick_cancel(client):
    due = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
    later = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()

    r = await client.post("/api/v1/scheduled-notifications", json={
        "user_id": "user_1", "dog_id": "dog_1", "template_key": "walk_reminder",
        "variables": {"dogName": "Luna", "duration": "20"}, "scheduled_for": due,
        "recurrence_rule": "FREQ=DAILY;BYHOUR=7",
    })
    assert r.status_code == 201
    assert r.json()["is_recurring"] is True

    r = await client.post("/api/v1/scheduled-notifications", json={
        "user_id": "user_1", "template_key": "weekly_tip", "variables": {"tip": "x"}, "scheduled_for": later,
    })
    later_id = r.json()["id"]

    r = await client.post("/api/v1/scheduler/tick")
    assert r.status_code == 200
    assert r.json()["sent"] == 1
    assert r.json()["rescheduled"] == 1

    r = await client.post(f"/api/v1/scheduled-notifications/{later_id}/cancel")
    assert r.json()["status"] == "cancelled"
    r = await client.post(f"/api/v1/scheduled-notifications/{later_id}/cancel")
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "INVALID_STATE_TRANSITION"

    r = await client.get("/api/v1/users/user_1/scheduled-notifications", params={"status": "pending"})
    pending = r.json()
    assert len(pending) == 1
    assert pending[0]["template_key"] == "walk_reminder"


@pytest.mark.asyncio
async def test_schedule_rejects_naive_datetime(client):
    r = await client.post("/api/v1/scheduled-notifications", json={
        "user_id": "user_1", "template_key": "weekly_tip", "scheduled_for": "2030-01-01T09:00:00",
    })
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_migration_endpoints(client):
    await _create(client)
    r = await client.get("/api/v1/migration/analysis")
    assert r.status_code == 200
    assert r.json()["existing_notifications"] == 1

    r = await client.post("/api/v1/migration/run")
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["summary"]["success_rate"] == "100.00%"

    r = await client.get("/api/v1/stats")
    assert r.status_code == 200
    assert r.json()["is_migrated"] is True


@pytest.mark.asyncio
async def test_direct_notification_rejects_expiry_without_offset(client):
    r = await client.post("/api/v1/notifications/direct", params={"push": "false"}, json={
        "user_id": "user_1", "title": "Aviso", "message": "Hola", "expires_at": "2030-01-01T00:00:00",
    })
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_tick_rejects_time_without_offset(client):
    r = await client.post("/api/v1/scheduler/tick", params={"now": "2030-01-01T00:00:00"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_purge_expired_endpoint(client):
    r = await client.post("/api/v1/maintenance/purge-expired")
    assert r.status_code == 200
    assert r.json() == {"deleted": 0}
