import datetime as dt
import uuid

import pytest

from nextlevel.models.activity_log import ActivityLog
from nextlevel.services.audit_logger import utc_now


pytestmark = pytest.mark.asyncio


async def test_user_reads_own_logs(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)
    await client.get("/api/v1/auth/verify", headers=headers)

    resp = await client.get("/api/v1/activity-logs", headers=headers)
    assert resp.status_code == 200
    actions = [item["action"] for item in resp.json()["items"]]
    assert "LOGIN" in actions and "TOKEN_VERIFY" in actions
    assert all(item["userId"] == str(user.id) for item in resp.json()["items"])

    only_login = await client.get("/api/v1/activity-logs", headers=headers, params={"action": "LOGIN"})
    assert [item["action"] for item in only_login.json()["items"]] == ["LOGIN"]

    by_id = await client.get(f"/api/v1/activity-logs/{user.id}", headers=headers)
    assert by_id.status_code == 200
    assert len(by_id.json()["items"]) == len(resp.json()["items"])


async def test_cross_user_logs_are_admin_only(client, create_admin, create_user, auth_header_factory):
    admin, admin_password = await create_admin()
    user, password = await create_user()
    other, other_password = await create_user()
    user_headers = await auth_header_factory(user.email, password)
    await auth_header_factory(other.email, other_password)
    admin_headers = await auth_header_factory(admin.email, admin_password)

    denied = await client.get(f"/api/v1/activity-logs/{other.id}", headers=user_headers)
    assert denied.status_code == 403
    assert denied.json()["detail"]["message"] == "Access denied. You can only view your own activity logs."
    assert (await client.get(f"/api/v1/activity-logs/{uuid.uuid4()}", headers=user_headers)).status_code == 403
    assert (await client.get("/api/v1/activity-logs/all", headers=user_headers)).status_code == 403

    other_logs = await client.get(f"/api/v1/activity-logs/{other.id}", headers=admin_headers)
    assert other_logs.status_code == 200
    assert other_logs.json()["items"][0]["action"] == "LOGIN"

    all_logs = await client.get("/api/v1/activity-logs/all", headers=admin_headers)
    assert all_logs.status_code == 200
    users = {item["user"]["email"] for item in all_logs.json()["items"] if item["user"]}
    assert {admin.email, user.email, other.email} <= users

    filtered = await client.get(
        "/api/v1/activity-logs/all", headers=admin_headers, params={"userId": str(other.id), "action": "LOGIN"}
    )
    assert [item["user"]["id"] for item in filtered.json()["items"]] == [str(other.id)]


async def test_cleanup_default_retention(client, create_admin, create_user, auth_header_factory):
    admin, admin_password = await create_admin()
    user, password = await create_user()
    admin_headers = await auth_header_factory(admin.email, admin_password)
    user_headers = await auth_header_factory(user.email, password)

    now = utc_now()
    for days in (200, 91):
        await ActivityLog.create(user_id=user.id, action="LOGIN", created_at=now - dt.timedelta(days=days))
    await ActivityLog.create(user_id=user.id, action="LOGIN", created_at=now - dt.timedelta(days=30))

    denied = await client.request("DELETE", "/api/v1/activity-logs/cleanup", headers=user_headers)
    assert denied.status_code == 403

    resp = await client.request("DELETE", "/api/v1/activity-logs/cleanup", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["deleted"] == 2

    again = await client.request("DELETE", "/api/v1/activity-logs/cleanup", headers=admin_headers)
    assert again.json()["deleted"] == 0
    assert await ActivityLog.filter(action="LOGS_CLEANUP").count() == 2


async def test_cleanup_custom_threshold(client, create_admin, auth_header_factory):
    admin, admin_password = await create_admin()
    headers = await auth_header_factory(admin.email, admin_password)
    await ActivityLog.create(user_id=admin.id, action="LOGIN", created_at=utc_now() - dt.timedelta(days=10))

    resp = await client.request("DELETE", "/api/v1/activity-logs/cleanup", headers=headers, json={"daysOld": 7})
    assert resp.status_code == 200
    assert resp.json()["deleted"] == 1
    assert resp.json()["message"] == "Deleted 1 old activity logs"

    invalid = await client.request("DELETE", "/api/v1/activity-logs/cleanup", headers=headers, json={"daysOld": -1})
    assert invalid.status_code == 400
