import uuid

import pytest

from nextlevel.main import app
from nextlevel.models.activity_log import ActivityLog
from nextlevel.services.notifications import NullNotifier


pytestmark = pytest.mark.asyncio


FULL_PROFILE = {
    "name": "Ada",
    "lastName": "Lovelace",
    "avatar": "https://cdn.example.com/ada.png",
    "address": "Jl. Sudirman 1",
    "phoneNumber": "+62811111111",
    "province": "DKI Jakarta",
    "city": "Jakarta",
    "district": "Menteng",
    "githubLink": "https://github.com/ada",
}


class RecordingNotifier(NullNotifier):
    def __init__(self):
        self.sent = []

    def is_available(self) -> bool:
        return True

    async def send_topic(self, topic, message):
        self.sent.append((topic, message))
        return await super().send_topic(topic, message)


class ExplodingNotifier(NullNotifier):
    async def send_topic(self, topic, message):
        raise RuntimeError("relay unreachable")


async def test_upsert_and_read_own_profile(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)

    missing = await client.get("/api/v1/profile", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["detail"]["message"] == "Profile not found"

    created = await client.post("/api/v1/profile", headers=headers, json={"name": "Ada", "city": "Bandung"})
    assert created.status_code == 200
    assert created.json()["userId"] == str(user.id)

    # Second call updates only the provided fields
    updated = await client.post("/api/v1/profile", headers=headers, json={"city": "Jakarta"})
    assert updated.json()["name"] == "Ada"
    assert updated.json()["city"] == "Jakarta"
    assert updated.json()["id"] == created.json()["id"]

    own = await client.get("/api/v1/profile", headers=headers)
    assert own.status_code == 200
    assert own.json()["city"] == "Jakarta"


async def test_any_user_can_view_profile(client, create_user, auth_header_factory):
    owner, owner_password = await create_user()
    viewer, viewer_password = await create_user()
    owner_headers = await auth_header_factory(owner.email, owner_password)
    viewer_headers = await auth_header_factory(viewer.email, viewer_password)

    await client.post("/api/v1/profile", headers=owner_headers, json={"name": "Owner"})

    resp = await client.get(f"/api/v1/profile/{owner.id}", headers=viewer_headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Owner"
    assert await ActivityLog.filter(user_id=viewer.id, action="VIEW_PROFILE").exists()

    assert (await client.get(f"/api/v1/profile/{uuid.uuid4()}", headers=viewer_headers)).status_code == 404


async def test_full_update_by_id(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)
    await client.post("/api/v1/profile", headers=headers, json={"name": "Ada"})

    notifier = RecordingNotifier()
    app.state.notifier = notifier

    resp = await client.put(f"/api/v1/profile/{user.id}", headers=headers, json=FULL_PROFILE)
    assert resp.status_code == 200
    assert resp.json()["githubLink"] == FULL_PROFILE["githubLink"]

    assert [topic for topic, _ in notifier.sent] == ["profile-updates"]
    assert notifier.sent[0][1].data["userId"] == str(user.id)
    assert await ActivityLog.filter(user_id=user.id, action="PROFILE_UPDATE_BY_ID").exists()


async def test_full_update_requires_every_field(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)
    await client.post("/api/v1/profile", headers=headers, json={"name": "Ada"})

    partial = {k: v for k, v in FULL_PROFILE.items() if k != "city"}
    resp = await client.put(f"/api/v1/profile/{user.id}", headers=headers, json=partial)
    assert resp.status_code == 400
    assert resp.json()["detail"]["message"] == "Field 'city' is required"


async def test_full_update_access_rules(client, create_admin, create_user, auth_header_factory):
    admin, admin_password = await create_admin()
    owner, owner_password = await create_user()
    other, other_password = await create_user()
    owner_headers = await auth_header_factory(owner.email, owner_password)
    other_headers = await auth_header_factory(other.email, other_password)
    admin_headers = await auth_header_factory(admin.email, admin_password)

    # Profile missing for an existing user
    no_profile = await client.put(f"/api/v1/profile/{owner.id}", headers=owner_headers, json=FULL_PROFILE)
    assert no_profile.status_code == 404

    await client.post("/api/v1/profile", headers=owner_headers, json={"name": "Owner"})

    forbidden = await client.put(f"/api/v1/profile/{owner.id}", headers=other_headers, json=FULL_PROFILE)
    assert forbidden.status_code == 403

    by_admin = await client.put(f"/api/v1/profile/{owner.id}", headers=admin_headers, json=FULL_PROFILE)
    assert by_admin.status_code == 200

    no_user = await client.put(f"/api/v1/profile/{uuid.uuid4()}", headers=admin_headers, json=FULL_PROFILE)
    assert no_user.status_code == 404
    assert no_user.json()["detail"]["message"] == "User not found"


async def test_broadcast_failure_does_not_fail_update(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)
    await client.post("/api/v1/profile", headers=headers, json={"name": "Ada"})

    app.state.notifier = ExplodingNotifier()
    resp = await client.put(f"/api/v1/profile/{user.id}", headers=headers, json=FULL_PROFILE)
    assert resp.status_code == 200
    assert resp.json()["lastName"] == "Lovelace"
