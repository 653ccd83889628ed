import pytest

from photoapp.models.notification import Notification
from photoapp.models.setting import Setting
from photoapp.models.system_log import SystemLog


@pytest.fixture()
def site_admin(make_user, grant_role):
    user = make_user("siteadmin")
    grant_role(user, permissions={"viewDashboard": True, "manageSettings": True, "viewLogs": True})
    return user


def test_public_settings_defaults_without_writing(client, db):
    body = client.get("/api/settings/public").json()["settings"]
    assert body["site_name"] == "PhotoApp"
    assert body["password_min_length"] == 8
    assert db.query(Setting).count() == 0


def test_admin_get_creates_default_document(client, db, site_admin, headers_for):
    body = client.get("/api/admin/settings", headers=headers_for(site_admin)).json()["settings"]
    assert body["max_upload_size"] == 10
    assert "password_min_length" not in body
    assert db.query(Setting).count() == 1


def test_update_merges_and_logs(client, db, site_admin, headers_for):
    headers = headers_for(site_admin)
    client.get("/api/admin/settings", headers=headers)

    resp = client.put(
        "/api/admin/settings",
        json={"settings": {"site_name": "Shots", "password_min_length": 12}},
        headers=headers,
    )
    assert resp.status_code == 200
    merged = resp.json()["settings"]
    assert merged["site_name"] == "Shots"
    assert merged["maintenance_mode"] is False

    public = client.get("/api/settings/public").json()["settings"]
    assert public["site_name"] == "Shots"
    assert public["password_min_length"] == 12
    assert public["password_require_number"] is True

    log = db.query(SystemLog).filter(SystemLog.action == "updateSettings").one()
    assert log.metadata_json["settings"]["site_name"] == "Shots"


def test_settings_need_permission(client, make_user, grant_role, headers_for):
    moderator = make_user()
    grant_role(moderator, role="moderator", permissions={"viewDashboard": True})
    assert client.get("/api/admin/settings", headers=headers_for(moderator)).status_code == 403


def test_announcement_to_everyone(client, db, site_admin, make_user, headers_for):
    make_user()
    make_user()
    resp = client.post(
        "/api/admin/announcements",
        json={"type": "maintenance_scheduled", "title": "Downtime", "message": "Sunday 2am"},
        headers=headers_for(site_admin),
    )
    assert resp.status_code == 200
    assert resp.json()["recipient_count"] == 3
    assert db.query(Notification).filter(Notification.type == "maintenance_scheduled").count() == 3

    log = db.query(SystemLog).filter(SystemLog.action == "createAnnouncement").one()
    assert log.metadata_json["recipient_count"] == 3


def test_announcement_to_listed_users(client, db, site_admin, make_user, headers_for):
    target = make_user()
    make_user()
    resp = client.post(
        "/api/admin/announcements",
        json={
            "type": "feature_update",
            "title": "New",
            "message": "Albums are here",
            "recipient_ids": [target.id, 9999],
        },
        headers=headers_for(site_admin),
    )
    assert resp.json()["recipient_count"] == 1
    note = db.query(Notification).one()
    assert note.recipient_id == target.id
    assert note.metadata_json["title"] == "New"

    inbox = client.get("/api/notifications", headers=headers_for(target)).json()
    assert inbox["unread"] == 1
    assert client.post("/api/notifications/read", headers=headers_for(target)).json() == {"updated": 1}
    assert client.get("/api/notifications", headers=headers_for(target)).json()["unread"] == 0


def test_announcement_type_must_be_known(client, site_admin, headers_for):
    resp = client.post(
        "/api/admin/announcements",
        json={"type": "party", "title": "Hi", "message": "Hello"},
        headers=headers_for(site_admin),
    )
    assert resp.status_code == 400


def test_logs_filter_by_action(client, site_admin, headers_for):
    headers = headers_for(site_admin)
    client.put("/api/admin/settings", json={"settings": {"maintenance_mode": True}}, headers=headers)
    client.post(
        "/api/admin/announcements",
        json={"type": "system_announcement", "title": "Hi", "message": "Hello"},
        headers=headers,
    )

    body = client.get("/api/admin/logs", params={"action": "updateSettings"}, headers=headers).json()
    assert body["pagination"]["total"] == 1
    entry = body["logs"][0]
    assert entry["action"] == "updateSettings"
    assert entry["user_id"] == site_admin.id
    assert entry["actor"]["username"] == "siteadmin"

    assert client.get("/api/admin/logs", headers=headers).json()["pagination"]["total"] == 2
