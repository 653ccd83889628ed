from photoapp.models.notification import Notification
from photoapp.models.system_log import SystemLog


def test_toggle_and_check(client, db, make_user, make_image, headers_for):
    owner = make_user()
    fan = make_user()
    liked = make_image(owner, "Liked")
    other = make_image(owner, "Other")
    headers = headers_for(fan)

    resp = client.post(f"/api/favorites/{liked.id}", headers=headers)
    assert resp.json()["is_favorited"] is True

    note = db.query(Notification).filter(Notification.recipient_id == owner.id).one()
    assert note.type == "image_favorited"
    assert note.actor_id == fan.id

    resp = client.post("/api/favorites/check", json={"image_ids": [liked.id, other.id]}, headers=headers)
    assert resp.json()["favorites"] == {str(liked.id): True, str(other.id): False}

    listing = client.get("/api/favorites", headers=headers).json()
    assert [img["id"] for img in listing["images"]] == [liked.id]

    resp = client.post(f"/api/favorites/{liked.id}", headers=headers)
    assert resp.json()["is_favorited"] is False
    assert client.get("/api/favorites", headers=headers).json()["pagination"]["total"] == 0


def test_favoriting_own_image_sends_no_notification(client, db, make_user, make_image, headers_for):
    owner = make_user()
    image = make_image(owner)
    client.post(f"/api/favorites/{image.id}", headers=headers_for(owner))
    assert db.query(Notification).count() == 0


def test_toggle_unknown_image(client, make_user, headers_for):
    assert client.post("/api/favorites/777", headers=headers_for(make_user())).status_code == 404


def test_admin_favorites_oversight(client, db, make_user, grant_role, make_image, headers_for):
    admin = make_user()
    grant_role(admin, role="moderator", permissions={"viewDashboard": True, "manageFavorites": True})
    fan = make_user("fan")
    image = make_image(make_user(), "Pinned")
    client.post(f"/api/favorites/{image.id}", headers=headers_for(fan))

    body = client.get("/api/admin/favorites", params={"search": "fan"}, headers=headers_for(admin)).json()
    assert body["pagination"]["total"] == 1
    assert body["favorites"][0]["id"] == f"{fan.id}_{image.id}"
    assert body["favorites"][0]["image"]["title"] == "Pinned"

    resp = client.delete(f"/api/admin/favorites/{fan.id}/{image.id}", headers=headers_for(admin))
    assert resp.status_code == 200
    assert client.get("/api/admin/favorites", headers=headers_for(admin)).json()["favorites"] == []

    log = db.query(SystemLog).filter(SystemLog.action == "deleteFavorite").one()
    assert log.metadata_json == {"target_user_id": fan.id, "image_id": image.id}

    assert client.delete(f"/api/admin/favorites/9999/{image.id}", headers=headers_for(admin)).status_code == 404
