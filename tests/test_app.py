import redis

from photoapp.models.image import ModerationStatus
from photoapp.services.cache_service import cache_service


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"database": "ok", "redis": "ok", "status": "healthy"}


def test_request_id_is_echoed(client):
    resp = client.get("/", headers={"X-Request-Id": "abc123"})
    assert resp.headers["X-Request-Id"] == "abc123"
    assert "X-Response-Time-Ms" in resp.headers

    generated = client.get("/").headers["X-Request-Id"]
    assert len(generated) == 32


def test_error_shape(client):
    resp = client.get("/api/images/31337")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Image not found"}


def test_cache_endpoints_are_super_admin_only(client, super_admin, make_user, grant_role, headers_for, fake_redis):
    admin = make_user()
    grant_role(admin, permissions={"viewDashboard": True, "viewAdmins": True})
    assert client.get("/api/admin/cache/stats", headers=headers_for(admin)).status_code == 403

    stats = client.get("/api/admin/cache/stats", headers=headers_for(super_admin)).json()
    assert stats["cache"]["total"] >= 1
    assert stats["cache"]["ttl_seconds"] == 300

    cleared = client.post("/api/admin/cache/clear", headers=headers_for(super_admin)).json()["cleared"]
    assert cleared >= 1
    assert not any(key.startswith("permissions:") for key in fake_redis.store)


class UnreachableRedis:
    def _down(self, *args, **kwargs):
        raise redis.ConnectionError("Connection refused")

    get = setex = delete = scan_iter = ping = _down


def test_requests_succeed_while_redis_is_down(client, monkeypatch, make_user, grant_role, headers_for, make_image):
    monkeypatch.setattr(cache_service, "_client", UnreachableRedis())
    admin = make_user()
    grant_role(admin, permissions={"viewDashboard": True, "moderateImages": True, "viewImages": True})
    image = make_image(make_user(), "Queued", status=ModerationStatus.pending)

    assert client.get("/api/health").json()["redis"] == "error"
    assert client.get("/api/images").json()["pagination"]["total"] == 0

    resp = client.post(
        f"/api/admin/images/{image.id}/moderate", json={"status": "approved"}, headers=headers_for(admin),
    )
    assert resp.status_code == 200
    assert client.get("/api/images").json()["pagination"]["total"] == 1
