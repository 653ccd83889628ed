from datetime import date, datetime

import pytest

from photoapp.core.config import settings
from photoapp.models.image import ModerationStatus
from photoapp.models.user_activity import UserActivity
from photoapp.services.analytics_service import analytics_service, percent_change, window_bounds

NOW = datetime(2024, 3, 10, 20, 0)  # 2024-03-11 03:00 local


@pytest.fixture(autouse=True)
def fixed_offset(monkeypatch):
    monkeypatch.setattr(settings, "ANALYTICS_UTC_OFFSET_HOURS", 7)


def test_window_bounds_use_local_days():
    first_day, last_day, start, end = window_bounds(7, NOW)
    assert last_day == date(2024, 3, 11)
    assert first_day == date(2024, 3, 5)
    assert start == datetime(2024, 3, 4, 17, 0)
    assert end == datetime(2024, 3, 11, 17, 0)


@pytest.mark.parametrize("current, previous, expected", [
    (5, 0, 100.0),
    (0, 0, 0.0),
    (3, 2, 50.0),
    (1, 3, -66.7),
    (0, 4, -100.0),
])
def test_percent_change(current, previous, expected):
    assert percent_change(current, previous) == expected


def test_analytics_series_and_changes(db, make_user, make_image):
    owner = make_user("owner")
    # 18:00 UTC on the 10th is already the 11th locally
    late = make_image(owner, "Late", created_at=datetime(2024, 3, 10, 18, 0))
    make_image(owner, "Early", created_at=datetime(2024, 3, 10, 16, 0))
    make_image(owner, "Before", status=ModerationStatus.pending, created_at=datetime(2024, 3, 1))
    db.add(UserActivity(user_id=owner.id, image_id=late.id, activity_type="view", date="2024-03-10", count=3))
    db.add(UserActivity(user_id=owner.id, image_id=late.id, activity_type="download", date="2024-02-01", count=9))
    db.commit()

    result = analytics_service.analytics(db, days=7, now=NOW)

    assert result["period"]["start_date"] == "2024-03-05"
    assert result["period"]["end_date"] == "2024-03-11"

    uploads = {point["date"]: point["count"] for point in result["daily_uploads"]}
    assert len(uploads) == 7
    assert uploads["2024-03-11"] == 1
    assert uploads["2024-03-10"] == 1
    assert sum(uploads.values()) == 2

    comparison = result["daily_uploads_comparison"]
    assert comparison[0]["date"] == "2024-02-27"
    assert sum(point["count"] for point in comparison) == 1
    assert sum(point["count"] for point in result["daily_pending_comparison"]) == 1

    assert result["changes"] == {"uploads": 100.0, "users": 0.0, "pending": -100.0, "approved": 100.0}
    assert result["images"]["pending_moderation"] == 1
    assert result["images"]["approved"] == 2
    assert result["top_uploaders"][0]["username"] == "owner"
    assert result["top_uploaders"][0]["upload_count"] == 2

    assert result["total_views"] == 3
    assert result["total_downloads"] == 0
    assert len(result["views_over_time"]) == 7


def test_analytics_endpoint(client, make_user, grant_role, headers_for, make_image, category):
    admin = make_user()
    grant_role(admin, role="moderator", permissions={"viewDashboard": True, "viewAnalytics": True})
    make_image(admin, "Fresh", category=category)

    resp = client.get("/api/admin/analytics", params={"days": 14}, headers=headers_for(admin))
    assert resp.status_code == 200
    body = resp.json()
    assert body["period"]["days"] == 14
    assert len(body["daily_users"]) == 14
    assert body["images"]["total"] == 1
    assert body["categories"] == [{"category_id": category.id, "name": "Nature", "count": 1}]

    assert client.get("/api/admin/analytics", params={"days": 0}, headers=headers_for(admin)).status_code == 422


def test_dashboard(client, make_user, grant_role, headers_for, make_image):
    admin = make_user()
    grant_role(admin)
    make_image(admin, "Uncategorised")

    resp = client.get("/api/admin/dashboard", headers=headers_for(admin))
    assert resp.status_code == 200
    body = resp.json()
    assert body["stats"]["total_users"] == 1
    assert body["stats"]["category_stats"] == [{"category_id": None, "name": "Unknown", "count": 1}]
    assert body["recent_images"][0]["title"] == "Uncategorised"
    assert body["recent_users"][0]["id"] == admin.id
