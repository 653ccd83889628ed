import pytest

from photoapp.core.exceptions import ResourceNotFoundError, ValidationError
from photoapp.db.base import utcnow
from photoapp.models.user_activity import UserActivity
from photoapp.services.activity_service import ActivityService, activity_service


def test_views_counted_once_per_user_per_day(db, make_user, make_image):
    viewer = make_user()
    image = make_image(make_user())

    assert activity_service.record_activity(db, viewer.id, image.id, "view") == {"views": 1, "downloads": 0}
    assert activity_service.record_activity(db, viewer.id, image.id, "view") == {"views": 1, "downloads": 0}

    row = db.query(UserActivity).one()
    assert row.count == 2
    assert row.is_first_time is True
    assert row.activity_type == "view"


def test_anonymous_views_always_count(db, make_user, make_image):
    image = make_image(make_user())
    for _ in range(3):
        result = activity_service.record_activity(db, None, image.id, "view")
    assert result["views"] == 3
    assert db.query(UserActivity).count() == 0


def test_downloads_tracked_separately(db, make_user, make_image):
    user = make_user()
    image = make_image(make_user())
    activity_service.record_activity(db, user.id, image.id, "view")
    result = activity_service.record_activity(db, user.id, image.id, "download")
    assert result == {"views": 1, "downloads": 1}
    assert db.query(UserActivity).count() == 2


def test_invalid_activity(db, make_user, make_image):
    image = make_image(make_user())
    with pytest.raises(ValidationError):
        activity_service.record_activity(db, None, image.id, "like")
    with pytest.raises(ResourceNotFoundError):
        activity_service.record_activity(db, None, 12345, "view")


def test_view_endpoint(client, make_user, make_image, headers_for):
    viewer = make_user()
    image = make_image(make_user())

    assert client.post(f"/api/images/{image.id}/view").json()["views"] == 1
    assert client.post(f"/api/images/{image.id}/view", headers=headers_for(viewer)).json()["views"] == 2
    assert client.post(f"/api/images/{image.id}/view", headers=headers_for(viewer)).json()["views"] == 2
    assert client.post(f"/api/images/{image.id}/download").json() == {"views": 2, "downloads": 1}
    assert client.post("/api/images/999/view").status_code == 404


def test_lost_insert_race_bumps_existing_row(db, make_user, make_image, monkeypatch):
    viewer = make_user()
    image = make_image(make_user())
    db.add(UserActivity(
        user_id=viewer.id, image_id=image.id, activity_type="view",
        date=utcnow().date().isoformat(), is_first_time=True, count=1,
    ))
    db.commit()

    real_bump = ActivityService._bump_existing
    calls = []

    def bump(*args):
        calls.append(args)
        # the concurrent row is invisible to the first lookup
        return 0 if len(calls) == 1 else real_bump(*args)

    monkeypatch.setattr(ActivityService, "_bump_existing", staticmethod(bump))

    result = activity_service.record_activity(db, viewer.id, image.id, "view")
    assert result == {"views": 0, "downloads": 0}
    assert len(calls) == 2

    row = db.query(UserActivity).one()
    assert row.count == 2
