import pytest


@pytest.fixture()
def curator(make_user, grant_role):
    user = make_user("curator")
    grant_role(user, permissions={
        "viewDashboard": True,
        "viewCategories": True,
        "createCategories": True,
        "editCategories": True,
        "deleteCategories": True,
    })
    return user


def test_public_list_hides_inactive(client, db, category, curator, headers_for):
    client.post("/api/categories", json={"name": "Macro"}, headers=headers_for(curator))
    client.put(f"/api/categories/{category.id}", json={"is_active": False}, headers=headers_for(curator))

    names = [c["name"] for c in client.get("/api/categories").json()["categories"]]
    assert names == ["Macro"]

    admin_view = client.get("/api/categories/admin", headers=headers_for(curator)).json()["categories"]
    assert {c["name"] for c in admin_view} == {"Macro", "Nature"}


def test_duplicate_names_rejected(client, category, curator, headers_for):
    resp = client.post("/api/categories", json={"name": "nature"}, headers=headers_for(curator))
    assert resp.status_code == 400

    other = client.post("/api/categories", json={"name": "City"}, headers=headers_for(curator)).json()
    resp = client.put(f"/api/categories/{other['id']}", json={"name": "NATURE"}, headers=headers_for(curator))
    assert resp.status_code == 400


def test_delete_in_use_category(client, category, curator, make_user, make_image, headers_for):
    make_image(make_user(), category=category)
    resp = client.delete(f"/api/categories/{category.id}", headers=headers_for(curator))
    assert resp.status_code == 400
    assert "1 images" in resp.json()["detail"]

    counts = client.get("/api/categories/admin", headers=headers_for(curator)).json()["categories"]
    assert counts[0]["image_count"] == 1


def test_delete_unused_category_clears_listing_cache(client, category, curator, headers_for, fake_redis):
    fake_redis.setex("images:list:1:20::", 60, "{}")
    resp = client.delete(f"/api/categories/{category.id}", headers=headers_for(curator))
    assert resp.status_code == 200
    assert "images:list:1:20::" not in fake_redis.store
    assert client.delete(f"/api/categories/{category.id}", headers=headers_for(curator)).status_code == 404


def test_category_mutations_need_permission(client, make_user, grant_role, headers_for):
    viewer = make_user()
    grant_role(viewer, role="moderator", permissions={"viewDashboard": True, "viewCategories": True})
    resp = client.post("/api/categories", json={"name": "Night"}, headers=headers_for(viewer))
    assert resp.status_code == 403
