"""
End-to-end tests through the FastAPI routers.
"""
from routes import maintenance


def _sign_in(client, auth, uid, handle=None):
    resp = client.post("/auth/sync", headers=auth(uid))
    assert resp.status_code == 200
    if handle:
        resp = client.patch("/users/me", json={"handle": handle}, headers=auth(uid))
        assert resp.status_code == 200
    return resp.json()


def test_requests_without_token_are_rejected(client):
    assert client.post("/auth/sync").status_code == 401
    assert client.post("/projects", json={"title": "x"}).status_code == 401


def test_sync_and_profile_update(client, auth):
    body = _sign_in(client, auth, "alice")
    assert body["uid"] == "alice"
    assert body["is_profile_complete"] is False

    resp = client.patch("/users/me", json={"handle": "Alice_01", "tagline": "ships daily",
                                           "follower_count": 50}, headers=auth("alice"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["handle"] == "alice_01"
    assert body["tagline"] == "ships daily"
    assert body["follower_count"] == 0
    assert body["is_profile_complete"] is True

    assert client.get("/users/handle/ALICE_01").json()["uid"] == "alice"
    assert client.get("/auth/me", headers=auth("alice")).json()["handle"] == "alice_01"


def test_null_profile_fields_are_ignored(client, auth):
    _sign_in(client, auth, "alice", handle="alice")

    resp = client.patch("/users/me", json={"bio": None, "display_name": None, "tagline": "hi"},
                        headers=auth("alice"))

    assert resp.status_code == 200
    assert resp.json()["display_name"] == "Alice"
    assert resp.json()["tagline"] == "hi"


def test_invalid_handle_is_400(client, auth):
    _sign_in(client, auth, "alice")

    resp = client.patch("/users/me", json={"handle": "john.doe"}, headers=auth("alice"))

    assert resp.status_code == 400
    assert client.get("/users/handle-available/john.doe").json()["available"] is False


def test_handle_conflict_is_409(client, auth):
    _sign_in(client, auth, "alice", handle="builder")
    _sign_in(client, auth, "bob")

    resp = client.patch("/users/me", json={"handle": "Builder"}, headers=auth("bob"))
    assert resp.status_code == 409

    availability = client.get("/users/handle-available/builder", headers=auth("alice")).json()
    assert availability == {"handle": "builder", "available": True}
    availability = client.get("/users/handle-available/builder", headers=auth("bob")).json()
    assert availability["available"] is False


def test_follow_flow(client, auth):
    _sign_in(client, auth, "alice")
    _sign_in(client, auth, "bob")

    assert client.post("/follows/bob", headers=auth("alice")).json() == {"following": True, "changed": True}
    assert client.post("/follows/bob", headers=auth("alice")).json() == {"following": True, "changed": False}
    assert client.get("/follows/alice/is-following/bob").json() is True
    assert [u["uid"] for u in client.get("/follows/bob/followers").json()] == ["alice"]
    assert [u["uid"] for u in client.get("/follows/alice/following").json()] == ["bob"]

    profile = client.get("/users/bob/profile", headers=auth("alice")).json()
    assert profile["follower_count"] == 1
    assert profile["is_following"] is True
    assert profile["is_followed_by"] is False

    assert client.delete("/follows/bob", headers=auth("alice")).json() == {"following": False, "changed": True}
    assert client.get("/users/bob").json()["follower_count"] == 0
    assert client.get("/users/alice").json()["following_count"] == 0


def test_self_follow_is_400(client, auth):
    _sign_in(client, auth, "alice")

    resp = client.post("/follows/alice", headers=auth("alice"))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot follow yourself"


def test_follow_unknown_user_is_404(client, auth):
    _sign_in(client, auth, "alice")
    assert client.post("/follows/ghost", headers=auth("alice")).status_code == 404


def test_project_lifecycle(client, auth):
    _sign_in(client, auth, "alice")
    _sign_in(client, auth, "bob")

    resp = client.post("/projects", json={"title": "Todo AI", "tool": "Lovable", "category": "SaaS"},
                       headers=auth("alice"))
    assert resp.status_code == 201
    project = resp.json()
    project_id = project["id"]
    assert project["user_id"] == "alice"
    assert project["liked_by"] == []

    assert client.post(f"/projects/{project_id}/like", headers=auth("bob")).json() == {"liked": True, "changed": True}
    assert client.post(f"/projects/{project_id}/like", headers=auth("bob")).json()["changed"] is False
    assert client.get(f"/projects/{project_id}/is-liked", headers=auth("bob")).json() == {"is_liked": True}

    project = client.get(f"/projects/{project_id}", params={"increment_view": True}).json()
    assert project["likes"] == 1
    assert project["liked_by"] == ["bob"]
    assert project["views"] == 1
    assert client.get("/users/alice").json()["total_likes"] == 1

    assert client.patch(f"/projects/{project_id}", json={"title": "Stolen"}, headers=auth("bob")).status_code == 403
    assert client.delete(f"/projects/{project_id}", headers=auth("bob")).status_code == 403

    resp = client.patch(f"/projects/{project_id}", json={"title": "Todo AI v2"}, headers=auth("alice"))
    assert resp.json()["title"] == "Todo AI v2"
    assert resp.json()["likes"] == 1

    assert client.delete(f"/projects/{project_id}", headers=auth("alice")).status_code == 204
    assert client.get(f"/projects/{project_id}").status_code == 404
    alice = client.get("/users/alice").json()
    assert (alice["project_count"], alice["total_likes"]) == (0, 0)


def test_like_missing_project_is_404(client, auth):
    _sign_in(client, auth, "alice")
    assert client.post("/projects/nope/like", headers=auth("alice")).status_code == 404


def test_latest_pagination_over_http(client, auth):
    _sign_in(client, auth, "alice")
    created = [
        client.post("/projects", json={"title": f"p{i}"}, headers=auth("alice")).json()["id"]
        for i in range(5)
    ]
    client.post("/projects", json={"title": "draft", "is_published": False}, headers=auth("alice"))

    seen, cursor = [], None
    while True:
        params = {"page_size": 2}
        if cursor:
            params["cursor"] = cursor
        page = client.get("/projects/latest", params=params).json()
        seen.extend(item["id"] for item in page["items"])
        if not page["has_more"]:
            break
        cursor = page["cursor"]

    assert seen == list(reversed(created))
    assert client.get("/stats").json() == {"total_users": 0, "total_projects": 5, "all_projects": 6}
    profile = client.get("/users/alice/profile").json()
    assert (profile["project_count"], profile["published_project_count"]) == (6, 5)


def test_drafts_listed_only_for_owner(client, auth):
    _sign_in(client, auth, "alice")
    _sign_in(client, auth, "bob")
    client.post("/projects", json={"title": "draft", "is_published": False}, headers=auth("alice"))

    assert client.get("/users/alice/projects").json() == []
    assert len(client.get("/users/alice/projects", params={"include_unpublished": True},
                          headers=auth("alice")).json()) == 1
    assert client.get("/users/alice/projects", params={"include_unpublished": True},
                      headers=auth("bob")).status_code == 403


def test_project_options(client):
    options = client.get("/projects/options").json()
    assert "Lovable" in options["tools"]
    assert options["categories"][-1] == "Other"


def test_avatar_and_project_image_upload(client, auth, storage, monkeypatch):
    monkeypatch.setattr(maintenance, "ADMIN_UIDS", {"alice"})
    _sign_in(client, auth, "alice")
    project_id = client.post("/projects", json={"title": "Pics"}, headers=auth("alice")).json()["id"]

    resp = client.post("/files/avatar", files={"file": ("me.png", b"\x89PNG", "image/png")}, headers=auth("alice"))
    assert resp.status_code == 200
    assert resp.json()["url"] == "/files/avatars/alice/avatar.png"
    assert client.get("/users/alice").json()["photo_url"] == "/files/avatars/alice/avatar.png"
    assert client.get("/files/avatars/alice/avatar.png").content == b"\x89PNG"

    resp = client.post(f"/files/projects/{project_id}/images", params={"index": 1},
                       files={"file": ("s.jpg", b"jpg", "image/jpeg")}, headers=auth("alice"))
    assert resp.status_code == 200
    project = client.get(f"/projects/{project_id}").json()
    assert project["screenshots"] == [f"/files/projects/alice/{project_id}/screenshot_1.jpg"]

    resp = client.post("/files/avatar", files={"file": ("doc.pdf", b"%PDF", "application/pdf")},
                       headers=auth("alice"))
    assert resp.status_code == 400

    client.delete(f"/projects/{project_id}", headers=auth("alice"))
    assert not (storage.base_dir / "projects" / "alice" / project_id).exists()
    assert client.post("/maintenance/media-cleanup", headers=auth("alice")).json() == {
        "processed": 0, "succeeded": 0, "failed": 0,
    }


def test_project_image_upload_requires_owner(client, auth):
    _sign_in(client, auth, "alice")
    _sign_in(client, auth, "bob")
    project_id = client.post("/projects", json={"title": "Pics"}, headers=auth("alice")).json()["id"]

    resp = client.post(f"/files/projects/{project_id}/images",
                       files={"file": ("t.png", b"png", "image/png")}, headers=auth("bob"))
    assert resp.status_code == 403


def test_maintenance_requires_operator(client, auth, monkeypatch):
    monkeypatch.setattr(maintenance, "ADMIN_UIDS", {"ops"})
    _sign_in(client, auth, "alice")

    assert client.post("/maintenance/media-cleanup", headers=auth("alice")).status_code == 403
    assert client.post("/maintenance/reconcile/alice", headers=auth("alice")).status_code == 403
    assert client.post("/maintenance/media-cleanup", headers=auth("ops")).status_code == 200


def test_reconcile_over_http(client, auth, monkeypatch):
    monkeypatch.setattr(maintenance, "ADMIN_UIDS", {"ops"})
    _sign_in(client, auth, "alice")
    _sign_in(client, auth, "bob")
    client.post("/follows/alice", headers=auth("bob"))

    resp = client.post("/maintenance/reconcile/alice", params={"apply": False}, headers=auth("ops"))
    assert resp.json() == {"user": {}, "projects": {}}
    assert client.post("/maintenance/reconcile/ghost", headers=auth("ops")).status_code == 404
