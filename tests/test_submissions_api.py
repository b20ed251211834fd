import uuid

from bulletin.repositories import submission_repository


def _create_announcement(client, content="Spring concert tickets on sale"):
    r = client.post("/api/announcements", json={"content": content})
    assert r.status_code == 201
    return r.json()["announcement"]


def test_testimonial_end_to_end(client):
    r = client.post("/api/testimonials", json={"fullName": "A", "testimonialContent": "B"})
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    created = body["testimonial"]
    assert created["status"] == "pending"
    assert created["fullName"] == "A"
    assert created["testimonialContent"] == "B"
    assert created["publishedAt"] is None

    r = client.post(f"/api/testimonials/{created['id']}/approve")
    assert r.status_code == 200
    approved = r.json()["testimonial"]
    assert approved["status"] == "approved"
    assert approved["publishedAt"] is not None

    r = client.get("/api/testimonials", params={"status": "approved"})
    assert r.status_code == 200
    assert created["id"] in [t["id"] for t in r.json()["testimonials"]]


def test_responses_use_camel_case(client):
    item = _create_announcement(client)
    assert set(item) == {
        "id", "content", "status", "active", "createdAt", "updatedAt", "publishedAt", "rejectionReason",
    }


def test_create_missing_fields_is_400(client):
    r = client.post("/api/announcements", json={"content": "  "})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing required fields", "details": "content"}

    r = client.post("/api/testimonials", json={"testimonialContent": "no name"})
    assert r.status_code == 400
    assert r.json()["details"] == "full_name"


def test_create_invalid_body_is_400(client):
    r = client.post("/api/testimonials", json={"fullName": "A", "content": "B", "rating": 9})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request"
    assert "rating" in r.json()["details"]

    r = client.post("/api/announcements", content=b"not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400


def test_list_envelope_and_status_filter(client):
    a = _create_announcement(client, "first")
    b = _create_announcement(client, "second")
    client.post(f"/api/announcements/{a['id']}/approve")

    r = client.get("/api/announcements")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/json")
    assert [x["id"] for x in r.json()["announcements"]] == [b["id"], a["id"]]

    r = client.get("/api/announcements?status=pending")
    assert [x["id"] for x in r.json()["announcements"]] == [b["id"]]

    r = client.get("/api/announcements?status=bogus")
    assert r.status_code == 400


def test_approved_feed_is_capped(client):
    for i in range(7):
        item = _create_announcement(client, f"news {i}")
        client.post(f"/api/announcements/{item['id']}/approve")
    r = client.get("/api/announcements?status=approved")
    assert len(r.json()["announcements"]) == 5


def test_legacy_active_feed_is_bare_array(client):
    a = _create_announcement(client, "live")
    _create_announcement(client, "still pending")
    client.post(f"/api/announcements/{a['id']}/approve")
    r = client.get("/api/announcements?active=true")
    assert r.status_code == 200
    data = r.json()
    assert isinstance(data, list)
    assert [x["content"] for x in data] == ["live"]


def test_reject_with_reason(client):
    item = _create_announcement(client)
    r = client.post(f"/api/announcements/{item['id']}/reject", json={"reason": "off topic"})
    assert r.status_code == 200
    body = r.json()["announcement"]
    assert body["status"] == "rejected"
    assert body["rejectionReason"] == "off topic"


def test_reject_tolerates_missing_or_invalid_body(client):
    item = _create_announcement(client)
    client.post(f"/api/announcements/{item['id']}/reject", json={"reason": "first"})

    r = client.post(f"/api/announcements/{item['id']}/reject")
    assert r.status_code == 200
    assert r.json()["announcement"]["rejectionReason"] is None

    r = client.post(
        f"/api/announcements/{item['id']}/reject",
        content=b"{broken",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 200
    r = client.post(f"/api/announcements/{item['id']}/reject", json={"reason": 42})
    assert r.status_code == 200
    assert r.json()["announcement"]["rejectionReason"] is None


def test_moderation_unknown_id_is_404(client):
    missing = str(uuid.uuid4())
    for path in (f"/api/announcements/{missing}/approve", f"/api/announcements/{missing}/reject"):
        r = client.post(path)
        assert r.status_code == 404
        assert r.json() == {"error": "Announcement not found"}
    assert client.delete(f"/api/announcements/{missing}").status_code == 404


def test_malformed_id_is_400_not_404(client):
    r = client.post("/api/announcements/12345/approve")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid id format"
    assert client.delete("/api/testimonials/nope").status_code == 400


def test_get_and_patch(client):
    item = _create_announcement(client, "typo heer")
    r = client.patch(f"/api/announcements/{item['id']}", json={"content": "typo here"})
    assert r.status_code == 200
    assert r.json()["announcement"]["content"] == "typo here"
    assert r.json()["announcement"]["status"] == "pending"

    r = client.patch(f"/api/announcements/{item['id']}", json={})
    assert r.status_code == 404

    r = client.get(f"/api/announcements/{item['id']}")
    assert r.status_code == 200
    assert r.json()["announcement"]["content"] == "typo here"


def test_delete(client):
    item = _create_announcement(client)
    r = client.delete(f"/api/announcements/{item['id']}")
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["id"] == item["id"]
    assert client.get(f"/api/announcements/{item['id']}").status_code == 404


def test_unsupported_routes_are_405(client):
    item = _create_announcement(client)
    assert client.put("/api/announcements").status_code == 405
    assert client.delete("/api/announcements").status_code == 405
    assert client.get(f"/api/announcements/{item['id']}/approve").status_code == 405
    assert client.post(f"/api/announcements/{item['id']}").status_code == 405
    r = client.post(f"/api/announcements/{item['id']}/publish")
    assert r.status_code == 405
    assert r.json() == {"error": "Method not allowed"}


def test_unhandled_error_is_500_with_single_line_detail(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("database is locked\nSELECT * FROM announcements -- internal")

    monkeypatch.setattr(submission_repository, "list_submissions", boom)
    r = client.get("/api/announcements")
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error", "details": "database is locked"}


def test_widget_script(client):
    r = client.get("/widget/ticker.js")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/javascript")
    assert '"http://testserver/api/announcements?status=approved"' in r.text
    assert "MutationObserver" in r.text

    r = client.get("/widget/ticker.js", params={"feed": "https://cdn.example.com/feed.json"})
    assert '"https://cdn.example.com/feed.json"' in r.text


def test_trailing_slash_reaches_collection_routes(client):
    r = client.post("/api/announcements/", json={"content": "Library closed Monday"})
    assert r.status_code == 201
    assert r.json()["announcement"]["status"] == "pending"

    r = client.get("/api/announcements/", params={"status": "pending"})
    assert r.status_code == 200
    assert [x["content"] for x in r.json()["announcements"]] == ["Library closed Monday"]
    assert client.put("/api/announcements/").status_code == 405
