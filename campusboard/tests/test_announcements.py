"""Tests for the announcements board and its push integration."""

import json

import pytest
from fastapi.testclient import TestClient

from campusboard.config import settings
from campusboard.models.announcement import Announcement
from campusboard.models.notification import Notification
from campusboard.tests.conftest import auth_headers, make_subscription


@pytest.fixture()
def headers(client: TestClient):
    return auth_headers(client)


def _create(client: TestClient, headers, **overrides):
    payload = {"title": "Midterm schedule", "content": "<p>See the attached table.</p>", "category": "academic"}
    payload.update(overrides)
    return client.post("/api/announcements", json=payload, headers=headers)


class TestCreate:
    def test_create_without_push(self, client: TestClient, headers, fake_webpush):
        resp = _create(client, headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["announcement"]["title"] == "Midterm schedule"
        assert data["announcement"]["author_email"] == "admin@example.ac.kr"
        assert data["push"] is None
        assert fake_webpush.calls == []

    def test_requires_admin(self, client: TestClient):
        resp = client.post("/api/announcements", json={"title": "t", "content": "c"})
        assert resp.status_code in (401, 403)

    def test_empty_editor_content_rejected(self, client: TestClient, headers):
        resp = _create(client, headers, content="<p><br></p>")
        assert resp.status_code == 422

    def test_unknown_category_rejected(self, client: TestClient, headers):
        resp = _create(client, headers, category="gossip")
        assert resp.status_code == 422


class TestCreateWithPush:
    def test_broadcasts_notice(self, client: TestClient, db, headers, fake_webpush):
        make_subscription(db, "https://push.example/a")
        long_html = "<p>" + "word " * 40 + "</p>"

        resp = _create(client, headers, content=long_html, category="important", send_push=True)

        assert resp.status_code == 200
        data = resp.json()
        announcement_id = data["announcement"]["id"]
        assert data["push"]["sent"] == 1
        assert data["push"]["errors"] == 0

        payload = json.loads(fake_webpush.calls[0]["data"])
        assert payload["title"] == "[Notice] Midterm schedule"
        assert payload["url"] == f"/announcements/{announcement_id}"
        assert payload["requireInteraction"] is True
        assert "<p>" not in payload["body"]
        assert payload["body"].endswith("...")
        assert len(payload["body"]) == 103

        notification = db.get(Notification, data["push"]["notificationId"])
        assert notification.admin_email == "admin@example.ac.kr"

    def test_general_category_does_not_require_interaction(self, client: TestClient, db, headers, fake_webpush):
        make_subscription(db, "https://push.example/a")
        _create(client, headers, category="general", send_push=True)
        payload = json.loads(fake_webpush.calls[0]["data"])
        assert payload["requireInteraction"] is False

    def test_image_only_content_falls_back_to_title(self, client: TestClient, db, headers, fake_webpush):
        make_subscription(db, "https://push.example/a")

        resp = _create(client, headers, content='<p><img src="/poster.png"></p>', send_push=True)

        assert resp.json()["push"]["sent"] == 1
        payload = json.loads(fake_webpush.calls[0]["data"])
        assert payload["body"] == "Midterm schedule"

    def test_no_subscribers(self, client: TestClient, headers, fake_webpush):
        resp = _create(client, headers, send_push=True)
        assert resp.json()["push"] == {"sent": 0, "errors": 0, "total": 0, "notificationId": None}

    def test_push_failure_keeps_announcement(self, client: TestClient, db, headers, fake_webpush, monkeypatch):
        make_subscription(db, "https://push.example/a")
        monkeypatch.setattr(settings, "VAPID_PRIVATE_KEY", "")

        resp = _create(client, headers, send_push=True)

        assert resp.status_code == 200
        data = resp.json()
        assert data["push"]["type"] == "VAPID_CONFIG_ERROR"
        assert db.query(Announcement).filter_by(id=data["announcement"]["id"]).count() == 1
        assert fake_webpush.calls == []


class TestReadAndManage:
    def test_list_pinned_first(self, client: TestClient, headers):
        first = _create(client, headers, title="first").json()["announcement"]["id"]
        second = _create(client, headers, title="second").json()["announcement"]["id"]
        pinned = _create(client, headers, title="pinned", is_pinned=True).json()["announcement"]["id"]

        resp = client.get("/api/announcements")

        assert resp.status_code == 200
        assert [a["id"] for a in resp.json()] == [pinned, second, first]

    def test_category_filter(self, client: TestClient, headers):
        _create(client, headers, category="event")
        _create(client, headers, category="academic")
        resp = client.get("/api/announcements?category=event")
        assert [a["category"] for a in resp.json()] == ["event"]

    def test_get_missing(self, client: TestClient):
        assert client.get("/api/announcements/42").status_code == 404

    def test_update(self, client: TestClient, headers):
        announcement_id = _create(client, headers).json()["announcement"]["id"]
        resp = client.put(f"/api/announcements/{announcement_id}", json={"title": "Updated"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["title"] == "Updated"
        assert resp.json()["category"] == "academic"

    def test_toggle_pin(self, client: TestClient, headers):
        announcement_id = _create(client, headers).json()["announcement"]["id"]
        assert client.post(f"/api/announcements/{announcement_id}/pin", headers=headers).json()["is_pinned"] is True
        assert client.post(f"/api/announcements/{announcement_id}/pin", headers=headers).json()["is_pinned"] is False

    def test_delete(self, client: TestClient, db, headers):
        announcement_id = _create(client, headers).json()["announcement"]["id"]
        resp = client.delete(f"/api/announcements/{announcement_id}", headers=headers)
        assert resp.status_code == 204
        assert db.query(Announcement).count() == 0

    def test_delete_requires_admin(self, client: TestClient, headers):
        announcement_id = _create(client, headers).json()["announcement"]["id"]
        assert client.delete(f"/api/announcements/{announcement_id}").status_code in (401, 403)
