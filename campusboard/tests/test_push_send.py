"""
Tests for the push fan-out sender.

pywebpush is replaced by the FakeWebPush fixture from conftest, which can be
told to fail individual endpoints with an HTTP status or an exception.
"""

import json

import pytest
from fastapi.testclient import TestClient

import campusboard.redis.log_health as log_health_mod
import campusboard.services.push_service as push_service_mod
from campusboard.config import settings
from campusboard.core.errors import PushConfigError
from campusboard.models.delivery_log import NotificationDeliveryLog
from campusboard.models.notification import Notification
from campusboard.models.push_subscription import PushSubscription
from campusboard.services.push_service import VapidConfig, check_push_config, send_broadcast
from campusboard.tests.conftest import auth_headers, make_subscription

A = "https://push.example/a"
B = "https://push.example/b"
C = "https://push.example/c"


@pytest.fixture()
def three_subs(db):
    return {endpoint: make_subscription(db, endpoint) for endpoint in (A, B, C)}


def _config() -> VapidConfig:
    return VapidConfig.from_settings()


def _statuses(db, notification_id: int) -> dict[int, str]:
    rows = db.query(NotificationDeliveryLog).filter_by(notification_id=notification_id).all()
    return {row.subscription_id: row.status for row in rows}


# ---------------------------------------------------------------------------
# VapidConfig
# ---------------------------------------------------------------------------


class TestVapidConfig:
    def test_valid_settings_pass(self):
        assert _config().validate().problems() == []

    def test_short_keys_and_bad_contact_fail(self):
        config = VapidConfig(public_key="short", private_key="", claims_email="nobody")
        with pytest.raises(PushConfigError) as excinfo:
            config.validate()
        assert "VAPID_PUBLIC_KEY" in excinfo.value.details
        assert "VAPID_PRIVATE_KEY" in excinfo.value.details
        assert "VAPID_CLAIMS_EMAIL" in excinfo.value.details
        assert excinfo.value.to_dict()["type"] == "VAPID_CONFIG_ERROR"

    def test_claims_are_fresh_and_prefixed(self):
        config = VapidConfig(public_key="x" * 40, private_key="y" * 40, claims_email="admin@example.ac.kr")
        first, second = config.claims(), config.claims()
        assert first == {"sub": "mailto:admin@example.ac.kr"}
        assert first is not second

    def test_check_push_config_reports_missing(self, monkeypatch):
        monkeypatch.setattr(settings, "VAPID_PRIVATE_KEY", "")
        status = check_push_config(settings)
        assert status["isConfigured"] is False
        assert status["vapidPrivateKey"] is False
        assert status["vapidPublicKey"] is True
        assert "VAPID_PRIVATE_KEY is missing or invalid" in status["errors"]


# ---------------------------------------------------------------------------
# send_broadcast
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_no_active_subscriptions_creates_nothing(db, fake_webpush):
    make_subscription(db, A, is_active=False)
    result = await send_broadcast(db, _config(), title="Hello", body="World")
    assert (result.sent, result.errors, result.total, result.notification_id) == (0, 0, 0, None)
    assert db.query(Notification).count() == 0
    assert fake_webpush.calls == []


@pytest.mark.asyncio
async def test_all_delivered(db, fake_webpush, three_subs):
    result = await send_broadcast(db, _config(), title="Hello", body="World", admin_email="admin@example.ac.kr")

    assert (result.sent, result.errors, result.total) == (3, 0, 3)
    db.expire_all()
    notification = db.get(Notification, result.notification_id)
    assert notification.sent_count == 3
    assert notification.success_count == 3
    assert notification.error_count == 0
    assert notification.sent_at is not None
    assert notification.admin_email == "admin@example.ac.kr"
    assert set(_statuses(db, notification.id).values()) == {"sent"}


@pytest.mark.asyncio
async def test_gone_subscription_is_deactivated(db, fake_webpush, three_subs):
    fake_webpush.failures[B] = 410

    result = await send_broadcast(db, _config(), title="Hello", body="World")

    assert (result.sent, result.errors, result.total) == (2, 1, 3)
    db.expire_all()
    statuses = _statuses(db, result.notification_id)
    assert statuses == {three_subs[A].id: "sent", three_subs[B].id: "failed", three_subs[C].id: "sent"}

    assert db.get(PushSubscription, three_subs[B].id).is_active is False
    assert db.get(PushSubscription, three_subs[A].id).is_active is True
    assert db.get(PushSubscription, three_subs[C].id).is_active is True

    notification = db.get(Notification, result.notification_id)
    assert (notification.sent_count, notification.success_count, notification.error_count) == (3, 2, 1)

    failed = db.query(NotificationDeliveryLog).filter_by(subscription_id=three_subs[B].id).one()
    assert "410" in failed.error_message


@pytest.mark.asyncio
async def test_not_found_subscription_is_deactivated(db, fake_webpush, three_subs):
    fake_webpush.failures[C] = 404
    await send_broadcast(db, _config(), title="Hello", body="World")
    db.expire_all()
    assert db.get(PushSubscription, three_subs[C].id).is_active is False


@pytest.mark.asyncio
async def test_transient_failure_keeps_subscription_active(db, fake_webpush, three_subs):
    fake_webpush.failures[A] = 500
    fake_webpush.failures[B] = ConnectionError("connection reset")

    result = await send_broadcast(db, _config(), title="Hello", body="World")

    assert (result.sent, result.errors) == (1, 2)
    db.expire_all()
    assert db.get(PushSubscription, three_subs[A].id).is_active is True
    assert db.get(PushSubscription, three_subs[B].id).is_active is True
    failed = db.query(NotificationDeliveryLog).filter_by(subscription_id=three_subs[B].id).one()
    assert failed.status == "failed"
    assert failed.error_message == "connection reset"


@pytest.mark.asyncio
async def test_counts_add_up_to_sent_count(db, fake_webpush):
    for i in range(7):
        make_subscription(db, f"https://push.example/{i}")
    fake_webpush.failures["https://push.example/2"] = 410
    fake_webpush.failures["https://push.example/5"] = 503

    result = await send_broadcast(db, _config(), title="Hello", body="World")

    db.expire_all()
    notification = db.get(Notification, result.notification_id)
    assert notification.success_count + notification.error_count == notification.sent_count == 7
    assert db.query(NotificationDeliveryLog).filter_by(notification_id=notification.id).count() == 7


@pytest.mark.asyncio
async def test_payload_and_defaults(db, fake_webpush):
    make_subscription(db, A, p256dh="client-key", auth="client-auth")

    result = await send_broadcast(db, _config(), title="New notice", body="Check the board")

    call = fake_webpush.calls[0]
    assert call["subscription_info"] == {"endpoint": A, "keys": {"p256dh": "client-key", "auth": "client-auth"}}
    assert call["vapid_private_key"] == settings.VAPID_PRIVATE_KEY
    assert call["vapid_claims"]["sub"] == "mailto:admin@example.ac.kr"

    payload = json.loads(call["data"])
    assert payload["title"] == "New notice"
    assert payload["body"] == "Check the board"
    assert payload["icon"] == settings.PUSH_DEFAULT_ICON
    assert payload["badge"] == settings.PUSH_BADGE
    assert payload["url"] == "/"
    assert payload["tag"] == "admin-notification"
    assert payload["requireInteraction"] is False
    assert payload["primaryKey"] == result.notification_id


@pytest.mark.asyncio
async def test_bad_config_fails_before_touching_database(db, fake_webpush, three_subs):
    config = VapidConfig(public_key="", private_key="", claims_email="")
    with pytest.raises(PushConfigError):
        await send_broadcast(db, config, title="Hello", body="World")
    assert db.query(Notification).count() == 0
    assert fake_webpush.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("title,body", [("Hello", ""), ("Hello", "   "), ("", "World")])
async def test_blank_title_or_body_is_rejected(db, fake_webpush, three_subs, title, body):
    with pytest.raises(ValueError):
        await send_broadcast(db, _config(), title=title, body=body)
    assert db.query(Notification).count() == 0
    assert fake_webpush.calls == []


@pytest.mark.asyncio
async def test_log_write_failure_is_swallowed(db, fake_webpush, fake_redis, three_subs, monkeypatch):
    def broken_log(**kwargs):
        raise RuntimeError("delivery log unavailable")

    monkeypatch.setattr(push_service_mod, "NotificationDeliveryLog", broken_log)

    result = await send_broadcast(db, _config(), title="Hello", body="World")

    assert (result.sent, result.errors, result.total) == (3, 0, 3)
    db.expire_all()
    notification = db.get(Notification, result.notification_id)
    assert notification.success_count == 3
    assert db.query(NotificationDeliveryLog).count() == 0
    assert await log_health_mod.get_failure_count() == 3


# ---------------------------------------------------------------------------
# POST /api/push/send
# ---------------------------------------------------------------------------


class TestSendEndpoint:
    def test_requires_admin(self, client: TestClient):
        resp = client.post("/api/push/send", json={"title": "Hi", "body": "There"})
        assert resp.status_code in (401, 403)

    def test_send_reports_counts(self, client: TestClient, db, fake_webpush, three_subs):
        fake_webpush.failures[B] = 410
        headers = auth_headers(client)

        resp = client.post(
            "/api/push/send",
            json={"title": "Exam schedule", "body": "Posted", "url": "/calendar", "requireInteraction": True},
            headers=headers,
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["sent"] == 2
        assert data["errors"] == 1
        assert data["total"] == 3
        notification = db.get(Notification, data["notificationId"])
        assert notification.url == "/calendar"
        assert notification.require_interaction is True
        # Falls back to the caller's identity when adminEmail is omitted
        assert notification.admin_email == "admin@example.ac.kr"

    def test_send_without_subscribers(self, client: TestClient, fake_webpush):
        headers = auth_headers(client)
        resp = client.post("/api/push/send", json={"title": "Hi", "body": "There"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["sent"] == 0
        assert resp.json()["notificationId"] is None

    def test_blank_title_rejected(self, client: TestClient):
        headers = auth_headers(client)
        resp = client.post("/api/push/send", json={"title": "  ", "body": "There"}, headers=headers)
        assert resp.status_code == 422

    def test_missing_vapid_config_is_typed_error(self, client: TestClient, db, fake_webpush, three_subs, monkeypatch):
        monkeypatch.setattr(settings, "VAPID_PUBLIC_KEY", "")
        headers = auth_headers(client)

        resp = client.post("/api/push/send", json={"title": "Hi", "body": "There"}, headers=headers)

        assert resp.status_code == 500
        data = resp.json()
        assert data["type"] == "VAPID_CONFIG_ERROR"
        assert "VAPID_PUBLIC_KEY" in data["details"]
        assert db.query(Notification).count() == 0

    def test_missing_table_is_typed_error(self, client: TestClient, db, fake_webpush):
        headers = auth_headers(client)
        db.commit()
        PushSubscription.__table__.drop(bind=db.get_bind())

        resp = client.post("/api/push/send", json={"title": "Hi", "body": "There"}, headers=headers)

        assert resp.status_code == 500
        assert resp.json()["type"] == "DATABASE_TABLE_ERROR"

    def test_unexpected_error_is_internal_error(self, client: TestClient, fake_webpush, three_subs, monkeypatch):
        def explode(*args, **kwargs):
            raise KeyError("boom")

        monkeypatch.setattr(push_service_mod, "build_payload", explode)
        headers = auth_headers(client)

        resp = client.post("/api/push/send", json={"title": "Hi", "body": "There"}, headers=headers)

        assert resp.status_code == 500
        assert resp.json()["type"] == "INTERNAL_ERROR"
