"""Tests for QR delivery by email"""

from types import SimpleNamespace

import pytest

from gatepass.backends.email_client import EmailClient
from gatepass.backends.qr_renderer import QRRenderer
from gatepass.errors import NotificationDeliveryError
from gatepass.services.email_service import EmailService, normalize_language
from gatepass.services.token_service import encode_payload

MAILGUN_CONFIG = {
    "mailgun_api_key": "key-test",
    "mailgun_domain": "mg.example.com",
    "sender_email": "Gatepass <noreply@mg.example.com>",
}


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


@pytest.fixture
def qr_image():
    return QRRenderer().render(encode_payload("abc123"))


@pytest.mark.parametrize(
    "requested,expected",
    [(None, "en"), ("", "en"), ("ar", "ar"), ("AR", "ar"), ("ar-EG", "ar"), ("fr", "en")],
)
def test_normalize_language(requested, expected):
    assert normalize_language(requested) == expected


def test_english_and_arabic_copy(email_service):
    en = email_service.build_registration_email("Tech <Summit>", "en")
    ar = email_service.build_registration_email("Tech <Summit>", "ar")

    assert en["subject"] == "Registration Confirmation - Tech <Summit>"
    assert 'dir="ltr"' in en["html"]
    assert "Tech &lt;Summit&gt;" in en["html"]
    assert "cid:qrcode.png" in en["html"]

    assert ar["subject"].startswith("تأكيد التسجيل")
    assert 'dir="rtl"' in ar["html"]


async def test_send_registration_qr_attaches_png(
    email_service, fake_email_client, qr_image
):
    sent = await email_service.send_registration_qr(
        email="sara@example.com", qr_image=qr_image, event_title="Tech Summit"
    )

    assert sent is True
    name, content = fake_email_client.sent[0]["inline"][0]
    assert name == "qrcode.png"
    assert content[:4] == b"\x89PNG"


async def test_send_registration_qr_reports_failure(
    email_service, fake_email_client, qr_image
):
    fake_email_client.fail = True

    sent = await email_service.send_registration_qr(
        email="sara@example.com", qr_image=qr_image, event_title="Tech Summit"
    )

    assert sent is False


async def test_send_registration_qr_without_address(email_service, qr_image):
    assert (
        await email_service.send_registration_qr(
            email="", qr_image=qr_image, event_title="Tech Summit"
        )
        is False
    )


async def test_email_client_posts_inline_attachment():
    client = EmailClient(MAILGUN_CONFIG)
    calls = []

    def create(data, files, domain):
        calls.append({"data": data, "files": files, "domain": domain})
        return FakeResponse(200, {"id": "<1@mg.example.com>", "message": "Queued"})

    client.client = SimpleNamespace(messages=SimpleNamespace(create=create))

    response = await client.send_email(
        to="sara@example.com",
        html="<p>hi</p>",
        subject="Hi",
        inline=[("qrcode.png", b"png-bytes")],
    )

    assert response["id"] == "<1@mg.example.com>"
    assert calls[0]["domain"] == "mg.example.com"
    assert calls[0]["data"]["from"] == MAILGUN_CONFIG["sender_email"]
    assert calls[0]["files"] == [("inline", ("qrcode.png", b"png-bytes"))]


async def test_email_client_raises_on_provider_error():
    client = EmailClient(MAILGUN_CONFIG)
    client.client = SimpleNamespace(
        messages=SimpleNamespace(
            create=lambda data, files, domain: FakeResponse(
                401, {"message": "Invalid private key"}
            )
        )
    )

    with pytest.raises(NotificationDeliveryError):
        await client.send_email(to="sara@example.com", html="<p>hi</p>", subject="Hi")


async def test_provider_error_becomes_email_sent_false(qr_image):
    client = EmailClient(MAILGUN_CONFIG)
    client.client = SimpleNamespace(
        messages=SimpleNamespace(
            create=lambda data, files, domain: FakeResponse(500, {"message": "down"})
        )
    )
    service = EmailService(MAILGUN_CONFIG, email_client=client)

    assert (
        await service.send_registration_qr(
            email="sara@example.com", qr_image=qr_image, event_title="Tech Summit"
        )
        is False
    )
