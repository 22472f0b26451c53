"""
Tests for notification rendering and the unconfigured-channel fallbacks.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.services import notification_service
from app.services.notification_service import (
    BookingNotice,
    normalize_whatsapp_number,
    render_template,
    send_email,
    send_whatsapp_message,
)


def make_notice() -> BookingNotice:
    return BookingNotice(
        booking_id=42,
        parent_name="Priya",
        parent_phone="98765 43210",
        parent_email="priya@example.com",
        package_name="2 Hour Play",
        booking_date=date(2025, 6, 1),
        time_slot="10:00-12:00",
        number_of_children=2,
        total_amount=Decimal("180.00"),
        status="pending",
    )


@pytest.mark.parametrize("raw, expected", [
    ("98765 43210", "919876543210"),
    ("+91-98765-43210", "919876543210"),
    ("447911123456", "447911123456"),
])
def test_normalize_whatsapp_number(raw, expected):
    assert normalize_whatsapp_number(raw) == expected


def test_normalize_rejects_empty_number():
    with pytest.raises(ValueError):
        normalize_whatsapp_number("n/a")


def test_booking_email_renders_details():
    html = render_template(
        "booking_confirmation.html", notice=make_notice(), heading="Booking Received!", intro="Thanks"
    )
    assert "#42" in html
    assert "2 Hour Play" in html
    assert "180.00" in html


def test_template_escapes_user_input():
    notice = make_notice().model_copy(update={"parent_name": "<script>x</script>"})
    html = render_template("booking_confirmation.html", notice=notice, heading="Hi", intro="Thanks")
    assert "<script>" not in html


@pytest.mark.asyncio
async def test_channels_skip_when_unconfigured(monkeypatch):
    monkeypatch.setattr(notification_service.settings, "SMTP_HOST", None)
    monkeypatch.setattr(notification_service.settings, "WHATSAPP_ACCESS_TOKEN", None)

    assert await send_email("priya@example.com", "Hello", "<p>Hi</p>") is False
    assert await send_whatsapp_message("9876543210", "Hi") is False


@pytest.mark.asyncio
async def test_email_failure_is_swallowed(monkeypatch):
    def broken_delivery(*args):
        raise OSError("connection refused")

    monkeypatch.setattr(notification_service.settings, "SMTP_HOST", "smtp.invalid")
    monkeypatch.setattr(notification_service, "_deliver_email", broken_delivery)

    assert await send_email("priya@example.com", "Hello", "<p>Hi</p>") is False


@pytest.mark.asyncio
async def test_notify_booking_created_never_raises(monkeypatch):
    monkeypatch.setattr(notification_service.settings, "SMTP_HOST", None)
    monkeypatch.setattr(notification_service.settings, "WHATSAPP_ACCESS_TOKEN", None)

    await notification_service.notify_booking_created(make_notice())
