"""
Email and WhatsApp notifications for bookings, parties and enquiries.

Dispatch is fire-and-log: each send is attempted once, failures are
logged and counted, and nothing here ever fails the request that
triggered it. Routes schedule these coroutines as background tasks with
plain snapshots, never ORM objects bound to the request session.
"""

import asyncio
import re
import smtplib
from datetime import date
from decimal import Decimal
from email.message import EmailMessage
from pathlib import Path
from typing import Optional

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel

from app.core.config import get_settings
from app.core.metrics import record_notification
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

_TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
_ENV = Environment(
    loader=FileSystemLoader(_TEMPLATE_DIR),
    autoescape=select_autoescape(["html", "xml"]),
)

_NON_DIGITS = re.compile(r"[^0-9]")


class BookingNotice(BaseModel):
    booking_id: int
    parent_name: str
    parent_phone: str
    parent_email: str
    package_name: str
    booking_date: date
    time_slot: str
    number_of_children: int
    total_amount: Decimal
    status: str


class PartyNotice(BaseModel):
    party_id: int
    parent_name: str
    parent_phone: str
    parent_email: str
    child_name: str
    child_age: int
    party_date: date
    number_of_guests: int
    theme: Optional[str] = None
    total_amount: Decimal


class EnquiryNotice(BaseModel):
    enquiry_id: int
    name: str
    email: str
    phone: str
    message: str
    type: str


def normalize_whatsapp_number(raw: str) -> str:
    """Digits only, with the default country code added to local numbers."""
    digits = _NON_DIGITS.sub("", raw or "")
    if not digits:
        raise ValueError("Phone number is required")
    if len(digits) == 10:
        digits = settings.WHATSAPP_DEFAULT_COUNTRY_CODE + digits
    return digits


def render_template(name: str, **context) -> str:
    return _ENV.get_template(name).render(business_name=settings.BUSINESS_NAME, **context)


def _deliver_email(to_email: str, subject: str, html_body: str) -> None:
    message = EmailMessage()
    message["Subject"] = subject
    message["To"] = to_email
    message["From"] = f"{settings.BUSINESS_NAME} <{settings.SMTP_FROM}>"
    message.set_content("This message contains HTML content.")
    message.add_alternative(html_body, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.HTTP_TIMEOUT_SECONDS) as server:
        if settings.SMTP_STARTTLS:
            server.starttls()
        if settings.SMTP_USER and settings.SMTP_PASSWORD:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.send_message(message)


async def send_email(to_email: str, subject: str, html_body: str) -> bool:
    if not settings.SMTP_HOST:
        logger.info("email_skipped", reason="smtp_not_configured", to=to_email)
        record_notification("email", "skipped")
        return False

    try:
        await asyncio.to_thread(_deliver_email, to_email, subject, html_body)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("email_failed", to=to_email, subject=subject, error=str(e))
        record_notification("email", "failed")
        return False

    logger.info("email_sent", to=to_email, subject=subject)
    record_notification("email", "sent")
    return True


async def send_whatsapp_message(phone: str, body: str) -> bool:
    if not settings.WHATSAPP_ACCESS_TOKEN or not settings.WHATSAPP_PHONE_NUMBER_ID:
        logger.info("whatsapp_skipped", reason="whatsapp_not_configured")
        record_notification("whatsapp", "skipped")
        return False

    try:
        to = normalize_whatsapp_number(phone)
    except ValueError as e:
        logger.warning("whatsapp_invalid_number", phone=phone, error=str(e))
        record_notification("whatsapp", "failed")
        return False

    payload = {
        "messaging_product": "whatsapp",
        "to": to,
        "type": "text",
        "text": {"body": body},
    }
    url = f"{settings.WHATSAPP_API_URL}/{settings.WHATSAPP_PHONE_NUMBER_ID}/messages"
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {settings.WHATSAPP_ACCESS_TOKEN}"},
            )
            response.raise_for_status()
            message_id = (response.json().get("messages") or [{}])[0].get("id")
    except (httpx.HTTPError, ValueError) as e:
        logger.error("whatsapp_failed", to=to, error=str(e))
        record_notification("whatsapp", "failed")
        return False

    logger.info("whatsapp_sent", to=to, message_id=message_id)
    record_notification("whatsapp", "sent")
    return True


def _booking_whatsapp_text(notice: BookingNotice) -> str:
    return (
        f"🎉 *Booking Received!*\n\n"
        f"Hi {notice.parent_name},\n\n"
        f"📅 *Date:* {notice.booking_date}\n"
        f"⏰ *Time:* {notice.time_slot}\n"
        f"🎪 *Package:* {notice.package_name}\n"
        f"👶 *Children:* {notice.number_of_children}\n"
        f"💰 *Amount:* ₹{notice.total_amount}\n"
        f"🆔 *Booking ID:* #{notice.booking_id}\n\n"
        f"Please arrive 10 minutes early. Non-slip socks required.\n"
        f"- Team {settings.BUSINESS_NAME}"
    )


async def notify_booking_created(notice: BookingNotice) -> None:
    await asyncio.gather(
        send_email(
            notice.parent_email,
            f"Booking Confirmation - {settings.BUSINESS_NAME}",
            render_template(
                "booking_confirmation.html",
                notice=notice,
                heading="Booking Received!",
                intro="Thank you for booking a play session with us.",
            ),
        ),
        send_whatsapp_message(notice.parent_phone, _booking_whatsapp_text(notice)),
        send_whatsapp_message(
            settings.ADMIN_PHONE,
            f"📋 New booking #{notice.booking_id}: {notice.parent_name} ({notice.parent_phone}), "
            f"{notice.package_name}, {notice.booking_date} {notice.time_slot}, "
            f"{notice.number_of_children} children, ₹{notice.total_amount}",
        ),
    )


async def notify_booking_confirmed(notice: BookingNotice) -> None:
    await asyncio.gather(
        send_email(
            notice.parent_email,
            f"Payment Confirmed - {settings.BUSINESS_NAME}",
            render_template(
                "booking_confirmation.html",
                notice=notice,
                heading="Booking Confirmed!",
                intro="Your payment went through and your play session is confirmed.",
            ),
        ),
        send_whatsapp_message(
            notice.parent_phone,
            f"🎉 Payment Confirmed! Your booking #{notice.booking_id} for {notice.booking_date} "
            f"is now confirmed. See you at {settings.BUSINESS_NAME}!",
        ),
    )


async def notify_party_created(notice: PartyNotice) -> None:
    await asyncio.gather(
        send_email(
            notice.parent_email,
            f"Birthday Party Booking - {settings.BUSINESS_NAME}",
            render_template("birthday_confirmation.html", notice=notice),
        ),
        send_whatsapp_message(
            notice.parent_phone,
            f"🎂 Hi {notice.parent_name}! {notice.child_name}'s birthday party on {notice.party_date} "
            f"for {notice.number_of_guests} guests is booked (#{notice.party_id}). "
            f"Our team will contact you shortly.",
        ),
        send_whatsapp_message(
            settings.ADMIN_PHONE,
            f"🎂 New birthday party #{notice.party_id}: {notice.child_name} (age {notice.child_age}), "
            f"{notice.party_date}, {notice.number_of_guests} guests, parent {notice.parent_name} "
            f"({notice.parent_phone})",
        ),
    )


async def notify_enquiry_received(notice: EnquiryNotice) -> None:
    await asyncio.gather(
        send_email(
            settings.ADMIN_EMAIL,
            f"New {notice.type} enquiry from {notice.name}",
            render_template("enquiry_received.html", notice=notice),
        ),
        send_whatsapp_message(
            settings.ADMIN_PHONE,
            f"New enquiry from {notice.name} ({notice.email}): {notice.message}",
        ),
    )
