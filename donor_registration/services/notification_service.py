"""
Confirmation messages for registered donors.

This module provides:
- The fixed Indonesian confirmation template (always available)
- An optional AI-personalised variant via OpenAI, falling back to the
  template on any failure
- WhatsApp delivery through the Ponte gateway (fire-and-forget)

Nothing here runs inside the registration transaction.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

import requests
from openai import OpenAI

from donor_registration.models.event import Event
from donor_registration.models.registrant import Registrant
from donor_registration.utils.config import Settings, get_settings
from donor_registration.utils.exceptions import NotificationDispatchError

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATE = (
    "Hallo {full_name}, selamat anda terdaftar sebagai peserta donor darah "
    "PT. Kereta Commuter Indonesia. Sampai jumpa di {location_and_date}"
)

COUNTRY_CALLING_CODE = "62"


@dataclass
class NotificationResult:
    """Advisory outcome of the post-registration notification step."""

    message: str
    message_generated: bool
    sent: bool
    error: Optional[str] = None


def compose_message(full_name: str, location_and_date: str) -> str:
    """
    Fill the fixed confirmation template.

    Args:
        full_name: Donor's full name
        location_and_date: e.g. "Stasiun Juanda pada 2026-03-30"

    Returns:
        The confirmation sentence
    """
    return MESSAGE_TEMPLATE.format(full_name=full_name, location_and_date=location_and_date)


def generate_confirmation_message(
    full_name: str,
    location_and_date: str,
    settings: Optional[Settings] = None,
) -> Tuple[bool, str]:
    """
    Ask OpenAI for a personalised confirmation, following the template.

    Returns:
        Tuple of (generated: bool, message: str)
        - (True, ai_message) when the model answered
        - (False, compose_message(...)) on missing key, error, timeout or
          an empty reply
    """
    fallback = compose_message(full_name, location_and_date)
    settings = settings or get_settings()

    if not settings.openai_api_key:
        logger.debug("OPENAI_API_KEY not set, using template message")
        return False, fallback

    system_prompt = (
        "You are a helpful assistant for PT. Kereta Commuter Indonesia Blood Donor events. "
        "Generate a personalized WhatsApp confirmation message for a blood donor in Indonesian. "
        "Reply with the message text only."
    )
    user_prompt = (
        f"Full Name: {full_name}\n"
        f"Location and Date: {location_and_date}\n\n"
        "Generate a friendly message following this exact template:\n"
        f"\"{fallback}\""
    )

    try:
        client = OpenAI(api_key=settings.openai_api_key, timeout=settings.openai_timeout)
        response = client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_completion_tokens=300,
        )
    except Exception as e:
        logger.warning("AI confirmation failed, using template: %s", e)
        return False, fallback

    if not response.choices:
        logger.warning("AI confirmation returned no choices, using template")
        return False, fallback

    content = (response.choices[0].message.content or "").strip().strip('"')
    if not content:
        logger.warning("AI confirmation was empty, using template")
        return False, fallback

    return True, content


def normalize_whatsapp_number(number: str) -> str:
    """
    Convert a local number to international format for the gateway.

    Behavior:
        - Removes spaces, dashes and other non-digits
        - Rewrites a leading "0" to the "62" country calling code
        - Example: "0812-3456-789" → "628123456789"
    """
    digits = re.sub(r"[^0-9]", "", number or "")
    if digits.startswith("0"):
        return COUNTRY_CALLING_CODE + digits[1:]
    return digits


def send_whatsapp_message(number: str, message: str, settings: Optional[Settings] = None) -> bool:
    """
    Post a message to the WhatsApp gateway.

    Returns:
        True if the gateway answered with a 2xx status, False otherwise

    Raises:
        NotificationDispatchError: If the gateway is not configured or
            cannot be reached
    """
    settings = settings or get_settings()
    if not settings.whatsapp_enabled:
        raise NotificationDispatchError("PONTE_API_KEY / PONTE_DEVICE_ID not configured")

    payload = {
        "device_id": settings.ponte_device_id,
        "number": normalize_whatsapp_number(number),
        "message": message,
    }
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.ponte_api_key}",
    }

    try:
        response = requests.post(
            settings.ponte_api_url,
            json=payload,
            headers=headers,
            timeout=settings.ponte_timeout,
        )
    except requests.RequestException as e:
        raise NotificationDispatchError(f"WhatsApp gateway unreachable: {e}") from e

    if not response.ok:
        logger.warning("WhatsApp gateway responded %s: %s", response.status_code, response.text[:200])
    else:
        logger.info("WhatsApp confirmation sent to %s", payload["number"])
    return response.ok


def notify_registrant(
    registrant: Registrant,
    event: Event,
    settings: Optional[Settings] = None,
) -> NotificationResult:
    """
    Best-effort confirmation for a committed registration.

    Never raises: generation falls back to the template and dispatch
    errors are logged and reported in the result.
    """
    settings = settings or get_settings()
    location_and_date = event.location_and_date()

    try:
        generated, message = generate_confirmation_message(
            registrant.full_name, location_and_date, settings=settings
        )
    except Exception as e:
        logger.warning("Confirmation generator crashed, using template: %s", e)
        generated, message = False, compose_message(registrant.full_name, location_and_date)

    try:
        sent = send_whatsapp_message(registrant.contact_number, message, settings=settings)
    except NotificationDispatchError as e:
        logger.warning("WhatsApp dispatch skipped for registrant %s: %s", registrant.id, e)
        return NotificationResult(message=message, message_generated=generated, sent=False, error=str(e))

    return NotificationResult(
        message=message,
        message_generated=generated,
        sent=sent,
        error=None if sent else "Gateway menolak pesan",
    )
