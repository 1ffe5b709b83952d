"""
Bot Notification Service — Telegram messages sent from the request store.

Applicants hear about their account request here, and the Governor chat is
pinged when a new one arrives. Delivery problems are logged and reported as
False; a notification never fails the request that triggered it.
"""

import logging
from typing import Any

import httpx

from config import settings

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


def _inline_button(text: str, callback_data: str) -> dict:
    return {"inline_keyboard": [[{"text": text, "callback_data": callback_data}]]}


async def send_message(
    chat_id: int | str,
    text: str,
    reply_markup: dict | None = None,
) -> bool:
    """
    Deliver an HTML message to a Telegram chat through the Bot API.

    Returns True when Telegram accepted the message.
    """
    if not settings.TELEGRAM_BOT_TOKEN:
        logger.warning("TELEGRAM_BOT_TOKEN not set, skipping notification to chat_id=%s", chat_id)
        return False

    payload: dict[str, Any] = {"chat_id": chat_id, "text": text, "parse_mode": "HTML"}
    if reply_markup:
        payload["reply_markup"] = reply_markup

    url = f"{TELEGRAM_API}/bot{settings.TELEGRAM_BOT_TOKEN}/sendMessage"
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.post(url, json=payload)
    except httpx.HTTPError as e:
        logger.error("Notification error: chat_id=%s, error=%s", chat_id, e)
        return False

    if not resp.is_success:
        logger.warning(
            "Notification rejected: chat_id=%s, status=%s, body=%s",
            chat_id,
            resp.status_code,
            resp.text[:200],
        )
        return False

    logger.info("Notification sent: chat_id=%s", chat_id)
    return True


# ── Notification Templates ─────────────────────────────────

async def notify_request_received(telegram_id: int | str, applicant_name: str) -> bool:
    """Sent to the requester after an account creation request is stored."""
    text = (
        "✅ <b>Application Received!</b>\n\n"
        f"The account request for <b>{applicant_name}</b> is now awaiting Governor review.\n"
        "This may take up to 7 business days.\n\n"
        "We'll notify you right here once it's processed."
    )
    return await send_message(telegram_id, text)


async def notify_governor_new_request(applicant_name: str, initial_deposit: float, country: str) -> bool:
    """Ping the Governor chat about a new pending request."""
    if not settings.ADMIN_TELEGRAM_ID:
        return False
    text = (
        "🆕 <b>New Account Request</b>\n\n"
        f"👤 {applicant_name} ({country})\n"
        f"💵 Initial deposit: ${initial_deposit:,.2f}"
    )
    return await send_message(settings.ADMIN_TELEGRAM_ID, text)


async def notify_request_approved(telegram_id: int | str, applicant_name: str) -> bool:
    """Sent on Governor APPROVE."""
    text = (
        f"🎉 <b>Congratulations {applicant_name}!</b>\n\n"
        "Your investor account has been <b>APPROVED</b>."
    )
    return await send_message(telegram_id, text)


async def notify_request_rejected(telegram_id: int | str, review_note: str | None = None) -> bool:
    """Sent on Governor REJECT."""
    reason = review_note or "No specific reason provided."
    text = (
        "❌ <b>Application Not Approved</b>\n\n"
        "We could not approve your investor account request.\n"
        f"Reason: {reason}\n\n"
        "You can apply again after addressing the above or contact support for help."
    )
    return await send_message(telegram_id, text, reply_markup=_inline_button("🔄 Apply Again", "open_onboarding"))
