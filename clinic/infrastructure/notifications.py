import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

SUPPORTED_CHANNELS = ("email", "sms", "in_app")


async def send_notification(
    recipient: str,
    subject: str,
    body: str,
    channel: str = "email",
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Deliver a notification to a patient or staff member.

    Delivery is logged only; the return value mirrors what a provider
    integration (SMTP, SMS gateway) would report back.
    """
    if channel not in SUPPORTED_CHANNELS:
        logger.warning(f"Unsupported notification channel {channel!r} for {recipient}")
        return {"status": "error", "recipient": recipient, "channel": channel,
                "error": f"Unsupported channel: {channel}"}

    if not recipient:
        logger.warning(f"Dropping {channel} notification without a recipient: {subject}")
        return {"status": "error", "recipient": recipient, "channel": channel,
                "error": "Recipient is required"}

    logger.info(f"Sending {channel} notification to {recipient}: {subject}")
    logger.debug(f"Notification body ({len(body)} chars), metadata={metadata or {}}")
    return {"status": "sent", "recipient": recipient, "channel": channel, "subject": subject}
