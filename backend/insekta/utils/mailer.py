import logging
from email.mime.text import MIMEText

import aiosmtplib

from insekta.config import SMTP_HOST, SMTP_PORT, EMAIL_USER, EMAIL_PASS, FROM_NAME

logger = logging.getLogger(__name__)


async def send_email(to: str, subject: str, html: str) -> bool:
    """Send an HTML mail. Returns False when no transport is configured."""
    if not EMAIL_USER:
        logger.warning("[MAIL] EMAIL_USER is not set, skipping mail to %s", to)
        return False

    message = MIMEText(html, "html", "utf-8")
    message["Subject"] = subject
    message["From"] = f"{FROM_NAME} <{EMAIL_USER}>"
    message["To"] = to

    await aiosmtplib.send(
        message,
        hostname=SMTP_HOST,
        port=SMTP_PORT,
        username=EMAIL_USER,
        password=EMAIL_PASS,
        use_tls=SMTP_PORT == 465,
        start_tls=SMTP_PORT != 465,
    )
    logger.info("[MAIL] sent '%s' to %s", subject, to)
    return True
