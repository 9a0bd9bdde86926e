import logging
from typing import List, Optional, Union

import resend
from django.conf import settings

logger = logging.getLogger(__name__)


class EmailNotConfigured(Exception):
    pass


class EmailDispatchError(Exception):
    pass


class EmailDispatcher:
    def __init__(self, api_key: Optional[str], sender: str):
        self.api_key = api_key
        self.sender = sender

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: Union[str, List[str]], subject: str, html: str) -> dict:
        recipients = [to] if isinstance(to, str) else [r for r in to if r]
        if not self.is_configured:
            raise EmailNotConfigured("Email service not configured")
        if not recipients:
            raise EmailDispatchError("No recipients to send to")

        # The Resend SDK reads its key from this module attribute, so it is set on every send.
        resend.api_key = self.api_key
        try:
            logger.info(f"Sending email '{subject}' via Resend to {len(recipients)} recipient(s).")
            response = resend.Emails.send({
                "from": self.sender,
                "to": recipients,
                "subject": subject,
                "html": html,
            })
        except Exception as e:
            logger.error(f"Resend rejected email '{subject}': {e}", exc_info=True)
            raise EmailDispatchError(str(e)) from e

        logger.debug(f"Resend accepted email '{subject}': {response}")
        return response


def get_dispatcher() -> EmailDispatcher:
    return EmailDispatcher(api_key=settings.RESEND_API_KEY, sender=settings.EMAIL_FROM_ADDRESS)


def meeting_url(meeting_id: int) -> str:
    base = settings.SITE_URL.rstrip('/')
    return f"{base}/?meeting={meeting_id}"


def redirect_url(path: str) -> str:
    """Base for links sent in auth emails. `DEV_REDIRECT_URL` overrides `SITE_URL` in local development."""
    base = (settings.DEV_REDIRECT_URL or settings.SITE_URL).rstrip('/')
    return f"{base}/{path.lstrip('/')}"
