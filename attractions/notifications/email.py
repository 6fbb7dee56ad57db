import asyncio
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from attractions.config import settings
from attractions.notifications.templates import html_to_text

logger = logging.getLogger(__name__)


class EmailService:
    """Sends HTML email through AWS SES"""

    def __init__(self, client=None, default_sender: Optional[str] = None, default_from_name: Optional[str] = None):
        self._client = client
        self.default_sender = default_sender or settings.SUPPORT_EMAIL
        self.default_from_name = default_from_name or settings.SUPPORT_FROM_NAME

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "ses",
                aws_access_key_id=settings.AWS_SES_KEY,
                aws_secret_access_key=settings.AWS_SES_SECRET,
                region_name=settings.AWS_SES_REGION,
            )
        return self._client

    @staticmethod
    def build_message(
        html_body: str,
        recipients: List[str],
        subject: str,
        sender: str,
        from_name: str,
        cc: List[str],
    ) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = formataddr((from_name, sender))
        message["To"] = ", ".join(recipients)
        if cc:
            message["Cc"] = ", ".join(cc)
        message["Reply-To"] = sender
        message["List-Unsubscribe"] = f"<mailto:{sender}?subject=unsubscribe-me>"
        message.attach(MIMEText(html_to_text(html_body), "plain", "utf-8"))
        message.attach(MIMEText(html_body, "html", "utf-8"))
        return message

    async def send_email(
        self,
        html_body: str,
        recipient_emails: List[str],
        subject: str,
        sender_email: Optional[str] = None,
        from_name: Optional[str] = None,
        cc: Optional[List[str]] = None,
        bcc: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Send an email; failures are reported in the result, not raised"""
        sender = sender_email or self.default_sender
        from_name = from_name or self.default_from_name
        cc = cc or []
        bcc = settings.BCC_EMAILS if bcc is None else bcc

        message = self.build_message(html_body, recipient_emails, subject, sender, from_name, cc)

        try:
            result = await asyncio.to_thread(
                self.client.send_raw_email,
                Source=formataddr((from_name, sender)),
                Destinations=[*recipient_emails, *cc, *bcc],
                RawMessage={"Data": message.as_string()},
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Email sending error to %s: %s", recipient_emails, e)
            return {
                "status": 0,
                "notice": str(e),
                "email": recipient_emails,
                "subject": subject,
            }

        message_id = result.get("MessageId", "")
        logger.info("Email sent to %s, message id %s", recipient_emails, message_id)
        return {
            "status": 1,
            "notice": f"Email sent! Message ID: {message_id}",
            "data": message_id,
            "email": recipient_emails,
            "subject": subject,
        }
