"""
BloomFrame Backend — Mailer
=============================

What:  Sends HTML + plain-text email, optionally with attachments, over SMTP.
How:   Builds a multipart EmailMessage and delivers it with smtplib.
       smtplib is blocking, so delivery runs in Starlette's threadpool.
Who:   EmailService.

SMTP and OS errors propagate unchanged; the caller decides how to report them.
"""

import logging
import mimetypes
import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr
from typing import Dict, List

from starlette.concurrency import run_in_threadpool

from bloomframe.config import Settings, settings

logger = logging.getLogger(__name__)


@dataclass
class MailMessage:
    recipients: List[str]
    subject: str
    html: str
    text: str
    attachments: Dict[str, bytes] = field(default_factory=dict)


class MailService:
    def __init__(self, config: Settings):
        self.config = config

    @property
    def sender(self) -> str:
        return formataddr((self.config.sender_name, self.config.sender_address))

    def build_message(self, message: MailMessage) -> EmailMessage:
        """Assembles text, HTML alternative and attachments into one message."""
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = self.sender
        msg["To"] = ", ".join(message.recipients)

        msg.set_content(message.text)
        msg.add_alternative(message.html, subtype="html")

        for filename, content in message.attachments.items():
            content_type, _ = mimetypes.guess_type(filename)
            maintype, _, subtype = (content_type or "application/octet-stream").partition("/")
            msg.add_attachment(content, maintype=maintype, subtype=subtype, filename=filename)

        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port) as smtp:
            if self.config.smtp_use_tls:
                smtp.starttls(context=ssl.create_default_context())
            if self.config.smtp_username:
                smtp.login(self.config.smtp_username, self.config.smtp_password)
            smtp.send_message(msg)

    async def send(self, message: MailMessage) -> None:
        """
        Delivers a message.

        Raises:
            smtplib.SMTPException or OSError when delivery fails.
        """
        msg = self.build_message(message)
        await run_in_threadpool(self._deliver, msg)
        logger.info(
            "Mail sent to %s (%s, %d attachment(s))",
            msg["To"],
            message.subject,
            len(message.attachments),
        )


mail_service = MailService(settings)
