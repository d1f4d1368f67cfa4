"""
BloomFrame Backend — Email Sending Orchestration
==================================================

What:  The invoice and recommendation email flows.
How:   Each flow validates the payload, records an 'attempted' email log,
       runs its stages, and finishes the log as 'failed' or 'sent'.

Invoice flow:
    validate → log(attempted) → render_html → render_pdf → send_email → log(sent)

Recommendation flow:
    validate → log(attempted) → send_email → log(sent)

The stage that failed is written to meta.stage, together with the
elapsed milliseconds of that stage (pdfMs / sendMs) and, once a PDF
exists, its size in pdfBytes.
"""

import html
import logging
import time

from bloomframe.exceptions import (
    BloomFrameError,
    ConversionError,
    RenderError,
    SendError,
    ValidationError,
)
from bloomframe.formatting import first_non_empty, format_invoice_no
from bloomframe.schemas.invoice import InvoicePayload
from bloomframe.services.email_log_service import EmailLogService, build_email_log_context
from bloomframe.services.invoice_builder import build_display_name, build_invoice_view_model
from bloomframe.services.mail_service import MailMessage, MailService
from bloomframe.services.pdf_service import PdfService
from bloomframe.services.template_service import TemplateService

logger = logging.getLogger(__name__)

INVOICE_ATTACHMENT_NAME = "invoice.pdf"
RECOMMENDATION_SUBJECT = "Your bouquet recommendation"


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _require_email(payload: InvoicePayload) -> str:
    email = payload.customer.email.strip()
    if not email:
        raise ValidationError("Missing customer email.", field="customer.email")
    return email


def _greeting_name(payload: InvoicePayload) -> str:
    return first_non_empty(payload.customer.first_name, "there")


def _failure_text(exc: Exception) -> str:
    if isinstance(exc, BloomFrameError):
        return exc.details or exc.message
    return str(exc) or exc.__class__.__name__


class EmailService:
    """
    Runs the email flows against injected collaborators.

    The log service carries the database session factory, so a new
    EmailService is built per request (see routes/email.py).
    """

    def __init__(
        self,
        templates: TemplateService,
        pdf: PdfService,
        mail: MailService,
        logs: EmailLogService,
    ):
        self.templates = templates
        self.pdf = pdf
        self.mail = mail
        self.logs = logs

    async def send_invoice(self, payload: InvoicePayload, sent_by: str = "") -> None:
        """
        Renders the invoice, converts it to PDF and emails it to the customer.

        Raises:
            ValidationError: the customer has no email address.
            RenderError:     the invoice template failed.
            ConversionError: the PDF converter failed.
            SendError:       SMTP delivery failed.
        """
        to_email = _require_email(payload)

        invoice_no = format_invoice_no(payload.order.order_no)
        subject = "Invoice" if invoice_no == "-" else f"Invoice #{invoice_no}"

        ctx, meta = build_email_log_context(payload, "invoice", "manual", "invoice")
        log_id = await self.logs.create(
            to_email, build_display_name(payload), subject, ctx, meta, sent_by=sent_by
        )

        # ── Stage: render_html ────────────────────────────────────────────
        try:
            document = self.templates.render(build_invoice_view_model(payload))
        except RenderError as exc:
            logger.error("Invoice render failed for %s: %s", to_email, _failure_text(exc))
            await self.logs.update(log_id, "failed", _failure_text(exc), {"stage": "render_html"})
            raise

        # ── Stage: render_pdf ─────────────────────────────────────────────
        started = time.perf_counter()
        try:
            pdf_bytes = await self.pdf.render(document)
        except ConversionError as exc:
            await self.logs.update(
                log_id,
                "failed",
                _failure_text(exc),
                {"stage": "render_pdf", "pdfMs": _elapsed_ms(started), "pdfBytes": 0},
            )
            raise

        # ── Stage: send_email ─────────────────────────────────────────────
        name = _greeting_name(payload)
        message = MailMessage(
            recipients=[to_email],
            subject=subject,
            html=f"<p>Hi {html.escape(name)},</p><p>Please find your invoice attached.</p>",
            text=f"Hi {name},\n\nPlease find your invoice attached.\n",
            attachments={INVOICE_ATTACHMENT_NAME: pdf_bytes},
        )
        started = time.perf_counter()
        try:
            await self.mail.send(message)
        except Exception as exc:
            failure = _failure_text(exc)
            logger.error("Invoice email to %s failed: %s", to_email, failure)
            await self.logs.update(
                log_id,
                "failed",
                failure,
                {"stage": "send_email", "sendMs": _elapsed_ms(started), "pdfBytes": len(pdf_bytes)},
            )
            raise SendError("Failed to send invoice email.", details=failure) from exc

        await self.logs.update(
            log_id, "sent", "", {"stage": "sent", "sendMs": _elapsed_ms(started), "pdfBytes": len(pdf_bytes)}
        )
        logger.info("Invoice %s emailed to %s (%d PDF bytes)", invoice_no, to_email, len(pdf_bytes))

    async def send_recommendation(self, payload: InvoicePayload, sent_by: str = "") -> None:
        """
        Emails the customer that their bouquet recommendation is ready.

        Raises:
            ValidationError: the customer has no email address.
            SendError:       SMTP delivery failed.
        """
        to_email = _require_email(payload)

        ctx, meta = build_email_log_context(payload, "recommendation_bouquet", "manual", "recommendation")
        log_id = await self.logs.create(
            to_email, build_display_name(payload), RECOMMENDATION_SUBJECT, ctx, meta, sent_by=sent_by
        )

        name = _greeting_name(payload)
        message = MailMessage(
            recipients=[to_email],
            subject=RECOMMENDATION_SUBJECT,
            html=(
                f"<p>Hi {html.escape(name)},</p>"
                "<p>Your recommendation is ready. If you have any questions, reply to this email.</p>"
            ),
            text=f"Hi {name},\n\nYour recommendation is ready.\n",
        )

        started = time.perf_counter()
        try:
            await self.mail.send(message)
        except Exception as exc:
            failure = _failure_text(exc)
            logger.error("Recommendation email to %s failed: %s", to_email, failure)
            await self.logs.update(
                log_id, "failed", failure, {"stage": "send_email", "sendMs": _elapsed_ms(started)}
            )
            raise SendError("Failed to send recommendation email.", details=failure) from exc

        await self.logs.update(log_id, "sent", "", {"stage": "sent", "sendMs": _elapsed_ms(started)})
        logger.info("Recommendation email sent to %s", to_email)
