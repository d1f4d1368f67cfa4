"""
BloomFrame Backend — Email Orchestration Tests
================================================

Uses mock collaborators (templates, PDF, mail, logs); no real rendering,
conversion or SMTP.

What we test:
    ✅ Missing customer email is rejected before anything is logged
    ✅ Successful invoice flow: subject, attachment, log finished as 'sent'
    ✅ Each failing stage finishes the log as 'failed' with meta.stage
    ✅ Recommendation flow success and failure
"""

import smtplib
from unittest.mock import AsyncMock, MagicMock

import pytest

from bloomframe.exceptions import ConversionError, SendError, TemplateError, ValidationError
from bloomframe.schemas.invoice import InvoicePayload
from bloomframe.services.email_service import EmailService, RECOMMENDATION_SUBJECT

FAKE_PDF = b"%PDF-1.4 fake invoice"


class EmailServiceCase:

    def setup_method(self):
        self.templates = MagicMock()
        self.templates.render = MagicMock(return_value="<html>invoice</html>")
        self.pdf = MagicMock()
        self.pdf.render = AsyncMock(return_value=FAKE_PDF)
        self.mail = MagicMock()
        self.mail.send = AsyncMock(return_value=None)
        self.logs = MagicMock()
        self.logs.create = AsyncMock(return_value="log000000000001")
        self.logs.update = AsyncMock(return_value=None)
        self.service = EmailService(self.templates, self.pdf, self.mail, self.logs)

    def last_update(self):
        args, _ = self.logs.update.await_args
        log_id, status, error, meta = args
        return log_id, status, error, meta


class TestSendInvoice(EmailServiceCase):

    @pytest.mark.asyncio
    async def test_missing_email(self, sample_payload):
        sample_payload["customer"]["email"] = "   "
        payload = InvoicePayload.model_validate(sample_payload)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.send_invoice(payload)

        assert exc_info.value.message == "Missing customer email."
        assert exc_info.value.field == "customer.email"
        self.logs.create.assert_not_awaited()
        self.mail.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_success(self, sample_payload):
        payload = InvoicePayload.model_validate(sample_payload)

        await self.service.send_invoice(payload, sent_by="user1")

        create_args, create_kwargs = self.logs.create.await_args
        to_email, to_name, subject, ctx, meta = create_args
        assert (to_email, to_name, subject) == ("jane@example.com", "Mrs Jane Doe", "Invoice #1042")
        assert ctx.email_type == "invoice"
        assert ctx.template_key == "invoice"
        assert create_kwargs == {"sent_by": "user1"}

        message = self.mail.send.await_args.args[0]
        assert message.recipients == ["jane@example.com"]
        assert message.subject == "Invoice #1042"
        assert message.attachments == {"invoice.pdf": FAKE_PDF}
        assert "Hi Jane" in message.text

        self.pdf.render.assert_awaited_once_with("<html>invoice</html>")
        log_id, status, error, meta = self.last_update()
        assert (log_id, status, error) == ("log000000000001", "sent", "")
        assert meta["stage"] == "sent"
        assert meta["pdfBytes"] == len(FAKE_PDF)
        assert "sendMs" in meta

    @pytest.mark.asyncio
    async def test_subject_without_order_number(self, sample_payload):
        del sample_payload["order"]["orderNo"]
        await self.service.send_invoice(InvoicePayload.model_validate(sample_payload))
        assert self.mail.send.await_args.args[0].subject == "Invoice"

    @pytest.mark.asyncio
    async def test_render_failure(self, sample_payload):
        self.templates.render.side_effect = TemplateError("execute", "render failed: boom", "/views/x.html")

        with pytest.raises(TemplateError):
            await self.service.send_invoice(InvoicePayload.model_validate(sample_payload))

        _, status, error, meta = self.last_update()
        assert status == "failed"
        assert error == "render failed: boom"
        assert meta == {"stage": "render_html"}
        self.pdf.render.assert_not_awaited()
        self.mail.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pdf_failure(self, sample_payload):
        self.pdf.render.side_effect = ConversionError("wkhtmltopdf failed: exit status 1")

        with pytest.raises(ConversionError):
            await self.service.send_invoice(InvoicePayload.model_validate(sample_payload))

        _, status, error, meta = self.last_update()
        assert status == "failed"
        assert error == "wkhtmltopdf failed: exit status 1"
        assert meta["stage"] == "render_pdf"
        assert meta["pdfBytes"] == 0
        assert "pdfMs" in meta
        self.mail.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_failure(self, sample_payload):
        self.mail.send.side_effect = smtplib.SMTPException("relay access denied")

        with pytest.raises(SendError) as exc_info:
            await self.service.send_invoice(InvoicePayload.model_validate(sample_payload))

        assert exc_info.value.message == "Failed to send invoice email."
        assert exc_info.value.details == "relay access denied"
        _, status, error, meta = self.last_update()
        assert status == "failed"
        assert error == "relay access denied"
        assert meta["stage"] == "send_email"
        assert meta["pdfBytes"] == len(FAKE_PDF)
        assert "sendMs" in meta

    @pytest.mark.asyncio
    async def test_send_continues_when_log_create_fails(self, sample_payload):
        self.logs.create.return_value = None

        await self.service.send_invoice(InvoicePayload.model_validate(sample_payload))

        self.mail.send.assert_awaited_once()
        log_id, status, _, _ = self.last_update()
        assert log_id is None
        assert status == "sent"


class TestSendRecommendation(EmailServiceCase):

    @pytest.mark.asyncio
    async def test_success(self, sample_payload):
        await self.service.send_recommendation(InvoicePayload.model_validate(sample_payload), sent_by="user1")

        _, _, subject, ctx, _ = self.logs.create.await_args.args
        assert subject == RECOMMENDATION_SUBJECT
        assert ctx.email_type == "recommendation_bouquet"
        assert ctx.template_key == "recommendation"

        message = self.mail.send.await_args.args[0]
        assert message.subject == RECOMMENDATION_SUBJECT
        assert message.attachments == {}
        self.templates.render.assert_not_called()
        self.pdf.render.assert_not_awaited()

        _, status, error, meta = self.last_update()
        assert (status, error, meta["stage"]) == ("sent", "", "sent")
        assert "pdfBytes" not in meta

    @pytest.mark.asyncio
    async def test_email_type_from_context(self, sample_payload):
        sample_payload["emailContext"] = {"emailType": "recommendation_paperweight"}
        await self.service.send_recommendation(InvoicePayload.model_validate(sample_payload))
        ctx = self.logs.create.await_args.args[3]
        assert ctx.email_type == "recommendation_paperweight"

    @pytest.mark.asyncio
    async def test_send_failure(self, sample_payload):
        self.mail.send.side_effect = ConnectionRefusedError("connection refused")

        with pytest.raises(SendError) as exc_info:
            await self.service.send_recommendation(InvoicePayload.model_validate(sample_payload))

        assert exc_info.value.message == "Failed to send recommendation email."
        _, status, error, meta = self.last_update()
        assert status == "failed"
        assert error == "connection refused"
        assert meta["stage"] == "send_email"

    @pytest.mark.asyncio
    async def test_greeting_falls_back_to_there(self, sample_payload):
        sample_payload["customer"]["firstName"] = ""
        await self.service.send_recommendation(InvoicePayload.model_validate(sample_payload))
        assert self.mail.send.await_args.args[0].text.startswith("Hi there,")
