"""
BloomFrame Backend — Email Routes
===================================

What:  POST /api/email/invoice and POST /api/email/recommendation.
How:   Decode the raw body, then hand off to EmailService. Both answer
       {"ok": true} on success; failures reach the global error handlers.

Each request gets its own EmailService, wired to the shared template,
PDF and mail services and to an EmailLogService on the session factory.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bloomframe.auth import AuthUser, require_auth
from bloomframe.database import get_session_factory
from bloomframe.routes.invoice import get_template_service
from bloomframe.schemas.invoice import decode_invoice_payload
from bloomframe.services.email_log_service import EmailLogService
from bloomframe.services.email_service import EmailService
from bloomframe.services.mail_service import MailService, mail_service
from bloomframe.services.pdf_service import PdfService, pdf_service
from bloomframe.services.template_service import TemplateService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Email"])


def get_pdf_service() -> PdfService:
    return pdf_service


def get_mail_service() -> MailService:
    return mail_service


def get_email_service(
    templates: TemplateService = Depends(get_template_service),
    pdf: PdfService = Depends(get_pdf_service),
    mail: MailService = Depends(get_mail_service),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> EmailService:
    return EmailService(templates, pdf, mail, EmailLogService(session_factory))


@router.post(
    "/email/invoice",
    summary="Email the invoice PDF to the customer",
    responses={
        400: {"description": "Invalid payload or missing customer email"},
        401: {"description": "Missing or unknown API token"},
        500: {"description": "Render, PDF or send failure"},
    },
)
async def email_invoice(
    request: Request,
    user: AuthUser = Depends(require_auth),
    service: EmailService = Depends(get_email_service),
) -> Dict[str, Any]:
    payload = decode_invoice_payload(await request.body())
    await service.send_invoice(payload, sent_by=user.id)
    return {"ok": True}


@router.post(
    "/email/recommendation",
    summary="Tell the customer their recommendation is ready",
    responses={
        400: {"description": "Invalid payload or missing customer email"},
        401: {"description": "Missing or unknown API token"},
        500: {"description": "Send failure"},
    },
)
async def email_recommendation(
    request: Request,
    user: AuthUser = Depends(require_auth),
    service: EmailService = Depends(get_email_service),
) -> Dict[str, Any]:
    payload = decode_invoice_payload(await request.body())
    await service.send_recommendation(payload, sent_by=user.id)
    return {"ok": True}
