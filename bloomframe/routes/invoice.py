"""
BloomFrame Backend — Invoice Preview Route
============================================

What:  POST /api/invoice/preview: renders the invoice HTML for an order
       payload without sending or storing anything.
How:   Raw body → decode_invoice_payload → build_invoice_view_model →
       TemplateService.render → text/html response.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from bloomframe.auth import AuthUser, require_auth
from bloomframe.schemas.invoice import decode_invoice_payload
from bloomframe.services.invoice_builder import build_invoice_view_model
from bloomframe.services.template_service import TemplateService, template_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Invoice"])


def get_template_service() -> TemplateService:
    return template_service


@router.post(
    "/invoice/preview",
    response_class=HTMLResponse,
    summary="Render an invoice preview",
    responses={
        400: {"description": "Invalid payload"},
        401: {"description": "Missing or unknown API token"},
        500: {"description": "Template failure; body names the failing stage"},
    },
)
async def preview_invoice(
    request: Request,
    user: AuthUser = Depends(require_auth),
    templates: TemplateService = Depends(get_template_service),
) -> HTMLResponse:
    payload = decode_invoice_payload(await request.body())
    html = templates.render(build_invoice_view_model(payload))
    logger.debug("Invoice preview rendered for user %s (%d frames)", user.id, len(payload.frames))
    return HTMLResponse(content=html)
