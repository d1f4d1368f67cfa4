"""
BloomFrame Backend — Email Log Recorder
=========================================

What:  Writes an `email_logs` row before each send and updates it with the
       outcome afterwards.
How:   Every write opens its own session from the injected factory and
       commits immediately, so the audit row survives even when the
       request itself fails.
Who:   EmailService.

Failure policy:
    Logging never blocks the email. If create() fails it returns None and
    the send goes ahead unlogged; update(None, ...) is a no-op; update
    failures are logged at WARNING and swallowed.

Meta merging:
    update() reads the stored meta, overlays the patch keys (shallow) and
    stores the result. Nested values are replaced, not merged.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bloomframe.database import utc_now
from bloomframe.models.email_log import EmailLog
from bloomframe.schemas.invoice import InvoicePayload

logger = logging.getLogger(__name__)

ALLOWED_EMAIL_TYPES = frozenset({
    "invoice",
    "recommendation_bouquet",
    "recommendation_paperweight",
    "status_update",
    "comment",
    "generic",
})

DEFAULT_EMAIL_TYPE = "generic"
DEFAULT_EVENT_TYPE = "manual"


@dataclass
class EmailLogContext:
    email_type: str = ""
    event_type: str = ""
    event_note: str = ""
    template_key: str = ""
    order_id: str = ""
    customer_id: str = ""
    frame_item_id: str = ""
    paperweight_item_id: str = ""


def build_email_log_context(
    payload: InvoicePayload,
    default_email_type: str,
    default_event_type: str,
    default_template_key: str,
) -> Tuple[EmailLogContext, Dict[str, Any]]:
    """
    Derives the log context and initial meta from a payload.

    Defaults apply unless the payload's emailContext carries a non-blank
    value. Order and customer ids come from the payload sections and are
    overridden by emailContext ids. An emailType outside
    ALLOWED_EMAIL_TYPES is stored as "generic" and the original value is
    kept in meta["emailTypeInvalid"].
    """
    ctx = EmailLogContext(
        email_type=default_email_type,
        event_type=default_event_type,
        template_key=default_template_key,
        order_id=payload.order.order_id.strip(),
        customer_id=payload.customer.id.strip(),
    )
    meta: Dict[str, Any] = {
        "framesCount": len(payload.frames),
        "hasPaperweight": payload.get_paperweight() is not None,
    }

    ec = payload.email_context
    if ec is None:
        return ctx, meta

    email_type = ec.email_type.strip()
    if email_type:
        if email_type in ALLOWED_EMAIL_TYPES:
            ctx.email_type = email_type
        else:
            ctx.email_type = DEFAULT_EMAIL_TYPE
            meta["emailTypeInvalid"] = ec.email_type

    overrides = {
        "event_type": ec.event_type,
        "event_note": ec.event_note,
        "template_key": ec.template_key,
        "order_id": ec.order_id,
        "customer_id": ec.customer_id,
        "frame_item_id": ec.frame_item_id,
        "paperweight_item_id": ec.paperweight_item_id,
    }
    for attr, value in overrides.items():
        if value.strip():
            setattr(ctx, attr, value.strip())

    if ec.source.strip():
        meta["source"] = ec.source.strip()

    return ctx, meta


class EmailLogService:
    """Best-effort writer for email_logs rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create(
        self,
        to_email: str,
        to_name: str,
        subject: str,
        context: EmailLogContext,
        meta: Optional[Dict[str, Any]],
        sent_by: str = "",
    ) -> Optional[str]:
        """
        Inserts an 'attempted' log row.

        Returns:
            The new row id, or None when the insert failed.
        """
        record = EmailLog(
            channel="email",
            status="attempted",
            sent_at=utc_now(),
            error="",
            to_email=to_email.strip(),
            to_name=to_name.strip(),
            subject=subject.strip(),
            template_key=context.template_key.strip(),
            email_type=context.email_type.strip() or DEFAULT_EMAIL_TYPE,
            event_type=context.event_type.strip() or DEFAULT_EVENT_TYPE,
            event_note=context.event_note.strip(),
            order_id=context.order_id.strip(),
            customer_id=context.customer_id.strip(),
            frame_item_id=context.frame_item_id.strip(),
            paperweight_item_id=context.paperweight_item_id.strip(),
            sent_by=sent_by.strip(),
            meta=dict(meta) if meta is not None else {},
        )
        try:
            async with self.session_factory() as session:
                session.add(record)
                await session.commit()
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("email_logs create failed for %s: %s", to_email, exc)
            return None

        logger.debug("email_logs %s created (%s)", record.id, record.email_type)
        return record.id

    async def update(
        self,
        log_id: Optional[str],
        status: str,
        error: str = "",
        meta_patch: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Sets status and error and merges meta_patch into the stored meta.

        A blank status leaves the stored status alone; a blank error clears it.
        """
        if log_id is None:
            return

        try:
            async with self.session_factory() as session:
                record = await session.get(EmailLog, log_id)
                if record is None:
                    logger.warning("email_logs %s not found for update", log_id)
                    return

                if status.strip():
                    record.status = status
                record.error = error if error.strip() else ""

                if meta_patch is not None:
                    merged = dict(record.meta or {})
                    merged.update(meta_patch)
                    record.meta = merged

                await session.commit()
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("email_logs %s update failed: %s", log_id, exc)
