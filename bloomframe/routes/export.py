"""
BloomFrame Backend — Order Export Route
=========================================

What:  GET /api/export/orders.xlsx: downloads orders and related records
       as a workbook.
How:   Query parameters become ExportFilters; export_orders does the work;
       the bytes are streamed back as an attachment that must not be cached.

Query parameters (all optional):
    orderId        export that single order, ignoring every other filter
    from, to       YYYY-MM-DD bounds on the order's created date
    paymentStatus  exact payment_status match
    orderStatus    exact orderStatus match
"""

import io
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from bloomframe.auth import AuthUser, require_auth
from bloomframe.database import get_db_session
from bloomframe.services.export_service import XLSX_MEDIA_TYPE, ExportFilters, export_orders

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Export"])


@router.get(
    "/export/orders.xlsx",
    response_class=StreamingResponse,
    summary="Export orders to XLSX",
    responses={
        200: {"content": {XLSX_MEDIA_TYPE: {}}, "description": "Workbook download"},
        400: {"description": "Bad date, or too many matching orders"},
        401: {"description": "Missing or unknown API token"},
        500: {"description": "Lookup or workbook failure"},
    },
)
async def export_orders_xlsx(
    order_id: str = Query(default="", alias="orderId"),
    from_date: str = Query(default="", alias="from", description="YYYY-MM-DD"),
    to_date: str = Query(default="", alias="to", description="YYYY-MM-DD"),
    payment_status: str = Query(default="", alias="paymentStatus"),
    order_status: str = Query(default="", alias="orderStatus"),
    user: AuthUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
) -> StreamingResponse:
    filters = ExportFilters(
        order_id=order_id,
        from_date=from_date,
        to_date=to_date,
        payment_status=payment_status,
        order_status=order_status,
    )
    result = await export_orders(db, filters)
    logger.info("User %s exported %d orders as %s", user.id, result.order_count, result.filename)

    return StreamingResponse(
        io.BytesIO(result.content),
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "Cache-Control": "no-store",
            "Pragma": "no-cache",
        },
    )
