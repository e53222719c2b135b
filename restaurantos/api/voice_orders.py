"""
Voice Quick Order Endpoints

``/parse`` previews what the AI understood with prices. Confirming sends
the previewed lines back; they are stored as a regular order and the
invoice is built from them, without asking the AI again.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.api.background import queue_ledger_export
from restaurantos.core.config import get_settings
from restaurantos.core.security import require_roles
from restaurantos.database import get_db
from restaurantos.models import MenuItem, User, UserRole
from restaurantos.schemas import (
    ErrorResponse,
    ParsedItemResponse,
    ParsedOrderResponse,
    VoiceOrderCreateRequest,
    VoiceOrderCreateResponse,
    VoiceOrderParseRequest,
)
from restaurantos.services.ai import BaseAIService, get_ai_service
from restaurantos.services.invoicing import build_invoice
from restaurantos.services.orders import (
    OrderLine,
    OrderValidationError,
    create_order,
    order_response,
    publish_order_event,
)
from restaurantos.services.voice import ParsedOrder, VoiceOrderError, VoiceOrderParser, price_menu_lines

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/voice-orders", tags=["Voice Orders"])

staff_only = require_roles(UserRole.MANAGER, UserRole.WAITER)

TRANSCRIPT_NOTE_LENGTH = 100


def transcript_note(transcript: str) -> str:
    excerpt = transcript[:TRANSCRIPT_NOTE_LENGTH]
    if len(transcript) > TRANSCRIPT_NOTE_LENGTH:
        excerpt += "..."
    return f'Sprachbestellung: "{excerpt}"'


def serialize_parsed_order(parsed: ParsedOrder) -> ParsedOrderResponse:
    return ParsedOrderResponse(
        customer_name=parsed.customer_name,
        table_number=parsed.table_number,
        special_instructions=parsed.special_instructions,
        items=[
            ParsedItemResponse(
                name=item.name,
                quantity=item.quantity,
                notes=item.notes,
                matched=item.matched,
                menu_item_id=item.menu_item.id if item.matched else None,
                menu_item_name=item.menu_item.name if item.matched else None,
                unit_price=round(item.unit_price, 2),
                total_price=round(item.total_price, 2),
                vat_rate=item.vat_rate,
                vat_amount=round(item.vat_amount, 2),
            )
            for item in parsed.items
        ],
        subtotal=round(parsed.subtotal, 2),
        total_vat=round(parsed.total_vat, 2),
        grand_total=round(parsed.grand_total, 2),
    )


async def _parse(db: AsyncSession, ai: BaseAIService, transcript: str, user: User) -> ParsedOrder:
    result = await db.execute(
        select(MenuItem).where(MenuItem.available.is_(True)).order_by(MenuItem.category, MenuItem.name)
    )
    menu = list(result.scalars().all())
    try:
        return await VoiceOrderParser(ai).parse(transcript, menu, user.id)
    except VoiceOrderError as e:
        logger.info(f"🎙️ Voice order rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/parse", response_model=ParsedOrderResponse, responses={400: {"model": ErrorResponse}})
async def parse_voice_order(
    data: VoiceOrderParseRequest,
    user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
    ai: BaseAIService = Depends(get_ai_service),
) -> ParsedOrderResponse:
    return serialize_parsed_order(await _parse(db, ai, data.transcript, user))


@router.post(
    "",
    response_model=VoiceOrderCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_voice_order(
    data: VoiceOrderCreateRequest,
    user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
) -> VoiceOrderCreateResponse:
    """
    Store the confirmed preview lines as an order and build its invoice.

    The lines are priced at the current menu price. Names the AI heard but
    the menu does not have are passed through in ``unmatched_items``.
    """
    special_instructions = (data.special_instructions or "").strip() or None
    lines = [
        OrderLine(
            menu_item_id=line.menu_item_id,
            quantity=line.quantity,
            notes=line.notes or special_instructions or transcript_note(data.transcript),
        )
        for line in data.items
    ]
    try:
        order = await create_order(
            db,
            user,
            lines,
            customer_name=data.customer_name,
            table_number=data.table_number,
            notes=special_instructions,
            guest_prefix="Gast",
        )
    except OrderValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    menu = {item.menu_item_id: item.menu_item for item in order.items}
    priced = price_menu_lines(
        [(menu[line.menu_item_id], line.quantity, line.notes) for line in data.items],
        get_settings().vat_rate,
    )
    invoice = build_invoice(
        priced,
        customer_name=order.customer_name,
        table_number=order.table_number,
        notes=special_instructions,
    )
    logger.info(
        f"🎙️ Voice order {order.id[:8]} created: {len(priced)} items, "
        f"invoice {invoice.invoice_number} €{invoice.grand_total:.2f}"
    )

    await publish_order_event("created", order)
    await queue_ledger_export(db, order, source="voice")
    return VoiceOrderCreateResponse(
        order=await order_response(db, order),
        invoice=invoice,
        unmatched_items=data.unmatched_items,
    )
