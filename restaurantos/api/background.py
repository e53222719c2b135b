"""
Background Job Helpers

Hands work to Celery from request handlers. ``delay`` runs in a worker
thread so eager mode can start its own event loop, and a broker outage
only costs the side job, never the request.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.models import Order
from restaurantos.schemas import CompanySettings, InvoiceSchema
from restaurantos.services.numbering import order_number_for
from restaurantos.services.orders import ledger_row
from restaurantos.tasks import export_order_to_ledger, send_invoice_email

logger = logging.getLogger(__name__)


async def queue_ledger_export(db: AsyncSession, order: Order, source: str = "manual") -> Optional[str]:
    """Queue the sales ledger row for ``order``. Returns the task id."""
    row = ledger_row(order, await order_number_for(db, order), source)
    try:
        result = await asyncio.to_thread(export_order_to_ledger.delay, row)
    except Exception as e:
        logger.warning(f"⚠️ Could not queue ledger export for order {order.id[:8]}: {e}")
        return None
    logger.info(f"📋 Ledger export queued for order {order.id[:8]} (task {result.id})")
    return result.id


async def queue_invoice_email(
    invoice: InvoiceSchema,
    company: CompanySettings,
    to_email: str,
    cc_email: Optional[str] = None,
) -> Optional[str]:
    """Queue the accountant email for ``invoice``. Returns the task id."""
    try:
        result = await asyncio.to_thread(
            send_invoice_email.delay,
            invoice.model_dump(),
            company.model_dump(),
            to_email,
            cc_email,
        )
    except Exception as e:
        logger.warning(f"⚠️ Could not queue invoice email {invoice.invoice_number}: {e}")
        return None
    logger.info(f"📧 Invoice {invoice.invoice_number} queued for {to_email} (task {result.id})")
    return result.id
