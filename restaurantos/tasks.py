"""
Celery Tasks
Background work triggered by the API: the Excel sales ledger and invoice
emails to the tax accountant.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Optional

from restaurantos.celery_worker import celery_app
from restaurantos.schemas import CompanySettings, InvoiceSchema
from restaurantos.services.excel_manager import ExcelManager
from restaurantos.services.invoicing import (
    build_invoice_email,
    invoice_attachment,
    render_invoice_html,
)
from restaurantos.services.notifications import get_notification_service

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def export_order_to_ledger(self, order_data: dict) -> dict:
    """
    Append a created order to the Excel sales ledger.

    Args:
        order_data: Row built by ``restaurantos.services.orders.ledger_row``

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_id = order_data.get('order_id', 'unknown')

    logger.info(f"📋 Task {task_id}: Exporting order {order_id[:8]} to ledger")
    start_time = time.time()

    result = ExcelManager.export_order(order_data)

    elapsed = round(time.time() - start_time, 3)
    result['task_id'] = task_id
    result['processing_time_seconds'] = elapsed

    if result['success']:
        logger.info(f"✅ Task {task_id}: Order {order_id[:8]} exported in {elapsed}s")
    else:
        logger.warning(f"⚠️ Task {task_id}: Order {order_id[:8]} failed - {result['message']}")

    return result


@celery_app.task(bind=True)
def send_invoice_email(
    self,
    invoice_data: dict,
    company_data: dict,
    to_email: str,
    cc_email: Optional[str] = None,
) -> dict:
    """
    Email an invoice to the accountant with the rendered invoice attached.

    Arguments are plain dicts so they survive the JSON serializer.
    """
    invoice = InvoiceSchema(**invoice_data)
    company = CompanySettings(**company_data)
    subject, body_text = build_invoice_email(invoice, company)

    notifier = get_notification_service()
    result = asyncio.run(notifier.send_email(
        to_email=to_email,
        subject=subject,
        body_html=render_invoice_html(invoice, company),
        body_text=body_text,
        cc_email=cc_email,
        attachments=[invoice_attachment(invoice, company)],
    ))

    if result.success:
        logger.info(f"📧 Task {self.request.id}: Invoice {invoice.invoice_number} sent to {to_email}")
    else:
        logger.warning(
            f"⚠️ Task {self.request.id}: Invoice {invoice.invoice_number} not sent - {result.error_message}"
        )

    return {
        'success': result.success,
        'invoice_number': invoice.invoice_number,
        'message_id': result.message_id,
        'error': result.error_message,
        'provider': result.provider,
    }


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now().isoformat()
    }
