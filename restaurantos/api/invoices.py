"""
Invoice Endpoints

Render an invoice, queue it for the accountant, or export a batch as a
DATEV booking file.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, Response

from restaurantos.api.background import queue_invoice_email
from restaurantos.core.config import get_settings
from restaurantos.core.security import require_roles
from restaurantos.models import User, UserRole
from restaurantos.schemas import (
    DatevExportRequest,
    InvoiceEmailRequest,
    InvoiceSchema,
    MessageResponse,
)
from restaurantos.services.company_settings import CompanySettingsStore
from restaurantos.services.invoicing import generate_datev_export, render_invoice_html

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["Invoices"])

staff_only = require_roles(UserRole.MANAGER, UserRole.WAITER)


@router.post("/html", response_class=HTMLResponse)
async def invoice_html(
    invoice: InvoiceSchema,
    user: User = Depends(staff_only),
) -> HTMLResponse:
    company = await asyncio.to_thread(CompanySettingsStore.load)
    return HTMLResponse(render_invoice_html(invoice, company))


@router.post("/email", response_model=MessageResponse)
async def email_invoice(
    data: InvoiceEmailRequest,
    user: User = Depends(staff_only),
) -> MessageResponse:
    """Queue the invoice email. Recipients default to the configured accountant and CC."""
    settings = get_settings()
    to_email = data.to_email or settings.accountant_email
    cc_email = data.cc_email or settings.accountant_cc_email
    company = await asyncio.to_thread(CompanySettingsStore.load)

    task_id = await queue_invoice_email(data.invoice, company, to_email, cc_email)
    if task_id is None:
        return MessageResponse(success=False, message="Invoice email could not be queued. Please try again.")
    return MessageResponse(message=f"Invoice {data.invoice.invoice_number} sent to {to_email}")


@router.post("/datev", responses={200: {"content": {"text/csv": {}}}})
async def datev_export(
    data: DatevExportRequest,
    user: User = Depends(staff_only),
) -> Response:
    content = generate_datev_export(data.invoices)
    filename = f"DATEV-Export-{data.invoices[0].date.replace('.', '')}.csv"
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
