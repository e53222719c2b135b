"""
Invoicing

German invoices for voice quick orders:

- Invoice numbers ``RG-YYYYMMDD-HHMM`` and dates ``DD.MM.YYYY``
- HTML rendering from ``templates/invoice.html`` (Jinja2)
- The accountant email with the invoice attached
- DATEV booking export (CSV, ``;``-separated, UTF-8 BOM)

Amounts are gross; VAT is the included share.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

import pandas as pd
from jinja2 import Environment, PackageLoader, select_autoescape

from restaurantos.core.config import get_settings
from restaurantos.schemas import CompanySettings, InvoiceLineSchema, InvoiceSchema
from restaurantos.services.notifications.base import EmailAttachment
from restaurantos.services.voice.order_parser import ParsedItem

logger = logging.getLogger(__name__)

REVENUE_ACCOUNT = "8400"
VAT_ACCOUNT = "1576"
RECEIVABLES_ACCOUNT = "1400"

DATEV_COLUMNS = [
    "Umsatz (ohne Soll/Haben-Kz)",
    "Soll/Haben-Kennzeichen",
    "WKZ Umsatz",
    "Kurs",
    "Basis-Umsatz",
    "WKZ Basis-Umsatz",
    "Konto",
    "Gegenkonto (ohne BU-Schlüssel)",
    "BU-Schlüssel",
    "Belegdatum",
    "Belegfeld 1",
    "Belegfeld 2",
    "Skonto",
    "Buchungstext",
]

_environment = Environment(
    loader=PackageLoader("restaurantos", "templates"),
    autoescape=select_autoescape(["html"]),
)
_environment.filters["euro"] = lambda amount: f"€{amount:.2f}"


# =============================================================================
# NUMBERS AND DATES
# =============================================================================

def generate_invoice_number(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now()
    return moment.strftime("RG-%Y%m%d-%H%M")


def format_invoice_date(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now()
    return moment.strftime("%d.%m.%Y")


def generate_payment_qr_code(amount: float, reference: str, currency: str = "EUR") -> str:
    """Payment reference encoded in the QR box of the invoice."""
    return f"QR:{currency}:{amount:.2f}:REF:{reference}"


def datev_amount(amount: float) -> str:
    return f"{amount:.2f}".replace(".", ",")


def datev_date(invoice_date: str) -> str:
    """``DD.MM.YYYY`` → ``YYYYMMDD``."""
    return "".join(reversed(invoice_date.split(".")))


# =============================================================================
# INVOICE
# =============================================================================

def build_invoice(
    items: Sequence[ParsedItem],
    customer_name: str,
    table_number: Optional[int] = None,
    notes: Optional[str] = None,
    moment: Optional[datetime] = None,
) -> InvoiceSchema:
    """
    Build the invoice for the ordered (menu-matched) items.

    Totals are summed over ``items``, so they equal the persisted order.
    """
    moment = moment or datetime.now()
    lines = [
        InvoiceLineSchema(
            name=item.menu_item.name if item.menu_item is not None else item.name,
            quantity=item.quantity,
            unit_price=round(item.unit_price, 2),
            total_price=round(item.total_price, 2),
            vat_rate=item.vat_rate,
            vat_amount=round(item.vat_amount, 2),
            notes=item.notes,
        )
        for item in items
    ]
    subtotal = sum(item.total_price for item in items)
    total_vat = sum(item.vat_amount for item in items)
    invoice_number = generate_invoice_number(moment)

    return InvoiceSchema(
        invoice_number=invoice_number,
        date=format_invoice_date(moment),
        customer_name=customer_name,
        table_number=table_number,
        items=lines,
        subtotal=round(subtotal, 2),
        total_vat=round(total_vat, 2),
        grand_total=round(subtotal, 2),
        notes=notes,
        qr_code=generate_payment_qr_code(subtotal, invoice_number, get_settings().currency),
    )


def render_invoice_html(invoice: InvoiceSchema, company: CompanySettings) -> str:
    template = _environment.get_template("invoice.html")
    return template.render(
        invoice=invoice,
        company=company,
        vat_percent=get_settings().vat_percent,
    )


def invoice_attachment(invoice: InvoiceSchema, company: CompanySettings) -> EmailAttachment:
    # The document is HTML; the file name is what the accountant's tooling expects
    return EmailAttachment(
        filename=f"Rechnung-{invoice.invoice_number}.pdf",
        content=render_invoice_html(invoice, company).encode("utf-8"),
        mime_type="text/html",
    )


def build_invoice_email(invoice: InvoiceSchema, company: CompanySettings) -> tuple[str, str]:
    """Return the subject and plain-text body of the accountant email."""
    vat_percent = get_settings().vat_percent
    subject = f"Neue Rechnung {invoice.invoice_number} - {company.name}"
    body = (
        "Sehr geehrte Damen und Herren,\n\n"
        f"anbei erhalten Sie die Rechnung {invoice.invoice_number} vom {invoice.date}.\n\n"
        "Rechnungsdetails:\n"
        f"- Kunde: {invoice.customer_name}\n"
        f"- Betrag: €{invoice.grand_total:.2f}\n"
        f"- Netto: €{invoice.net_amount:.2f}\n"
        f"- MwSt ({vat_percent}%): €{invoice.total_vat:.2f}\n\n"
        "Die Rechnung wurde automatisch über das RestaurantOS-System generiert.\n\n"
        "Mit freundlichen Grüßen\n"
        f"{company.name}\n"
    )
    return subject, body


# =============================================================================
# DATEV
# =============================================================================

def datev_rows(invoice: InvoiceSchema, vat_percent: int = 19) -> list[list[str]]:
    """Two bookings per invoice: net revenue and the VAT share."""
    booking_date = datev_date(invoice.date)

    def booking(amount: float, account: str, text: str) -> list[str]:
        return [
            datev_amount(amount), "S", "EUR", "", "", "",
            account, RECEIVABLES_ACCOUNT, "",
            booking_date, invoice.invoice_number, invoice.customer_name, "",
            text,
        ]

    return [
        booking(invoice.net_amount, REVENUE_ACCOUNT, f"Umsatz {invoice.invoice_number}"),
        booking(invoice.total_vat, VAT_ACCOUNT, f"USt {vat_percent}% {invoice.invoice_number}"),
    ]


def generate_datev_export(invoices: Sequence[InvoiceSchema]) -> str:
    """
    Build the DATEV CSV for ``invoices``.

    Returns:
        CSV text starting with a byte order mark so Excel detects UTF-8
    """
    vat_percent = get_settings().vat_percent
    rows = [row for invoice in invoices for row in datev_rows(invoice, vat_percent)]
    frame = pd.DataFrame(rows, columns=DATEV_COLUMNS)
    content = frame.to_csv(sep=";", index=False, lineterminator="\n")

    logger.info(f"DATEV export generated for {len(invoices)} invoices")
    return "\ufeff" + content.rstrip("\n")
