import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from eshop.orders.services import record_history
from .models import Invoice
from .pdf import render_invoice_pdf, store_invoice_pdf

logger = logging.getLogger(__name__)


def invoice_number_for(order, year=None):
    """``FAK<year><order number>``"""
    return f"FAK{year or timezone.localdate().year}{order.order_number}"


def calculate_vat(total, rate=None):
    """VAT contained in a VAT-inclusive ``total``"""
    rate = Decimal(settings.INVOICE_VAT_RATE if rate is None else rate)
    total = Decimal(total)
    return (total - total / (1 + rate)).quantize(Decimal('0.01'))


def generate_invoice(order, performed_by='Admin'):
    """
    Create the invoice for ``order`` and render its PDF.

    Returns ``(invoice, created)``. An existing invoice is returned as is.
    A PDF failure is logged and leaves the invoice with ``pdf_url`` unset.
    """
    existing = Invoice.objects.filter(order=order).first()
    if existing is not None:
        return existing, False

    issue_date = timezone.localdate()
    try:
        with transaction.atomic():
            invoice = Invoice.objects.create(
                order=order,
                invoice_number=invoice_number_for(order, issue_date.year),
                issue_date=issue_date,
                due_date=issue_date + timedelta(days=settings.INVOICE_DUE_DAYS),
                total_amount=order.total,
                vat_amount=calculate_vat(order.total),
            )
            record_history(
                order, 'invoice_generated',
                f"Invoice {invoice.invoice_number} generated",
                new_value=invoice.invoice_number,
                performed_by=performed_by,
                metadata={'invoice_id': invoice.pk},
            )
    except IntegrityError:
        # Created concurrently for the same order
        return Invoice.objects.get(order=order), False

    attach_pdf(invoice)
    logger.info(f"Invoice {invoice.invoice_number} generated for order {order.order_number}")
    return invoice, True


def attach_pdf(invoice):
    """Render and store the PDF; returns True when ``pdf_url`` was set"""
    try:
        content = render_invoice_pdf(invoice)
        invoice.pdf_url = store_invoice_pdf(invoice, content)
    except Exception as e:
        logger.error(f"Invoice PDF generation failed for {invoice.invoice_number}: {str(e)}", exc_info=True)
        return False
    invoice.save(update_fields=['pdf_url', 'updated_at'])
    return True
