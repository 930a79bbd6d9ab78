"""
Invoice PDF rendering (reportlab) and storage
"""
import logging
import unicodedata
from decimal import Decimal
from io import BytesIO
from xml.sax.saxutils import escape

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from eshop.orders.options import get_delivery_method_label, get_delivery_price, get_payment_method_label
from .qr import order_payment_payload, render_qr_png

logger = logging.getLogger(__name__)

INVOICE_DIR = 'invoices'


def pdf_text(value):
    """Fold to ASCII (base fonts lack most accented glyphs) and escape for Paragraph"""
    text = unicodedata.normalize('NFKD', str(value or ''))
    text = ''.join(c for c in text if not unicodedata.combining(c))
    return escape(text.encode('ascii', 'ignore').decode('ascii'))


def money(value):
    return f"{Decimal(value):,.2f} {settings.SHOP_CURRENCY}".replace(',', ' ')


def net_of_vat(gross, rate):
    return (Decimal(gross) / (1 + Decimal(rate))).quantize(Decimal('0.01'))


def render_invoice_pdf(invoice):
    """Build the invoice document and return the PDF bytes"""
    order = invoice.order
    rate = settings.INVOICE_VAT_RATE
    company = settings.SHOP_COMPANY

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, rightMargin=40, leftMargin=40, topMargin=40, bottomMargin=40)

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle('InvoiceTitle', parent=styles['Heading1'], fontSize=22, spaceAfter=4)
    small = ParagraphStyle('Small', parent=styles['Normal'], fontSize=9, leading=12)
    footer_style = ParagraphStyle('Footer', parent=styles['Normal'], fontSize=9, textColor=colors.grey, alignment=1)

    elements = []

    header = Table(
        [[
            Paragraph('INVOICE', title_style),
            Paragraph(
                f"<b>{pdf_text(invoice.invoice_number)}</b><br/>Payment reference: {pdf_text(order.order_number)}",
                ParagraphStyle('Right', parent=small, alignment=2),
            ),
        ]],
        colWidths=[260, 255],
    )
    elements.append(header)
    elements.append(Spacer(1, 16))

    # Supplier and customer blocks
    supplier_lines = [
        f"<b>{pdf_text(company['name'])}</b>",
        pdf_text(company['address']),
        pdf_text(company['city']),
    ]
    if company.get('tax_id'):
        supplier_lines.append(f"Tax ID: {pdf_text(company['tax_id'])}")
    if company.get('email'):
        supplier_lines.append(f"Email: {pdf_text(company['email'])}")

    billing = order.get_billing_address()
    customer_lines = []
    if order.is_company and order.company_name:
        customer_lines.append(f"<b>{pdf_text(order.company_name)}</b>")
        if order.company_tax_id:
            customer_lines.append(f"Tax ID: {pdf_text(order.company_tax_id)}")
    customer_lines += [
        pdf_text(f"{billing['first_name']} {billing['last_name']}"),
        pdf_text(billing['street']),
        pdf_text(f"{billing['postal_code']} {billing['city']}"),
        f"Email: {pdf_text(order.customer_email)}",
    ]
    if order.customer_phone:
        customer_lines.append(f"Phone: {pdf_text(order.customer_phone)}")

    parties = Table(
        [
            [Paragraph('<b>Supplier</b>', small), Paragraph('<b>Customer</b>', small)],
            [Paragraph('<br/>'.join(supplier_lines), small), Paragraph('<br/>'.join(customer_lines), small)],
        ],
        colWidths=[257, 258],
    )
    parties.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LINEBELOW', (0, 0), (-1, 0), 0.5, colors.grey),
    ]))
    elements.append(parties)
    elements.append(Spacer(1, 14))

    dates = Table(
        [
            ['Issue date', 'Date of supply', 'Due date', 'Payment method'],
            [
                invoice.issue_date.strftime('%d.%m.%Y'),
                order.created_at.strftime('%d.%m.%Y') if order.created_at else '',
                invoice.due_date.strftime('%d.%m.%Y'),
                pdf_text(get_payment_method_label(order.payment_method)),
            ],
        ],
        colWidths=[128, 128, 128, 131],
    )
    dates.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.HexColor('#555555')),
    ]))
    elements.append(dates)
    elements.append(Spacer(1, 14))

    # Items
    table_data = [['Item', 'Qty', 'Unit price', 'Net', 'Total']]
    for item in order.items:
        price = Decimal(str(item.get('price', 0)))
        quantity = int(item.get('quantity', 0))
        line_total = price * quantity
        name = item.get('name') or 'Item'
        if item.get('variant_name'):
            name = f"{name} ({item['variant_name']})"
        table_data.append([
            Paragraph(pdf_text(name), small),
            str(quantity),
            money(price),
            money(net_of_vat(line_total, rate)),
            money(line_total),
        ])

    delivery_price = get_delivery_price(order.delivery_method)
    table_data.append([
        Paragraph(pdf_text(f"Delivery - {get_delivery_method_label(order.delivery_method)}"), small),
        '1',
        money(delivery_price),
        money(net_of_vat(delivery_price, rate)),
        money(delivery_price),
    ])

    table = Table(table_data, colWidths=[215, 40, 85, 85, 90], repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#333333')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(table)
    elements.append(Spacer(1, 12))

    # Totals
    rate_label = f"{(Decimal(rate) * 100).normalize():f}%"
    totals = Table(
        [
            ['', 'Tax base:', money(invoice.total_amount - invoice.vat_amount)],
            ['', f"VAT {rate_label}:", money(invoice.vat_amount)],
            ['', 'Total due:', money(invoice.total_amount)],
        ],
        colWidths=[255, 130, 130],
    )
    totals.setStyle(TableStyle([
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (1, -1), (-1, -1), 'Helvetica-Bold'),
        ('LINEABOVE', (1, -1), (-1, -1), 0.75, colors.black),
    ]))
    elements.append(totals)
    elements.append(Spacer(1, 20))

    # Bank details with the transfer QR code
    bank_lines = ['<b>Payment details</b>']
    if settings.SHOP_BANK_NAME:
        bank_lines.append(f"Bank: {pdf_text(settings.SHOP_BANK_NAME)}")
    if settings.SHOP_BANK_ACCOUNT:
        bank_lines.append(f"Account number: {pdf_text(settings.SHOP_BANK_ACCOUNT)}")
    if settings.SHOP_IBAN:
        bank_lines.append(f"IBAN: {pdf_text(settings.SHOP_IBAN)}")
    if settings.SHOP_SWIFT:
        bank_lines.append(f"SWIFT: {pdf_text(settings.SHOP_SWIFT)}")
    bank_lines.append(f"Payment reference: {pdf_text(order.order_number)}")
    bank_lines.append(f"Amount: {money(invoice.total_amount)}")

    qr_image = Image(BytesIO(render_qr_png(order_payment_payload(order))), width=32 * mm, height=32 * mm)
    bank = Table([[Paragraph('<br/>'.join(bank_lines), small), qr_image]], colWidths=[395, 120])
    bank.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
        ('BACKGROUND', (0, 0), (-1, -1), colors.HexColor('#f5f5f5')),
    ]))
    elements.append(bank)
    elements.append(Spacer(1, 30))

    elements.append(Paragraph(f"Thank you for your order! {pdf_text(settings.SHOP_NAME)}", footer_style))

    doc.build(elements)
    return buffer.getvalue()


def store_invoice_pdf(invoice, content):
    """Save the PDF under ``invoices/`` and return its public URL"""
    name = f"{INVOICE_DIR}/{invoice.invoice_number}.pdf"
    if default_storage.exists(name):
        default_storage.delete(name)
    saved = default_storage.save(name, ContentFile(content))
    return default_storage.url(saved)
