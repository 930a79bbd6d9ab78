"""
Test suite for invoices and bank-transfer QR codes
Tests: invoice generation and numbering, VAT, PDF storage, QR payloads,
public and admin invoice endpoints
"""
import base64
import shutil
import tempfile
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.core.files.storage import default_storage
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from eshop.core.test_utils import AdminAPIClient, TestDataFactory
from eshop.invoices.models import Invoice
from eshop.invoices.qr import (
    build_epc_payload, build_pipe_payload, build_spayd_payload, order_payment_payload,
)
from eshop.invoices.services import calculate_vat, generate_invoice, invoice_number_for
from eshop.orders.models import OrderHistory

TEST_MEDIA_ROOT = tempfile.mkdtemp()


class VatTests(TestCase):
    """Test VAT helpers"""

    def test_calculate_vat_from_gross(self):
        """Test VAT contained in a gross amount"""
        self.assertEqual(calculate_vat(Decimal('1210.00'), Decimal('0.21')), Decimal('210.00'))
        self.assertEqual(calculate_vat(Decimal('1000.00'), Decimal('0.27')), Decimal('212.60'))
        self.assertEqual(calculate_vat(Decimal('0'), Decimal('0.21')), Decimal('0.00'))

    def test_invoice_number_format(self):
        """Test invoice numbers combine year and order number"""
        order = TestDataFactory.create_order(order_number='20260315-0042')
        self.assertEqual(invoice_number_for(order, 2026), 'FAK202620260315-0042')


@override_settings(MEDIA_ROOT=TEST_MEDIA_ROOT, INVOICE_VAT_RATE=Decimal('0.21'), INVOICE_DUE_DAYS=14)
class GenerateInvoiceTests(TestCase):
    """Test invoice generation service"""

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(TEST_MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.order = TestDataFactory.create_order(
            order_number='20260101-0200',
            items=[
                {'product_id': 1, 'variant_id': None, 'name': 'Příslušenství', 'quantity': 2, 'price': '500.00'},
                {'product_id': 2, 'variant_id': 3, 'name': 'Shirt', 'variant_name': 'Red / L', 'quantity': 1, 'price': '210.00'},
            ],
        )

    def test_generate_creates_invoice_and_pdf(self):
        """Test a new invoice carries totals, dates and a stored PDF"""
        invoice, created = generate_invoice(self.order)
        self.assertTrue(created)

        today = timezone.localdate()
        self.assertEqual(invoice.invoice_number, f'FAK{today.year}20260101-0200')
        self.assertEqual(invoice.issue_date, today)
        self.assertEqual(invoice.due_date, today + timedelta(days=14))
        self.assertEqual(invoice.total_amount, Decimal('1210.00'))
        self.assertEqual(invoice.vat_amount, Decimal('210.00'))
        self.assertEqual(invoice.net_amount, Decimal('1000.00'))
        self.assertEqual(invoice.status, 'issued')

        self.assertTrue(invoice.pdf_url.endswith('.pdf'))
        with default_storage.open(f'invoices/{invoice.invoice_number}.pdf', 'rb') as f:
            self.assertTrue(f.read().startswith(b'%PDF'))

    def test_generate_twice_returns_same_invoice(self):
        """Test generation is idempotent per order"""
        first, _ = generate_invoice(self.order)
        second, created = generate_invoice(self.order)
        self.assertFalse(created)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Invoice.objects.count(), 1)
        self.assertEqual(OrderHistory.objects.filter(order=self.order, action='invoice_generated').count(), 1)

    def test_history_records_invoice(self):
        """Test an invoice_generated history entry is written"""
        invoice, _ = generate_invoice(self.order, performed_by='Admin')
        entry = OrderHistory.objects.get(order=self.order, action='invoice_generated')
        self.assertEqual(entry.new_value, invoice.invoice_number)
        self.assertEqual(entry.metadata['invoice_id'], invoice.pk)

    def test_pdf_failure_keeps_invoice(self):
        """Test a rendering error leaves the invoice without a PDF url"""
        with patch('eshop.invoices.services.render_invoice_pdf', side_effect=RuntimeError('boom')):
            invoice, created = generate_invoice(self.order)
        self.assertTrue(created)
        invoice.refresh_from_db()
        self.assertIsNone(invoice.pdf_url)


@override_settings(
    SHOP_CURRENCY='CZK',
    SHOP_IBAN='CZ65 0800 0000 1920 0014 5399',
    SHOP_BANK_ACCOUNT='19-2000145399/0800',
    SHOP_COMPANY={'name': 'Galaxy s.r.o.', 'address': 'Hlavni 1', 'city': 'Praha', 'tax_id': '', 'email': ''},
)
class PaymentQrTests(TestCase):
    """Test bank-transfer QR payloads and endpoint"""

    def setUp(self):
        self.order = TestDataFactory.create_order(order_number='20260101-0300', total=Decimal('1499.5'))

    def test_epc_payload(self):
        """Test the EPC payload layout"""
        lines = build_epc_payload('Shop', '', Decimal('10'), 'Order 1', iban='CZ65 0800', currency='EUR').split('\n')
        self.assertEqual(lines[:4], ['BCD', '002', '1', 'SCT'])
        self.assertEqual(lines[5], 'Shop')
        self.assertEqual(lines[6], 'CZ650800')
        self.assertEqual(lines[7], 'EUR10.00')
        self.assertEqual(lines[10], 'Order 1')

    def test_spayd_payload(self):
        """Test the SPAYD payload fields"""
        payload = build_spayd_payload('Shop', '123', Decimal('5.5'), 'Order 2', iban='CZ11', currency='CZK')
        self.assertEqual(payload, 'SPD*1.0*ACC:CZ11*AM:5.50*CC:CZK*MSG:Order 2*RN:Shop')

    def test_pipe_payload(self):
        """Test the pipe-separated payload fields"""
        payload = build_pipe_payload('Shop', '12 34', Decimal('7'), 'Order 3', address='Street 1', currency='HUF')
        self.assertEqual(payload, 'Shop|1234|HUF7.00|Order 3|Street 1')

    def test_order_payload_references_order(self):
        """Test the order payload carries amount and order number"""
        payload = order_payment_payload(self.order, 'spayd')
        self.assertIn('AM:1499.50', payload)
        self.assertIn('MSG:Order 20260101-0300', payload)
        with self.assertRaises(ValueError):
            order_payment_payload(self.order, 'swift')

    def test_payment_qr_endpoint(self):
        """Test the public QR endpoint returns a PNG data URL"""
        response = APIClient().get('/api/orders/20260101-0300/payment-qr/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['format'], 'epc')
        self.assertEqual(response.data['order_number'], '20260101-0300')
        self.assertIn('CZ6508000000192000145399', response.data['payload'])
        prefix = 'data:image/png;base64,'
        self.assertTrue(response.data['qr_code'].startswith(prefix))
        png = base64.b64decode(response.data['qr_code'][len(prefix):])
        self.assertTrue(png.startswith(b'\x89PNG'))

    def test_payment_qr_unknown_format(self):
        """Test unknown QR formats are rejected"""
        response = APIClient().get('/api/orders/20260101-0300/payment-qr/?format=swift')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_payment_qr_unknown_order(self):
        """Test QR for a missing order"""
        response = APIClient().get('/api/orders/19990101-0000/payment-qr/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


@override_settings(MEDIA_ROOT=TEST_MEDIA_ROOT)
class InvoiceAPITests(TestCase):
    """Test public and admin invoice endpoints"""

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(TEST_MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.client = AdminAPIClient().authenticate_admin()
        self.order = TestDataFactory.create_order(order_number='20260101-0400')

    def test_public_download_without_invoice(self):
        """Test downloading before an invoice exists"""
        response = APIClient().get('/api/invoices/20260101-0400/download/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_generate_then_download(self):
        """Test admin generation followed by the public download"""
        response = self.client.post('/api/admin/orders/20260101-0400/invoice/generate/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['created'])
        self.assertEqual(response.data['invoice']['order_number'], '20260101-0400')

        response = self.client.post('/api/admin/orders/20260101-0400/invoice/generate/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['created'])

        response = APIClient().get('/api/invoices/20260101-0400/download/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_order_invoice_lookup(self):
        """Test the admin invoice lookup by order"""
        response = self.client.get('/api/admin/orders/20260101-0400/invoice/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        generate_invoice(self.order)
        response = self.client.get('/api/admin/orders/20260101-0400/invoice/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_order_detail_shows_invoice(self):
        """Test the order detail carries the invoice summary"""
        invoice, _ = generate_invoice(self.order)
        response = self.client.get('/api/admin/orders/20260101-0400/')
        self.assertEqual(response.data['invoice']['invoice_number'], invoice.invoice_number)

    def test_update_status_and_dates(self):
        """Test updating invoice status and validating dates"""
        invoice, _ = generate_invoice(self.order)
        url = f'/api/admin/invoices/{invoice.pk}/'

        response = self.client.patch(url, {'status': 'paid'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'paid')

        earlier = (invoice.issue_date - timedelta(days=1)).isoformat()
        response = self.client.patch(url, {'due_date': earlier}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(url, {'total_amount': '1.00'}, format='json')
        invoice.refresh_from_db()
        self.assertEqual(invoice.total_amount, self.order.total)

    def test_admin_download_and_delete(self):
        """Test the admin download and invoice deletion"""
        invoice, _ = generate_invoice(self.order)
        response = self.client.get(f'/api/admin/invoices/{invoice.pk}/download/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.delete(f'/api/admin/invoices/{invoice.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Invoice.objects.exists())
        self.assertFalse(default_storage.exists(f'invoices/{invoice.invoice_number}.pdf'))

    def test_admin_routes_require_token(self):
        """Test invoice admin routes reject anonymous requests"""
        response = APIClient().post('/api/admin/orders/20260101-0400/invoice/generate/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
