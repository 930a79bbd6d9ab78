"""
Comprehensive test suite for Orders module
Tests: session cart, checkout with stock reservation, public order status,
admin order updates with history and notification e-mails
"""
from decimal import Decimal
from unittest.mock import patch

from django.conf import settings
from django.core import mail
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from eshop.catalog.models import Product, ProductVariant
from eshop.core.test_utils import AdminAPIClient, TestDataFactory
from eshop.orders.emails import detect_carrier
from eshop.orders.models import Order, OrderHistory
from eshop.orders.services import record_history


class CartAPITests(TestCase):
    """Test the session cart endpoints"""

    def setUp(self):
        self.client = APIClient()
        self.product = TestDataFactory.create_product(name='Mug', price=Decimal('250.00'))
        self.shirt = TestDataFactory.create_product(name='Shirt', price=Decimal('800.00'))
        self.variant = TestDataFactory.create_variant(product=self.shirt, price=Decimal('700.00'))

    def test_empty_cart(self):
        """Test a new session has an empty cart"""
        response = self.client.get('/api/cart/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'], [])
        self.assertEqual(response.data['total_items'], 0)

    def test_add_items_and_totals(self):
        """Test adding products and variants accumulates quantities"""
        self.client.post('/api/cart/', {'product_id': self.product.pk, 'quantity': 2}, format='json')
        self.client.post('/api/cart/', {'product_id': self.product.pk, 'quantity': 1}, format='json')
        response = self.client.post(
            '/api/cart/', {'product_id': self.shirt.pk, 'variant_id': self.variant.pk}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_items'], 4)
        self.assertEqual(response.data['total_price'], Decimal('1450.00'))
        lines = {(item['product_id'], item['variant_id']): item for item in response.data['items']}
        self.assertEqual(lines[(self.product.pk, None)]['quantity'], 3)
        self.assertEqual(lines[(self.shirt.pk, self.variant.pk)]['variant_name'], 'Black / M')

    def test_add_unknown_product(self):
        """Test adding a missing product"""
        response = self.client.post('/api/cart/', {'product_id': 99999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_add_variant_of_other_product(self):
        """Test a variant must belong to the product"""
        response = self.client.post(
            '/api/cart/', {'product_id': self.product.pk, 'variant_id': self.variant.pk}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_quantity_is_capped(self):
        """Test quantities never exceed the per-line maximum"""
        self.client.post('/api/cart/', {'product_id': self.product.pk, 'quantity': 90}, format='json')
        response = self.client.post('/api/cart/', {'product_id': self.product.pk, 'quantity': 20}, format='json')
        self.assertEqual(response.data['items'][0]['quantity'], 99)

    def test_patch_sets_quantity_and_zero_removes(self):
        """Test PATCH sets quantity and zero removes the line"""
        self.client.post('/api/cart/', {'product_id': self.product.pk}, format='json')
        response = self.client.patch('/api/cart/', {'product_id': self.product.pk, 'quantity': 5}, format='json')
        self.assertEqual(response.data['total_items'], 5)
        response = self.client.patch('/api/cart/', {'product_id': self.product.pk, 'quantity': 0}, format='json')
        self.assertEqual(response.data['items'], [])

    def test_delete_line_and_clear(self):
        """Test DELETE removes one line or the whole cart"""
        self.client.post('/api/cart/', {'product_id': self.product.pk}, format='json')
        self.client.post('/api/cart/', {'product_id': self.shirt.pk, 'variant_id': self.variant.pk}, format='json')
        response = self.client.delete(f'/api/cart/?product_id={self.product.pk}')
        self.assertEqual(len(response.data['items']), 1)
        response = self.client.delete('/api/cart/')
        self.assertEqual(response.data['items'], [])

    def test_deleted_product_drops_out(self):
        """Test stale lines disappear from the summary"""
        self.client.post('/api/cart/', {'product_id': self.product.pk}, format='json')
        self.product.delete()
        response = self.client.get('/api/cart/')
        self.assertEqual(response.data['items'], [])


class CheckoutAPITests(TestCase):
    """Test order placement"""

    def setUp(self):
        self.client = APIClient()
        self.product = TestDataFactory.create_product(name='Lamp', price=Decimal('1000.00'), stock=10)
        self.shirt = TestDataFactory.create_product(name='Shirt', price=Decimal('800.00'), stock=7)
        self.variant = TestDataFactory.create_variant(product=self.shirt, price=Decimal('900.00'), stock=5)

    def test_checkout_decrements_stock_once(self):
        """Test checkout reserves stock for products and variants"""
        payload = TestDataFactory.checkout_payload([
            {'product_id': self.product.pk, 'quantity': 2},
            {'product_id': self.shirt.pk, 'variant_id': self.variant.pk, 'quantity': 1},
        ])
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['total'], Decimal('2900.00'))

        self.product.refresh_from_db()
        self.shirt.refresh_from_db()
        self.variant.refresh_from_db()
        self.assertEqual(self.product.stock, 8)
        self.assertEqual(self.product.sold_count, 2)
        self.assertEqual(self.variant.stock, 4)
        self.assertEqual(self.shirt.stock, 7)
        self.assertEqual(self.shirt.sold_count, 1)

        order = Order.objects.get(order_number=response.data['order_number'])
        self.assertEqual(order.customer_name, 'Eva Kovacs')
        self.assertEqual(order.status, 'pending')
        self.assertEqual(order.payment_status, 'unpaid')
        self.assertEqual(order.items[1]['variant_name'], 'Black / M')
        self.assertEqual(order.items[1]['price'], '900.00')
        self.assertEqual(order.delivery_city, 'Budapest')

    def test_checkout_records_history_and_sends_confirmation(self):
        """Test checkout logs order_created and e-mails the customer"""
        payload = TestDataFactory.checkout_payload([{'product_id': self.product.pk, 'quantity': 1}])
        response = self.client.post('/api/orders/', payload, format='json')
        order = Order.objects.get(order_number=response.data['order_number'])

        history = list(order.history.values_list('action', 'performed_by'))
        self.assertEqual(history, [('order_created', 'Customer')])
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['buyer@test.com'])
        self.assertIn(order.order_number, mail.outbox[0].subject)

    def test_insufficient_stock(self):
        """Test ordering more than available is rejected without side effects"""
        payload = TestDataFactory.checkout_payload([{'product_id': self.product.pk, 'quantity': 11}])
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Insufficient stock', response.data['error'])
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)
        self.assertFalse(Order.objects.exists())

    def test_duplicate_lines_are_summed(self):
        """Test the stock check covers repeated lines for the same product"""
        payload = TestDataFactory.checkout_payload([
            {'product_id': self.product.pk, 'quantity': 6},
            {'product_id': self.product.pk, 'quantity': 6},
        ])
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_variant_stock_checked(self):
        """Test variant stock is checked rather than product stock"""
        payload = TestDataFactory.checkout_payload([
            {'product_id': self.shirt.pk, 'variant_id': self.variant.pk, 'quantity': 6},
        ])
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_product(self):
        """Test checkout with a missing product"""
        payload = TestDataFactory.checkout_payload([{'product_id': 99999, 'quantity': 1}])
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_checkout_from_session_cart(self):
        """Test checkout without items uses and clears the session cart"""
        self.client.post('/api/cart/', {'product_id': self.product.pk, 'quantity': 3}, format='json')
        payload = TestDataFactory.checkout_payload([])
        payload.pop('items')
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 7)

        response = self.client.get('/api/cart/')
        self.assertEqual(response.data['items'], [])

    def test_empty_session_cart(self):
        """Test checkout with nothing to order"""
        payload = TestDataFactory.checkout_payload([])
        payload.pop('items')
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cart is empty')

    def test_different_delivery_requires_address(self):
        """Test separate delivery address fields are required when requested"""
        payload = TestDataFactory.checkout_payload(
            [{'product_id': self.product.pk, 'quantity': 1}],
            use_different_delivery=True,
            delivery_first_name='Anna',
        )
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('delivery_city', response.data)

    def test_company_requires_name(self):
        """Test company orders need a company name"""
        payload = TestDataFactory.checkout_payload(
            [{'product_id': self.product.pk, 'quantity': 1}], is_company=True
        )
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('company_name', response.data)

    def test_unknown_delivery_method(self):
        """Test delivery method must be one of the configured options"""
        payload = TestDataFactory.checkout_payload(
            [{'product_id': self.product.pk, 'quantity': 1}], delivery_method='drone'
        )
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class OrderStatusAPITests(TestCase):
    """Test the public order tracking endpoint"""

    def test_public_history_subset(self):
        """Test internal history entries are hidden from customers"""
        order = TestDataFactory.create_order(order_number='20260101-0001', tracking_number='CZ1')
        record_history(order, 'order_created', 'Order placed', performed_by='Customer')
        record_history(order, 'order_updated', 'Order details updated: admin_notes')
        record_history(order, 'status_change', 'Order status changed to: Processing')

        response = APIClient().get('/api/order-status/20260101-0001/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        actions = {entry['action'] for entry in response.data['history']}
        self.assertEqual(actions, {'order_created', 'status_change'})
        self.assertNotIn('performed_by', response.data['history'][0])
        self.assertEqual(response.data['delivery_address'], {'city': 'Praha', 'postal_code': '11000'})
        self.assertEqual(response.data['tracking_number'], 'CZ1')
        self.assertNotIn('customer_email', response.data)

    def test_unknown_order(self):
        """Test tracking a missing order"""
        response = APIClient().get('/api/order-status/19990101-0000/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class AdminOrderAPITests(TestCase):
    """Test admin order management"""

    def setUp(self):
        self.client = AdminAPIClient().authenticate_admin()
        self.order = TestDataFactory.create_order(order_number='20260101-0100', status='processing')
        self.url = f'/api/admin/orders/{self.order.order_number}/'

    def _actions(self, action=None):
        history = OrderHistory.objects.filter(order=self.order)
        if action:
            history = history.filter(action=action)
        return list(history.order_by('id').values_list('action', flat=True))

    def test_requires_admin(self):
        """Test order admin routes reject anonymous requests"""
        response = APIClient().get('/api/admin/orders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_filters(self):
        """Test status and search filters"""
        TestDataFactory.create_order(order_number='20260101-0101', status='pending', customer_email='other@test.com')
        response = self.client.get('/api/admin/orders/?status=processing')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['order_number'], '20260101-0100')

        response = self.client.get('/api/admin/orders/?search=other@')
        self.assertEqual([o['order_number'] for o in response.data['results']], ['20260101-0101'])

    def test_detail_includes_history_and_labels(self):
        """Test the detail view carries history and method labels"""
        record_history(self.order, 'order_created', 'Order placed')
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['history']), 1)
        self.assertIsNone(response.data['invoice'])
        self.assertTrue(response.data['delivery_method_label'])

    def test_disallowed_transition(self):
        """Test an order cannot jump back to pending"""
        response = self.client.patch(self.url, {'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'processing')
        self.assertEqual(self._actions(), [])

    def test_cancelled_is_final(self):
        """Test cancelled orders cannot be reopened"""
        self.client.patch(self.url, {'status': 'cancelled'}, format='json')
        response = self.client.patch(self.url, {'status': 'processing'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_ship_with_tracking_sends_one_email(self):
        """Test shipping with a tracking number sends exactly one notification"""
        response = self.client.patch(self.url, {'status': 'shipped', 'tracking_number': 'CZ123456789'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self._actions(), ['status_change', 'tracking_added', 'email_sent'])
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn('shipped', mail.outbox[0].subject)
        self.assertIn('CZ123456789', mail.outbox[0].body)

        email_entry = OrderHistory.objects.get(order=self.order, action='email_sent')
        self.assertEqual(email_entry.metadata['email_type'], 'shipping_notification')

    def test_ship_without_tracking_sends_nothing(self):
        """Test no notification until a tracking number exists"""
        self.client.patch(self.url, {'status': 'shipped'}, format='json')
        self.assertEqual(len(mail.outbox), 0)

        # Adding the tracking number later triggers the notification
        self.client.patch(self.url, {'tracking_number': 'PPL555'}, format='json')
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(self._actions('email_sent'), ['email_sent'])

    def test_tracking_change_and_removal(self):
        """Test tracking updates and removals are logged without e-mails"""
        self.client.patch(self.url, {'tracking_number': 'CZ1'}, format='json')
        self.client.patch(self.url, {'tracking_number': 'CZ2'}, format='json')
        self.client.patch(self.url, {'tracking_number': ''}, format='json')
        self.assertEqual(self._actions(), ['tracking_added', 'tracking_updated', 'tracking_removed'])
        self.order.refresh_from_db()
        self.assertIsNone(self.order.tracking_number)
        self.assertEqual(len(mail.outbox), 0)

    def test_same_values_record_nothing(self):
        """Test unchanged fields add no history"""
        self.client.patch(self.url, {'status': 'processing', 'customer_name': self.order.customer_name}, format='json')
        self.assertEqual(self._actions(), [])

    def test_payment_paid_sends_confirmation(self):
        """Test marking paid logs the change and e-mails the customer"""
        response = self.client.patch(self.url, {'payment_status': 'paid'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self._actions(), ['payment_status_change'])
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn('Payment received', mail.outbox[0].subject)

    def test_email_failure_keeps_status(self):
        """Test a failing mail backend does not undo the shipped status"""
        with patch('django.core.mail.EmailMultiAlternatives.send', side_effect=OSError('SMTP down')):
            response = self.client.patch(
                self.url, {'status': 'shipped', 'tracking_number': 'CZ123456789'}, format='json'
            )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'shipped')
        self.assertEqual(self.order.tracking_number, 'CZ123456789')
        self.assertEqual(self._actions(), ['status_change', 'tracking_added'])

    def test_payment_email_failure_keeps_payment_status(self):
        """Test a failing mail backend does not undo the paid status"""
        with patch('django.core.mail.EmailMultiAlternatives.send', side_effect=OSError('SMTP down')):
            response = self.client.patch(self.url, {'payment_status': 'paid'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'paid')
        self.assertEqual(self._actions(), ['payment_status_change'])
        self.assertEqual(len(mail.outbox), 0)

    def test_customer_fields_logged(self):
        """Test editing customer data records which fields changed"""
        self.client.patch(self.url, {'customer_phone': '+36 1 234', 'admin_notes': 'VIP'}, format='json')
        entry = OrderHistory.objects.get(order=self.order)
        self.assertEqual(entry.action, 'order_updated')
        self.assertEqual(set(entry.metadata['fields']), {'customer_phone', 'admin_notes'})

    def test_resend_confirmation(self):
        """Test resending the confirmation logs an email_sent entry"""
        response = self.client.post(f'{self.url}resend-confirmation/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(self._actions(), ['email_sent'])

    def test_send_shipping_email_requires_tracking(self):
        """Test manual shipping e-mail needs a tracking number"""
        response = self.client.post(f'{self.url}send-shipping-email/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(len(mail.outbox), 0)

    def test_send_shipping_email_manual(self):
        """Test manual shipping e-mail is sent and logged"""
        Order.objects.filter(pk=self.order.pk).update(tracking_number='CZ9')
        response = self.client.post(f'{self.url}send-shipping-email/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry = OrderHistory.objects.get(order=self.order, action='email_sent')
        self.assertTrue(entry.metadata['manual'])

    def test_delete_order(self):
        """Test deleting an order"""
        response = self.client.delete(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Order.objects.filter(pk=self.order.pk).exists())

    def test_email_preview(self):
        """Test e-mail previews render with sample or real data"""
        response = self.client.get('/api/admin/email-preview/?type=shipping')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(b'CZ123456789', response.content)

        response = self.client.get(f'/api/admin/email-preview/?type=confirmation&order={self.order.order_number}')
        self.assertIn(self.order.order_number.encode(), response.content)

        response = self.client.get('/api/admin/email-preview/?type=newsletter')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ProductInquiryAPITests(TestCase):
    """Test the product inquiry contact form"""

    def test_inquiry_sends_shop_copy_and_receipt(self):
        """Test the inquiry goes to the shop with the customer as reply-to"""
        response = APIClient().post('/api/contact/product-inquiry/', {
            'name': 'Eva',
            'email': 'eva@test.com',
            'subject': 'Sizes',
            'message': 'Do you have XL?',
            'product_name': 'Linen Shirt',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 2)
        self.assertEqual(mail.outbox[0].to, [settings.SHOP_CONTACT_EMAIL])
        self.assertEqual(mail.outbox[0].reply_to, ['eva@test.com'])
        self.assertEqual(mail.outbox[1].to, ['eva@test.com'])

    def test_inquiry_validation(self):
        """Test missing fields are rejected"""
        response = APIClient().post('/api/contact/product-inquiry/', {'name': 'Eva'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(len(mail.outbox), 0)


class CarrierDetectionTests(TestCase):
    """Test carrier guessing from tracking numbers"""

    def test_prefixes(self):
        """Test known prefixes and the default carrier"""
        self.assertEqual(detect_carrier('cz123'), 'Česká pošta')
        self.assertEqual(detect_carrier('PPL42'), 'PPL')
        self.assertEqual(detect_carrier('Z999'), 'Zásilkovna')
        self.assertEqual(detect_carrier(None), 'Zásilkovna')
