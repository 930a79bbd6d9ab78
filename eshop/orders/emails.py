"""
Transactional e-mails: order confirmation, shipping notification,
payment confirmation and product inquiries.

Every ``send_*`` function is best-effort: failures are logged and reported
through the return value, never raised to the caller.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils import timezone

from .models import Order
from .options import get_delivery_method_label, get_payment_method_label

logger = logging.getLogger(__name__)

DEFAULT_CARRIER = 'Zásilkovna'
CARRIER_PREFIXES = [
    ('CZ', 'Česká pošta'),
    ('PPL', 'PPL'),
]
ESTIMATED_DELIVERY_DAYS = 3


def detect_carrier(tracking_number):
    """Guess the carrier from the tracking number format"""
    for prefix, carrier in CARRIER_PREFIXES:
        if tracking_number and tracking_number.upper().startswith(prefix):
            return carrier
    return DEFAULT_CARRIER


def estimated_delivery_date(today=None):
    return (today or timezone.localdate()) + timedelta(days=ESTIMATED_DELIVERY_DAYS)


def tracking_url(order):
    return f"{settings.SHOP_BASE_URL}/order-status/{order.order_number}"


def order_context(order):
    items = [
        {
            'name': item.get('name') or 'Product',
            'variant_name': item.get('variant_name'),
            'quantity': item.get('quantity', 0),
            'price': Decimal(str(item.get('price', 0))),
            'line_total': Decimal(str(item.get('price', 0))) * int(item.get('quantity', 0)),
        }
        for item in order.items
    ]
    return {
        'shop_name': settings.SHOP_NAME,
        'shop_url': settings.SHOP_BASE_URL,
        'currency': settings.SHOP_CURRENCY,
        'order': order,
        'items': items,
        'customer_name': order.customer_name or f"{order.billing_first_name} {order.billing_last_name}".strip(),
        'delivery_address': order.get_delivery_address(),
        'billing_address': order.get_billing_address() if order.use_different_delivery else None,
        'delivery_method': get_delivery_method_label(order.delivery_method),
        'payment_method': get_payment_method_label(order.payment_method),
        'tracking_url': tracking_url(order),
    }


def shipping_context(order):
    context = order_context(order)
    context.update({
        'tracking_number': order.tracking_number,
        'carrier': detect_carrier(order.tracking_number),
        'estimated_delivery': estimated_delivery_date(),
    })
    return context


def render_email(template, context):
    """Render ``emails/<template>.html`` and its plain-text twin"""
    html = render_to_string(f"emails/{template}.html", context)
    text = render_to_string(f"emails/{template}.txt", context)
    return html, text


def _send(subject, template, context, to, reply_to=None):
    html, text = render_email(template, context)
    message = EmailMultiAlternatives(
        subject=subject,
        body=text,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=to,
        reply_to=reply_to or [settings.EMAIL_REPLY_TO],
    )
    message.attach_alternative(html, 'text/html')
    message.send()


def send_order_confirmation(order):
    try:
        _send(
            f"Order confirmation #{order.order_number}",
            'order_confirmation',
            order_context(order),
            [order.customer_email],
        )
    except Exception as e:
        logger.error(f"Failed to send order confirmation for {order.order_number}: {str(e)}", exc_info=True)
        return False
    logger.info(f"Order confirmation sent for {order.order_number} to {order.customer_email}")
    return True


def send_shipping_notification(order):
    try:
        _send(
            f"Your order #{order.order_number} has been shipped",
            'shipping_notification',
            shipping_context(order),
            [order.customer_email],
        )
    except Exception as e:
        logger.error(f"Failed to send shipping notification for {order.order_number}: {str(e)}", exc_info=True)
        return False
    logger.info(f"Shipping notification sent for {order.order_number} ({order.tracking_number})")
    return True


def send_payment_confirmation(order):
    try:
        _send(
            f"Payment received for order #{order.order_number}",
            'payment_confirmation',
            order_context(order),
            [order.customer_email],
        )
    except Exception as e:
        logger.error(f"Failed to send payment confirmation for {order.order_number}: {str(e)}", exc_info=True)
        return False
    logger.info(f"Payment confirmation sent for {order.order_number}")
    return True


def send_product_inquiry(inquiry):
    """
    Forward a product question to the shop mailbox and send the customer
    an acknowledgement. Returns True when the shop copy was delivered.
    """
    context = {'shop_name': settings.SHOP_NAME, 'shop_url': settings.SHOP_BASE_URL, **inquiry}
    try:
        _send(
            f"Product inquiry: {inquiry['subject']}",
            'product_inquiry',
            context,
            [settings.SHOP_CONTACT_EMAIL],
            reply_to=[inquiry['email']],
        )
    except Exception as e:
        logger.error(f"Failed to forward product inquiry from {inquiry['email']}: {str(e)}", exc_info=True)
        return False

    try:
        _send(
            f"We received your inquiry - {inquiry.get('product_name') or inquiry['subject']}",
            'product_inquiry_receipt',
            context,
            [inquiry['email']],
        )
    except Exception as e:
        logger.warning(f"Inquiry receipt to {inquiry['email']} failed: {str(e)}")
    return True


def sample_order():
    """Unsaved order used to preview templates in the back-office"""
    return Order(
        order_number=timezone.localdate().strftime('%Y%m%d') + '-0000',
        customer_email='customer@example.com',
        customer_name='Jan Novák',
        customer_phone='+420 123 456 789',
        billing_first_name='Jan',
        billing_last_name='Novák',
        billing_address='Václavské náměstí 1',
        billing_city='Praha',
        billing_postal_code='110 00',
        items=[
            {'product_id': 1, 'name': 'Sample product', 'variant_name': 'Black / M', 'quantity': 2, 'price': '1299.00'},
            {'product_id': 2, 'name': 'Another product', 'variant_name': None, 'quantity': 1, 'price': '499.00'},
        ],
        total=Decimal('3097.00'),
        delivery_method='zasilkovna',
        payment_method='bank',
        tracking_number='CZ123456789',
    )


PREVIEW_TEMPLATES = {
    'confirmation': ('order_confirmation', order_context),
    'shipping': ('shipping_notification', shipping_context),
    'payment': ('payment_confirmation', order_context),
}


def render_preview(email_type, order=None):
    """Return rendered HTML for ``email_type`` or raise KeyError"""
    template, build_context = PREVIEW_TEMPLATES[email_type]
    html, _ = render_email(template, build_context(order or sample_order()))
    return html
