"""
Order lifecycle: checkout, admin updates, history and notifications
"""
import logging
import random
from collections import defaultdict
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from eshop.catalog.models import Product, ProductVariant
from eshop.core.cache_utils import invalidate_storefront_cache
from . import emails
from .models import Order, OrderHistory
from .options import get_delivery_price

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 20

STATUS_LABELS = dict(Order.STATUS_CHOICES)
PAYMENT_STATUS_LABELS = dict(Order.PAYMENT_STATUS_CHOICES)

CUSTOMER_FIELDS = [
    'customer_name', 'customer_email', 'customer_phone',
    'is_company', 'company_name', 'company_tax_id',
    'billing_first_name', 'billing_last_name', 'billing_address', 'billing_city', 'billing_postal_code',
    'use_different_delivery',
    'delivery_first_name', 'delivery_last_name', 'delivery_address', 'delivery_city', 'delivery_postal_code',
    'note', 'admin_notes', 'comments',
]


class OrderError(ValueError):
    """Checkout or update rejected; the message is safe to show the client"""


def generate_order_number():
    """``YYYYMMDD-NNNN`` with a random suffix not used yet"""
    prefix = timezone.localdate().strftime('%Y%m%d')
    for _ in range(ORDER_NUMBER_ATTEMPTS):
        candidate = f"{prefix}-{random.randint(0, 9999):04d}"
        if not Order.objects.filter(order_number=candidate).exists():
            return candidate
    raise OrderError('Could not allocate an order number. Please try again.')


def record_history(order, action, description, old_value=None, new_value=None,
                   performed_by='Admin', metadata=None):
    return OrderHistory.objects.create(
        order=order,
        action=action,
        description=description,
        old_value=old_value,
        new_value=new_value,
        performed_by=performed_by,
        metadata=metadata or {},
    )


def _lock_stock(lines):
    """
    Lock every referenced product and variant and check availability.

    ``lines`` is a list of ``{'product_id', 'variant_id', 'quantity'}``.
    Returns ``(products, variants)`` keyed by id.
    """
    product_ids = {line['product_id'] for line in lines}
    variant_ids = {line['variant_id'] for line in lines if line.get('variant_id')}

    products = {p.pk: p for p in Product.objects.select_for_update().filter(pk__in=product_ids)}
    variants = {v.pk: v for v in ProductVariant.objects.select_for_update().filter(pk__in=variant_ids)}

    required_products = defaultdict(int)
    required_variants = defaultdict(int)
    for line in lines:
        product = products.get(line['product_id'])
        if product is None:
            raise OrderError(f"Product {line['product_id']} not found")
        variant_id = line.get('variant_id')
        if variant_id:
            variant = variants.get(variant_id)
            if variant is None or variant.product_id != product.pk or not variant.is_active:
                raise OrderError(f"Variant {variant_id} is not available for {product.name}")
            required_variants[variant_id] += line['quantity']
        else:
            required_products[product.pk] += line['quantity']

    for product_id, quantity in required_products.items():
        product = products[product_id]
        if product.stock < quantity:
            raise OrderError(f"Insufficient stock for {product.name}. Available: {product.stock}")
    for variant_id, quantity in required_variants.items():
        variant = variants[variant_id]
        if variant.stock < quantity:
            raise OrderError(
                f"Insufficient stock for {products[variant.product_id].name} ({variant.display_name}). "
                f"Available: {variant.stock}"
            )
    return products, variants


def create_order(data, lines):
    """
    Place an order from validated checkout ``data`` and cart ``lines``.

    Prices come from the catalog. Stock is decremented once per line under
    row locks; the confirmation e-mail is sent after commit.
    """
    if not lines:
        raise OrderError('Cart is empty')

    with transaction.atomic():
        products, variants = _lock_stock(lines)

        items = []
        total = Decimal('0.00')
        for line in lines:
            product = products[line['product_id']]
            variant = variants.get(line.get('variant_id')) if line.get('variant_id') else None
            price = variant.get_price() if variant else product.price
            quantity = line['quantity']
            total += price * quantity
            items.append({
                'product_id': product.pk,
                'variant_id': variant.pk if variant else None,
                'name': product.name,
                'variant_name': variant.display_name if variant else None,
                'code': product.code,
                'quantity': quantity,
                'price': str(price),
                'image': (variant.image_url if variant and variant.image_url else product.get_primary_image()),
            })

            if variant:
                ProductVariant.objects.filter(pk=variant.pk).update(stock=F('stock') - quantity)
                Product.objects.filter(pk=product.pk).update(sold_count=F('sold_count') + quantity)
            else:
                Product.objects.filter(pk=product.pk).update(
                    stock=F('stock') - quantity,
                    sold_count=F('sold_count') + quantity,
                )

        total += get_delivery_price(data['delivery_method'])

        use_different = data.get('use_different_delivery', False)
        delivery = {
            field: (data.get(f'delivery_{field}') if use_different else data.get(f'billing_{field}')) or ''
            for field in ('first_name', 'last_name', 'address', 'city', 'postal_code')
        }

        order = Order.objects.create(
            order_number=generate_order_number(),
            customer_email=data['customer_email'],
            customer_name=f"{data['billing_first_name']} {data['billing_last_name']}".strip(),
            customer_phone=data.get('customer_phone', ''),
            is_company=data.get('is_company', False),
            company_name=data.get('company_name', ''),
            company_tax_id=data.get('company_tax_id', ''),
            billing_first_name=data['billing_first_name'],
            billing_last_name=data['billing_last_name'],
            billing_address=data['billing_address'],
            billing_city=data['billing_city'],
            billing_postal_code=data['billing_postal_code'],
            use_different_delivery=use_different,
            delivery_first_name=delivery['first_name'],
            delivery_last_name=delivery['last_name'],
            delivery_address=delivery['address'],
            delivery_city=delivery['city'],
            delivery_postal_code=delivery['postal_code'],
            items=items,
            total=total,
            delivery_method=data['delivery_method'],
            payment_method=data['payment_method'],
            note=data.get('note', ''),
        )

        record_history(
            order, 'order_created', 'Order placed',
            new_value='pending',
            performed_by='Customer',
            metadata={'customer_email': order.customer_email, 'total': str(total), 'item_count': len(items)},
        )
        # Stock and sold counts changed without model signals
        transaction.on_commit(invalidate_storefront_cache)

    logger.info(f"Order {order.order_number} created: {len(items)} items, total {total}")
    emails.send_order_confirmation(order)
    return order


def send_shipping_email(order, manual=False, performed_by='Admin'):
    """Send the shipping notification and log it; requires a tracking number"""
    if not order.tracking_number:
        raise OrderError('Order has no tracking number')
    if not emails.send_shipping_notification(order):
        return False
    record_history(
        order, 'email_sent',
        'Shipping notification e-mailed to the customer' + (' (manual)' if manual else ''),
        new_value=order.customer_email,
        performed_by=performed_by,
        metadata={'email_type': 'shipping_notification', 'tracking_number': order.tracking_number, 'manual': manual},
    )
    return True


def resend_confirmation(order, performed_by='Admin'):
    if not emails.send_order_confirmation(order):
        return False
    record_history(
        order, 'email_sent', 'Order confirmation e-mailed again',
        new_value=order.customer_email,
        performed_by=performed_by,
        metadata={'email_type': 'order_confirmation', 'manual': True},
    )
    return True


def update_order(order, data, performed_by='Admin'):
    """
    Apply an admin update and append history rows for every change.

    ``data`` holds validated fields; absent keys are left untouched.
    Notifications are sent after the write commits and never undo it.
    """
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        old_status = order.status
        old_payment_status = order.payment_status
        old_tracking = order.tracking_number or ''
        entries = []

        new_status = data.get('status')
        if new_status and new_status != old_status:
            if not order.can_transition_to(new_status):
                raise OrderError(f"Cannot change status from {old_status} to {new_status}")
            order.status = new_status
            entries.append(dict(
                action='status_change',
                description=f"Order status changed to: {STATUS_LABELS.get(new_status, new_status)}",
                old_value=old_status, new_value=new_status,
            ))

        new_payment_status = data.get('payment_status')
        if new_payment_status and new_payment_status != old_payment_status:
            order.payment_status = new_payment_status
            entries.append(dict(
                action='payment_status_change',
                description=f"Payment status changed to: {PAYMENT_STATUS_LABELS.get(new_payment_status, new_payment_status)}",
                old_value=old_payment_status, new_value=new_payment_status,
            ))

        tracking_added = False
        if 'tracking_number' in data:
            new_tracking = (data['tracking_number'] or '').strip()
            if new_tracking != old_tracking:
                order.tracking_number = new_tracking or None
                if not old_tracking:
                    tracking_added = True
                    entries.append(dict(
                        action='tracking_added',
                        description=f"Tracking number added: {new_tracking}",
                        new_value=new_tracking,
                    ))
                elif new_tracking:
                    entries.append(dict(
                        action='tracking_updated',
                        description=f"Tracking number changed to: {new_tracking}",
                        old_value=old_tracking, new_value=new_tracking,
                    ))
                else:
                    entries.append(dict(
                        action='tracking_removed',
                        description='Tracking number removed',
                        old_value=old_tracking,
                    ))

        changed_fields = []
        for field in CUSTOMER_FIELDS:
            if field in data and data[field] != getattr(order, field):
                setattr(order, field, data[field])
                changed_fields.append(field)
        if changed_fields:
            entries.append(dict(
                action='order_updated',
                description=f"Order details updated: {', '.join(changed_fields)}",
                metadata={'fields': changed_fields},
            ))

        order.save()
        for entry in entries:
            entry.setdefault('metadata', {})
            entry['metadata']['changed_by'] = performed_by
            record_history(order, performed_by=performed_by, **entry)

    became_shipped = order.status == 'shipped' and old_status != 'shipped'
    should_notify_shipping = (
        order.status == 'shipped'
        and bool(order.tracking_number)
        and (became_shipped or tracking_added)
    )
    if should_notify_shipping:
        send_shipping_email(order, performed_by=performed_by)

    if order.payment_status == 'paid' and old_payment_status != 'paid':
        emails.send_payment_confirmation(order)

    logger.info(f"Order {order.order_number} updated: {[e['action'] for e in entries]}")
    return order
