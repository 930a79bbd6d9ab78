"""
Test utilities and factories for creating test data
"""
from django.conf import settings
from rest_framework.test import APIClient
from eshop.catalog.models import Category, Product, ProductVariant, ProductImage
from eshop.content.models import Banner, FeatureIcon
from eshop.orders.models import Order
from decimal import Decimal
from django.utils import timezone
import random
import string


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_category(name=None, slug=None, parent=None, order=0, is_active=True):
        """Create a test category"""
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'category-{TestDataFactory.random_string(8)}'
        return Category.objects.create(
            name=name,
            slug=slug,
            parent=parent,
            order=order,
            is_active=is_active,
            description=f'Test category {name}'
        )

    @staticmethod
    def create_product(name=None, slug=None, category=None, price=None, stock=10, **kwargs):
        """Create a test product"""
        if not name:
            name = f'Product {TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'product-{TestDataFactory.random_string(8)}'
        if price is None:
            price = Decimal('1000.00')
        return Product.objects.create(
            name=name,
            slug=slug,
            category=category,
            price=price,
            stock=stock,
            description=kwargs.pop('description', f'Test product {name}'),
            **kwargs
        )

    @staticmethod
    def create_variant(product=None, color_name='Black', size_name='M', stock=5, price=None, **kwargs):
        """Create a test product variant"""
        if not product:
            product = TestDataFactory.create_product()
        return ProductVariant.objects.create(
            product=product,
            color_name=color_name,
            size_name=size_name,
            stock=stock,
            price=price,
            **kwargs
        )

    @staticmethod
    def create_image(product, url=None, order=0):
        return ProductImage.objects.create(
            product=product,
            url=url or f'/media/uploads/{TestDataFactory.random_string(12)}.jpg',
            order=order
        )

    @staticmethod
    def create_order(items=None, total=None, status='pending', payment_status='unpaid', **kwargs):
        """Create a test order directly (no stock changes)"""
        if items is None:
            items = [{'product_id': 1, 'variant_id': None, 'name': 'Test item', 'quantity': 1, 'price': '1000.00'}]
        if total is None:
            total = sum(Decimal(str(item['price'])) * item['quantity'] for item in items)
        order_number = kwargs.pop(
            'order_number',
            f"{timezone.localdate().strftime('%Y%m%d')}-{random.randint(0, 9999):04d}"
        )
        defaults = {
            'customer_email': 'customer@test.com',
            'customer_name': 'Jan Novak',
            'customer_phone': '+420123456789',
            'billing_first_name': 'Jan',
            'billing_last_name': 'Novak',
            'billing_address': 'Main Street 1',
            'billing_city': 'Praha',
            'billing_postal_code': '11000',
            'delivery_method': 'zasilkovna',
            'payment_method': 'bank',
        }
        defaults.update(kwargs)
        return Order.objects.create(
            order_number=order_number,
            items=items,
            total=total,
            status=status,
            payment_status=payment_status,
            **defaults
        )

    @staticmethod
    def checkout_payload(items, **overrides):
        """Valid checkout request body"""
        payload = {
            'customer_email': 'buyer@test.com',
            'customer_phone': '+420987654321',
            'billing_first_name': 'Eva',
            'billing_last_name': 'Kovacs',
            'billing_address': 'Fo utca 10',
            'billing_city': 'Budapest',
            'billing_postal_code': '1011',
            'delivery_method': 'zasilkovna',
            'payment_method': 'bank',
            'items': items,
        }
        payload.update(overrides)
        return payload

    @staticmethod
    def create_banner(title=None, order=0, is_active=True, type='hero'):
        """Create a test banner"""
        return Banner.objects.create(
            title=title or f'Banner {TestDataFactory.random_string(6)}',
            image_url='/media/uploads/banner.jpg',
            order=order,
            is_active=is_active,
            type=type
        )

    @staticmethod
    def create_feature_icon(key=None, order=0, is_active=True):
        """Create a test feature icon"""
        key = key or f'icon_{TestDataFactory.random_string(6)}'
        return FeatureIcon.objects.create(
            key=key,
            title=f'Title {key}',
            title_cs=f'Titulek {key}',
            emoji='🚚',
            order=order,
            is_active=is_active
        )


class AdminAPIClient(APIClient):
    """APIClient with admin token helper"""

    def authenticate_admin(self, token=None):
        """Send the admin shared secret as a Bearer token"""
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {token or settings.ADMIN_TOKEN}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
        super().logout()
