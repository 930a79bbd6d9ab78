"""Google Shopping (Merchant Center) RSS product feed"""
import xml.etree.ElementTree as ET
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

from .models import Product

G_NAMESPACE = 'http://base.google.com/ns/1.0'
MAX_ADDITIONAL_IMAGES = 9


def absolute_url(path):
    if not path:
        return ''
    if path.startswith('http://') or path.startswith('https://'):
        return path
    base_url = settings.SHOP_BASE_URL
    return f"{base_url}{path}" if path.startswith('/') else f"{base_url}/{path}"


def _g(parent, tag, text=None):
    element = ET.SubElement(parent, f"{{{G_NAMESPACE}}}{tag}")
    if text is not None:
        element.text = str(text)
    return element


def feed_products():
    """Products that carry everything the feed requires"""
    products = (
        Product.objects.select_related('category')
        .prefetch_related('images', 'variants')
        .filter(category__isnull=False)
        .order_by('id')
    )
    return [p for p in products if p.name and p.slug and p.price and p.get_primary_image()]


def build_google_shopping_feed(products=None):
    """Render the feed as UTF-8 XML bytes"""
    if products is None:
        products = feed_products()

    ET.register_namespace('g', G_NAMESPACE)
    rss = ET.Element('rss', {'version': '2.0'})
    channel = ET.SubElement(rss, 'channel')
    ET.SubElement(channel, 'title').text = f"{settings.SHOP_NAME} - Product Feed"
    ET.SubElement(channel, 'link').text = settings.SHOP_BASE_URL
    ET.SubElement(channel, 'description').text = f"{settings.SHOP_NAME} product catalog"

    currency = settings.SHOP_CURRENCY
    for product in products:
        price, _ = product.get_display_prices([v for v in product.variants.all() if v.is_active])
        images = [product.image] if product.image else []
        images += [image.url for image in product.images.all() if image.url != product.image]

        item = ET.SubElement(channel, 'item')
        _g(item, 'id', product.id)
        _g(item, 'title', product.name)
        _g(item, 'description', product.description or product.name)
        _g(item, 'link', absolute_url(f"/{product.category.slug}/{product.slug}"))
        _g(item, 'image_link', absolute_url(images[0]))
        for extra in images[1:1 + MAX_ADDITIONAL_IMAGES]:
            _g(item, 'additional_image_link', absolute_url(extra))
        _g(item, 'availability', 'in_stock' if product.stock > 0 else 'out_of_stock')
        rounded = Decimal(price).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        _g(item, 'price', f"{rounded} {currency}")
        _g(item, 'brand', product.brand or settings.SHOP_NAME)
        _g(item, 'condition', 'new')
        _g(item, 'identifier_exists', 'no')
        _g(item, 'mpn', product.code or product.id)
        _g(item, 'product_type', product.category.name)
        _g(item, 'item_group_id', product.category_id)

    return ET.tostring(rss, encoding='utf-8', xml_declaration=True)
