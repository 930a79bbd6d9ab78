"""
Session cart

The cart lives in ``request.session['cart']`` as ``{"<product>:<variant>": qty}``.
Prices and names are always read from the database, so stale lines
(deleted products or variants) drop out on the next read.
"""
from decimal import Decimal

from eshop.catalog.models import Product, ProductVariant

SESSION_KEY = 'cart'
MAX_QUANTITY = 99


def make_key(product_id, variant_id=None):
    return f"{int(product_id)}:{int(variant_id) if variant_id else ''}"


def split_key(key):
    product_id, _, variant_id = key.partition(':')
    return int(product_id), (int(variant_id) if variant_id else None)


def get_cart(session):
    """Return the cleaned ``{key: qty}`` mapping stored in the session"""
    cart = session.get(SESSION_KEY, {})
    if not isinstance(cart, dict):
        cart = {}
    clean = {}
    for key, qty in cart.items():
        try:
            split_key(str(key))
            qty = int(qty)
        except (TypeError, ValueError):
            continue
        if qty > 0:
            clean[str(key)] = min(qty, MAX_QUANTITY)
    session[SESSION_KEY] = clean
    return clean


def save_cart(session, cart):
    session[SESSION_KEY] = cart
    session.modified = True


def add_item(session, product_id, variant_id=None, quantity=1):
    cart = get_cart(session)
    key = make_key(product_id, variant_id)
    cart[key] = min(MAX_QUANTITY, cart.get(key, 0) + max(int(quantity), 1))
    save_cart(session, cart)
    return cart


def update_item(session, product_id, variant_id=None, quantity=1):
    """Set a line's quantity; zero or less removes the line"""
    cart = get_cart(session)
    key = make_key(product_id, variant_id)
    quantity = int(quantity)
    if quantity <= 0:
        cart.pop(key, None)
    else:
        cart[key] = min(MAX_QUANTITY, quantity)
    save_cart(session, cart)
    return cart


def remove_item(session, product_id, variant_id=None):
    cart = get_cart(session)
    cart.pop(make_key(product_id, variant_id), None)
    save_cart(session, cart)
    return cart


def clear_cart(session):
    save_cart(session, {})


def get_lines(session):
    """
    Resolve the session cart against the catalog.

    Returns a list of ``{product, variant, quantity}``; unknown lines are
    dropped from the session.
    """
    cart = get_cart(session)
    parsed = [(split_key(key), qty) for key, qty in cart.items()]

    product_ids = {product_id for (product_id, _), _ in parsed}
    variant_ids = {variant_id for (_, variant_id), _ in parsed if variant_id}
    products = Product.objects.in_bulk(product_ids)
    variants = ProductVariant.objects.filter(is_active=True).in_bulk(variant_ids)

    lines = []
    valid_cart = {}
    for (product_id, variant_id), qty in parsed:
        product = products.get(product_id)
        if product is None:
            continue
        variant = None
        if variant_id:
            variant = variants.get(variant_id)
            if variant is None or variant.product_id != product_id:
                continue
        valid_cart[make_key(product_id, variant_id)] = qty
        lines.append({'product': product, 'variant': variant, 'quantity': qty})

    if valid_cart != cart:
        save_cart(session, valid_cart)
    return lines


def cart_summary(session):
    """Cart payload with line details, ``total_items`` and ``total_price``"""
    items = []
    total_items = 0
    total_price = Decimal('0.00')

    for line in get_lines(session):
        product, variant, qty = line['product'], line['variant'], line['quantity']
        price = variant.get_price() if variant else product.price
        line_total = price * qty
        items.append({
            'product_id': product.pk,
            'variant_id': variant.pk if variant else None,
            'name': product.name,
            'slug': product.slug,
            'variant_name': variant.display_name if variant else None,
            'image': (variant.image_url if variant and variant.image_url else product.get_primary_image()),
            'price': price,
            'quantity': qty,
            'line_total': line_total,
        })
        total_items += qty
        total_price += line_total

    return {
        'items': items,
        'total_items': total_items,
        'total_price': total_price,
    }
