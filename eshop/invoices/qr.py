"""
Bank-transfer QR codes

Three payload formats are supported: EPC (European "BCD" SEPA credit
transfer, the default), Czech SPAYD and the pipe-separated domestic format.
"""
import base64
from decimal import Decimal
from io import BytesIO

import qrcode
from django.conf import settings
from qrcode.constants import ERROR_CORRECT_M

QR_FORMATS = ('epc', 'spayd', 'pipe')
DEFAULT_QR_FORMAT = 'epc'


def _account(value):
    return ''.join((value or '').split())


def _amount(value):
    return f"{Decimal(value):.2f}"


def build_epc_payload(name, account, amount, title, iban=None, currency=None):
    currency = currency or settings.SHOP_CURRENCY
    iban = _account(iban) or f"HU{_account(account)}"
    return '\n'.join([
        'BCD',              # service tag
        '002',              # version
        '1',                # UTF-8
        'SCT',              # SEPA credit transfer
        '',                 # BIC
        name[:70],
        iban,
        f"{currency}{_amount(amount)}",
        '',                 # purpose
        '',                 # structured reference
        title[:140],
        '',
    ])


def build_spayd_payload(name, account, amount, title, iban=None, currency=None):
    currency = currency or settings.SHOP_CURRENCY
    return '*'.join([
        'SPD*1.0',
        f"ACC:{_account(iban) or _account(account)}",
        f"AM:{_amount(amount)}",
        f"CC:{currency}",
        f"MSG:{title}",
        f"RN:{name}",
    ])


def build_pipe_payload(name, account, amount, title, address='', currency=None):
    currency = currency or settings.SHOP_CURRENCY
    return '|'.join([
        name,
        _account(account),
        f"{currency}{_amount(amount)}",
        title,
        address or '',
    ])


def render_qr_png(payload, box_size=8, border=1):
    """Render ``payload`` as PNG bytes (error correction M)"""
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def to_data_url(png):
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def order_payment_payload(order, fmt=DEFAULT_QR_FORMAT):
    """Payload paying ``order.total`` to the shop account, referencing the order number"""
    company = settings.SHOP_COMPANY
    name = company['name']
    title = f"Order {order.order_number}"
    if fmt == 'epc':
        return build_epc_payload(name, settings.SHOP_BANK_ACCOUNT, order.total, title, iban=settings.SHOP_IBAN)
    if fmt == 'spayd':
        return build_spayd_payload(name, settings.SHOP_BANK_ACCOUNT, order.total, title, iban=settings.SHOP_IBAN)
    if fmt == 'pipe':
        address = f"{company['address']}, {company['city']}"
        return build_pipe_payload(name, settings.SHOP_BANK_ACCOUNT, order.total, title, address=address)
    raise ValueError(f"Unknown QR format: {fmt}")


def order_payment_qr(order, fmt=DEFAULT_QR_FORMAT):
    payload = order_payment_payload(order, fmt)
    return {
        'format': fmt,
        'payload': payload,
        'qr_code': to_data_url(render_qr_png(payload)),
    }
