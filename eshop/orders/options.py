"""Delivery and payment methods offered at checkout"""
from decimal import Decimal

DELIVERY_METHODS = {
    'zasilkovna': {
        'label': 'Home delivery by courier',
        'description': 'The parcel is delivered to your door by DPD, InPost, DHL or the national post.',
        'price': Decimal('0.00'),
    },
}

PAYMENT_METHODS = {
    'bank': {
        'label': 'Bank transfer',
        'description': 'Pay by bank transfer',
        'price': Decimal('0.00'),
    },
}


def get_delivery_method_label(value):
    method = DELIVERY_METHODS.get(value)
    return method['label'] if method else value


def get_payment_method_label(value):
    method = PAYMENT_METHODS.get(value)
    return method['label'] if method else value


def get_delivery_price(value):
    method = DELIVERY_METHODS.get(value)
    return method['price'] if method else Decimal('0.00')
