"""Public cart, checkout, order status and contact endpoints"""
import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from eshop.catalog.models import Product, ProductVariant
from . import cart as session_cart
from .emails import send_product_inquiry
from .models import Order, OrderHistory
from .serializers import (
    CartItemSerializer, CheckoutSerializer, ProductInquirySerializer, PublicOrderHistorySerializer,
)
from .services import OrderError, create_order

logger = logging.getLogger(__name__)


def _validate_cart_target(data):
    """Return an error Response when the product/variant pair is unknown"""
    product = Product.objects.filter(pk=data['product_id']).first()
    if product is None:
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)
    variant_id = data.get('variant_id')
    if variant_id and not ProductVariant.objects.filter(pk=variant_id, product=product, is_active=True).exists():
        return Response({'error': 'Variant not found for this product'}, status=status.HTTP_404_NOT_FOUND)
    return None


@api_view(['GET', 'POST', 'PATCH', 'DELETE'])
@permission_classes([AllowAny])
def cart(request):
    """
    Session cart.

    GET returns the summary; POST adds ``quantity`` of a product/variant;
    PATCH sets the quantity (0 removes); DELETE removes one line when
    ``product_id`` is given, otherwise empties the cart.
    """
    session = request.session

    if request.method == 'GET':
        return Response(session_cart.cart_summary(session))

    if request.method == 'DELETE':
        product_id = request.data.get('product_id') or request.query_params.get('product_id')
        if product_id:
            variant_id = request.data.get('variant_id') or request.query_params.get('variant_id')
            try:
                session_cart.remove_item(session, product_id, variant_id)
            except (TypeError, ValueError):
                return Response({'error': 'Invalid product_id'}, status=status.HTTP_400_BAD_REQUEST)
        else:
            session_cart.clear_cart(session)
        return Response(session_cart.cart_summary(session))

    serializer = CartItemSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    if request.method == 'POST':
        if data['quantity'] < 1:
            return Response({'error': 'Quantity must be at least 1'}, status=status.HTTP_400_BAD_REQUEST)
        error = _validate_cart_target(data)
        if error is not None:
            return error
        session_cart.add_item(session, data['product_id'], data.get('variant_id'), data['quantity'])
    else:  # PATCH
        session_cart.update_item(session, data['product_id'], data.get('variant_id'), data['quantity'])

    return Response(session_cart.cart_summary(session))


@api_view(['POST'])
@permission_classes([AllowAny])
def checkout(request):
    """Place an order from the posted items or the session cart"""
    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    from_session = 'items' not in data
    if from_session:
        lines = [
            {
                'product_id': line['product'].pk,
                'variant_id': line['variant'].pk if line['variant'] else None,
                'quantity': line['quantity'],
            }
            for line in session_cart.get_lines(request.session)
        ]
    else:
        lines = [dict(item) for item in data['items']]

    try:
        order = create_order(data, lines)
    except OrderError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error creating order: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to create order. Please try again.'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if from_session:
        session_cart.clear_cart(request.session)

    return Response({
        'success': True,
        'order_number': order.order_number,
        'total': order.total,
        'payment_method': order.payment_method,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def order_status(request, order_number):
    """Customer-facing order tracking; no personal data beyond city/postcode"""
    order = get_object_or_404(Order, order_number=order_number)
    history = order.history.filter(action__in=OrderHistory.PUBLIC_ACTIONS).order_by('-created_at', '-id')
    address = order.get_delivery_address()

    return Response({
        'order_number': order.order_number,
        'status': order.status,
        'payment_status': order.payment_status or 'unpaid',
        'created_at': order.created_at,
        'updated_at': order.updated_at,
        'tracking_number': order.tracking_number,
        'delivery_method': order.delivery_method,
        'payment_method': order.payment_method,
        'total': order.total,
        'items': [
            {'name': item.get('name'), 'quantity': item.get('quantity'), 'price': item.get('price')}
            for item in order.items
        ],
        'delivery_address': {
            'city': address['city'],
            'postal_code': address['postal_code'],
        },
        'history': PublicOrderHistorySerializer(history, many=True).data,
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def product_inquiry(request):
    serializer = ProductInquirySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if not send_product_inquiry(dict(serializer.validated_data)):
        return Response({'error': 'Failed to send inquiry'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({'success': True})
