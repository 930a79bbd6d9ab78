"""Back-office order management (admin token required)"""
import logging

from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from eshop.core.auth import IsShopAdmin
from eshop.core.utils import paginate
from .emails import PREVIEW_TEMPLATES, render_preview
from .models import Order
from .serializers import OrderListSerializer, OrderSerializer, OrderUpdateSerializer
from .services import OrderError, resend_confirmation, send_shipping_email, update_order

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsShopAdmin])
def order_list(request):
    """List orders (filters: status, payment_status, search)"""
    orders = Order.objects.all().order_by('-created_at')

    order_status = request.query_params.get('status')
    if order_status:
        orders = orders.filter(status=order_status)

    payment_status = request.query_params.get('payment_status')
    if payment_status:
        orders = orders.filter(payment_status=payment_status)

    search = (request.query_params.get('search') or '').strip()
    if search:
        orders = orders.filter(
            Q(order_number__icontains=search) |
            Q(customer_email__icontains=search) |
            Q(customer_name__icontains=search) |
            Q(customer_phone__icontains=search) |
            Q(tracking_number__icontains=search)
        )

    return Response(paginate(request, orders, OrderListSerializer, default_limit=20))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsShopAdmin])
def order_detail(request, order_number):
    """Retrieve, update or delete an order"""
    order = get_object_or_404(Order, order_number=order_number)

    if request.method == 'GET':
        return Response(OrderSerializer(order).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = OrderUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            order = update_order(order, serializer.validated_data)
        except OrderError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(OrderSerializer(Order.objects.get(pk=order.pk)).data)
    else:  # DELETE
        order.delete()
        logger.info(f"Order {order_number} deleted")
        return Response({'success': True})


@api_view(['POST'])
@permission_classes([IsShopAdmin])
def order_resend_confirmation(request, order_number):
    order = get_object_or_404(Order, order_number=order_number)
    if not resend_confirmation(order):
        return Response({'error': 'Failed to send confirmation email'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({'success': True, 'message': 'Order confirmation email sent successfully'})


@api_view(['POST'])
@permission_classes([IsShopAdmin])
def order_send_shipping_email(request, order_number):
    order = get_object_or_404(Order, order_number=order_number)
    try:
        sent = send_shipping_email(order, manual=True)
    except OrderError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    if not sent:
        return Response({'error': 'Failed to send shipping email'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({'success': True, 'message': 'Shipping notification email sent successfully'})


@api_view(['GET'])
@permission_classes([IsShopAdmin])
def email_preview(request):
    """Render an e-mail template with sample (or a real order's) data"""
    email_type = request.query_params.get('type', 'confirmation')
    if email_type not in PREVIEW_TEMPLATES:
        return Response(
            {'error': f"Unknown email type. Use one of: {', '.join(PREVIEW_TEMPLATES)}"},
            status=status.HTTP_400_BAD_REQUEST
        )

    order = None
    order_number = request.query_params.get('order')
    if order_number:
        order = get_object_or_404(Order, order_number=order_number)

    return HttpResponse(render_preview(email_type, order), content_type='text/html; charset=utf-8')
