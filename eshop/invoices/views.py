import logging

from django.core.files.storage import default_storage
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from eshop.core.auth import IsShopAdmin
from eshop.orders.models import Order
from .models import Invoice
from .pdf import INVOICE_DIR, render_invoice_pdf
from .qr import DEFAULT_QR_FORMAT, QR_FORMATS, order_payment_qr
from .serializers import InvoiceSerializer
from .services import attach_pdf, generate_invoice

logger = logging.getLogger(__name__)


def _storage_name(invoice):
    return f"{INVOICE_DIR}/{invoice.invoice_number}.pdf"


def pdf_response(invoice):
    """Serve the stored PDF, rendering it again when the file is gone"""
    name = _storage_name(invoice)
    if default_storage.exists(name):
        with default_storage.open(name, 'rb') as f:
            content = f.read()
    else:
        content = render_invoice_pdf(invoice)
    response = HttpResponse(content, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="Invoice-{invoice.invoice_number}.pdf"'
    return response


# Storefront views
@api_view(['GET'])
@permission_classes([AllowAny])
def public_invoice_download(request, order_number):
    order = get_object_or_404(Order, order_number=order_number)
    invoice = Invoice.objects.filter(order=order).first()
    if invoice is None:
        return Response({'error': 'Invoice not found for this order'}, status=status.HTTP_404_NOT_FOUND)
    if not invoice.pdf_url:
        return Response({'error': 'Invoice PDF not available'}, status=status.HTTP_404_NOT_FOUND)

    try:
        return pdf_response(invoice)
    except Exception as e:
        logger.error(f"Failed to download invoice {invoice.invoice_number}: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to download invoice'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([AllowAny])
def payment_qr(request, order_number):
    """Bank-transfer QR code for an order (``format``: epc, spayd or pipe)"""
    order = get_object_or_404(Order, order_number=order_number)
    fmt = request.query_params.get('format', DEFAULT_QR_FORMAT)
    if fmt not in QR_FORMATS:
        return Response(
            {'error': f"Unknown format. Use one of: {', '.join(QR_FORMATS)}"},
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        data = order_payment_qr(order, fmt)
    except Exception as e:
        logger.error(f"QR generation failed for {order_number}: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to generate QR code'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    data.update({
        'order_number': order.order_number,
        'amount': order.total,
        'payment_status': order.payment_status,
    })
    return Response(data)


# Admin views
@api_view(['GET'])
@permission_classes([IsShopAdmin])
def order_invoice(request, order_number):
    order = get_object_or_404(Order, order_number=order_number)
    invoice = Invoice.objects.filter(order=order).first()
    if invoice is None:
        return Response({'error': 'Invoice not found for this order'}, status=status.HTTP_404_NOT_FOUND)
    return Response(InvoiceSerializer(invoice).data)


@api_view(['POST'])
@permission_classes([IsShopAdmin])
def order_invoice_generate(request, order_number):
    """Generate the order's invoice; an existing one is returned unchanged"""
    order = get_object_or_404(Order, order_number=order_number)
    invoice, created = generate_invoice(order)
    return Response(
        {'success': True, 'created': created, 'invoice': InvoiceSerializer(invoice).data},
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsShopAdmin])
def invoice_detail(request, pk):
    """Retrieve, update (status, dates) or delete an invoice"""
    invoice = get_object_or_404(Invoice.objects.select_related('order'), pk=pk)

    if request.method == 'GET':
        return Response(InvoiceSerializer(invoice).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = InvoiceSerializer(invoice, data=request.data, partial=True)
        if serializer.is_valid():
            invoice = serializer.save()
            if 'issue_date' in serializer.validated_data or 'due_date' in serializer.validated_data:
                attach_pdf(invoice)
            return Response(InvoiceSerializer(invoice).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        name = _storage_name(invoice)
        if default_storage.exists(name):
            default_storage.delete(name)
        invoice.delete()
        logger.info(f"Invoice {pk} deleted")
        return Response({'success': True})


@api_view(['GET'])
@permission_classes([IsShopAdmin])
def invoice_download(request, pk):
    invoice = get_object_or_404(Invoice.objects.select_related('order'), pk=pk)
    try:
        return pdf_response(invoice)
    except Exception as e:
        logger.error(f"Failed to download invoice {invoice.invoice_number}: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to download invoice'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
