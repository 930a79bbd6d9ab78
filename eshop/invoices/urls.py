from django.urls import path
from .views import public_invoice_download, payment_qr

urlpatterns = [
    path('invoices/<str:order_number>/download/', public_invoice_download, name='invoice-download'),
    path('orders/<str:order_number>/payment-qr/', payment_qr, name='order-payment-qr'),
]
