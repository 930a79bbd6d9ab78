from django.urls import path
from .views import order_invoice, order_invoice_generate, invoice_detail, invoice_download

urlpatterns = [
    path('orders/<str:order_number>/invoice/', order_invoice, name='admin-order-invoice'),
    path('orders/<str:order_number>/invoice/generate/', order_invoice_generate, name='admin-order-invoice-generate'),
    path('invoices/<int:pk>/', invoice_detail, name='admin-invoice-detail'),
    path('invoices/<int:pk>/download/', invoice_download, name='admin-invoice-download'),
]
