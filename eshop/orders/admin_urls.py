from django.urls import path
from .admin_views import (
    order_list, order_detail, order_resend_confirmation, order_send_shipping_email, email_preview,
)

urlpatterns = [
    path('orders/', order_list, name='admin-order-list'),
    path('orders/<str:order_number>/', order_detail, name='admin-order-detail'),
    path('orders/<str:order_number>/resend-confirmation/', order_resend_confirmation, name='admin-order-resend-confirmation'),
    path('orders/<str:order_number>/send-shipping-email/', order_send_shipping_email, name='admin-order-send-shipping-email'),
    path('email-preview/', email_preview, name='admin-email-preview'),
]
