from django.urls import path
from .views import cart, checkout, order_status, product_inquiry

urlpatterns = [
    path('cart/', cart, name='cart'),
    path('orders/', checkout, name='checkout'),
    path('order-status/<str:order_number>/', order_status, name='order-status'),
    path('contact/product-inquiry/', product_inquiry, name='product-inquiry'),
]
