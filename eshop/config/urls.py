"""
URL configuration for the eshop project.

Storefront endpoints live under ``/api/``; the back-office API under
``/api/admin/`` requires the admin token.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = f"{settings.SHOP_NAME} Admin Panel"
admin.site.site_title = f"{settings.SHOP_NAME} Admin Portal"
admin.site.index_title = "Shop administration"

urlpatterns = [
    path('django-admin/', admin.site.urls),

    # Back-office API
    path('api/admin/', include('eshop.core.urls')),
    path('api/admin/', include('eshop.catalog.admin_urls')),
    path('api/admin/', include('eshop.content.admin_urls')),
    path('api/admin/', include('eshop.orders.admin_urls')),
    path('api/admin/', include('eshop.invoices.admin_urls')),

    # Storefront API
    path('api/', include('eshop.catalog.urls')),
    path('api/', include('eshop.content.urls')),
    path('api/', include('eshop.orders.urls')),
    path('api/', include('eshop.invoices.urls')),

    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
