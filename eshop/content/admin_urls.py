from django.urls import path
from .views import (
    admin_banner_list_create, admin_banner_detail,
    admin_feature_icon_list_create, admin_feature_icon_detail,
)

urlpatterns = [
    path('banners/', admin_banner_list_create, name='admin-banner-list-create'),
    path('banners/<int:pk>/', admin_banner_detail, name='admin-banner-detail'),
    path('feature-icons/', admin_feature_icon_list_create, name='admin-feature-icon-list-create'),
    path('feature-icons/<int:pk>/', admin_feature_icon_detail, name='admin-feature-icon-detail'),
]
