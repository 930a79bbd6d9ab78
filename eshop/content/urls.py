from django.urls import path
from .views import banner_list, feature_icon_list

urlpatterns = [
    path('banners/', banner_list, name='banner-list'),
    path('feature-icons/', feature_icon_list, name='feature-icon-list'),
]
