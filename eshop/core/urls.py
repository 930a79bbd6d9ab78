from django.urls import path
from .views import admin_auth, admin_logout, upload_image

urlpatterns = [
    # Auth endpoints
    path('auth/', admin_auth, name='admin-auth'),
    path('logout/', admin_logout, name='admin-logout'),

    # Media
    path('upload/', upload_image, name='admin-upload'),
]
