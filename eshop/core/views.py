import logging
import os
import uuid

from django.conf import settings
from django.core.files.storage import default_storage
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .auth import IsShopAdmin, password_matches
from .utils import get_client_ip

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE = 5 * 1024 * 1024

UPLOAD_EXTENSIONS = {
    'image/jpeg': '.jpg',
    'image/jpg': '.jpg',
    'image/png': '.png',
    'image/webp': '.webp',
}


def _clear_admin_cookies(response):
    response.delete_cookie(settings.ADMIN_COOKIE_NAME)
    response.delete_cookie(settings.ADMIN_LEGACY_COOKIE_NAME)
    return response


@api_view(['POST', 'DELETE'])
@permission_classes([AllowAny])
def admin_auth(request):
    """Log in with the admin password (POST) or log out (DELETE)"""
    if request.method == 'DELETE':
        return _clear_admin_cookies(Response({'success': True}))

    password = request.data.get('password')
    if not password_matches(password):
        logger.warning(f"Failed admin login from {get_client_ip(request)}")
        return Response({'error': 'Invalid password'}, status=status.HTTP_401_UNAUTHORIZED)

    response = Response({'success': True})
    response.set_cookie(
        settings.ADMIN_COOKIE_NAME,
        settings.ADMIN_TOKEN,
        max_age=settings.ADMIN_SESSION_MAX_AGE,
        httponly=True,
        secure=not settings.DEBUG,
        samesite='Lax',
    )
    logger.info(f"Admin logged in from {get_client_ip(request)}")
    return response


@api_view(['POST'])
@permission_classes([AllowAny])
def admin_logout(request):
    """Clear the admin session cookies"""
    return _clear_admin_cookies(Response({'success': True}))


@api_view(['POST'])
@permission_classes([IsShopAdmin])
@parser_classes([MultiPartParser, FormParser])
def upload_image(request):
    """Store an uploaded product/banner image under MEDIA_ROOT/uploads"""
    upload = request.FILES.get('file')
    if upload is None:
        return Response({'error': 'No file uploaded'}, status=status.HTTP_400_BAD_REQUEST)

    content_type = (upload.content_type or '').lower()
    if content_type not in settings.UPLOAD_ALLOWED_CONTENT_TYPES:
        return Response(
            {'error': 'Invalid file type. Only JPEG, PNG and WebP images are allowed.'},
            status=status.HTTP_400_BAD_REQUEST
        )

    if upload.size > MAX_UPLOAD_SIZE:
        return Response({'error': 'File too large. Maximum size is 5MB.'}, status=status.HTTP_400_BAD_REQUEST)

    extension = UPLOAD_EXTENSIONS.get(content_type) or os.path.splitext(upload.name)[1].lower()
    filename = f"uploads/{uuid.uuid4().hex}{extension}"

    try:
        saved_name = default_storage.save(filename, upload)
    except OSError as e:
        logger.error(f"Failed to store upload {upload.name}: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to upload file'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response({
        'success': True,
        'url': default_storage.url(saved_name),
        'filename': os.path.basename(saved_name),
    }, status=status.HTTP_201_CREATED)
