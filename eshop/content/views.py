from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
import logging

from eshop.core.auth import IsShopAdmin
from .models import Banner, FeatureIcon
from .serializers import BannerSerializer, FeatureIconSerializer

logger = logging.getLogger(__name__)


# Storefront views
@api_view(['GET'])
@permission_classes([AllowAny])
def banner_list(request):
    """Active banners; optional ``type`` filter"""
    banners = Banner.objects.filter(is_active=True)
    banner_type = request.query_params.get('type')
    if banner_type:
        banners = banners.filter(type=banner_type)
    return Response(BannerSerializer(banners.order_by('order', 'id'), many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def feature_icon_list(request):
    icons = FeatureIcon.objects.filter(is_active=True).order_by('order', 'id')
    return Response(FeatureIconSerializer(icons, many=True).data)


# Admin views
@api_view(['GET', 'POST'])
@permission_classes([IsShopAdmin])
def admin_banner_list_create(request):
    """List all banners or create a banner"""
    if request.method == 'GET':
        banners = Banner.objects.all().order_by('order', 'id')
        return Response(BannerSerializer(banners, many=True).data)

    serializer = BannerSerializer(data=request.data)
    if serializer.is_valid():
        banner = serializer.save()
        logger.info(f"Banner {banner.pk} created")
        return Response(BannerSerializer(banner).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsShopAdmin])
def admin_banner_detail(request, pk):
    """Retrieve, update or delete a banner"""
    banner = get_object_or_404(Banner, pk=pk)

    if request.method == 'GET':
        return Response(BannerSerializer(banner).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = BannerSerializer(banner, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        banner.delete()
        logger.info(f"Banner {pk} deleted")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsShopAdmin])
def admin_feature_icon_list_create(request):
    """List all feature icons or create one"""
    if request.method == 'GET':
        icons = FeatureIcon.objects.all().order_by('order', 'id')
        return Response(FeatureIconSerializer(icons, many=True).data)

    serializer = FeatureIconSerializer(data=request.data)
    if serializer.is_valid():
        icon = serializer.save()
        logger.info(f"Feature icon {icon.key} created")
        return Response(FeatureIconSerializer(icon).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsShopAdmin])
def admin_feature_icon_detail(request, pk):
    icon = get_object_or_404(FeatureIcon, pk=pk)

    if request.method == 'GET':
        return Response(FeatureIconSerializer(icon).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = FeatureIconSerializer(icon, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        icon.delete()
        logger.info(f"Feature icon {pk} deleted")
        return Response(status=status.HTTP_204_NO_CONTENT)
