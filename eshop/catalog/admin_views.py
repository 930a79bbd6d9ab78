"""Back-office endpoints for products and categories (admin token required)"""
import logging

from django.db import IntegrityError, transaction
from django.db.models import Count
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from eshop.core.auth import IsShopAdmin
from eshop.core.utils import paginate
from .filters import ProductFilter
from .models import Category, Product
from .serializers import CategorySerializer, ProductListSerializer, ProductSerializer
from .spreadsheet import XLSX_CONTENT_TYPE, SpreadsheetError, export_products, import_products
from .utils import (
    CategoryOrderError, apply_bulk_order, duplicate_product, move_category, reorder_category,
)

logger = logging.getLogger(__name__)


def _id_list(request, key='ids'):
    ids = request.data.get(key)
    if not isinstance(ids, list) or not ids:
        return None
    try:
        return [int(pk) for pk in ids]
    except (TypeError, ValueError):
        return None


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsShopAdmin])
def product_list_create(request):
    """List products (filters: category, search, ...) or create a new product"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('category').prefetch_related('images', 'variants').order_by('-created_at')
        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(paginate(request, filterset.qs, ProductListSerializer, default_limit=50))

    serializer = ProductSerializer(data=request.data)
    if serializer.is_valid():
        try:
            product = serializer.save()
        except IntegrityError:
            return Response({'error': 'Product with this slug already exists'}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"Product {product.pk} created")
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsShopAdmin])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=True)
        if serializer.is_valid():
            try:
                product = serializer.save()
            except IntegrityError:
                return Response({'error': 'Product with this slug already exists'}, status=status.HTTP_400_BAD_REQUEST)
            return Response(ProductSerializer(product).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        product.delete()
        logger.info(f"Product {pk} deleted")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsShopAdmin])
def product_duplicate(request, pk):
    product = get_object_or_404(Product, pk=pk)
    copy = duplicate_product(product)
    logger.info(f"Product {pk} duplicated as {copy.pk}")
    return Response(ProductSerializer(copy).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsShopAdmin])
def product_bulk_delete(request):
    ids = _id_list(request)
    if ids is None:
        return Response({'error': 'Provide a non-empty list of product ids'}, status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        products = Product.objects.filter(pk__in=ids)
        count = products.count()
        products.delete()
    logger.info(f"Bulk deleted {count} products")
    return Response({'success': True, 'deleted': count})


@api_view(['POST'])
@permission_classes([IsShopAdmin])
def product_bulk_move(request):
    """Move products to another category (``category_id`` null clears it)"""
    ids = _id_list(request)
    if ids is None:
        return Response({'error': 'Provide a non-empty list of product ids'}, status=status.HTTP_400_BAD_REQUEST)

    category_id = request.data.get('category_id')
    category = None
    if category_id not in (None, ''):
        category = Category.objects.filter(pk=category_id).first()
        if category is None:
            return Response({'error': 'Category not found'}, status=status.HTTP_404_NOT_FOUND)

    with transaction.atomic():
        updated = 0
        for product in Product.objects.select_for_update().filter(pk__in=ids):
            product.category = category
            product.save(update_fields=['category', 'updated_at'])
            updated += 1
    return Response({'success': True, 'updated': updated})


@api_view(['GET'])
@permission_classes([IsShopAdmin])
def product_export(request):
    """Download products as XLSX; ``template=true`` returns headers only"""
    template = request.query_params.get('template') == 'true'
    queryset = None
    if not template:
        filterset = ProductFilter(request.query_params, queryset=Product.objects.order_by('-created_at'))
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs

    content = export_products(queryset, template=template)
    if template:
        filename = 'products-template.xlsx'
    else:
        filename = f"products-export-{timezone.localdate().isoformat()}.xlsx"

    response = HttpResponse(content, content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@api_view(['POST'])
@permission_classes([IsShopAdmin])
@parser_classes([MultiPartParser, FormParser])
def product_import(request):
    upload = request.FILES.get('file')
    if upload is None:
        return Response({'error': 'No file provided'}, status=status.HTTP_400_BAD_REQUEST)
    if not upload.name.lower().endswith('.xlsx'):
        return Response({'error': 'Invalid file type. Please upload an Excel file (.xlsx)'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        result = import_products(upload)
    except SpreadsheetError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(result)


# Category views
def _category_queryset():
    return Category.objects.select_related('parent').annotate(
        annotated_product_count=Count('products', distinct=True),
        annotated_children_count=Count('children', distinct=True),
    )


@api_view(['GET', 'POST', 'PATCH'])
@permission_classes([IsShopAdmin])
def category_list_create(request):
    """
    GET lists every category, POST creates one, PATCH applies a bulk
    ``[{id, order}]`` reorder in a single transaction.
    """
    if request.method == 'GET':
        categories = _category_queryset().order_by('order', 'name')
        return Response(CategorySerializer(categories, many=True).data)

    if request.method == 'PATCH':
        updates = request.data
        if isinstance(updates, dict):
            updates = updates.get('categories', updates.get('updates'))
        if not isinstance(updates, list) or not updates:
            return Response({'error': 'Expected a list of {id, order} entries'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            count = apply_bulk_order(updates)
        except CategoryOrderError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'success': True, 'updated': count})

    serializer = CategorySerializer(data=request.data)
    if serializer.is_valid():
        try:
            category = serializer.save()
        except IntegrityError:
            return Response({'error': 'Category with this slug already exists'}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"Category {category.slug} created")
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsShopAdmin])
def category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_404(_category_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(CategorySerializer(category).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=True)
        if serializer.is_valid():
            try:
                with transaction.atomic():
                    category = serializer.save()
            except IntegrityError:
                return Response({'error': 'Category with this slug already exists'}, status=status.HTTP_400_BAD_REQUEST)
            return Response(CategorySerializer(_category_queryset().get(pk=category.pk)).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if category.annotated_product_count:
            return Response(
                {'error': f'Cannot delete category with {category.annotated_product_count} products. Move or delete them first.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        if category.annotated_children_count:
            return Response(
                {'error': 'Cannot delete category with subcategories. Move or delete them first.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        category.delete()
        logger.info(f"Category {pk} deleted")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PUT'])
@permission_classes([IsShopAdmin])
def category_order(request):
    """Move one category to ``new_order`` among its siblings"""
    category_id = request.data.get('category_id')
    new_order = request.data.get('new_order')
    if category_id is None or new_order is None:
        return Response({'error': 'category_id and new_order are required'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        category_id = int(category_id)
        new_order = int(new_order)
    except (TypeError, ValueError):
        return Response({'error': 'category_id and new_order must be integers'}, status=status.HTTP_400_BAD_REQUEST)

    category = get_object_or_404(Category, pk=category_id)
    reorder_category(category, new_order)
    return Response({'success': True})


@api_view(['POST'])
@permission_classes([IsShopAdmin])
def category_move(request, pk):
    """Swap a category with its previous (``up``) or next (``down``) sibling"""
    category = get_object_or_404(Category, pk=pk)
    try:
        changed = move_category(category, request.data.get('direction'))
    except CategoryOrderError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response({
        'success': True,
        'categories': [{'id': c.pk, 'order': c.order} for c in changed],
    })
