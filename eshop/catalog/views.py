"""Public storefront endpoints for products, categories and search"""
import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.db.models import Avg, Count, Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from eshop.core.cache_utils import (
    CATEGORY_TREE_CACHE_TTL, CATEGORY_TREE_PREFIX,
    STOREFRONT_PRODUCTS_CACHE_TTL, STOREFRONT_PRODUCTS_PREFIX,
    get_or_set, invalidate_storefront_cache,
)
from eshop.core.utils import paginate, parse_int
from .feeds import build_google_shopping_feed
from .filters import search_products
from .models import Category, Product
from .serializers import (
    CategoryBriefSerializer, ProductListSerializer, ProductReviewSerializer, ProductSerializer,
)
from .utils import get_descendant_ids

logger = logging.getLogger(__name__)

RELATED_PRODUCTS_LIMIT = 10
INSTANT_SEARCH_CATEGORY_LIMIT = 3
SEARCH_RESULTS_LIMIT = 50
MIN_SEARCH_LENGTH = 2

SORT_OPTIONS = {
    'newest': ['-created_at'],
    'price_asc': ['price', '-created_at'],
    'price_desc': ['-price', '-created_at'],
    'popular': ['-sold_count', '-created_at'],
    'rating': ['-average_rating', '-total_ratings'],
    'name': ['name'],
}


def storefront_products():
    return Product.objects.select_related('category').prefetch_related('images', 'variants')


def build_category_tree(categories):
    """Nest a flat list of categories under their parents"""
    nodes = {}
    for category in categories:
        nodes[category.pk] = {
            'id': category.pk,
            'name': category.name,
            'slug': category.slug,
            'description': category.description,
            'image': category.image,
            'order': category.order,
            'parent': category.parent_id,
            'product_count': getattr(category, 'annotated_product_count', 0),
            'children': [],
        }
    roots = []
    for category in categories:
        node = nodes[category.pk]
        parent = nodes.get(category.parent_id)
        if parent is not None:
            parent['children'].append(node)
        else:
            roots.append(node)
    return roots


@api_view(['GET'])
@permission_classes([AllowAny])
def product_list(request):
    """List products with display prices; optional category slug, sort and paging"""
    category_slug = request.query_params.get('category')
    sort = request.query_params.get('sort', 'newest')
    params = {
        'category': category_slug,
        'sort': sort,
        'page': request.query_params.get('page'),
        'limit': request.query_params.get('limit'),
    }

    def build():
        queryset = storefront_products().order_by(*SORT_OPTIONS.get(sort, SORT_OPTIONS['newest']))
        if category_slug:
            category = Category.objects.filter(slug=category_slug, is_active=True).first()
            if category is None:
                return None
            category_ids = {category.pk} | get_descendant_ids(category)
            queryset = queryset.filter(category_id__in=category_ids)
        return paginate(request, queryset, ProductListSerializer, default_limit=24)

    data = get_or_set(STOREFRONT_PRODUCTS_PREFIX, build, STOREFRONT_PRODUCTS_CACHE_TTL, **params)
    if data is None:
        return Response({'error': 'Category not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(data)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_detail(request, pk):
    product = get_object_or_404(storefront_products(), pk=pk)
    return Response(ProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_by_slug(request, category_slug, product_slug):
    """Resolve the /<category>/<product> storefront URL"""
    product = get_object_or_404(storefront_products(), slug=product_slug)
    if product.category is None or product.category.slug != category_slug:
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)

    data = ProductSerializer(product).data
    data['breadcrumbs'] = CategoryBriefSerializer(
        list(reversed(product.category.get_ancestors())) + [product.category], many=True
    ).data
    return Response(data)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_related(request, pk):
    """Other products from the same category"""
    product = get_object_or_404(Product, pk=pk)
    if product.category_id is None:
        return Response([])
    related = (
        storefront_products()
        .filter(category_id=product.category_id)
        .exclude(pk=product.pk)
        .order_by('-sold_count', '-created_at')[:RELATED_PRODUCTS_LIMIT]
    )
    return Response(ProductListSerializer(related, many=True).data)


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def product_reviews(request, pk):
    """List reviews, or add one and recompute the product's rating"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        serializer = ProductReviewSerializer(product.reviews.all(), many=True)
        return Response(serializer.data)

    serializer = ProductReviewSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        review = serializer.save(product=product)
        aggregates = product.reviews.aggregate(average=Avg('rating'), total=Count('id'))
        average = Decimal(str(aggregates['average'] or 0)).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
        Product.objects.filter(pk=product.pk).update(
            average_rating=average,
            total_ratings=aggregates['total'],
        )
        transaction.on_commit(invalidate_storefront_cache)

    logger.info(f"Review {review.pk} added to product {product.pk}; rating now {average}")
    return Response(ProductReviewSerializer(review).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def category_list(request):
    """Active category tree, ordered by manual sort order"""
    def build():
        categories = list(
            Category.objects.filter(is_active=True)
            .annotate(annotated_product_count=Count('products'))
            .order_by('order', 'name')
        )
        return build_category_tree(categories)

    return Response(get_or_set(CATEGORY_TREE_PREFIX, build, CATEGORY_TREE_CACHE_TTL))


@api_view(['GET'])
@permission_classes([AllowAny])
def category_detail(request, slug):
    """Category with its subcategories, breadcrumbs and paginated products"""
    category = get_object_or_404(Category, slug=slug, is_active=True)
    sort = request.query_params.get('sort', 'newest')

    category_ids = {category.pk} | get_descendant_ids(category)
    products = (
        storefront_products()
        .filter(category_id__in=category_ids)
        .order_by(*SORT_OPTIONS.get(sort, SORT_OPTIONS['newest']))
    )
    children = category.children.filter(is_active=True).order_by('order', 'name')

    return Response({
        'id': category.pk,
        'name': category.name,
        'slug': category.slug,
        'description': category.description,
        'image': category.image,
        'parent': CategoryBriefSerializer(category.parent).data if category.parent else None,
        'breadcrumbs': CategoryBriefSerializer(list(reversed(category.get_ancestors())), many=True).data,
        'children': CategoryBriefSerializer(children, many=True).data,
        'products': paginate(request, products, ProductListSerializer, default_limit=24),
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def search(request):
    """
    Case-insensitive product search over name, code, brand and description.

    ``instant=true`` (search-as-you-type) honours ``limit`` and also returns
    up to three matching categories.
    """
    query = (request.query_params.get('q') or '').strip()
    instant = request.query_params.get('instant') == 'true'
    limit = parse_int(request.query_params.get('limit'), 10, minimum=1, maximum=SEARCH_RESULTS_LIMIT)

    if len(query) < MIN_SEARCH_LENGTH:
        return Response({'products': [], 'total_results': 0})

    matches = search_products(storefront_products().order_by('-created_at'), query)
    total = matches.count()
    products = matches[:limit] if instant else matches[:SEARCH_RESULTS_LIMIT]

    data = {
        'products': ProductListSerializer(products, many=True).data,
        'total_results': total,
    }
    if instant:
        categories = Category.objects.filter(
            Q(name__icontains=query) | Q(slug__icontains=query), is_active=True
        ).order_by('order', 'name')[:INSTANT_SEARCH_CATEGORY_LIMIT]
        data['categories'] = CategoryBriefSerializer(categories, many=True).data
    return Response(data)


@api_view(['GET'])
@permission_classes([AllowAny])
def google_shopping_feed(request):
    try:
        xml = build_google_shopping_feed()
    except Exception as e:
        logger.error(f"Error generating Google Shopping feed: {str(e)}", exc_info=True)
        return HttpResponse('Error generating feed', status=500, content_type='text/plain')

    response = HttpResponse(xml, content_type='application/xml; charset=utf-8')
    response['Cache-Control'] = 'public, max-age=3600'
    return response
