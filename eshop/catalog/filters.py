import django_filters
from django.db.models import Q

from .models import Product


def search_products(queryset, value):
    """
    Match products whose name, code, brand or description contains the text.

    Multi-word searches require every word to match somewhere.
    """
    if not value:
        return queryset
    words = value.strip().split()
    for word in words:
        queryset = queryset.filter(
            Q(name__icontains=word) |
            Q(code__icontains=word) |
            Q(brand__icontains=word) |
            Q(description__icontains=word)
        )
    return queryset


class ProductFilter(django_filters.FilterSet):
    """Admin product list filters"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    category_slug = django_filters.CharFilter(field_name='category__slug', lookup_expr='exact')
    brand = django_filters.CharFilter(field_name='brand', lookup_expr='iexact')
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')
    in_stock = django_filters.BooleanFilter(method='filter_in_stock', label='In Stock')
    uncategorized = django_filters.BooleanFilter(field_name='category', lookup_expr='isnull')

    class Meta:
        model = Product
        fields = ['search', 'category', 'category_slug', 'brand', 'min_price', 'max_price',
                  'in_stock', 'uncategorized']

    def filter_search(self, queryset, name, value):
        return search_products(queryset, value)

    def filter_in_stock(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(stock__gt=0)
        return queryset.filter(stock__lte=0)
