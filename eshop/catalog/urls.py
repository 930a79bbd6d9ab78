from django.urls import path
from .views import (
    product_list, product_detail, product_related, product_reviews, product_by_slug,
    category_list, category_detail, search, google_shopping_feed,
)

urlpatterns = [
    # Product endpoints
    path('products/', product_list, name='product-list'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/related/', product_related, name='product-related'),
    path('products/<int:pk>/reviews/', product_reviews, name='product-reviews'),
    path('products/by-slug/<slug:category_slug>/<slug:product_slug>/', product_by_slug, name='product-by-slug'),

    # Category endpoints
    path('categories/', category_list, name='category-list'),
    path('categories/<slug:slug>/', category_detail, name='category-detail'),

    # Search and feeds
    path('search/', search, name='search'),
    path('feeds/google-shopping/', google_shopping_feed, name='google-shopping-feed'),
]
