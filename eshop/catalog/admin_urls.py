from django.urls import path
from .admin_views import (
    product_list_create, product_detail, product_duplicate,
    product_bulk_delete, product_bulk_move, product_export, product_import,
    category_list_create, category_detail, category_order, category_move,
)

urlpatterns = [
    # Product endpoints
    path('products/', product_list_create, name='admin-product-list-create'),
    path('products/bulk-delete/', product_bulk_delete, name='admin-product-bulk-delete'),
    path('products/bulk-move/', product_bulk_move, name='admin-product-bulk-move'),
    path('products/export/', product_export, name='admin-product-export'),
    path('products/import/', product_import, name='admin-product-import'),
    path('products/<int:pk>/', product_detail, name='admin-product-detail'),
    path('products/<int:pk>/duplicate/', product_duplicate, name='admin-product-duplicate'),

    # Category endpoints
    path('categories/', category_list_create, name='admin-category-list-create'),
    path('categories/order/', category_order, name='admin-category-order'),
    path('categories/<int:pk>/', category_detail, name='admin-category-detail'),
    path('categories/<int:pk>/move/', category_move, name='admin-category-move'),
]
