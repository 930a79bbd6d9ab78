from django.contrib import admin
from .models import Category, Product, ProductImage, ProductVariant, ProductReview


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'parent', 'order', 'is_active', 'created_at']
    list_filter = ['is_active', 'parent']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}
    ordering = ['order', 'name']


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 0


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ['color_name', 'color_code', 'size_name', 'size_order', 'stock', 'price', 'regular_price', 'order', 'is_active']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'category', 'price', 'stock', 'sold_count', 'created_at']
    list_filter = ['category', 'created_at']
    search_fields = ['name', 'code', 'slug', 'brand', 'description']
    prepopulated_fields = {'slug': ('name',)}
    ordering = ['-created_at']
    readonly_fields = ['sold_count', 'average_rating', 'total_ratings', 'created_at', 'updated_at']
    inlines = [ProductImageInline, ProductVariantInline]


@admin.register(ProductReview)
class ProductReviewAdmin(admin.ModelAdmin):
    list_display = ['product', 'rating', 'author_name', 'created_at']
    list_filter = ['rating', 'created_at']
    search_fields = ['product__name', 'author_name', 'author_email', 'comment']
    ordering = ['-created_at']
