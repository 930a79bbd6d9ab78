from django.contrib import admin
from .models import Banner, FeatureIcon


@admin.register(Banner)
class BannerAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'order', 'is_active', 'created_at']
    list_filter = ['type', 'is_active']
    search_fields = ['title', 'subtitle']
    ordering = ['order', 'id']


@admin.register(FeatureIcon)
class FeatureIconAdmin(admin.ModelAdmin):
    list_display = ['key', 'title_cs', 'title', 'emoji', 'order', 'is_active']
    list_filter = ['is_active']
    search_fields = ['key', 'title', 'title_cs']
    ordering = ['order', 'id']
