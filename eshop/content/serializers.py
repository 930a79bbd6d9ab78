from rest_framework import serializers
from .models import Banner, FeatureIcon


class BannerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Banner
        fields = [
            'id', 'title', 'subtitle', 'image_url', 'link', 'order',
            'is_active', 'type', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']


class FeatureIconSerializer(serializers.ModelSerializer):
    class Meta:
        model = FeatureIcon
        fields = [
            'id', 'key', 'title', 'title_cs', 'description', 'description_cs',
            'image_url', 'emoji', 'order', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_key(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Key is required")
        return value
