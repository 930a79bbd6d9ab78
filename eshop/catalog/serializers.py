from django.db import transaction
from rest_framework import serializers

from eshop.core.utils import create_slug, unique_slug
from .models import Category, Product, ProductImage, ProductVariant, ProductReview
from .utils import would_create_cycle


class CategoryBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'slug']


class CategorySerializer(serializers.ModelSerializer):
    # Declared explicitly so uniqueness is checked in validate() for derived slugs too
    slug = serializers.SlugField(max_length=200, required=False, allow_blank=True)
    parent_name = serializers.CharField(source='parent.name', read_only=True, default=None)
    product_count = serializers.SerializerMethodField()
    children_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = [
            'id', 'name', 'slug', 'description', 'image', 'order', 'is_active',
            'parent', 'parent_name', 'product_count', 'children_count',
            'created_at', 'updated_at'
        ]

    def get_product_count(self, obj):
        annotated = getattr(obj, 'annotated_product_count', None)
        if annotated is not None:
            return annotated
        return obj.products.count()

    def get_children_count(self, obj):
        annotated = getattr(obj, 'annotated_children_count', None)
        if annotated is not None:
            return annotated
        return obj.children.count()

    def validate(self, attrs):
        slug = attrs.get('slug')
        if not slug and self.instance is None:
            slug = create_slug(attrs.get('name', ''))
            if not slug:
                raise serializers.ValidationError({'slug': 'A slug could not be derived from the name.'})
        if slug:
            duplicates = Category.objects.filter(slug=slug)
            if self.instance is not None:
                duplicates = duplicates.exclude(pk=self.instance.pk)
            if duplicates.exists():
                raise serializers.ValidationError({'slug': 'Category with this slug already exists'})
            attrs['slug'] = slug
        elif 'slug' in attrs:
            # Blank slug on update keeps the current one
            attrs.pop('slug')

        parent = attrs.get('parent')
        if self.instance is not None and parent is not None and would_create_cycle(self.instance, parent):
            raise serializers.ValidationError(
                {'parent': 'A category cannot be moved under itself or one of its subcategories.'}
            )
        return attrs


class ProductImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductImage
        fields = ['id', 'url', 'alt', 'order']
        read_only_fields = ['id']


class ProductVariantSerializer(serializers.ModelSerializer):
    # Writable so nested updates can match existing variants
    id = serializers.IntegerField(required=False)
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = ProductVariant
        fields = [
            'id', 'color_name', 'color_code', 'size_name', 'size_order', 'display_name',
            'stock', 'price', 'regular_price', 'image_url', 'order', 'is_active'
        ]


class ProductReviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductReview
        fields = ['id', 'product', 'rating', 'comment', 'author_name', 'author_email', 'created_at']
        read_only_fields = ['id', 'product', 'created_at']


class ProductListSerializer(serializers.ModelSerializer):
    category = CategoryBriefSerializer(read_only=True)
    price = serializers.SerializerMethodField()
    regular_price = serializers.SerializerMethodField()
    image = serializers.SerializerMethodField()
    has_variants = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'code', 'price', 'regular_price', 'stock', 'sold_count',
            'image', 'category', 'brand', 'average_rating', 'total_ratings', 'has_variants',
            'created_at'
        ]

    def _active_variants(self, obj):
        return [v for v in obj.variants.all() if v.is_active]

    def get_price(self, obj):
        return obj.get_display_prices(self._active_variants(obj))[0]

    def get_regular_price(self, obj):
        return obj.get_display_prices(self._active_variants(obj))[1]

    def get_image(self, obj):
        return obj.get_primary_image()

    def get_has_variants(self, obj):
        return bool(self._active_variants(obj))


class ProductSerializer(serializers.ModelSerializer):
    # Slug is optional on write; derived from the name when missing
    slug = serializers.SlugField(max_length=255, required=False, allow_blank=True)
    images = ProductImageSerializer(many=True, required=False)
    variants = ProductVariantSerializer(many=True, required=False)

    # For reading: return nested category
    category = CategoryBriefSerializer(read_only=True)

    # For writing: accept integer IDs
    category_id = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(),
        source='category',
        write_only=True,
        required=False,
        allow_null=True
    )
    display_price = serializers.SerializerMethodField()
    display_regular_price = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'code', 'description', 'detail_description',
            'price', 'regular_price', 'display_price', 'display_regular_price',
            'stock', 'sold_count', 'image', 'category', 'category_id', 'brand', 'warranty',
            'average_rating', 'total_ratings', 'images', 'variants', 'created_at', 'updated_at'
        ]
        read_only_fields = ['sold_count', 'average_rating', 'total_ratings']

    def get_display_price(self, obj):
        return obj.get_display_prices()[0]

    def get_display_regular_price(self, obj):
        return obj.get_display_prices()[1]

    def validate_slug(self, value):
        if not value:
            return value
        duplicates = Product.objects.filter(slug=value)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError('Product with this slug already exists')
        return value

    def validate(self, attrs):
        for field in ('price', 'regular_price', 'stock'):
            value = attrs.get(field)
            if value is not None and value < 0:
                raise serializers.ValidationError({field: 'Must not be negative.'})
        return attrs

    def create(self, validated_data):
        images = validated_data.pop('images', [])
        variants = validated_data.pop('variants', [])
        if not validated_data.get('slug'):
            validated_data['slug'] = unique_slug(Product, validated_data['name'])

        with transaction.atomic():
            product = Product.objects.create(**validated_data)
            self._replace_images(product, images)
            self._sync_variants(product, variants)
        return product

    def update(self, instance, validated_data):
        images = validated_data.pop('images', None)
        variants = validated_data.pop('variants', None)
        if 'slug' in validated_data and not validated_data['slug']:
            validated_data.pop('slug')

        with transaction.atomic():
            for attr, value in validated_data.items():
                setattr(instance, attr, value)
            instance.save()
            if images is not None:
                self._replace_images(instance, images)
            if variants is not None:
                self._sync_variants(instance, variants)
        return instance

    def _replace_images(self, product, images):
        product.images.all().delete()
        ProductImage.objects.bulk_create([
            ProductImage(
                product=product,
                url=image['url'],
                alt=image.get('alt', ''),
                order=image.get('order', index),
            )
            for index, image in enumerate(images)
        ])

    def _sync_variants(self, product, variants):
        """Update variants matched by id, create new ones, delete the rest"""
        existing = {v.pk: v for v in product.variants.all()}
        keep_ids = set()
        for index, data in enumerate(variants):
            data = dict(data)
            variant_id = data.pop('id', None)
            data.setdefault('order', index)
            variant = existing.get(variant_id)
            if variant is not None:
                for attr, value in data.items():
                    setattr(variant, attr, value)
                variant.save()
            else:
                variant = ProductVariant.objects.create(product=product, **data)
            keep_ids.add(variant.pk)
        product.variants.exclude(pk__in=keep_ids).delete()
