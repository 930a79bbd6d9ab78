from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from decimal import Decimal


class Category(models.Model):
    """Product categories, manually ordered among siblings"""
    name = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    image = models.CharField(max_length=500, blank=True)
    order = models.IntegerField(default=0, db_index=True)
    is_active = models.BooleanField(default=True)
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def get_ancestors(self):
        """Walk parent pointers up to the root (nearest first)"""
        ancestors = []
        seen = {self.pk}
        node = self.parent
        while node is not None and node.pk not in seen:
            ancestors.append(node)
            seen.add(node.pk)
            node = node.parent
        return ancestors

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['order', 'name']


class Product(models.Model):
    """Product master"""
    name = models.CharField(max_length=255, db_index=True)
    slug = models.SlugField(max_length=255, unique=True)
    code = models.CharField(max_length=100, blank=True, db_index=True)
    description = models.TextField(blank=True)
    detail_description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    regular_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    stock = models.IntegerField(default=0)
    sold_count = models.IntegerField(default=0)
    image = models.CharField(max_length=500, blank=True)
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    brand = models.CharField(max_length=200, blank=True)
    warranty = models.CharField(max_length=200, blank=True)
    average_rating = models.DecimalField(max_digits=2, decimal_places=1, default=Decimal('0.0'))
    total_ratings = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.code or 'NO-CODE'})"

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        # Product code defaults to the primary key
        if not self.code:
            self.code = str(self.pk)
            Product.objects.filter(pk=self.pk).update(code=self.code)

    def get_display_prices(self, variants=None):
        """
        Price shown on listings: the lowest price among active, in-stock
        variants that override the price, else the product price.

        Returns a (price, regular_price) tuple.
        """
        if variants is None:
            variants = [v for v in self.variants.all() if v.is_active]

        priced = [v for v in variants if v.price is not None and v.stock > 0]
        if not priced:
            return self.price, self.regular_price

        cheapest = min(priced, key=lambda v: v.price)
        regular = cheapest.regular_price if cheapest.regular_price is not None else self.regular_price
        return cheapest.price, regular

    def get_primary_image(self):
        if self.image:
            return self.image
        first = next(iter(self.images.all()), None)
        return first.url if first else ''

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']


class ProductImage(models.Model):
    """Gallery images"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='images')
    url = models.CharField(max_length=500)
    alt = models.CharField(max_length=255, blank=True)
    order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.url

    class Meta:
        db_table = 'product_images'
        ordering = ['order', 'id']


class ProductVariant(models.Model):
    """Color/size variant with its own stock and optional price override"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    color_name = models.CharField(max_length=100, blank=True)
    color_code = models.CharField(max_length=20, blank=True)
    size_name = models.CharField(max_length=100, blank=True)
    size_order = models.IntegerField(default=0)
    stock = models.IntegerField(default=0)
    price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    regular_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    image_url = models.CharField(max_length=500, blank=True)
    order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def display_name(self):
        return ' / '.join(part for part in (self.color_name, self.size_name) if part)

    def get_price(self):
        return self.price if self.price is not None else self.product.price

    def __str__(self):
        return f"{self.product.name} - {self.display_name}"

    class Meta:
        db_table = 'product_variants'
        ordering = ['order', 'size_order', 'id']


class ProductReview(models.Model):
    """Customer reviews; product rating aggregates are recomputed on create"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True)
    author_name = models.CharField(max_length=200)
    author_email = models.EmailField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product.name}: {self.rating}/5 by {self.author_name}"

    class Meta:
        db_table = 'product_reviews'
        ordering = ['-created_at']
