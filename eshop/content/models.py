from django.db import models


class Banner(models.Model):
    """Homepage promotional banner"""
    TYPE_CHOICES = [
        ('hero', 'Hero'),
        ('promo', 'Promo'),
        ('category', 'Category'),
    ]

    title = models.CharField(max_length=255)
    subtitle = models.CharField(max_length=500, blank=True)
    image_url = models.CharField(max_length=500)
    link = models.CharField(max_length=500, blank=True)
    order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='hero')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'banners'
        ordering = ['order', 'id']


class FeatureIcon(models.Model):
    """Storefront trust badge (free shipping, secure payment, ...)"""
    key = models.CharField(max_length=100, unique=True)
    title = models.CharField(max_length=200)
    title_cs = models.CharField(max_length=200)
    description = models.CharField(max_length=500, blank=True)
    description_cs = models.CharField(max_length=500, blank=True)
    image_url = models.CharField(max_length=500, blank=True)
    emoji = models.CharField(max_length=20, blank=True)
    order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.key} ({self.title_cs})"

    class Meta:
        db_table = 'feature_icons'
        ordering = ['order', 'id']
