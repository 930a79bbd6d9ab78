"""
Management command to add the starter category tree to the database
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from eshop.catalog.models import Category

CATEGORY_TREE = [
    ('Electronics', 'electronics', 'Electronic devices and accessories', [
        ('Mobile Phones', 'mobile-phones', 'Smartphones and accessories'),
        ('Computers', 'computers', 'Laptops, desktops and peripherals'),
        ('Audio & Video', 'audio-video', 'Headphones, speakers and TVs'),
    ]),
    ('Clothing', 'clothing', 'Fashion and apparel', [
        ("Men's Clothing", 'mens-clothing', 'Clothing for men'),
        ("Women's Clothing", 'womens-clothing', 'Clothing for women'),
        ("Children's Clothing", 'childrens-clothing', 'Clothing for children'),
    ]),
    ('Home & Garden', 'home-garden', 'Home improvement and garden supplies', [
        ('Furniture', 'furniture', 'Indoor and outdoor furniture'),
        ('Garden Tools', 'garden-tools', 'Tools for garden work'),
    ]),
    ('Sports', 'sports', 'Sports equipment and activewear', [
        ('Fitness', 'fitness', 'Fitness equipment'),
        ('Outdoor Sports', 'outdoor-sports', 'Gear for outdoor activities'),
    ]),
]


class Command(BaseCommand):
    help = "Adds the starter category tree (main categories and subcategories)"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete categories without products before seeding',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write(self.style.WARNING("Clearing empty categories..."))
            deleted, _ = Category.objects.filter(products__isnull=True).delete()
            self.stdout.write(f"Deleted {deleted} rows.")

        created_count = 0
        updated_count = 0

        with transaction.atomic():
            for order, (name, slug, description, children) in enumerate(CATEGORY_TREE, start=1):
                parent, created = Category.objects.update_or_create(
                    slug=slug,
                    defaults={'name': name, 'description': description, 'order': order * 10, 'parent': None},
                )
                created_count += created
                updated_count += not created
                self.stdout.write(f"  {'Created' if created else 'Updated'}: {name}")

                for child_order, (child_name, child_slug, child_description) in enumerate(children, start=1):
                    _, created = Category.objects.update_or_create(
                        slug=child_slug,
                        defaults={
                            'name': child_name,
                            'description': child_description,
                            'order': child_order * 10,
                            'parent': parent,
                        },
                    )
                    created_count += created
                    updated_count += not created
                    self.stdout.write(f"    {'Created' if created else 'Updated'}: {child_name}")

        self.stdout.write(self.style.SUCCESS(
            f"Categories created: {created_count}, updated: {updated_count}, total: {Category.objects.count()}"
        ))
