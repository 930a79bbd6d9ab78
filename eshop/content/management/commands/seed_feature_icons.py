"""
Management command to add the default storefront feature icons
"""
from django.core.management.base import BaseCommand

from eshop.content.models import FeatureIcon

DEFAULT_FEATURE_ICONS = [
    {
        'key': 'doprava_zdarma',
        'title': 'Free Shipping',
        'title_cs': 'Doprava zdarma',
        'description': 'Free shipping on orders over 1000 CZK',
        'description_cs': 'Při objednávce nad 1000 Kč',
        'emoji': '🚚',
    },
    {
        'key': 'rychle_doruceni',
        'title': 'Fast Delivery',
        'title_cs': 'Rychlé doručení',
        'description': 'Delivery within 1-2 business days',
        'description_cs': 'Doručení do 1-2 pracovních dnů',
        'emoji': '⚡',
    },
    {
        'key': 'overene_recenze',
        'title': 'Verified Reviews',
        'title_cs': 'Ověřené recenze',
        'description': 'Real customer reviews',
        'description_cs': 'Skutečné recenze zákazníků',
        'emoji': '⭐',
    },
    {
        'key': 'zaruka_kvality',
        'title': 'Quality Guarantee',
        'title_cs': 'Záruka kvality',
        'description': '30-day money-back guarantee',
        'description_cs': '30denní záruka vrácení peněz',
        'emoji': '✅',
    },
    {
        'key': 'bezpecna_platba',
        'title': 'Secure Payment',
        'title_cs': 'Bezpečná platba',
        'description': 'SSL encrypted payment',
        'description_cs': 'Šifrovaná platba SSL',
        'emoji': '🔒',
    },
    {
        'key': 'ceska_firma',
        'title': 'Czech Company',
        'title_cs': 'Česká firma',
        'description': 'Local support and service',
        'description_cs': 'Lokální podpora a servis',
        'emoji': '🇨🇿',
    },
    {
        'key': 'podpora_24_7',
        'title': '24/7 Support',
        'title_cs': 'Podpora 24/7',
        'description': 'We are here for you anytime',
        'description_cs': 'Jsme tu pro vás kdykoliv',
        'emoji': '💬',
    },
    {
        'key': 'vyhodne_ceny',
        'title': 'Best Prices',
        'title_cs': 'Výhodné ceny',
        'description': 'Competitive prices guaranteed',
        'description_cs': 'Garance nejlepších cen',
        'emoji': '💰',
    },
]


class Command(BaseCommand):
    help = "Adds the default feature icons; existing keys are left untouched"

    def handle(self, *args, **options):
        created_count = 0
        skipped_count = 0

        for order, icon in enumerate(DEFAULT_FEATURE_ICONS, start=1):
            _, created = FeatureIcon.objects.get_or_create(
                key=icon['key'],
                defaults={**icon, 'order': order, 'is_active': True},
            )
            if created:
                created_count += 1
                self.stdout.write(f"  Created: {icon['title_cs']}")
            else:
                skipped_count += 1
                self.stdout.write(f"  Skipping {icon['title_cs']} - already exists")

        self.stdout.write(self.style.SUCCESS(
            f"Feature icons created: {created_count}, skipped: {skipped_count}"
        ))
