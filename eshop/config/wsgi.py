"""
WSGI config for the eshop project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'eshop.config.settings')

application = get_wsgi_application()
