"""WSGI entry point for the home services API."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'homeservices_api.settings')

application = get_wsgi_application()
