"""
WSGI config for the IskoLAR portal.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'iskolar_portal.settings')

application = get_wsgi_application()
