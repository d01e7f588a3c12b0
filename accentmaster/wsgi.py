"""WSGI config for the accentmaster project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'accentmaster.settings')

application = get_wsgi_application()
