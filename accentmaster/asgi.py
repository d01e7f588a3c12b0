"""ASGI config for the accentmaster project."""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'accentmaster.settings')

application = get_asgi_application()
