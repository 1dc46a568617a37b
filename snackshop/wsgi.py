"""WSGI entrypoint for the snack shop service."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "snackshop.settings")

application = get_wsgi_application()
