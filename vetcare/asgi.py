"""
ASGI config for the VetCare project.

HTTP only; the service has no websocket routes.
"""
import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "vetcare.settings")

application = get_asgi_application()
