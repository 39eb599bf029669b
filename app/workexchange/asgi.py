"""
ASGI config for the workexchange project.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "workexchange.settings")

application = get_asgi_application()
