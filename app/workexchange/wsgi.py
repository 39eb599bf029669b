"""
WSGI config for the workexchange project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "workexchange.settings")

application = get_wsgi_application()
