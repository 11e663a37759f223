"""
WSGI config for restopos project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'restopos.settings')

application = get_wsgi_application()
