"""
WSGI config for the healthdecode project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'healthdecode.settings')

application = get_wsgi_application()
