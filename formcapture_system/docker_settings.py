"""
Docker-specific Django settings for formcapture_system project.
"""

import os
from .settings import *

DEBUG = os.environ.get('DEBUG', 'False').lower() == 'true'

SECRET_KEY = os.environ.get('SECRET_KEY', 'django-insecure-docker-secret-key-change-in-production')

ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',')

# Database settings come from DATABASE_* variables handled in settings.py

STATIC_URL = '/static/'
STATIC_ROOT = '/app/staticfiles'
MEDIA_ROOT = '/app/media'

if os.path.exists('/app'):
    LOG_DIR = '/app/logs'
    os.makedirs(LOG_DIR, exist_ok=True)
    LOGGING['handlers']['file']['filename'] = os.path.join(LOG_DIR, 'formcapture.log')

if not DEBUG:
    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = 'DENY'
