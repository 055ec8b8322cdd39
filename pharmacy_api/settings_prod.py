import os
from urllib.parse import urlparse

import dj_database_url

from .settings import *  # noqa: F401,F403
from .settings import BASE_DIR, MIDDLEWARE

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get('SECRET_KEY', '')
if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY must be set when running with settings_prod")

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.environ.get('DEBUG', 'False') == 'True'

ALLOWED_HOSTS = [
    '127.0.0.1',
    'localhost',
]

# Public hostname of the deployment, e.g. "indent.example.org"
public_domain = os.environ.get('PUBLIC_DOMAIN')
if public_domain:
    ALLOWED_HOSTS.append(public_domain)

# FRONTEND_URL may be a full URL; only its host goes into ALLOWED_HOSTS
FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:5173')
parsed = urlparse(FRONTEND_URL)
if parsed.netloc and parsed.hostname not in ALLOWED_HOSTS:
    ALLOWED_HOSTS.append(parsed.hostname)

MIDDLEWARE = list(MIDDLEWARE)
MIDDLEWARE.insert(1, 'whitenoise.middleware.WhiteNoiseMiddleware')  # Pour servir les fichiers statiques

# Database
# PostgreSQL when DATABASE_URL is provided, SQLite otherwise
DATABASE_URL = os.environ.get('DATABASE_URL')
if DATABASE_URL:
    DATABASES = {
        'default': dj_database_url.config(
            default=DATABASE_URL,
            conn_max_age=600,
            conn_health_checks=True,
        )
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

# Static files (CSS, JavaScript, Images)
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage',
    },
}

CORS_ALLOWED_ORIGINS = [
    FRONTEND_URL,
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

# Security settings for production
if not DEBUG:
    # TLS is terminated at the proxy, which sets X-Forwarded-Proto
    SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
    SECURE_SSL_REDIRECT = False

    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True

    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = 'DENY'
