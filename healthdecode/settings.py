# healthdecode/settings.py

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

# Load environment variables
load_dotenv(BASE_DIR / '.env')


def env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_int(name, default):
    value = os.getenv(name)
    return int(value) if value else default


SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-development-key-change-me-before-deploying')
DEBUG = env_bool('DJANGO_DEBUG', False)
ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',') if h.strip()]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'accounts',
    'medassist',
]

MIDDLEWARE = [
    'healthdecode.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'healthdecode.middleware.ApiErrorMiddleware',
]

ROOT_URLCONF = 'healthdecode.urls'
WSGI_APPLICATION = 'healthdecode.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

# --- Database ---
# Connections are opened once per worker thread and reused (CONN_MAX_AGE);
# a failed health check drops the connection and the next query reconnects.
DB_CONNECT_TIMEOUT_SECONDS = env_int('DB_CONNECT_TIMEOUT_SECONDS', 10)
DATABASE_ENGINE = os.getenv('DATABASE_ENGINE', 'sqlite').lower()

if DATABASE_ENGINE in ('postgres', 'postgresql'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.getenv('DATABASE_NAME', 'healthdecode'),
            'USER': os.getenv('DATABASE_USER', ''),
            'PASSWORD': os.getenv('DATABASE_PASSWORD', ''),
            'HOST': os.getenv('DATABASE_HOST', 'localhost'),
            'PORT': os.getenv('DATABASE_PORT', '5432'),
            'CONN_MAX_AGE': 60,
            'CONN_HEALTH_CHECKS': True,
            'OPTIONS': {'connect_timeout': DB_CONNECT_TIMEOUT_SECONDS},
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.getenv('DATABASE_NAME', str(BASE_DIR / 'db.sqlite3')),
            'CONN_MAX_AGE': 60,
            'CONN_HEALTH_CHECKS': True,
            # sqlite has no connect step; this bounds the wait for a locked database instead
            'OPTIONS': {'timeout': DB_CONNECT_TIMEOUT_SECONDS},
        }
    }

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator', 'OPTIONS': {'min_length': 8}},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

# Uploaded files are processed in memory and never written to disk
DATA_UPLOAD_MAX_MEMORY_SIZE = 11 * 1024 * 1024
FILE_UPLOAD_MAX_MEMORY_SIZE = 11 * 1024 * 1024

# --- CORS (frontend origin that may send the token cookie) ---
CORS_ALLOWED_ORIGIN = os.getenv('CORS_ALLOWED_ORIGIN', 'http://localhost:3000')

# --- Auth tokens ---
AUTH_TOKEN_COOKIE = 'token'
AUTH_TOKEN_MAX_AGE = 7 * 24 * 60 * 60  # 7 days
PASSWORD_RESET_TOKEN_MAX_AGE = 15 * 60  # 15 minutes
AUTH_COOKIE_SECURE = env_bool('AUTH_COOKIE_SECURE', not DEBUG)
APP_BASE_URL = os.getenv('APP_BASE_URL', 'http://localhost:3000')

# --- Email (password reset only) ---
EMAIL_BACKEND = os.getenv('EMAIL_BACKEND', 'django.core.mail.backends.console.EmailBackend')
EMAIL_HOST = os.getenv('EMAIL_HOST', 'localhost')
EMAIL_PORT = env_int('EMAIL_PORT', 25)
EMAIL_HOST_USER = os.getenv('EMAIL_HOST_USER', '')
EMAIL_HOST_PASSWORD = os.getenv('EMAIL_HOST_PASSWORD', '')
EMAIL_USE_TLS = env_bool('EMAIL_USE_TLS', False)
DEFAULT_FROM_EMAIL = os.getenv('DEFAULT_FROM_EMAIL', 'HealthDecode <onboarding@healthdecode.local>')

# --- Generative AI ---
# 'openai' uses the live LangChain client when OPENAI_API_KEY is set,
# 'offline' always uses the deterministic canned client.
AI_PROVIDER = os.getenv('AI_PROVIDER', 'openai').lower()
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
AI_MODEL = os.getenv('AI_MODEL', 'gpt-3.5-turbo')
AI_TEMPERATURE = float(os.getenv('AI_TEMPERATURE', '0.7'))
AI_MAX_TOKENS = env_int('AI_MAX_TOKENS', 1000)
AI_TIMEOUT_SECONDS = env_int('AI_TIMEOUT_SECONDS', 30)

# --- OCR provider (OCR.space compatible) ---
OCR_API_URL = os.getenv('OCR_API_URL', 'https://api.ocr.space/parse/image')
OCR_API_KEY = os.getenv('OCR_API_KEY')
OCR_TIMEOUT_SECONDS = env_int('OCR_TIMEOUT_SECONDS', 30)

# --- Reports and chat ---
REPORT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
REPORT_LIST_LIMIT = 50
HISTORY_PAGE_SIZE = 50
CHAT_MAX_MESSAGE_LENGTH = env_int('CHAT_MAX_MESSAGE_LENGTH', 4000)

LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG' if DEBUG else 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s - %(name)s - %(module)s - %(levelname)s - %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'WARNING', 'propagate': False},
        'healthdecode': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'accounts': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'medassist': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}
