"""
Django settings for the CarePortal patient/doctor API.
"""

import os
from datetime import timedelta
from pathlib import Path

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Application version
VERSION = os.environ.get('APP_VERSION', '1.0.0')
COMMIT_HASH = os.environ.get('COMMIT_HASH', None)

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'dev-secret-key-change-in-production')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.environ.get('DJANGO_DEBUG', 'False') == 'True'

ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',')

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Third-party apps
    'rest_framework',
    'rest_framework_simplejwt',
    'corsheaders',
    'drf_spectacular',

    # Local apps
    'apps.core',        # observability, health, current user
    'apps.authz',       # auth_user, auth_role, auth_user_role, doctors
    'apps.clinical',    # patients, vitals, reports, consultations, prescriptions, appointments
    'apps.documents',   # registration documents (lab reports, aadhaar)
]

# Add debug toolbar in development
if DEBUG:
    INSTALLED_APPS += ['debug_toolbar', 'django_extensions']

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'corsheaders.middleware.CorsMiddleware',  # CORS before CommonMiddleware
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'apps.core.observability.correlation.RequestCorrelationMiddleware',  # Request correlation
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

# Add debug toolbar middleware in development
if DEBUG:
    MIDDLEWARE.insert(0, 'debug_toolbar.middleware.DebugToolbarMiddleware')

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'

# Database
DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DATABASE_ENGINE', 'django.db.backends.postgresql'),
        'NAME': os.environ.get('DATABASE_NAME', 'careportal_db'),
        'USER': os.environ.get('DATABASE_USER', 'careportal_user'),
        'PASSWORD': os.environ.get('DATABASE_PASSWORD', 'careportal_dev_pass'),
        'HOST': os.environ.get('DATABASE_HOST', 'postgres'),
        'PORT': os.environ.get('DATABASE_PORT', '5432'),
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# Custom User Model
AUTH_USER_MODEL = 'authz.User'

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Sessions back the per-client AI summary cache (ai_summary_<patient>_<reports>)
SESSION_ENGINE = os.environ.get('SESSION_ENGINE', 'django.contrib.sessions.backends.db')

# ==============================================================================
# REST FRAMEWORK
# ==============================================================================
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_PAGINATION_CLASS': 'rest_framework.pagination.PageNumberPagination',
    'PAGE_SIZE': 50,
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
}

# ==============================================================================
# SIMPLE JWT
# ==============================================================================
SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(
        minutes=int(os.environ.get('JWT_ACCESS_TOKEN_LIFETIME_MINUTES', 60))
    ),
    'REFRESH_TOKEN_LIFETIME': timedelta(
        days=int(os.environ.get('JWT_REFRESH_TOKEN_LIFETIME_DAYS', 7))
    ),
    'ROTATE_REFRESH_TOKENS': True,
    'ALGORITHM': 'HS256',
    'SIGNING_KEY': os.environ.get('JWT_SIGNING_KEY', SECRET_KEY),
    'AUTH_HEADER_TYPES': ('Bearer',),
}

# ==============================================================================
# CORS
# ==============================================================================
CORS_ALLOWED_ORIGINS = os.environ.get(
    'DJANGO_CORS_ALLOWED_ORIGINS',
    'http://localhost:5173'
).split(',')

CORS_ALLOW_CREDENTIALS = True

# ==============================================================================
# DRF SPECTACULAR (OpenAPI Schema)
# ==============================================================================
SPECTACULAR_SETTINGS = {
    'TITLE': 'CarePortal API',
    'DESCRIPTION': 'Patient reports, prescriptions and AI report summaries',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
    'COMPONENT_SPLIT_REQUEST': True,
}

# ==============================================================================
# MINIO / S3 STORAGE
# ==============================================================================
MINIO_ENDPOINT = os.environ.get('MINIO_ENDPOINT', 'minio:9000')
MINIO_ACCESS_KEY = os.environ.get('MINIO_ACCESS_KEY', 'minioadmin')
MINIO_SECRET_KEY = os.environ.get('MINIO_SECRET_KEY', 'minioadmin')
MINIO_USE_SSL = os.environ.get('MINIO_USE_SSL', 'False') == 'True'

# MinIO buckets - all private, read through signed URLs only
MINIO_REPORTS_BUCKET = os.environ.get('MINIO_REPORTS_BUCKET', 'patient-reports')
MINIO_PROFILE_IMAGES_BUCKET = os.environ.get('MINIO_PROFILE_IMAGES_BUCKET', 'patient-profile-images')
MINIO_LAB_REPORTS_BUCKET = os.environ.get('MINIO_LAB_REPORTS_BUCKET', 'lab-reports')
MINIO_AADHAAR_BUCKET = os.environ.get('MINIO_AADHAAR_BUCKET', 'aadhaar-documents')

SIGNED_URL_EXPIRY_SECONDS = int(os.environ.get('SIGNED_URL_EXPIRY_SECONDS', 3600))

# ==============================================================================
# REPORTS
# ==============================================================================
# Max age (days) of an unreviewed report in the doctor's active worklist.
# Report types not listed here never age out.
REPORT_RETENTION_DAYS = {
    'lab_report': int(os.environ.get('LAB_REPORT_RETENTION_DAYS', 180)),
    'imaging': int(os.environ.get('IMAGING_RETENTION_DAYS', 365)),
}
MAX_REPORT_UPLOAD_BYTES = int(os.environ.get('MAX_REPORT_UPLOAD_BYTES', 10 * 1024 * 1024))

# ==============================================================================
# AI WEBHOOKS
# ==============================================================================
AI_SUMMARY_WEBHOOK_URL = os.environ.get('AI_SUMMARY_WEBHOOK_URL', '')
REPORT_CHAT_WEBHOOK_URL = os.environ.get('REPORT_CHAT_WEBHOOK_URL', '')
AI_WEBHOOK_TIMEOUT_SECONDS = int(os.environ.get('AI_WEBHOOK_TIMEOUT_SECONDS', 120))

# ==============================================================================
# LOGGING
# ==============================================================================
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'filters': {
        'correlation': {
            '()': 'apps.core.observability.logging.CorrelationFilter',
        },
    },
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {message}',
            'style': '{',
        },
        'json': {
            '()': 'apps.core.observability.logging.SanitizedJSONFormatter',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'json' if not DEBUG else 'verbose',
            'filters': ['correlation'],
        },
    },
    'root': {
        'handlers': ['console'],
        'level': os.environ.get('LOG_LEVEL', 'INFO'),
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': os.environ.get('DJANGO_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
        'apps': {
            'handlers': ['console'],
            'level': 'DEBUG' if DEBUG else 'INFO',
            'propagate': False,
        },
    },
}

# ==============================================================================
# DEBUG TOOLBAR (Development Only)
# ==============================================================================
if DEBUG:
    INTERNAL_IPS = ['127.0.0.1']
