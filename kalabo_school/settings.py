import pymysql
pymysql.install_as_MySQLdb()

"""
Settings for the Kalabo school portal.

Every deploy-specific value comes from the environment (or a ``.env`` file)
through python-decouple. ``DJANGO_ENVIRONMENT`` picks development, staging
or production; running under ``manage.py test`` or pytest switches to an
in-memory database and quiet logging.
"""

import sys
import logging
from pathlib import Path
from datetime import timedelta
from django.core.management.utils import get_random_secret_key
from decouple import config, Csv

BASE_DIR = Path(__file__).resolve().parent.parent

# ==================== ENVIRONMENT ====================
ENVIRONMENT = config('DJANGO_ENVIRONMENT', default='development')
IS_PRODUCTION = ENVIRONMENT == 'production'
IS_STAGING = ENVIRONMENT == 'staging'
IS_DEVELOPMENT = ENVIRONMENT == 'development'
IS_TESTING = 'test' in sys.argv or 'pytest' in sys.modules

SECRET_KEY = config('SECRET_KEY', default=get_random_secret_key())
DEBUG = config('DEBUG', default=not IS_PRODUCTION, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,testserver', cast=Csv())

if IS_PRODUCTION and DEBUG:
    raise ValueError("Refusing to start: DEBUG is on in production")

# ==================== APPS AND MIDDLEWARE ====================
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'django.contrib.humanize',
    # third party
    'rest_framework',
    'rest_framework.authtoken',
    'django_filters',
    'corsheaders',
    'axes',
    # portal
    'accounts',
    'core',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    # last, so it sees authentication results
    'axes.middleware.AxesMiddleware',
]

ROOT_URLCONF = 'kalabo_school.urls'
WSGI_APPLICATION = 'kalabo_school.wsgi.application'
ASGI_APPLICATION = 'kalabo_school.asgi.application'

TEMPLATES = [{
    'BACKEND': 'django.template.backends.django.DjangoTemplates',
    'DIRS': [BASE_DIR / 'templates'],
    'APP_DIRS': True,
    'OPTIONS': {
        'context_processors': [
            'django.template.context_processors.request',
            'django.contrib.auth.context_processors.auth',
            'django.contrib.messages.context_processors.messages',
            'core.context_processors.school_context',
        ],
    },
}]

# ==================== DATABASE ====================
# DB_ENGINE=mysql talks to MySQL through PyMySQL; anything else is SQLite.
DB_ENGINE = config('DB_ENGINE', default='sqlite')

if IS_TESTING:
    _database = {'ENGINE': 'django.db.backends.sqlite3', 'NAME': ':memory:'}
elif DB_ENGINE == 'mysql':
    _database = {
        'ENGINE': 'django.db.backends.mysql',
        'NAME': config('DB_NAME', default='kalabo_school'),
        'USER': config('DB_USER', default='kalabo'),
        'PASSWORD': config('DB_PASSWORD', default=''),
        'HOST': config('DB_HOST', default='127.0.0.1'),
        'PORT': config('DB_PORT', default=3306, cast=int),
        'CONN_MAX_AGE': config('DB_CONN_MAX_AGE', default=60, cast=int),
        'OPTIONS': {'charset': 'utf8mb4', 'init_command': "SET sql_mode='STRICT_TRANS_TABLES'"},
    }
else:
    _database = {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': config('SQLITE_PATH', default=str(BASE_DIR / 'db.sqlite3')),
        'OPTIONS': {'timeout': 30},
    }

DATABASES = {'default': _database}
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ==================== AUTHENTICATION ====================
AUTH_USER_MODEL = 'accounts.CustomUser'
LOGIN_URL = 'signin'
LOGIN_REDIRECT_URL = 'dashboard'
LOGOUT_REDIRECT_URL = 'signin'

AUTHENTICATION_BACKENDS = [
    'axes.backends.AxesStandaloneBackend',
    'django.contrib.auth.backends.ModelBackend',
]

AUTH_PASSWORD_VALIDATORS = [] if IS_TESTING else [
    {'NAME': f'django.contrib.auth.password_validation.{name}'}
    for name in (
        'UserAttributeSimilarityValidator',
        'MinimumLengthValidator',
        'CommonPasswordValidator',
        'NumericPasswordValidator',
    )
]

if IS_TESTING:
    PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

# Sign-in lockout
AXES_ENABLED = config('AXES_ENABLED', default=not IS_TESTING, cast=bool)
AXES_FAILURE_LIMIT = config('MAX_LOGIN_ATTEMPTS', default=5, cast=int)
AXES_COOLOFF_TIME = timedelta(minutes=config('LOCKOUT_MINUTES', default=15, cast=int))
AXES_LOCKOUT_PARAMETERS = ['username']
AXES_RESET_ON_SUCCESS = True

# ==================== SESSIONS AND HTTPS ====================
SESSION_COOKIE_NAME = 'kalabo_sessionid'
SESSION_COOKIE_AGE = config('SESSION_COOKIE_AGE', default=60 * 60 * 24 * 14, cast=int)
SESSION_COOKIE_SAMESITE = CSRF_COOKIE_SAMESITE = 'Lax'
CSRF_TRUSTED_ORIGINS = config('CSRF_TRUSTED_ORIGINS', default='http://localhost:8000', cast=Csv())

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = 'same-origin'
X_FRAME_OPTIONS = 'DENY'

_https = IS_PRODUCTION or IS_STAGING
SECURE_SSL_REDIRECT = SESSION_COOKIE_SECURE = CSRF_COOKIE_SECURE = _https
if _https:
    SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
    SECURE_HSTS_SECONDS = config('HSTS_SECONDS', default=60 * 60 * 24 * 365, cast=int)
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True

# ==================== STATIC AND UPLOADS ====================
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
MEDIA_URL = '/media/'
MEDIA_ROOT = BASE_DIR / ('test_media' if IS_TESTING else 'media')

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': (
        'django.contrib.staticfiles.storage.StaticFilesStorage' if IS_TESTING
        else 'whitenoise.storage.CompressedManifestStaticFilesStorage'
    )},
}

ALLOWED_UPLOAD_EXTENSIONS = ['csv', 'xlsx']
MAX_UPLOAD_SIZE = config('MAX_UPLOAD_SIZE', default=10 * 1024 * 1024, cast=int)
DATA_UPLOAD_MAX_MEMORY_SIZE = FILE_UPLOAD_MAX_MEMORY_SIZE = config(
    'UPLOAD_MEMORY_LIMIT', default=5 * 1024 * 1024, cast=int
)

# ==================== LOCALE ====================
LANGUAGE_CODE = 'en-gb'
TIME_ZONE = config('TIME_ZONE', default='Africa/Lusaka')
USE_I18N = True
USE_TZ = True

# ==================== EMAIL ====================
if IS_TESTING:
    EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
else:
    EMAIL_BACKEND = config('EMAIL_BACKEND', default=(
        'django.core.mail.backends.console.EmailBackend' if IS_DEVELOPMENT
        else 'django.core.mail.backends.smtp.EmailBackend'
    ))
EMAIL_HOST = config('EMAIL_HOST', default='localhost')
EMAIL_PORT = config('EMAIL_PORT', default=587, cast=int)
EMAIL_HOST_USER = config('EMAIL_HOST_USER', default='')
EMAIL_HOST_PASSWORD = config('EMAIL_HOST_PASSWORD', default='')
EMAIL_USE_TLS = config('EMAIL_USE_TLS', default=True, cast=bool)
DEFAULT_FROM_EMAIL = config('DEFAULT_FROM_EMAIL', default='reports@kalabo.school.zm')

# ==================== REST API ====================
_renderers = ['rest_framework.renderers.JSONRenderer']
if DEBUG and not IS_TESTING:
    _renderers.append('rest_framework.renderers.BrowsableAPIRenderer')

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
        'rest_framework.authentication.TokenAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.IsAuthenticated'],
    'DEFAULT_RENDERER_CLASSES': _renderers,
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
        'rest_framework.parsers.MultiPartParser',
        'rest_framework.parsers.FormParser',
    ],
    'DEFAULT_FILTER_BACKENDS': [
        'django_filters.rest_framework.DjangoFilterBackend',
        'rest_framework.filters.SearchFilter',
        'rest_framework.filters.OrderingFilter',
    ],
    'DEFAULT_PAGINATION_CLASS': None,
    'EXCEPTION_HANDLER': 'core.api.exception_handlers.custom_exception_handler',
    'TEST_REQUEST_DEFAULT_FORMAT': 'json',
}

CORS_ALLOWED_ORIGINS = config('CORS_ALLOWED_ORIGINS', default='', cast=Csv())
CORS_ALLOW_CREDENTIALS = True

# ==================== LOGGING ====================
LOGS_DIR = BASE_DIR / 'logs'
LOGS_DIR.mkdir(exist_ok=True)


def _rotating(filename, level):
    return {
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': LOGS_DIR / filename,
        'level': level,
        'maxBytes': 10 * 1024 * 1024,
        'backupCount': 5,
        'formatter': 'detailed',
    }


_app_level = 'DEBUG' if DEBUG else 'INFO'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'detailed': {'format': '{asctime} {levelname} {name}:{lineno} {message}', 'style': '{'},
        'short': {'format': '{levelname} {name} {message}', 'style': '{'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'short'},
        'file': _rotating('django.log', 'INFO'),
        'error_file': _rotating('errors.log', 'ERROR'),
    },
    'loggers': {
        'django': {'handlers': ['console', 'file'], 'level': 'INFO', 'propagate': False},
        'django.request': {'handlers': ['console', 'error_file'], 'level': 'ERROR', 'propagate': False},
        'axes': {'handlers': ['console', 'file'], 'level': 'WARNING', 'propagate': False},
        **{
            app: {'handlers': ['console', 'file', 'error_file'], 'level': _app_level, 'propagate': False}
            for app in ('core', 'accounts')
        },
    },
    'root': {'handlers': ['console'], 'level': 'WARNING'},
}

if IS_TESTING:
    logging.disable(logging.CRITICAL)

# ==================== PORTAL ====================
SCHOOL_NAME = config('SCHOOL_NAME', default='KALABO SECONDARY SCHOOL')
SCHOOL_MOTTO = config('SCHOOL_MOTTO', default='Excellence Through Diligence')
REPORT_DEFAULT_COMMENT = config('REPORT_DEFAULT_COMMENT', default='Good performance overall. Shows improvement.')

# Share of a class that must be marked before a subject counts as submitted
SUBMISSION_THRESHOLD = config('SUBMISSION_THRESHOLD', default=0.8, cast=float)
ATTENDANCE_HISTORY_LIMIT = config('ATTENDANCE_HISTORY_LIMIT', default=50, cast=int)
