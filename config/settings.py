from pathlib import Path

from decouple import Csv, config

# -------------------------------
# Diretórios base
# -------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

# -------------------------------
# Segurança e debug
# -------------------------------
SECRET_KEY = config('SECRET_KEY', default='dev-insecure-secret-key')
DEBUG = config('DEBUG', default=False, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,testserver', cast=Csv())

SESSION_COOKIE_SECURE   = config('SESSION_COOKIE_SECURE', default=False, cast=bool)
SESSION_COOKIE_HTTPONLY = config('SESSION_COOKIE_HTTPONLY', default=True, cast=bool)
CSRF_COOKIE_SECURE      = config('CSRF_COOKIE_SECURE', default=False, cast=bool)
CSRF_TRUSTED_ORIGINS    = config('CSRF_TRUSTED_ORIGINS', default='http://localhost:3000', cast=Csv())

# -------------------------------
# Logging
# -------------------------------
LOG_LEVEL = config('LOG_LEVEL', default='INFO')
JSON_LOGS = config('JSON_LOGS', default=False, cast=bool)

# -------------------------------
# Pipeline de negócios
# -------------------------------
# Moeda usada quando o payload de criação não informa `currency`.
DEFAULT_DEAL_CURRENCY = config('DEFAULT_DEAL_CURRENCY', default='PLN')
DEFAULT_PAGE_SIZE     = config('DEFAULT_PAGE_SIZE', default=50, cast=int)
MAX_PAGE_SIZE         = config('MAX_PAGE_SIZE', default=200, cast=int)

# -------------------------------
# Apps, Middleware, URLs
# -------------------------------
INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'rest_framework',
    'plugins.django_interface.apps.DjangoInterfaceConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'plugins.django_interface.request_middleware.RequestContextMiddleware',
]

ROOT_URLCONF = 'crm_api.urls'
WSGI_APPLICATION = 'crm_api.wsgi.application'
ASGI_APPLICATION = 'crm_api.asgi.application'

# -------------------------------
# REST Framework
# -------------------------------
# A autenticação é responsabilidade do gateway/colaborador externo: as views
# apenas leem `request.user` (id, role, email) já resolvido.
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": (
        "plugins.django_interface.permissions.IsAuthenticatedCrmUser",
    ),
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "plugins.django_interface.exception_handler.crm_exception_handler",
}

# -------------------------------
# Banco de Dados
# -------------------------------
DATABASES = {
    'default': {
        'ENGINE':   config('DB_ENGINE', default='django.db.backends.sqlite3'),
        'NAME':     config('DB_NAME', default=str(BASE_DIR / 'db.sqlite3')),
        'USER':     config('DB_USER', default=''),
        'PASSWORD': config('DB_PASS', default=''),
        'HOST':     config('DB_HOST', default=''),
        'PORT':     config('DB_PORT', default=''),
    }
}

# -------------------------------
# Internacionalização
# -------------------------------
LANGUAGE_CODE = 'pl'
TIME_ZONE     = config('TIME_ZONE', default='Europe/Warsaw')
USE_I18N      = True
USE_TZ        = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
