import os

from decouple import config

from config.structlog_config import configure_logging

configure_logging(level=config("LOG_LEVEL", default="INFO"), json_logs=config("JSON_LOGS", default=False, cast=bool))
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

from django.core.asgi import get_asgi_application  # noqa: E402

application = get_asgi_application()
