import os

from decouple import config
from django.core.wsgi import get_wsgi_application

from config.structlog_config import configure_logging

# 1) Logging antes de qualquer logger ser criado
configure_logging(level=config("LOG_LEVEL", default="INFO"), json_logs=config("JSON_LOGS", default=False, cast=bool))

# 2) Ajuste padrão de settings
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# 3) Cria a aplicação WSGI (o DI container sobe no AppConfig.ready)
application = get_wsgi_application()
