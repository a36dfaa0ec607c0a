#!/usr/bin/env python
import os
import sys

from decouple import config

from config.structlog_config import configure_logging

configure_logging(level=config("LOG_LEVEL", default="DEBUG"), json_logs=config("JSON_LOGS", default=False, cast=bool))
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

def main():
    """Função principal para a execução das tasks de gerenciamento do Django."""
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Não foi possível importar Django. Verifique se está instalado e no seu PYTHONPATH."
        ) from exc

    execute_from_command_line(sys.argv)

if __name__ == '__main__':
    main()
