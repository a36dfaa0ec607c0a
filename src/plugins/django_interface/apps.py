import structlog
from django.apps import AppConfig

logger = structlog.get_logger(__name__)

class DjangoInterfaceConfig(AppConfig):
    name = "plugins.django_interface"
    verbose_name = "CRM Django Interface"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        from django.conf import settings

        # ─── DI container ───────────────────────────────────────────
        from crm_core.adapters.config.composition_root import setup_di_container_from_settings

        setup_di_container_from_settings(settings)
        logger.info("django_interface_ready")
