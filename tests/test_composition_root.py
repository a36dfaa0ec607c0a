from django.test import SimpleTestCase

from crm_core.adapters.config import composition_root

INFRA_PROVIDERS = {
    "config",
    "command_bus",
    "query_bus",
    "deal_repo",
    "task_repo",
    "contact_repo",
    "client_repo",
    "activity_log_repo",
    "pipeline_service",
    "access_policy",
    "activity_logger",
}


class CompositionRootTests(SimpleTestCase):
    def test_every_handler_is_registered_on_a_bus(self):
        container = composition_root.container
        handler_names = {name for name in container.providers if name.endswith("_handler")}
        registered = len(container.command_bus()._handlers) + len(container.query_bus()._handlers)
        self.assertEqual(registered, len(handler_names))

    def test_container_declares_only_wired_providers(self):
        container = composition_root.container
        extra = {name for name in container.providers if not name.endswith("_handler")} - INFRA_PROVIDERS
        self.assertEqual(extra, set())
