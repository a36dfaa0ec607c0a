from rest_framework.routers import DefaultRouter

from .views.contact_views import ContactViewSet
from .views.deal_views import DealViewSet
from .views.task_views import TaskViewSet

# lista de (rota, ViewSet)
RESOURCES = [
    ("deals",    DealViewSet),
    ("tasks",    TaskViewSet),
    ("contacts", ContactViewSet),
]


def build_router() -> DefaultRouter:
    router = DefaultRouter(trailing_slash=False)
    for prefix, viewset in RESOURCES:
        router.register(prefix, viewset, basename=prefix.replace("-", "_"))
    return router
