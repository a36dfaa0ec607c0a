from django.urls import include, path

from .routers import build_router

router = build_router()

urlpatterns = [
    # todas as rotas CRUD
    path("", include(router.urls)),
]
