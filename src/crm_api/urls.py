from django.urls import include, path

from crm_core.adapters.observability.metrics import metrics

urlpatterns = [
    path('api/',     include('plugins.django_interface.urls')),
    path('metrics/', metrics, name='metrics'),
]
