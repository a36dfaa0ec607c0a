import os

from django.http import HttpResponse
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    multiprocess,
)

registry = CollectorRegistry()
# gunicorn com vários workers: agrega os arquivos de PROMETHEUS_MULTIPROC_DIR
if os.getenv("PROMETHEUS_MULTIPROC_DIR"):
    multiprocess.MultiProcessCollector(registry)

DEAL_STAGE_TRANSITIONS = Counter(
    "crm_deal_stage_transitions_total",
    "Mudancas de etapa aplicadas a deals",
    ["from_stage", "to_stage"],
    registry=registry,
)

DEALS_CLOSED = Counter(
    "crm_deals_closed_total",
    "Deals fechados via CloseDeal",
    ["outcome"],
    registry=registry,
)

ACTIVITY_LOG_FAILURES = Counter(
    "crm_activity_log_failures_total",
    "Falhas ao gravar o log de auditoria (nao interrompem o fluxo)",
    ["action"],
    registry=registry,
)

CONCURRENT_UPDATE_CONFLICTS = Counter(
    "crm_concurrent_update_conflicts_total",
    "Updates rejeitados por versao divergente",
    ["entity"],
    registry=registry,
)

HANDLER_DURATION = Histogram(
    "crm_handler_duration_seconds",
    "Duracao de comandos e queries despachados pelos buses",
    ["kind", "name"],
    registry=registry,
)


def metrics(request):
    data = generate_latest(registry)
    return HttpResponse(data, content_type=CONTENT_TYPE_LATEST)
