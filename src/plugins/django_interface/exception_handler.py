import pydantic
import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from crm_core.core.domain.events.exceptions import (
    ConcurrentUpdateError,
    DomainError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

# mensagens genéricas: não revelam se o recurso existe para outro usuário
NOT_FOUND_MESSAGE = "Nie znaleziono"
FORBIDDEN_MESSAGE = "Brak uprawnień"
INTERNAL_ERROR_MESSAGE = "Wystąpił nieoczekiwany błąd"


def _pydantic_message(exc: pydantic.ValidationError) -> str:
    first = exc.errors()[0]
    msg = first.get("msg", "Nieprawidłowe dane")
    return msg.removeprefix("Value error, ")


def crm_exception_handler(exc, context):
    """Traduz a hierarquia de erros de domínio para respostas HTTP."""
    view = type(context.get("view")).__name__ if context.get("view") else None

    if isinstance(exc, NotFoundError):
        return Response({"error": NOT_FOUND_MESSAGE}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, ForbiddenError):
        return Response({"error": FORBIDDEN_MESSAGE}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, ConcurrentUpdateError):
        return Response({"error": exc.message}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, (ValidationError, InvalidTransitionError)):
        return Response({"error": exc.message}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, pydantic.ValidationError):
        fields = [".".join(str(p) for p in e["loc"]) for e in exc.errors()]
        return Response(
            {"error": _pydantic_message(exc), "fields": fields},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, DomainError):
        logger.warning("unmapped_domain_error", view=view, error=type(exc).__name__)
        return Response({"error": exc.message}, status=status.HTTP_400_BAD_REQUEST)

    response = drf_exception_handler(exc, context)
    if response is not None:
        return response

    logger.error("unhandled_exception", view=view, error=str(exc), exc_info=exc)
    return Response({"error": INTERNAL_ERROR_MESSAGE}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
