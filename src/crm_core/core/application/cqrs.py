from __future__ import annotations

import inspect
import math
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

import structlog
from asgiref.sync import async_to_sync

from crm_core.adapters.observability.metrics import HANDLER_DURATION

# ───────────────────────────────────────────────
# CQRS genérico com paginação e log de performance
# ───────────────────────────────────────────────

C = TypeVar("C")  # Command type
Q = TypeVar("Q")  # Query filtros type
R = TypeVar("R")  # Query result type
T = TypeVar("T")  # PagedResult item type

logger = structlog.get_logger(__name__)


# ───────────────────────────────────────────────
# DTOs
# ───────────────────────────────────────────────
@dataclass(frozen=True)
class CommandDTO:
    """Base para todos comandos de escrita (Create/Update/Delete/Close)."""
    pass


@dataclass(frozen=True)
class QueryDTO(Generic[Q]):
    """Base para consultas de leitura."""
    filtros: Q


@dataclass(frozen=True)
class PaginatedQueryDTO(Generic[Q]):
    """Consulta paginada: filtros + paginação."""
    filtros: Q
    page: int = 1
    page_size: int = 50


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    """Resultado paginado padrão."""
    items: Sequence[T]
    total: int
    page: int
    page_size: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "total_pages", math.ceil(self.total / self.page_size) if self.page_size else 0)


# ───────────────────────────────────────────────
# Handlers Protocols
# ───────────────────────────────────────────────
class CommandHandler(Protocol, Generic[C]):
    async def handle(self, command: C) -> Any:
        """Processa um comando e aplica mudanças de estado."""
        ...


class QueryHandler(Protocol, Generic[Q, R]):
    async def handle(self, query: QueryDTO[Q]) -> R:
        """Processa uma consulta e retorna um resultado."""
        ...


# ───────────────────────────────────────────────
# Buses com logging e métricas
# ───────────────────────────────────────────────
class _Bus:
    kind = "bus"

    def __init__(self) -> None:
        self._handlers: dict[type, Any] = {}

    def register(self, message_type: type, handler: Any) -> None:
        self._handlers[message_type] = handler
        logger.debug("handler_registered", kind=self.kind, message=message_type.__name__)

    def _handler_for(self, message: Any) -> Any:
        handler = self._handlers.get(type(message))
        if not handler:
            raise ValueError(f"Nenhum handler para {self.kind}: {type(message).__name__}")
        return handler

    async def adispatch(self, message: Any) -> Any:
        """Despacho a partir de código assíncrono (ASGI, testes async)."""
        handler = self._handler_for(message)
        name = type(message).__name__
        start = time.perf_counter()
        logger.info(f"{self.kind}_started", **{self.kind: name})
        try:
            result = handler.handle(message)
            if inspect.isawaitable(result):
                result = await result
        finally:
            elapsed = time.perf_counter() - start
            HANDLER_DURATION.labels(kind=self.kind, name=name).observe(elapsed)
        logger.info(f"{self.kind}_finished", **{self.kind: name}, duration=f"{elapsed:.3f}s")
        return result

    def dispatch(self, message: Any) -> Any:
        """Despacho a partir de código síncrono (views DRF, management commands)."""
        return async_to_sync(self.adispatch)(message)


class CommandBus(_Bus):
    """Dispatcher de comandos com medição de performance."""
    kind = "command"


class QueryBus(_Bus):
    """Dispatcher de queries com medição e suporte à paginação."""
    kind = "query"


class CommandBusImpl(CommandBus):
    pass


class QueryBusImpl(QueryBus):
    """
    Implementação padrão de QueryBus (herda toda a lógica de QueryBus).
    """
    pass
