class DomainError(Exception):
    """Classe base para todas as exceções de domínio do CRM."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """
    Falha de construção de um value object ou de payload inválido.
    Exemplos:
    - valor negativo ou acima do máximo;
    - código de moeda mal formado;
    - probabilidade fora de 0-100;
    - etapa desconhecida.
    """
    pass


class NotFoundError(DomainError):
    """Entidade inexistente."""

    def __init__(self, message: str = "Nie znaleziono") -> None:
        super().__init__(message)


class ForbiddenError(DomainError):
    """O usuário não passa no predicado de acesso ao cliente."""

    def __init__(self, message: str = "Brak uprawnień") -> None:
        super().__init__(message)


class InvalidTransitionError(DomainError):
    """O pipeline recusou a mudança de etapa."""
    pass


class AlreadyClosedError(InvalidTransitionError):
    """Tentativa de fechar (ou mover) um deal que já está WON/LOST."""

    def __init__(self, message: str = "Deal jest już zamknięty") -> None:
        super().__init__(message)


class ConcurrentUpdateError(DomainError):
    """
    Outro escritor atualizou a linha entre o `find_by_id` e o `update`
    (versão divergente).
    """

    def __init__(self, message: str = "Rekord został zmieniony przez innego użytkownika") -> None:
        super().__init__(message)
