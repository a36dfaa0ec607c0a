from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from crm_core.core.domain.events.exceptions import ValidationError
from crm_core.core.domain.value_objects._parsing import to_decimal

MAX_DEAL_AMOUNT = Decimal("999999999999.99")
DEFAULT_CURRENCY = "PLN"

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True, slots=True)
class DealValue:
    """
    Valor monetário de um deal: `amount` (0 ≤ amount ≤ 999 999 999 999,99)
    + código ISO-4217 de 3 letras maiúsculas.

    Use sempre `DealValue.create(...)`; o construtor direto é reservado a
    `from_validated` (reidratação a partir do banco).
    """

    amount: Decimal
    currency: str

    @classmethod
    def create(cls, amount: Any, currency: str | None = DEFAULT_CURRENCY) -> DealValue:
        parsed = to_decimal(amount, "Wartość deala musi być liczbą")

        if parsed < 0:
            raise ValidationError("Wartość deala nie może być ujemna")
        if parsed > MAX_DEAL_AMOUNT:
            raise ValidationError("Wartość deala jest zbyt duża (max 999,999,999,999.99)")

        code = currency.strip().upper() if isinstance(currency, str) else ""
        if len(code) != 3:
            raise ValidationError("Kod waluty musi składać się z 3 znaków (np. PLN, EUR, USD)")
        if not _CURRENCY_RE.match(code):
            raise ValidationError("Nieprawidłowy format kodu waluty")

        return cls(amount=parsed, currency=code)

    @classmethod
    def from_validated(cls, amount: Decimal, currency: str) -> DealValue:
        return cls(amount=Decimal(amount), currency=currency)

    def with_currency(self, currency: str) -> DealValue:
        """Mesmo valor em outra moeda, revalidado."""
        return DealValue.create(self.amount, currency)

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"
