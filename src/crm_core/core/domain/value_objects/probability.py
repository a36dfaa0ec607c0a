from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from crm_core.core.domain.events.exceptions import ValidationError
from crm_core.core.domain.value_objects._parsing import to_decimal


@dataclass(frozen=True, slots=True)
class Probability:
    """Probabilidade de fechamento, inteiro em [0, 100]."""

    value: int

    @classmethod
    def create(cls, probability: Any) -> Probability:
        parsed = to_decimal(probability, "Prawdopodobieństwo musi być liczbą")
        if parsed < 0 or parsed > 100:
            raise ValidationError("Prawdopodobieństwo musi być w zakresie 0-100%")
        # meio para cima (49.5 → 50), igual ao arredondamento exibido na UI
        return cls(value=int(parsed.quantize(Decimal(1), rounding=ROUND_HALF_UP)))

    @classmethod
    def from_validated(cls, value: int) -> Probability:
        return cls(value=int(value))

    def __str__(self) -> str:
        return f"{self.value}%"
