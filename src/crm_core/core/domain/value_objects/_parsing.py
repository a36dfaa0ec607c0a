from decimal import Decimal, InvalidOperation
from typing import Any

from crm_core.core.domain.events.exceptions import ValidationError


def to_decimal(raw: Any, error_message: str) -> Decimal:
    """Converte int/float/Decimal/str numérica em Decimal finito ou levanta ValidationError."""
    if isinstance(raw, bool) or raw is None:
        raise ValidationError(error_message)
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, int):
        value = Decimal(raw)
    elif isinstance(raw, float):
        # str() evita o ruído binário do float (0.1 → 0.1000000000000000055…)
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        try:
            value = Decimal(raw.strip())
        except InvalidOperation as exc:
            raise ValidationError(error_message) from exc
    else:
        raise ValidationError(error_message)

    if not value.is_finite():
        raise ValidationError(error_message)
    return value
