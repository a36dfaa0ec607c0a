from crm_core.core.domain.events.exceptions import ValidationError


def page_window(page: int, page_size: int, max_page_size: int) -> tuple[int, int]:
    """(limit, offset) da página pedida; página começa em 1."""
    if page < 1:
        raise ValidationError("Numer strony musi być większy od zera")
    if page_size < 1 or page_size > max_page_size:
        raise ValidationError(f"Rozmiar strony musi mieścić się w zakresie 1-{max_page_size}")
    return page_size, (page - 1) * page_size
