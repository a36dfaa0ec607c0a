from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CrmBaseModel(BaseModel):
    """
    BaseModel padrão da API:
    - JSON em camelCase (`clientId`), atributos em snake_case;
    - aceita tanto o alias quanto o nome do campo na entrada.
    """

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class CrmInputModel(CrmBaseModel):
    """Payloads de escrita: campo desconhecido é erro, não é ignorado."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "forbid",
    }

    def provided_fields(self) -> set[str]:
        """Campos presentes no payload (inclusive os enviados como null)."""
        return set(self.model_fields_set)
