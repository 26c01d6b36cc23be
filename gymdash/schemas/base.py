"""
Esquemas base para las respuestas de la API REST.

Todas las respuestas se validan una sola vez en la frontera HTTP. Reglas
comunes de relleno por defecto:

- Los campos llegan en camelCase y se exponen en snake_case
- `_id` (o `id`) se expone como `id` y siempre como cadena
- Los campos desconocidos se conservan (extra="allow") para no perder datos
  que el servidor añada en el futuro
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Modelo base con alias camelCase y campos extra permitidos."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True
    )

    def to_payload(self) -> dict:
        """Serializa el modelo con los nombres de campo del servidor."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Resource(ApiModel):
    """Entidad identificada por `_id` en el servidor."""
    id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
        description="Identificador de la entidad"
    )
