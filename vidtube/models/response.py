"""Response envelope shared by every endpoint."""

from typing import Any

from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing camelCase keys on the wire.

    Fields stay snake_case in Python; both spellings are accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel):
    """Standard success envelope.

    Attributes:
        status_code: Mirrors the HTTP status of the response
        data: Endpoint payload
        message: Human-readable outcome
    """

    status_code: int
    data: Any = None
    message: str = "Success"

    @computed_field
    @property
    def success(self) -> bool:
        return self.status_code < 400
