"""Shared schema pieces: camelCase base model and the response envelope.

Learn: The wire format is camelCase (statusCode, isEmailVerified, ...)
while Python code stays snake_case. CamelModel does the translation with
an alias generator; populate_by_name lets request bodies use either form.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Success envelope: {statusCode, message, success, data}."""

    status_code: int
    message: str = "success"
    success: bool = True
    data: Optional[T] = None


def ok(data=None, message: str = "success", status_code: int = 200) -> ApiResponse:
    """Build a success envelope. `success` follows the status code."""
    return ApiResponse(
        status_code=status_code,
        message=message,
        success=status_code < 400,
        data=data,
    )
