"""Base classes and shared payloads for the JSON API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ApiOut(ApiModel):
    model_config = ConfigDict(from_attributes=True)


class Pagination(ApiOut):
    page: int
    limit: int
    total: int
    pages: int


class MessageResponse(ApiModel):
    message: str
