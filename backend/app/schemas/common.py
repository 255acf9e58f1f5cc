"""
Shared schema base.

Request and response bodies use camelCase on the wire; snake_case input is
accepted too.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    """Schema for simple acknowledgement responses."""
    success: bool = True
    message: str
