from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CustomBaseModel(BaseModel):
    """Custom base model for all schemas.
    - snake_case attributes, camelCase JSON (request and response)
    - build from ORM rows or dicts with from_record
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @classmethod
    def from_record(cls, record: Any):
        if isinstance(record, dict):
            return cls.model_validate(record)
        if hasattr(record, "__table__"):
            return cls.model_validate(record, from_attributes=True)
        raise ValueError(f"Invalid record type: {type(record)}")


class Envelope(CustomBaseModel):
    """Success envelope shared by every JSON endpoint."""

    success: bool = True
    message: Optional[str] = None
    warning: Optional[str] = None


class ErrorResponse(CustomBaseModel):
    success: bool = False
    error: str
    code: Optional[str] = None
