# eduplatform/schemas/common.py
from datetime import datetime
from typing import Annotated, ClassVar, Tuple

from pydantic import AfterValidator, BaseModel, model_validator

from ..utils.time import ensure_utc

# Incoming timestamps are stored as UTC regardless of the offset the client sent
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


class PartialUpdate(BaseModel):
    """Body for partial updates: omitted fields stay as they are.

    Fields listed in ``required_fields`` back NOT NULL columns, so an
    explicit null for them is a validation error.
    """
    required_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_null_required(self):
        nulled = [
            name for name in self.required_fields
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self
