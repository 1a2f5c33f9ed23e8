from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from labloop.constants.id_prefixes import MAX_SEQUENCE


class CounterInfoResponse(BaseModel):
    """Current state of an ID counter"""

    prefix: str
    sequence: int
    next_id: Optional[str] = None
    remaining: int

    model_config = ConfigDict(from_attributes=True)


class NextIdResponse(BaseModel):
    prefix: str
    next_id: str


class CounterResetRequest(BaseModel):
    start_from: int = Field(0, ge=0, le=MAX_SEQUENCE)
